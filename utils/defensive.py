"""
Defensive checks for RuleUnit.
Validates directive arguments and config values, and probes script files.
"""

import logging
from pathlib import Path
from typing import Any, Optional


class ValidationError(Exception):
    """Raised when a directive argument or config value is rejected."""
    pass


class InputValidator:
    """Type and range checks for values coming from directives or config files."""

    @staticmethod
    def validate_string(value: Any, min_length: int = 0, max_length: int = 10000,
                        allow_empty: bool = True, allow_none: bool = False) -> Optional[str]:
        """
        Check a text value such as a script name, directory or rule clause.

        Null bytes are dropped before the length checks.

        Args:
            value: Candidate value
            min_length: Shortest accepted length
            max_length: Longest accepted length
            allow_empty: Accept ""
            allow_none: Accept None (returned unchanged)

        Raises:
            ValidationError: Wrong type or length
        """
        if value is None:
            if not allow_none:
                raise ValidationError("Expected text, got None")
            return None

        if not isinstance(value, str):
            raise ValidationError(f"Expected text, got {type(value).__name__}: {value!r}")

        text = value.replace('\x00', '')

        if not text and not allow_empty:
            raise ValidationError("Text must not be empty")

        if not min_length <= len(text) <= max_length:
            raise ValidationError(
                f"Text length {len(text)} outside {min_length}..{max_length}"
            )

        return text

    @staticmethod
    def validate_int(value: Any, min_val: Optional[int] = None,
                     max_val: Optional[int] = None, allow_none: bool = False) -> Optional[int]:
        """
        Check an integer value such as an agent port.

        Digit strings are converted, so "9191" is accepted. Booleans are not
        integers here even though Python treats them as such.

        Raises:
            ValidationError: Not convertible, or outside min_val..max_val
        """
        if value is None:
            if not allow_none:
                raise ValidationError("Expected integer, got None")
            return None

        if isinstance(value, bool):
            raise ValidationError(f"Expected integer, got bool: {value}")

        if not isinstance(value, int):
            try:
                value = int(value)
            except (ValueError, TypeError):
                raise ValidationError(f"Cannot convert to integer: {value!r}")

        if min_val is not None and value < min_val:
            raise ValidationError(f"Value too small: {value} < {min_val}")

        if max_val is not None and value > max_val:
            raise ValidationError(f"Value too large: {value} > {max_val}")

        return value

    @staticmethod
    def validate_bool(value: Any, allow_none: bool = False) -> Optional[bool]:
        """Check a flag; only True and False are accepted."""
        if value is None:
            if not allow_none:
                raise ValidationError("Expected true or false, got None")
            return None

        if not isinstance(value, bool):
            raise ValidationError(f"Expected bool, got {type(value).__name__}: {value!r}")

        return value


class StateValidator:
    """File system probes."""

    @staticmethod
    def check_file_accessible(file_path: Path) -> bool:
        """True when file_path is a regular file whose first byte can be read."""
        if not file_path.is_file():
            return False

        try:
            with open(file_path, 'rb') as f:
                f.read(1)
        except OSError as e:
            logging.warning(f"Script file not readable: {file_path} ({e})")
            return False

        return True
