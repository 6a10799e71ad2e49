"""
Configuration management for RuleUnit.

Config holds the global defaults. ConfigStack layers class and method
overrides on top of them; a lookup walks from the innermost frame outwards.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from core.errors import ConfigStackError
from utils.defensive import InputValidator, ValidationError


logger = logging.getLogger(__name__)


BOOL_FIELDS = (
    'enforce',
    'inhibit_agent_load',
    'allow_agent_config_update',
    'verbose',
    'agent_verbose',
    'debug',
    'policy',
    'dump_generated_classes',
)

STRING_FIELDS = (
    'agent_host',
    'load_directory',
    'resource_load_directory',
    'dump_generated_classes_directory',
    'log_folder',
)

# field: (min, max, example)
INT_FIELDS = {
    'agent_port': (1, 65535, 9091),
    'max_log_files': (1, 100, 5),
}

ENV_OVERRIDES = {
    'RULEUNIT_LOAD_DIRECTORY': 'load_directory',
    'RULEUNIT_AGENT_HOST': 'agent_host',
    'RULEUNIT_AGENT_PORT': 'agent_port',
    'RULEUNIT_VERBOSE': 'verbose',
}


def _is_truthy_env(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def validate_overrides(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate and normalise a partial override map.

    Ports given as digit strings are converted to int.

    Raises:
        ValidationError: Unknown field or wrong value type
    """
    normalised = {}
    for key, value in fields.items():
        try:
            if key in BOOL_FIELDS:
                normalised[key] = InputValidator.validate_bool(value)
            elif key in STRING_FIELDS:
                normalised[key] = InputValidator.validate_string(value)
            elif key in INT_FIELDS:
                min_val, max_val, _ = INT_FIELDS[key]
                normalised[key] = InputValidator.validate_int(value, min_val=min_val, max_val=max_val)
            else:
                raise ValidationError(f"Unknown config field: {key}")
        except ValidationError as e:
            raise ValidationError(f"Invalid config override '{key}': {e}") from e
    return normalised


class Config:
    """Global configuration defaults for the rule runner."""

    DEFAULT_CONFIG = {
        'enforce': True,
        'agent_host': 'localhost',
        'agent_port': 9091,
        'inhibit_agent_load': False,
        'load_directory': '',
        'resource_load_directory': '',
        'allow_agent_config_update': False,
        'verbose': False,
        'agent_verbose': False,
        'debug': False,
        'policy': False,
        'dump_generated_classes': False,
        'dump_generated_classes_directory': '',
        'max_log_files': 5,
        'log_folder': 'logs',
    }

    def __init__(self, config_path: Path = None, use_environment: bool = True):
        """
        Initialize configuration.

        Args:
            config_path: Path to a JSON defaults file. If None, uses defaults.
            use_environment: Apply RULEUNIT_* environment overrides
        """
        self.config = self.DEFAULT_CONFIG.copy()

        if config_path and config_path.exists():
            self.load_config(config_path)

        if use_environment:
            self._apply_environment()

    def load_config(self, config_path: Path):
        """Load configuration from JSON file, keeping defaults if it is invalid."""
        try:
            with open(config_path, 'r') as f:
                user_config = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(
                f"Invalid JSON in config file {config_path.absolute()}: "
                f"{e} (line {e.lineno}, column {e.colno}). Using default configuration."
            )
            return
        except OSError as e:
            logger.error(f"Could not load config file {config_path.absolute()}: {e}")
            return

        is_valid, errors = self._validate_config(user_config)
        if not is_valid:
            logger.error(
                f"Configuration validation failed for {config_path.absolute()}:\n"
                + "\n\n".join(errors)
                + "\nUsing default configuration instead."
            )
            return

        self.config.update(user_config)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self.config.get(key, default)

    def set(self, key: str, value: Any):
        """Set configuration value after validating it."""
        self.config.update(validate_overrides({key: value}))

    def _apply_environment(self):
        for env_name, field in ENV_OVERRIDES.items():
            raw = os.environ.get(env_name)
            if raw is None or raw == '':
                continue
            if field in BOOL_FIELDS:
                self.config[field] = _is_truthy_env(raw)
                continue
            try:
                self.config.update(validate_overrides({field: raw}))
            except ValidationError as e:
                logger.warning(f"Ignoring {env_name}={raw!r}: {e}")

    def _validate_config(self, config: Any) -> Tuple[bool, List[str]]:
        """
        Validate configuration dictionary.

        Returns:
            Tuple of (is_valid, error_messages)
        """
        if not isinstance(config, dict):
            return (False, [f"ERROR: Config root must be an object, got {type(config).__name__}"])

        errors = []

        for field, (min_val, max_val, example) in INT_FIELDS.items():
            if field in config:
                value = config[field]
                if not isinstance(value, int) or isinstance(value, bool):
                    errors.append(
                        f"ERROR: Invalid config value\n"
                        f"  Field: {field}\n"
                        f"  Value: {repr(value)} ({type(value).__name__})\n"
                        f"  Expected: number (integer)\n"
                        f"  Example: {example}\n"
                        f"  Valid range: {min_val} to {max_val}"
                    )
                elif value < min_val or value > max_val:
                    errors.append(
                        f"ERROR: Invalid config value\n"
                        f"  Field: {field}\n"
                        f"  Value: {value}\n"
                        f"  Expected: number between {min_val} and {max_val}\n"
                        f"  Example: {example}"
                    )

        for field in BOOL_FIELDS:
            if field in config and not isinstance(config[field], bool):
                errors.append(
                    f"ERROR: Invalid config value\n"
                    f"  Field: {field}\n"
                    f"  Value: {repr(config[field])} ({type(config[field]).__name__})\n"
                    f"  Expected: true or false"
                )

        for field in STRING_FIELDS:
            if field in config and not isinstance(config[field], str):
                errors.append(
                    f"ERROR: Invalid config value\n"
                    f"  Field: {field}\n"
                    f"  Value: {repr(config[field])} ({type(config[field]).__name__})\n"
                    f"  Expected: string"
                )

        known = set(self.DEFAULT_CONFIG)
        for field in config:
            if field not in known:
                errors.append(
                    f"ERROR: Unknown config field\n"
                    f"  Field: {field}\n"
                    f"  Known fields: {', '.join(sorted(known))}"
                )

        return (len(errors) == 0, errors)

    @property
    def load_directory(self) -> str:
        """Get default rule script directory."""
        return self.config['load_directory']

    @property
    def agent_host(self) -> str:
        """Get agent listener host."""
        return self.config['agent_host']

    @property
    def agent_port(self) -> int:
        """Get agent listener port."""
        return self.config['agent_port']

    @property
    def verbose(self) -> bool:
        """Get runner trace verbosity."""
        return self.config['verbose']

    @property
    def max_log_files(self) -> int:
        """Get maximum number of log files to keep."""
        return self.config['max_log_files']

    @property
    def log_folder(self) -> str:
        """Get log folder path."""
        return self.config['log_folder']


class ConfigFrame:
    """One scope's partial overrides, linked to the enclosing frame."""

    def __init__(self, owner: Any, fields: Dict[str, Any], parent: Optional['ConfigFrame'] = None):
        self.owner = owner
        self.fields = dict(fields)
        self.parent = parent

    def lookup(self, field: str) -> Tuple[bool, Any]:
        """Walk outwards and return (found, value) for the first frame that sets field."""
        frame = self
        while frame is not None:
            if field in frame.fields:
                return (True, frame.fields[field])
            frame = frame.parent
        return (False, None)

    def __repr__(self):
        return f"ConfigFrame(owner={self.owner!r}, fields={self.fields!r})"


_MISSING = object()


class ConfigStack:
    """
    Nested configuration scopes for one running thread.

    The composer owns one stack and passes it to its link closures.
    Class frames are pushed first and popped last.
    """

    def __init__(self, defaults: Optional[Config] = None):
        self.defaults = defaults if defaults is not None else Config()
        self._frames: List[ConfigFrame] = []

    @property
    def depth(self) -> int:
        return len(self._frames)

    @property
    def innermost(self) -> Optional[ConfigFrame]:
        return self._frames[-1] if self._frames else None

    def push(self, owner: Any, fields: Optional[Dict[str, Any]] = None) -> ConfigFrame:
        """Install a new innermost frame for owner."""
        frame = ConfigFrame(owner, validate_overrides(fields or {}), parent=self.innermost)
        self._frames.append(frame)
        logger.debug(f"Pushed config frame for {owner!r}: {frame.fields}")
        return frame

    def pop(self, owner: Any) -> ConfigFrame:
        """
        Remove the innermost frame belonging to owner.

        Raises:
            ConfigStackError: No frame for owner is on the stack
        """
        for index in range(len(self._frames) - 1, -1, -1):
            frame = self._frames[index]
            if frame.owner == owner:
                break
        else:
            raise ConfigStackError(f"No configuration frame pushed for {owner!r}")

        if index != len(self._frames) - 1:
            logger.warning(
                f"Popping config frame for {owner!r} from below "
                f"{len(self._frames) - 1 - index} inner frame(s)"
            )
            self._frames[index + 1].parent = frame.parent

        del self._frames[index]
        logger.debug(f"Popped config frame for {owner!r}")
        return frame

    def effective(self, field: str, default: Any = _MISSING) -> Any:
        """Effective value of field: innermost override, else the global default."""
        if self._frames:
            found, value = self._frames[-1].lookup(field)
            if found:
                return value
        if default is _MISSING:
            return self.defaults.get(field)
        return self.defaults.get(field, default)

    def snapshot(self) -> Dict[str, Any]:
        """All effective values as a plain dict."""
        return {field: self.effective(field) for field in self.defaults.config}

    def frames_for(self, owner: Any) -> List[ConfigFrame]:
        return [frame for frame in self._frames if frame.owner == owner]
