"""
Error taxonomy for RuleUnit.

SetupError and ConfigurationConflict become the outcome of a test.
TeardownError is never raised to the caller; it is handed to a failure sink.
"""

from typing import Any, Optional


class RuleUnitError(Exception):
    """Base class for all RuleUnit errors."""
    pass


class ConfigurationConflict(RuleUnitError):
    """Raised when mutually exclusive directives share one scope."""
    pass


class SetupError(RuleUnitError):
    """Raised when installing a resource fails; the test body never runs."""

    def __init__(self, message: str, owner: Any = None, name: Optional[str] = None):
        super().__init__(message)
        self.owner = owner
        self.name = name


class TeardownError(RuleUnitError):
    """Wraps an error raised while uninstalling a resource or popping config."""

    def __init__(self, message: str, owner: Any = None, name: Optional[str] = None,
                 original: Optional[BaseException] = None,
                 primary: Optional[BaseException] = None):
        super().__init__(message)
        self.owner = owner
        self.name = name
        self.original = original
        # error already failing the test when teardown ran, if any
        self.primary = primary


class ConfigStackError(RuleUnitError):
    """Raised when a config frame pop does not match a pushed frame."""
    pass


class AgentError(RuleUnitError):
    """Raised by an agent when an install or uninstall is rejected."""
    pass


class ScriptNotFoundError(RuleUnitError):
    """Raised when no rule script file matches a script name."""
    pass
