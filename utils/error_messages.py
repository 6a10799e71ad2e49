"""
Actionable error messages for setup, teardown and directive problems.

Every message has the same shape so it reads well in a test report:
  ERROR: <what failed>
    Reason: <cause>
    Action: <what to change>
    Location: <test, owner or directory>
    Details: <optional extra lines>
"""

import logging
from pathlib import Path
from typing import Any, Optional, Union


def format_error(
    what_failed: str,
    reason: str,
    action: str,
    location: Optional[Union[Path, str]] = None,
    details: Optional[str] = None
) -> str:
    """
    Format a clear, actionable error message.

    Args:
        what_failed: What operation failed (e.g., "Failed to load rule script")
        reason: Why it failed (e.g., "No file named two.btm")
        action: What user should do (e.g., "Check the script directory")
        location: Where the problem occurred (test identity, directory, etc.)
        details: Optional additional details

    Returns:
        Formatted error message
    """
    fields = [("Reason", reason), ("Action", action), ("Location", location), ("Details", details)]
    lines = [f"ERROR: {what_failed}"]
    lines.extend(f"  {label}: {value}" for label, value in fields if value)
    return "\n".join(lines)


def log_error(
    what_failed: str,
    reason: str,
    action: str,
    location: Optional[Union[Path, str]] = None,
    details: Optional[str] = None
):
    """Log the message format_error would build, at ERROR level."""
    logging.error(format_error(what_failed, reason, action, location, details))


def format_setup_error(resource: str, owner: Any, error: BaseException) -> str:
    """Format an install failure for one resource."""
    return format_error(
        what_failed=f"Failed to install {resource}",
        reason=f"{type(error).__name__}: {error}",
        action="Test body was skipped. Check the script name, directory and agent state",
        location=owner
    )


_TEARDOWN_ACTIONS = {
    'config': "The override may still be on the config stack. Later tests can see its values",
    'script': "Rules from this script may still be active in the agent. Later tests can see stale rules",
    'rule': "The rule may still be active in the agent. Later tests can see it fire",
}


def format_teardown_error(resource: str, owner: Any, error: BaseException, kind: str = 'script') -> str:
    """Format an uninstall or config pop failure; kind picks the action text."""
    return format_error(
        what_failed=f"Failed to remove {resource}",
        reason=f"{type(error).__name__}: {error}",
        action=_TEARDOWN_ACTIONS.get(kind, _TEARDOWN_ACTIONS['script']),
        location=owner
    )


def format_conflict_error(scope: str, first: str, second: str) -> str:
    """Format a mutually exclusive directive conflict."""
    return format_error(
        what_failed=f"Conflicting directives on {scope}",
        reason=f"Use either {first} or {second} but not both",
        action=f"Merge the {first} into the {second} directive or drop one of them",
        location=scope
    )


def format_script_not_found(name: str, directory: Union[Path, str], tried: list) -> str:
    """Format a missing rule script file error."""
    details = None
    if tried:
        shown = [str(p) for p in tried[:6]]
        details = "Tried: " + ", ".join(shown)
        if len(tried) > 6:
            details += "..."

    return format_error(
        what_failed=f"Rule script not found: {name}",
        reason="No .btm or .txt file matches the script name",
        action="Set the directive directory or the load_directory config field",
        location=directory,
        details=details
    )
