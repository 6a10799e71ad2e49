"""
Script name, load directory and script file resolution.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from core.errors import ScriptNotFoundError
from utils.defensive import StateValidator
from utils.error_messages import format_script_not_found


SCRIPT_EXTENSIONS = ('.btm', '.txt')
DEFAULT_LOAD_DIRECTORY = '.'


def resolve_script_name(raw_value: Optional[str], method_name: Optional[str] = None) -> Optional[str]:
    """
    Name a script directive.

    An explicit value wins, otherwise the test method name is used.
    Returns None when neither is set (class scope without a value).
    """
    if raw_value and raw_value.strip():
        return raw_value.strip()
    if method_name:
        return method_name
    return None


def resolve_load_directory(directive_dir: Optional[str], config_dir: Optional[str]) -> str:
    """Directive-level directory wins over the configured default."""
    if directive_dir and directive_dir.strip():
        return directive_dir.strip()
    if config_dir and config_dir.strip():
        return config_dir.strip()
    return DEFAULT_LOAD_DIRECTORY


def candidate_paths(name: str, directory: Union[str, Path]) -> List[Path]:
    """
    Files that may hold the script called name, in lookup order.

    Dotted names (e.g. a qualified test class) are also tried as a
    nested path and by their last segment.
    """
    base = Path(directory)
    stems = [name]
    if '.' in name:
        stems.append(name.replace('.', '/'))
        stems.append(name.rsplit('.', 1)[1])

    candidates = []
    for stem in stems:
        for ext in SCRIPT_EXTENSIONS:
            candidates.append(base / f"{stem}{ext}")
        # name may already carry its extension
        if stem.endswith(SCRIPT_EXTENSIONS):
            candidates.append(base / stem)
    return candidates


def locate_script_file(name: str, directory: Union[str, Path]) -> Path:
    """
    Find the rule script file for name.

    Raises:
        ScriptNotFoundError: No readable candidate exists
    """
    tried = candidate_paths(name, directory)
    for path in tried:
        if StateValidator.check_file_accessible(path):
            logging.debug(f"Resolved script '{name}' to {path}")
            return path

    raise ScriptNotFoundError(format_script_not_found(name, directory, tried))
