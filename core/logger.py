"""
Log files for RuleUnit test runs.

Each run gets its own timestamped ruleunit-*.log; older files are rotated
out so at most max_log_files remain.
"""

import os
import logging
import datetime
import glob
from pathlib import Path
from typing import Optional


LOG_PREFIX = 'ruleunit-'
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def setup_logging(log_folder: str = 'logs', max_log_files: int = 5, level: int = logging.INFO) -> Path:
    """
    Attach a file handler for this run to the root logger.

    Args:
        log_folder: Directory for log files, created if missing
        max_log_files: Log files to keep, counting the new one
        level: Root logger level

    Returns:
        Path to the new log file
    """
    logs_folder = Path(log_folder)
    os.makedirs(logs_folder, exist_ok=True)

    stamp = datetime.datetime.now().strftime("%Y%m%d-%H%M%S-%f")
    log_file = logs_folder / f'{LOG_PREFIX}{stamp}.log'

    cleanup_old_logs(logs_folder, max_log_files - 1)

    handler = logging.FileHandler(log_file)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)

    logging.info(f"RuleUnit log file: {log_file}")
    return log_file


def detach_log_file(log_file: Optional[Path]) -> bool:
    """
    Remove and close the root handler writing to log_file.

    Returns:
        True if a handler was found
    """
    if log_file is None:
        return False

    target = os.path.abspath(log_file)
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
            root.removeHandler(handler)
            handler.close()
            return True
    return False


def cleanup_old_logs(logs_folder: Path, max_files: int):
    """
    Delete the oldest log files until at most max_files remain.

    Args:
        logs_folder: Directory containing log files
        max_files: Log files to keep
    """
    existing_logs = sorted(glob.glob(str(logs_folder / f'{LOG_PREFIX}*.log')))
    excess = len(existing_logs) - max(max_files, 0)
    for old_log in existing_logs[:max(excess, 0)]:
        try:
            os.remove(old_log)
        except OSError as e:
            logging.warning(f"Could not remove old log file: {e}")
