"""
Colored console output for verbose tracing and additional failures.
"""

import sys
from typing import Any, Optional, TextIO

from colorama import init, Fore, Style

init()


def trace(message: str, stream: Optional[TextIO] = None):
    """Print one verbose runner trace line."""
    out = stream or sys.stdout
    print(f"{Fore.CYAN}RuleUnit{Style.RESET_ALL} : {message}", file=out)
    out.flush()


def print_failure(identity: Any, error: BaseException, stream: Optional[TextIO] = None):
    """Print an additional (teardown) failure without interrupting the run."""
    out = stream or sys.stderr
    print(f"{Fore.RED}✗ Additional failure{Style.RESET_ALL} in {Fore.YELLOW}{identity}{Style.RESET_ALL}", file=out)
    for line in str(error).splitlines():
        print(f"  {Style.DIM}{line}{Style.RESET_ALL}", file=out)
    out.flush()
