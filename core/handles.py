"""
Resource handles for installed rule scripts.

A handle tracks one install/uninstall pair. Uninstall is attempted at most
once: `installed` flips to False on the first attempt whether or not the
agent call succeeds.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional, Tuple

from core.errors import SetupError


logger = logging.getLogger(__name__)


class HandleState(Enum):
    """Lifecycle of one wrapper link."""
    IDLE = auto()
    INSTALLING = auto()
    INSTALLED = auto()
    RUNNING = auto()
    UNINSTALLING = auto()
    DONE = auto()


@dataclass
class ResourceHandle:
    """One installed script, rule or config frame tied to an owner."""
    owner: Any
    name: str
    kind: str = "script"
    installed: bool = False
    state: HandleState = HandleState.IDLE
    failed: bool = False
    error: Optional[BaseException] = None

    @property
    def key(self) -> Tuple[Any, str]:
        return (self.owner, self.name)

    def describe(self) -> str:
        return f"{self.kind} '{self.name}'"

    def install(self, action: Callable[[], Any]) -> None:
        """Run the install action; on failure the handle ends DONE without being installed."""
        if self.state != HandleState.IDLE:
            raise RuntimeError(f"Cannot install {self.describe()} from state {self.state.name}")

        self.state = HandleState.INSTALLING
        try:
            action()
        except BaseException as e:
            self._fail(e)
            self.state = HandleState.DONE
            raise

        self.installed = True
        self.state = HandleState.INSTALLED

    def start_running(self) -> None:
        self.state = HandleState.RUNNING

    def record_failure(self, error: BaseException) -> None:
        """Note that the wrapped body failed while this handle was live."""
        self._fail(error)

    def uninstall(self, action: Callable[[], Any]) -> bool:
        """
        Run the uninstall action once.

        Returns:
            True if the action ran, False if the handle was not installed
        """
        if not self.installed:
            return False

        self.installed = False
        self.state = HandleState.UNINSTALLING
        try:
            action()
        except BaseException as e:
            self._fail(e)
            raise
        finally:
            self.state = HandleState.DONE
        return True

    def _fail(self, error: BaseException) -> None:
        if not self.failed:
            self.failed = True
            self.error = error


class HandleRegistry:
    """Live handles keyed by (owner, name)."""

    def __init__(self):
        self._live: Dict[Tuple[Any, str], ResourceHandle] = {}

    def claim(self, handle: ResourceHandle) -> None:
        """
        Reserve handle's key before installing.

        Raises:
            SetupError: The same (owner, name) is already installed
        """
        if handle.key in self._live:
            logger.error(f"Duplicate install of {handle.describe()} for {handle.owner!r}")
            raise SetupError(
                f"{handle.describe()} is already installed for {handle.owner!r}; "
                f"installing it twice without an uninstall is not allowed",
                owner=handle.owner,
                name=handle.name,
            )
        self._live[handle.key] = handle
        logger.debug(f"Claimed {handle.describe()} for {handle.owner!r}")

    def release(self, handle: ResourceHandle) -> None:
        if self._live.get(handle.key) is handle:
            del self._live[handle.key]

    def is_live(self, owner: Any, name: str) -> bool:
        return (owner, name) in self._live

    def live_handles(self) -> List[ResourceHandle]:
        return list(self._live.values())

    def __len__(self) -> int:
        return len(self._live)
