"""
Fault-injection agent seam.

RuleAgent is the narrow interface the runner needs from an instrumentation
agent: install a named script for an owner, and uninstall it again.
InMemoryAgent keeps scripts in a registry and is used when no real agent
is attached. AgentClient adds script-file loading on top of any agent.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from core.errors import AgentError
from utils.resolution import locate_script_file


logger = logging.getLogger(__name__)


class RuleAgent(ABC):
    """Interface to a running fault-injection agent."""

    @abstractmethod
    def install(self, owner: Any, name: str, text: str) -> None:
        """Install rule script text under (owner, name)."""
        pass

    @abstractmethod
    def uninstall(self, owner: Any, name: str) -> None:
        """Remove the script installed under (owner, name)."""
        pass


@dataclass
class AgentCall:
    """One install or uninstall call seen by an agent."""
    action: str
    owner: Any
    name: str
    timestamp: datetime = field(default_factory=datetime.now)


class InMemoryAgent(RuleAgent):
    """
    Registry of installed rule scripts.

    Rejects a second install of a live (owner, name) and an uninstall of
    something that is not installed, the way a real agent rejects them.
    """

    def __init__(self):
        self._scripts: Dict[Tuple[Any, str], str] = {}
        self.history: List[AgentCall] = []

    def install(self, owner: Any, name: str, text: str) -> None:
        self.history.append(AgentCall('install', owner, name))
        key = (owner, name)
        if key in self._scripts:
            raise AgentError(f"Script '{name}' already installed for {owner!r}")
        self._scripts[key] = text
        logger.info(f"Agent: installed script '{name}' for {owner!r}")

    def uninstall(self, owner: Any, name: str) -> None:
        self.history.append(AgentCall('uninstall', owner, name))
        if self._scripts.pop((owner, name), None) is None:
            raise AgentError(f"Script '{name}' is not installed for {owner!r}")
        logger.info(f"Agent: uninstalled script '{name}' for {owner!r}")

    def is_installed(self, owner: Any, name: str) -> bool:
        return (owner, name) in self._scripts

    def script_text(self, owner: Any, name: str) -> Optional[str]:
        return self._scripts.get((owner, name))

    def scripts_for(self, owner: Any) -> List[str]:
        """Names of scripts installed for owner, in install order."""
        return [name for (key_owner, name) in self._scripts if key_owner == owner]

    def active_count(self) -> int:
        return len(self._scripts)

    def clear_all(self) -> int:
        """Drop every installed script. Returns count cleared."""
        count = len(self._scripts)
        self._scripts.clear()
        if count:
            logger.warning(f"Agent: cleared {count} installed scripts")
        return count


class AgentClient:
    """
    Script loading operations used by the composer.

    Script files are located on disk and their text installed; inline rule
    text is installed as is. Both are removed by (owner, name).
    """

    def __init__(self, agent: RuleAgent, locate: Callable[[str, Union[str, Path]], Path] = locate_script_file):
        self.agent = agent
        self._locate = locate

    def load_script_file(self, owner: Any, name: str, directory: Union[str, Path]) -> Path:
        """Locate name under directory and install its text. Returns the file used."""
        path = self._locate(name, directory)
        text = path.read_text(encoding='utf-8')
        self.agent.install(owner, name, text)
        return path

    def unload_script_file(self, owner: Any, name: str) -> None:
        self.agent.uninstall(owner, name)

    def load_script_text(self, owner: Any, name: str, text: str) -> None:
        self.agent.install(owner, name, text)

    def unload_script_text(self, owner: Any, name: str) -> None:
        self.agent.uninstall(owner, name)
