"""
RuleUnit: fault-injection rules scoped to unit tests

Installs named rule scripts into a fault-injection agent before a test
(or its class) runs and removes them afterwards on every exit path.
A host test runner discovers the directives for a test and calls
`wrap` once per test, immediately before running it.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional

from core import Config, ConfigStack, setup_logging
from core.logger import detach_log_file
from core.agent import AgentClient, InMemoryAgent, RuleAgent
from core.composer import Composer, ExecutionUnit
from core.directives import (
    DirectiveDescriptor,
    RuleDescriptor,
    config_override,
    rule,
    rule_set,
    script,
    script_list,
)
from core.failures import FailureSink, LoggingFailureSink, TestIdentity
from core.structured_events import EventEmitter


# Collaborator that maps a test's metadata to its directives
Discover = Callable[[Any], List[DirectiveDescriptor]]


class RuleUnit:
    """Default wiring of config, agent, failure sink, events and composer."""

    def __init__(
        self,
        agent: Optional[RuleAgent] = None,
        sink: Optional[FailureSink] = None,
        config_path: Optional[Path] = None,
        event_log: Optional[Path] = None,
        log_folder: Optional[str] = None,
    ):
        """
        Initialize the runner.

        Args:
            agent: Fault-injection agent; an InMemoryAgent when None
            sink: Failure sink for teardown failures; logs them when None
            config_path: JSON file with global config defaults
            event_log: JSON lines file for lifecycle events
            log_folder: Write a rotating log file here when set
        """
        self.config = Config(config_path)
        if log_folder:
            self.log_file = setup_logging(log_folder, self.config.max_log_files)
        else:
            self.log_file = None

        self.agent = agent if agent is not None else InMemoryAgent()
        self.client = AgentClient(self.agent)
        self.stack = ConfigStack(self.config)
        self.events = EventEmitter(log_file=event_log, enable_console=False)
        self.composer = Composer(
            self.client,
            sink=sink if sink is not None else LoggingFailureSink(),
            stack=self.stack,
            events=self.events,
        )
        logging.debug(
            f"RuleUnit ready: agent={type(self.agent).__name__}, "
            f"load_directory={self.config.load_directory or '.'}"
        )

    def wrap(
        self,
        base_unit: ExecutionUnit,
        class_directives: Iterable[DirectiveDescriptor] = (),
        method_directives: Iterable[DirectiveDescriptor] = (),
        identity: Optional[TestIdentity] = None,
    ) -> ExecutionUnit:
        """Wrap one test body; see Composer.wrap."""
        return self.composer.wrap(base_unit, class_directives, method_directives, identity)

    def wrap_scope(
        self,
        unit: ExecutionUnit,
        directives: Iterable[DirectiveDescriptor],
        identity: TestIdentity,
        method_name: Optional[str] = None,
    ) -> ExecutionUnit:
        """Wrap with one scope's directives only."""
        return self.composer.wrap_scope(unit, directives, identity, method_name)

    def close(self) -> None:
        """Detach this runner's log file handler, if any."""
        if detach_log_file(self.log_file):
            logging.debug(f"Closed RuleUnit log file {self.log_file}")
        self.log_file = None

    def wrap_discovered(
        self,
        base_unit: ExecutionUnit,
        discover: Discover,
        class_metadata: Any,
        method_metadata: Any,
        identity: Optional[TestIdentity] = None,
    ) -> ExecutionUnit:
        """Wrap using a discovery collaborator for both scopes."""
        return self.wrap(base_unit, discover(class_metadata), discover(method_metadata), identity)


_default: Optional[RuleUnit] = None


def get_default() -> RuleUnit:
    """Get the lazily created process-wide runner."""
    global _default
    if _default is None:
        _default = RuleUnit()
    return _default


def wrap(
    base_unit: ExecutionUnit,
    class_directives: Iterable[DirectiveDescriptor] = (),
    method_directives: Iterable[DirectiveDescriptor] = (),
    identity: Optional[TestIdentity] = None,
) -> ExecutionUnit:
    """Wrap one test body using the default runner."""
    return get_default().wrap(base_unit, class_directives, method_directives, identity)


__all__ = [
    'RuleUnit',
    'Discover',
    'get_default',
    'wrap',
    'RuleDescriptor',
    'TestIdentity',
    'config_override',
    'script',
    'script_list',
    'rule',
    'rule_set',
]
