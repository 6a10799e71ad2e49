"""
Pytest configuration and fixtures for RuleUnit tests.
"""

import pytest
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.agent import AgentClient, InMemoryAgent
from core.composer import Composer
from core.config import Config, ConfigStack
from core.failures import CollectingFailureSink, TestIdentity
from core.structured_events import EventEmitter


CLASS_OWNER = "tests.sample.SampleTest"
METHOD_OWNER = "tests.sample.SampleTest.test_one"


class TracingClient(AgentClient):
    """
    Agent client that records every call in a shared trace.

    Script files are not read from disk; the script name is installed as
    its own text. Each call is traced before the agent sees it, so a
    failing install still shows up as an attempt.
    """

    def __init__(self, agent, trace):
        super().__init__(agent)
        self.trace = trace
        self.directories = {}

    def load_script_file(self, owner, name, directory):
        self.trace.append(("load", name))
        self.directories[name] = directory
        self.agent.install(owner, name, f"# script {name}\n")
        return Path(directory) / f"{name}.btm"

    def unload_script_file(self, owner, name):
        self.trace.append(("unload", name))
        self.agent.uninstall(owner, name)

    def load_script_text(self, owner, name, text):
        self.trace.append(("load_text", name))
        self.agent.install(owner, name, text)

    def unload_script_text(self, owner, name):
        self.trace.append(("unload_text", name))
        self.agent.uninstall(owner, name)


@pytest.fixture
def trace():
    return []


@pytest.fixture
def agent():
    return InMemoryAgent()


@pytest.fixture
def client(agent, trace):
    return TracingClient(agent, trace)


@pytest.fixture
def sink():
    return CollectingFailureSink()


@pytest.fixture
def stack():
    return ConfigStack(Config(use_environment=False))


@pytest.fixture
def events():
    return EventEmitter(enable_console=False)


@pytest.fixture
def composer(client, sink, stack, events):
    return Composer(client, sink=sink, stack=stack, events=events)


@pytest.fixture
def identity():
    return TestIdentity(CLASS_OWNER, "test_one")


@pytest.fixture
def body(trace):
    """Test body that records that it ran."""
    def run():
        trace.append(("run",))
        return "ok"
    return run
