"""
RuleUnit Core Module
Configuration scopes, directives, resource handles and lifecycle composition.
"""

from .errors import (
    RuleUnitError,
    SetupError,
    TeardownError,
    ConfigurationConflict,
    ConfigStackError,
    AgentError,
    ScriptNotFoundError,
)
from .config import Config, ConfigFrame, ConfigStack
from .directives import (
    DirectiveKind,
    DirectiveDescriptor,
    RuleDescriptor,
    config_override,
    script,
    script_list,
    rule,
    rule_set,
    validate_scope,
)
from .agent import RuleAgent, InMemoryAgent, AgentClient
from .failures import (
    TestIdentity,
    FailureSink,
    CollectingFailureSink,
    LoggingFailureSink,
    ConsoleFailureSink,
)
from .composer import Composer
from .logger import setup_logging

__all__ = [
    'RuleUnitError',
    'SetupError',
    'TeardownError',
    'ConfigurationConflict',
    'ConfigStackError',
    'AgentError',
    'ScriptNotFoundError',
    'Config',
    'ConfigFrame',
    'ConfigStack',
    'DirectiveKind',
    'DirectiveDescriptor',
    'RuleDescriptor',
    'config_override',
    'script',
    'script_list',
    'rule',
    'rule_set',
    'validate_scope',
    'RuleAgent',
    'InMemoryAgent',
    'AgentClient',
    'TestIdentity',
    'FailureSink',
    'CollectingFailureSink',
    'LoggingFailureSink',
    'ConsoleFailureSink',
    'Composer',
    'setup_logging',
]
