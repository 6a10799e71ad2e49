"""
Chaos Testing Infrastructure

Fault injection for the rule lifecycle: agent installs and uninstalls,
and configuration pops, fail on demand. The scenarios check that every
installed resource is still removed and that teardown failures never
replace a test's own outcome.
"""

from .fault_injectors import (
    AgentFaultInjector,
    InstallFailureInjector,
    UninstallFailureInjector,
    ConfigPopFailureInjector,
    multiple_faults,
)

__all__ = [
    'AgentFaultInjector',
    'InstallFailureInjector',
    'UninstallFailureInjector',
    'ConfigPopFailureInjector',
    'multiple_faults',
]
