"""
Directive descriptors attached to a test class or test method.

A directive is one of: a configuration override, a single rule script,
a list of rule scripts, a set of inline rules, or a single inline rule.
Descriptors are immutable; scope conflicts are detected before anything
is installed.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from core.config import validate_overrides
from core.errors import ConfigurationConflict
from utils.defensive import InputValidator
from utils.error_messages import format_conflict_error


logger = logging.getLogger(__name__)


class DirectiveKind(Enum):
    """Directive kinds, valued by install precedence within one scope."""
    CONFIG = 0
    SCRIPT = 1
    SCRIPT_LIST = 2
    RULE_SET = 3
    RULE = 4


# Pairs that may not appear together in one scope
EXCLUSIVE_KINDS = (
    (DirectiveKind.SCRIPT, DirectiveKind.SCRIPT_LIST),
    (DirectiveKind.RULE, DirectiveKind.RULE_SET),
)

_DISPLAY_NAMES = {
    DirectiveKind.CONFIG: 'config override',
    DirectiveKind.SCRIPT: 'single script',
    DirectiveKind.SCRIPT_LIST: 'script list',
    DirectiveKind.RULE_SET: 'rule set',
    DirectiveKind.RULE: 'single rule',
}


@dataclass(frozen=True)
class RuleDescriptor:
    """An inline rule, turned into rule script text before loading."""
    name: str
    target_class: str
    target_method: str
    condition: str = "TRUE"
    action: str = ""
    binding: str = ""
    helper: str = ""
    target_location: str = ""
    is_interface: bool = False
    is_overriding: bool = False
    compile: bool = False

    def __post_init__(self):
        InputValidator.validate_string(self.name, allow_empty=False)
        InputValidator.validate_string(self.target_class, allow_empty=False)
        InputValidator.validate_string(self.target_method, allow_empty=False)


@dataclass(frozen=True)
class DirectiveDescriptor:
    """
    One directive in one scope.

    Attributes:
        kind: Which directive this is
        owner: Identity of the test class or method the directive is scoped to
        name: Lookup key (script value, rule name, or kind label)
        payload: Override dict, script value, nested script descriptors,
            or rule descriptors depending on kind
        directory: Script directory for SCRIPT directives, overriding config
    """
    kind: DirectiveKind
    owner: Any
    name: str
    payload: Any = None
    directory: Optional[str] = None

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self.kind]

    def items(self) -> Tuple['DirectiveDescriptor', ...]:
        """Script entries in declared order (a SCRIPT is a list of one)."""
        if self.kind == DirectiveKind.SCRIPT_LIST:
            return tuple(self.payload)
        if self.kind == DirectiveKind.SCRIPT:
            return (self,)
        raise TypeError(f"{self.display_name} directive has no script items")

    def rules(self) -> Tuple[RuleDescriptor, ...]:
        """Rules in declared order (a RULE is a set of one)."""
        if self.kind == DirectiveKind.RULE_SET:
            return tuple(self.payload)
        if self.kind == DirectiveKind.RULE:
            return (self.payload,)
        raise TypeError(f"{self.display_name} directive has no rules")


def config_override(owner: Any, **fields) -> DirectiveDescriptor:
    """Directive overriding configuration fields for owner's scope."""
    return DirectiveDescriptor(
        kind=DirectiveKind.CONFIG,
        owner=owner,
        name='config',
        payload=validate_overrides(fields),
    )


def script(owner: Any, value: str = "", directory: Optional[str] = None) -> DirectiveDescriptor:
    """
    Directive loading one rule script file.

    An empty value means the script is named after the test method,
    or after the test class at class scope.
    """
    value = InputValidator.validate_string(value)
    directory = InputValidator.validate_string(directory, allow_none=True)
    return DirectiveDescriptor(
        kind=DirectiveKind.SCRIPT,
        owner=owner,
        name=value.strip(),
        payload=value.strip(),
        directory=directory.strip() if directory else None,
    )


def script_list(owner: Any, scripts: Iterable[DirectiveDescriptor]) -> DirectiveDescriptor:
    """Directive loading several rule script files, in declared order."""
    scripts = tuple(scripts)
    for entry in scripts:
        if not isinstance(entry, DirectiveDescriptor) or entry.kind != DirectiveKind.SCRIPT:
            raise TypeError(f"script_list entries must be script directives, got {entry!r}")
    return DirectiveDescriptor(
        kind=DirectiveKind.SCRIPT_LIST,
        owner=owner,
        name=','.join(entry.name for entry in scripts),
        payload=scripts,
    )


def rule(owner: Any, descriptor: RuleDescriptor) -> DirectiveDescriptor:
    """Directive loading one inline rule."""
    if not isinstance(descriptor, RuleDescriptor):
        raise TypeError(f"rule expects a RuleDescriptor, got {type(descriptor).__name__}")
    return DirectiveDescriptor(
        kind=DirectiveKind.RULE,
        owner=owner,
        name=descriptor.name,
        payload=descriptor,
    )


def rule_set(owner: Any, rules: Sequence[RuleDescriptor]) -> DirectiveDescriptor:
    """Directive loading several inline rules, in declared order."""
    rules = tuple(rules)
    for descriptor in rules:
        if not isinstance(descriptor, RuleDescriptor):
            raise TypeError(f"rule_set expects RuleDescriptors, got {type(descriptor).__name__}")
    return DirectiveDescriptor(
        kind=DirectiveKind.RULE_SET,
        owner=owner,
        name=','.join(descriptor.name for descriptor in rules),
        payload=rules,
    )


def validate_scope(directives: Iterable[DirectiveDescriptor], scope: str = "scope") -> List[DirectiveDescriptor]:
    """
    Check one scope's directives and return them in install order.

    Raises:
        ConfigurationConflict: A kind repeats, or two exclusive kinds are both present
    """
    directives = list(directives)
    seen: Dict[DirectiveKind, DirectiveDescriptor] = {}

    for directive in directives:
        if directive.kind in seen:
            raise ConfigurationConflict(format_conflict_error(
                scope,
                f"one {directive.display_name}",
                f"a second {directive.display_name}"
            ))
        seen[directive.kind] = directive

    for first, second in EXCLUSIVE_KINDS:
        if first in seen and second in seen:
            raise ConfigurationConflict(format_conflict_error(
                scope, _DISPLAY_NAMES[first], _DISPLAY_NAMES[second]
            ))

    logger.debug(f"Validated {len(directives)} directives for {scope}")
    return sorted(directives, key=lambda d: d.kind.value)
