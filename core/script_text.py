"""
Rule script text construction for inline rules.
"""

from typing import Iterable

from core.directives import RuleDescriptor


DEFAULT_LOCATION = "AT ENTRY"


def _location_clause(location: str) -> str:
    location = location.strip()
    if not location:
        return DEFAULT_LOCATION
    if location.upper().startswith(("AT ", "AFTER ")):
        return location
    return f"AT {location}"


def rule_text(rule: RuleDescriptor) -> str:
    """Render one rule as rule script text."""
    lines = [f"# RuleUnit generated rule: {rule.name}"]
    lines.append(f"RULE {rule.name}")

    keyword = "INTERFACE" if rule.is_interface else "CLASS"
    caret = "^" if rule.is_overriding else ""
    lines.append(f"{keyword} {caret}{rule.target_class}")
    lines.append(f"METHOD {rule.target_method}")

    if rule.helper:
        lines.append(f"HELPER {rule.helper}")

    lines.append(_location_clause(rule.target_location))

    if rule.binding:
        lines.append(f"BIND {rule.binding}")

    if rule.compile:
        lines.append("COMPILE")

    lines.append(f"IF {rule.condition or 'TRUE'}")
    lines.append(f"DO {rule.action or 'NOTHING'}")
    lines.append("ENDRULE")
    return "\n".join(lines) + "\n"


def build_script_text(rules: Iterable[RuleDescriptor]) -> str:
    """Concatenate rules, in order, into one script."""
    return "\n".join(rule_text(rule) for rule in rules)
