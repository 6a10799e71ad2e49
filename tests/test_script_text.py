"""
Test suite for rule script text construction.
"""

from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from core.directives import RuleDescriptor
from core.script_text import build_script_text, rule_text


def test_minimal_rule_defaults_to_entry():
    text = rule_text(RuleDescriptor(
        name="trace rule",
        target_class="UnitConfigTest",
        target_method="tryAlways",
        action='traceln("intercepted");',
    ))

    lines = text.splitlines()
    assert "RULE trace rule" in lines
    assert "CLASS UnitConfigTest" in lines
    assert "METHOD tryAlways" in lines
    assert "AT ENTRY" in lines
    assert "IF TRUE" in lines
    assert 'DO traceln("intercepted");' in lines
    assert lines[-1] == "ENDRULE"


def test_optional_clauses_in_order():
    text = rule_text(RuleDescriptor(
        name="r",
        target_class="Base",
        target_method="run",
        is_interface=True,
        is_overriding=True,
        helper="org.example.Helper",
        target_location="EXIT",
        binding="test = $0;",
        compile=True,
        condition="test != null",
        action="flag(test)",
    ))

    lines = text.splitlines()
    expected = [
        "RULE r",
        "INTERFACE ^Base",
        "METHOD run",
        "HELPER org.example.Helper",
        "AT EXIT",
        "BIND test = $0;",
        "COMPILE",
        "IF test != null",
        "DO flag(test)",
        "ENDRULE",
    ]
    assert lines[1:] == expected


def test_full_location_clause_kept():
    text = rule_text(RuleDescriptor(name="r", target_class="C", target_method="m",
                                    target_location="AFTER WRITE $count"))
    assert "AFTER WRITE $count" in text.splitlines()


def test_empty_action_does_nothing():
    text = rule_text(RuleDescriptor(name="r", target_class="C", target_method="m"))
    assert "DO NOTHING" in text.splitlines()


def test_build_keeps_rule_order():
    rules = [
        RuleDescriptor(name="first", target_class="C", target_method="m"),
        RuleDescriptor(name="second", target_class="C", target_method="m"),
    ]
    text = build_script_text(rules)
    assert text.index("RULE first") < text.index("RULE second")
    assert text.count("ENDRULE") == 2
