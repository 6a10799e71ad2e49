"""
Test suite for directive descriptors and scope validation.
"""

import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from core.directives import (
    DirectiveKind,
    RuleDescriptor,
    config_override,
    rule,
    rule_set,
    script,
    script_list,
    validate_scope,
)
from core.errors import ConfigurationConflict
from utils.defensive import ValidationError


OWNER = "tests.sample.SampleTest"


def make_rule(name):
    return RuleDescriptor(name=name, target_class="Sample", target_method="tryOne")


class TestConstructors:
    """Directive constructors."""

    def test_script_strips_value_and_directory(self):
        directive = script(OWNER, "  two ", directory=" src/test/scripts ")
        assert directive.kind == DirectiveKind.SCRIPT
        assert directive.name == "two"
        assert directive.directory == "src/test/scripts"

    def test_script_without_value(self):
        directive = script(OWNER)
        assert directive.payload == ""
        assert directive.directory is None

    def test_script_list_keeps_declared_order(self):
        directive = script_list(OWNER, [script(OWNER, "three"), script(OWNER, "three-extra")])
        assert [item.name for item in directive.items()] == ["three", "three-extra"]

    def test_script_list_rejects_non_scripts(self):
        with pytest.raises(TypeError):
            script_list(OWNER, [rule(OWNER, make_rule("r1"))])

    def test_rule_set_keeps_declared_order(self):
        directive = rule_set(OWNER, [make_rule("b"), make_rule("a")])
        assert [r.name for r in directive.rules()] == ["b", "a"]

    def test_single_rule_is_set_of_one(self):
        directive = rule(OWNER, make_rule("r1"))
        assert directive.name == "r1"
        assert len(directive.rules()) == 1

    def test_rule_rejects_wrong_type(self):
        with pytest.raises(TypeError):
            rule(OWNER, "RULE r1")

    def test_rule_descriptor_requires_name(self):
        with pytest.raises(ValidationError):
            RuleDescriptor(name="", target_class="Sample", target_method="run")

    def test_config_override_validates(self):
        with pytest.raises(ValidationError):
            config_override(OWNER, agent_port="not-a-port")

    def test_config_override_payload(self):
        directive = config_override(OWNER, load_directory="src/test/scripts", verbose=True, agent_port="9191")
        assert directive.payload == {'load_directory': "src/test/scripts", 'verbose': True, 'agent_port': 9191}

    def test_items_on_rule_directive_raises(self):
        with pytest.raises(TypeError):
            rule(OWNER, make_rule("r1")).items()


class TestValidateScope:
    """Scope conflicts and install order."""

    def test_sorted_into_install_order(self):
        ordered = validate_scope([
            rule(OWNER, make_rule("r1")),
            script(OWNER, "A"),
            config_override(OWNER, debug=True),
        ])
        assert [d.kind for d in ordered] == [DirectiveKind.CONFIG, DirectiveKind.SCRIPT, DirectiveKind.RULE]

    def test_rule_and_rule_set(self):
        with pytest.raises(ConfigurationConflict, match="Use either single rule or rule set"):
            validate_scope([rule(OWNER, make_rule("r1")), rule_set(OWNER, [make_rule("r2")])], scope="test one")

    def test_script_and_script_list(self):
        with pytest.raises(ConfigurationConflict, match="single script or script list"):
            validate_scope([script(OWNER, "A"), script_list(OWNER, [script(OWNER, "B")])])

    def test_repeated_kind(self):
        with pytest.raises(ConfigurationConflict):
            validate_scope([script(OWNER, "A"), script(OWNER, "B")])

    def test_empty_scope(self):
        assert validate_scope([]) == []
