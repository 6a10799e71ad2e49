"""
Test suite for global config loading and validation.

Verifies that config errors are clear, show examples, and fall back to defaults.
"""

import pytest
import tempfile
import json
import logging
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import Config
from utils.defensive import ValidationError


class TestConfigValidation:
    """Test config validation error messages."""

    @pytest.fixture
    def temp_config_file(self):
        """Create a temporary config file."""
        temp = tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False)
        temp.close()  # Close handle so Windows can delete it
        temp_path = Path(temp.name)
        yield temp_path
        if temp_path.exists():
            temp_path.unlink(missing_ok=True)

    def write(self, path, data):
        with open(path, 'w') as f:
            json.dump(data, f)

    def test_valid_config_loads_successfully(self, temp_config_file):
        """Test that valid config loads without errors."""
        self.write(temp_config_file, {'agent_port': 9191, 'load_directory': 'src/test/scripts'})

        config = Config(temp_config_file, use_environment=False)
        assert config.agent_port == 9191
        assert config.load_directory == 'src/test/scripts'

    def test_invalid_type_shows_clear_error(self, temp_config_file, caplog):
        """Test that wrong type shows clear error with example."""
        self.write(temp_config_file, {'agent_port': "ninety"})

        with caplog.at_level(logging.ERROR):
            config = Config(temp_config_file, use_environment=False)

        assert config.agent_port == 9091
        assert "ERROR: Invalid config value" in caplog.text
        assert "Field: agent_port" in caplog.text
        assert "Value: 'ninety' (str)" in caplog.text
        assert "Expected: number (integer)" in caplog.text
        assert "Example: 9091" in caplog.text

    def test_out_of_range_shows_clear_error(self, temp_config_file, caplog):
        """Test that out-of-range value shows clear error."""
        self.write(temp_config_file, {'agent_port': 99999})

        with caplog.at_level(logging.ERROR):
            config = Config(temp_config_file, use_environment=False)

        assert config.agent_port == 9091
        assert "Expected: number between 1 and 65535" in caplog.text

    def test_bool_field_type_error(self, temp_config_file, caplog):
        self.write(temp_config_file, {'verbose': "true"})

        with caplog.at_level(logging.ERROR):
            config = Config(temp_config_file, use_environment=False)

        assert config.verbose is False
        assert "Field: verbose" in caplog.text
        assert "Expected: true or false" in caplog.text

    def test_unknown_field_rejected(self, temp_config_file, caplog):
        self.write(temp_config_file, {'bmunitVerbose': True})

        with caplog.at_level(logging.ERROR):
            Config(temp_config_file, use_environment=False)

        assert "Unknown config field" in caplog.text
        assert "bmunitVerbose" in caplog.text

    def test_invalid_json_falls_back(self, temp_config_file, caplog):
        temp_config_file.write_text("{ not json")

        with caplog.at_level(logging.ERROR):
            config = Config(temp_config_file, use_environment=False)

        assert config.get('agent_host') == 'localhost'
        assert "Invalid JSON" in caplog.text

    def test_missing_file_uses_defaults(self, tmp_path):
        config = Config(tmp_path / "absent.json", use_environment=False)
        assert config.config == Config.DEFAULT_CONFIG

    def test_set_updates_value(self):
        config = Config(use_environment=False)
        config.set('agent_port', "9191")
        assert config.agent_port == 9191

    def test_set_validates(self):
        config = Config(use_environment=False)
        with pytest.raises(ValidationError):
            config.set('agent_port', 'not a port')


class TestEnvironmentOverrides:
    """RULEUNIT_* environment variables."""

    def test_load_directory_from_environment(self, monkeypatch):
        monkeypatch.setenv('RULEUNIT_LOAD_DIRECTORY', 'env/scripts')
        assert Config().load_directory == 'env/scripts'

    def test_verbose_truthy_values(self, monkeypatch):
        monkeypatch.setenv('RULEUNIT_VERBOSE', 'yes')
        assert Config().verbose is True

    def test_port_from_environment(self, monkeypatch):
        monkeypatch.setenv('RULEUNIT_AGENT_PORT', '9191')
        assert Config().agent_port == 9191

    def test_invalid_port_ignored(self, monkeypatch, caplog):
        monkeypatch.setenv('RULEUNIT_AGENT_PORT', 'abc')
        with caplog.at_level(logging.WARNING):
            config = Config()
        assert config.agent_port == 9091
        assert "RULEUNIT_AGENT_PORT" in caplog.text

    def test_environment_ignored_when_disabled(self, monkeypatch):
        monkeypatch.setenv('RULEUNIT_LOAD_DIRECTORY', 'env/scripts')
        assert Config(use_environment=False).load_directory == ''
