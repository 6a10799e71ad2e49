"""
Defensive Programming Test Suite
Tests input validation and script file state checks.
"""

import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from utils.defensive import InputValidator, StateValidator, ValidationError


# String validation

def test_string_valid():
    assert InputValidator.validate_string("two") == "two"


def test_string_none_handling():
    assert InputValidator.validate_string(None, allow_none=True) is None
    with pytest.raises(ValidationError):
        InputValidator.validate_string(None)


def test_string_rejects_empty_when_not_allowed():
    with pytest.raises(ValidationError):
        InputValidator.validate_string("", allow_empty=False)


def test_string_strips_null_bytes():
    assert InputValidator.validate_string("scr\x00ipt") == "script"


def test_string_length_limits():
    with pytest.raises(ValidationError):
        InputValidator.validate_string("ab", min_length=3)
    with pytest.raises(ValidationError):
        InputValidator.validate_string("x" * 11, max_length=10)


def test_string_rejects_non_string():
    with pytest.raises(ValidationError):
        InputValidator.validate_string(42)


# Integer validation

def test_int_valid_and_converted():
    assert InputValidator.validate_int(9091) == 9091
    assert InputValidator.validate_int("9191") == 9191


def test_int_rejects_bool():
    with pytest.raises(ValidationError):
        InputValidator.validate_int(True)


def test_int_rejects_garbage():
    with pytest.raises(ValidationError):
        InputValidator.validate_int("port")


def test_int_range():
    with pytest.raises(ValidationError):
        InputValidator.validate_int(0, min_val=1)
    with pytest.raises(ValidationError):
        InputValidator.validate_int(70000, max_val=65535)


# Boolean validation

def test_bool_only_real_bools():
    assert InputValidator.validate_bool(False) is False
    assert InputValidator.validate_bool(None, allow_none=True) is None
    with pytest.raises(ValidationError):
        InputValidator.validate_bool("true")
    with pytest.raises(ValidationError):
        InputValidator.validate_bool(1)


# File state

def test_file_accessible(tmp_path):
    script = tmp_path / "one.btm"
    script.write_text("RULE one\nENDRULE\n")
    assert StateValidator.check_file_accessible(script)


def test_missing_file_not_accessible(tmp_path):
    assert not StateValidator.check_file_accessible(tmp_path / "absent.btm")


def test_directory_not_accessible(tmp_path):
    assert not StateValidator.check_file_accessible(tmp_path)
