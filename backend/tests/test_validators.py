"""
Tests for field validators.

The crash app version gate must reject anything outside digits, whitespace
and the fixed punctuation set before the value reaches a catalog query.
"""
import pytest

from crash_triage.services.errors import ValidationError
from crash_triage.services.parsing import (
    CharacterClass,
    require_valid,
    validate_crash_app_version,
    validate_string,
)


class TestValidateString:
    """Tests for validate_string()."""

    @pytest.mark.parametrize("value", ["1.2.2.1", "1.0 (2)", "2.0; 7", "3.1!?", "1.0\t\n", ""])
    def test_version_classes_accept(self, value):
        assert validate_string(value, CharacterClass.VERSION) is True

    @pytest.mark.parametrize("value", ["1.2.3<script>", "1.0' OR 1=1 --", "1.0%", "1.0_rc", "v1.0"])
    def test_version_classes_reject(self, value):
        assert validate_string(value, CharacterClass.VERSION) is False

    def test_classes_compose(self):
        assert validate_string("abcXYZ", CharacterClass.ALPHA) is True
        assert validate_string("abcXYZ", CharacterClass.LOWER) is False
        assert validate_string("abc 123", CharacterClass.LOWER | CharacterClass.DIGITS) is False
        assert validate_string(
            "abc 123",
            CharacterClass.LOWER | CharacterClass.DIGITS | CharacterClass.WHITESPACE,
        ) is True

    def test_non_ascii_digits_are_not_digits(self):
        assert validate_string("١٢٣", CharacterClass.DIGITS) is False

    def test_no_class_restriction(self):
        assert validate_string("<anything goes>") is True

    def test_length_bounds(self):
        assert validate_string("123", CharacterClass.DIGITS, min_length=3, max_length=3) is True
        assert validate_string("12", CharacterClass.DIGITS, min_length=3) is False
        assert validate_string("1234", CharacterClass.DIGITS, max_length=3) is False

    def test_zero_bounds_are_ignored(self):
        assert validate_string("", min_length=0, max_length=0) is True
        assert validate_string("x" * 10000, min_length=0, max_length=0) is True


class TestRequireValid:
    """Tests for the raising wrappers."""

    def test_require_valid_returns_value(self):
        assert require_valid("field", "42", CharacterClass.DIGITS) == "42"

    def test_require_valid_raises_with_field_name(self):
        with pytest.raises(ValidationError) as exc_info:
            require_valid("field", "4x2", CharacterClass.DIGITS)
        assert exc_info.value.field_name == "field"

    def test_crash_app_version_gate(self):
        assert validate_crash_app_version("1.2.2.1") == "1.2.2.1"

        with pytest.raises(ValidationError):
            validate_crash_app_version("1.2.3<script>")

    def test_crash_app_version_too_long(self):
        with pytest.raises(ValidationError):
            validate_crash_app_version("1" * 256)
