"""
Unit tests for input validation functions.
"""

import pytest

from autoexporter.validation import (
    ValidationError,
    validate_docker_name,
    validate_enum_choice,
    validate_positive_float,
    validate_positive_integer,
    validate_regex_pattern,
    validate_string_list,
)


@pytest.mark.unit
class TestNumberValidators:
    """Test cases for numeric validators."""

    def test_positive_integer(self):
        assert validate_positive_integer(3) == 3
        assert validate_positive_integer("8", field_name="max_workers") == 8

    def test_positive_integer_bounds(self):
        with pytest.raises(ValidationError, match="must be >= 1"):
            validate_positive_integer(0)
        with pytest.raises(ValidationError, match="must be <= 10"):
            validate_positive_integer(11, max_value=10)

    def test_positive_integer_rejects_bool(self):
        with pytest.raises(ValidationError):
            validate_positive_integer(True)

    def test_positive_float(self):
        assert validate_positive_float("2.5") == 2.5
        assert validate_positive_float(0) == 0.0

    def test_positive_float_invalid(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_positive_float("soon", field_name="retry_delay")
        assert exc_info.value.field_name == "retry_delay"


@pytest.mark.unit
class TestStringValidators:
    """Test cases for string validators."""

    def test_regex_pattern(self):
        assert validate_regex_pattern("^redis(:|$)") == "^redis(:|$)"

    @pytest.mark.parametrize("pattern", ["", "(unclosed", None])
    def test_regex_pattern_invalid(self, pattern):
        with pytest.raises(ValidationError):
            validate_regex_pattern(pattern)

    def test_enum_choice_case_insensitive_returns_canonical(self):
        assert validate_enum_choice("debug", ["DEBUG", "INFO"], case_sensitive=False) == "DEBUG"

    def test_enum_choice_case_sensitive(self):
        with pytest.raises(ValidationError):
            validate_enum_choice("Exact", ["exact", "regex"])

    @pytest.mark.parametrize("name", ["monitoring", "prom_net", "redis.v2", "php-fpm"])
    def test_docker_name(self, name):
        assert validate_docker_name(name) == name

    @pytest.mark.parametrize("name", ["", "-leading", "with space", 42])
    def test_docker_name_invalid(self, name):
        with pytest.raises(ValidationError):
            validate_docker_name(name)

    def test_string_list(self):
        assert validate_string_list(["a", "b"]) == ["a", "b"]

    def test_string_list_invalid_item(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_string_list(["a", 1], field_name="cmd")
        assert exc_info.value.field_name == "cmd[1]"

    def test_string_list_not_a_list(self):
        with pytest.raises(ValidationError):
            validate_string_list("a b", field_name="cmd")
