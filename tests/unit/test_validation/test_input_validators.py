"""
Unit tests for value validators, the error taxonomy and the retry helper.
"""

import logging
from unittest.mock import Mock, patch

import pytest

from cfgswitch.validation import (
    Busy,
    ConfigIOError,
    ErrorSeverity,
    InvalidProfileContent,
    ProfileNotFound,
    ScanErrorBudgetExceeded,
    SwitcherError,
    ValidationError,
    handle_cli_error,
    handle_error,
    normalize_ignored_fields,
    simple_retry,
    validate_bool,
    validate_ignored_fields,
    validate_positive_float,
    validate_positive_integer,
    validate_profile_name,
)


@pytest.mark.unit
class TestNumericValidators:
    """Test cases for integer and float validation."""

    def test_positive_integer_accepts_numeric_strings(self):
        assert validate_positive_integer("7", min_value=1) == 7

    def test_positive_integer_rejects_bool(self):
        with pytest.raises(ValidationError):
            validate_positive_integer(True)

    def test_positive_integer_bounds(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_positive_integer(0, min_value=1, field_name="max_scan_errors")
        assert "max_scan_errors" in str(exc_info.value)

        with pytest.raises(ValidationError):
            validate_positive_integer(11, max_value=10)

    def test_positive_float(self):
        assert validate_positive_float("0.5") == 0.5
        with pytest.raises(ValidationError):
            validate_positive_float("abc")
        with pytest.raises(ValidationError):
            validate_positive_float(False)

    def test_validate_bool(self):
        assert validate_bool(False) is False
        with pytest.raises(ValidationError):
            validate_bool("yes")


@pytest.mark.unit
class TestProfileNameValidation:
    """Test cases for profile name validation."""

    @pytest.mark.parametrize("name", ["work", "home-2", "My Profile", "v1.2_beta"])
    def test_valid_names(self, name):
        assert validate_profile_name(name) == name

    def test_name_is_stripped(self):
        assert validate_profile_name("  work  ") == "work"

    @pytest.mark.parametrize("name", ["", "   ", "../escape", ".hidden", "a/b", "x" * 65])
    def test_invalid_names(self, name):
        with pytest.raises(ValidationError):
            validate_profile_name(name)

    @pytest.mark.parametrize("name", ["current", "Current"])
    def test_reserved_name(self, name):
        with pytest.raises(ValidationError) as exc_info:
            validate_profile_name(name)
        assert "reserved" in str(exc_info.value)

    def test_non_string_name(self):
        with pytest.raises(ValidationError):
            validate_profile_name(42)


@pytest.mark.unit
class TestIgnoredFieldValidation:
    """Test cases for ignored-field validation and normalization."""

    def test_valid_fields(self):
        validate_ignored_fields(["model", " feedbackSurveyState "])

    @pytest.mark.parametrize(
        "field",
        ["", "   ", "two words", "a{b", "a}b", "a[b", "a]b", 'a"b', "a'b", "a\\b", "x" * 101],
    )
    def test_invalid_fields(self, field):
        with pytest.raises(ValidationError):
            validate_ignored_fields(["model", field])

    def test_max_length_is_inclusive(self):
        validate_ignored_fields(["x" * 100])

    def test_non_string_field(self):
        with pytest.raises(ValidationError):
            validate_ignored_fields([1])

    def test_normalize_trims_and_deduplicates(self):
        assert normalize_ignored_fields([" model", "theme", "model ", "theme"]) == ["model", "theme"]


@pytest.mark.unit
class TestErrorTaxonomy:
    """Test cases for error messages and severities."""

    def test_all_errors_are_switcher_errors(self):
        for error in (
            ConfigIOError("x"),
            ProfileNotFound("work"),
            InvalidProfileContent("work", "bad"),
            Busy("list profiles"),
            ScanErrorBudgetExceeded("/tmp/x", 5),
        ):
            assert isinstance(error, SwitcherError)
            assert str(error) == error.message

    def test_messages_are_human_readable(self):
        assert str(ProfileNotFound("work")) == "Profile 'work' not found"
        assert "busy" in str(Busy("list profiles"))
        assert "permission denied" in str(ScanErrorBudgetExceeded("/a", 3, "permission denied"))

    def test_severity(self):
        assert Busy("x").severity is ErrorSeverity.WARNING
        assert ProfileNotFound("x").severity is ErrorSeverity.ERROR
        assert ConfigIOError("x", severity=ErrorSeverity.CRITICAL).severity is ErrorSeverity.CRITICAL


@pytest.mark.unit
class TestErrorHandling:
    """Test cases for the error handling helpers."""

    def test_handle_error_reraises(self):
        logger = Mock(spec=logging.Logger)
        with pytest.raises(ConfigIOError):
            handle_error(ConfigIOError("boom"), "reading", logger=logger)
        logger.error.assert_called_once()

    def test_handle_error_without_reraise(self):
        logger = Mock(spec=logging.Logger)
        handle_error(ValueError("boom"), "parsing", severity="warning", reraise=False, logger=logger)
        logger.warning.assert_called_once()
        assert "parsing" in logger.warning.call_args[0][0]

    def test_handle_cli_error_exits(self):
        logger = Mock(spec=logging.Logger)
        with pytest.raises(SystemExit) as exc_info:
            handle_cli_error(ValidationError("bad"), "settings loading", exit_code=3, logger=logger)
        assert exc_info.value.code == 3


@pytest.mark.unit
class TestSimpleRetry:
    """Test cases for the retry helper."""

    def test_success_after_transient_failures(self):
        func = Mock(side_effect=[PermissionError("locked"), PermissionError("locked"), "ok"])
        with patch("cfgswitch.validation.strategies.time.sleep") as sleep:
            assert simple_retry(func, max_attempts=3, retry_on=(PermissionError,)) == "ok"
        assert func.call_count == 3
        assert sleep.call_count == 2

    def test_raises_last_exception(self):
        func = Mock(side_effect=OSError("disk gone"))
        with patch("cfgswitch.validation.strategies.time.sleep"):
            with pytest.raises(OSError, match="disk gone"):
                simple_retry(func, max_attempts=2)
        assert func.call_count == 2

    def test_other_exceptions_propagate_immediately(self):
        func = Mock(side_effect=FileNotFoundError("missing"))
        with pytest.raises(FileNotFoundError):
            simple_retry(func, max_attempts=3, retry_on=(PermissionError,))
        assert func.call_count == 1

    def test_invalid_attempts(self):
        with pytest.raises(ValueError):
            simple_retry(lambda: None, max_attempts=0)
