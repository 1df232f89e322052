"""
Tests for the affilNet exception hierarchy and the parameter helpers.
"""

from datetime import date

import pytest

from affilNet.common.exceptions import (
    AffiliationNetworkError,
    ValidationError,
    InvalidDateRange,
    DataFormatError,
    GraphConstructionError,
    ConfigurationError,
    InvalidTimestepUnit,
    ComputationError,
    validate_parameter,
    require_positive
)


class TestAffiliationNetworkError:
    """Test the base exception."""

    def test_basic_message(self):
        error = AffiliationNetworkError("Window failed")

        assert str(error) == "Window failed"
        assert error.message == "Window failed"
        assert error.details == {}
        assert error.context == {}
        assert error.cause is None

    def test_details_and_context_in_message(self):
        error = AffiliationNetworkError(
            "Window failed",
            details={"members": 3},
            context={"window": "1980-01-01"}
        )

        assert "Details: members=3" in str(error)
        assert "Context: window=1980-01-01" in str(error)

    def test_long_details_truncated(self):
        error = AffiliationNetworkError("Failed", details={"ids": list(range(100))})

        assert "<list with 100 items>" in str(error)

    def test_cause_chained(self):
        cause = ValueError("bad value")
        error = AffiliationNetworkError("Wrapped", cause=cause)

        assert error.__cause__ is cause
        assert error.get_debug_info()["cause"] == "bad value"

    def test_add_context_returns_self(self):
        error = AffiliationNetworkError("Failed")

        assert error.add_context(window_start="1980-01-01") is error
        assert error.context["window_start"] == "1980-01-01"

    def test_debug_info_keys(self):
        info = ComputationError("Failed", operation="betweenness").get_debug_info()

        assert info["exception_type"] == "ComputationError"
        assert info["context"] == {"operation": "betweenness"}


class TestValidationErrors:
    """Test ValidationError and its subclasses."""

    def test_message_with_field(self):
        error = ValidationError("Column contains nulls", field="Member.ID")

        assert str(error).startswith("Validation error in field 'Member.ID': Column contains nulls")
        assert error.field == "Member.ID"

    def test_message_without_field(self):
        error = ValidationError("Affiliation DataFrame is empty")

        assert str(error).startswith("Validation error: Affiliation DataFrame is empty")

    def test_value_and_expected_in_details(self):
        error = ValidationError("Bad date", field="start", value="1989-13-01", expected="YYYY-MM-DD")

        assert error.details["invalid_value"] == "1989-13-01"
        assert error.details["expected"] == "YYYY-MM-DD"

    def test_invalid_date_range(self):
        error = InvalidDateRange(date(1989, 4, 5), date(1989, 2, 6))

        assert isinstance(error, ValidationError)
        assert error.start == date(1989, 4, 5)
        assert error.end == date(1989, 2, 6)
        assert error.details["start"] == "1989-04-05"
        assert error.field == "date_range"

    def test_data_format_error(self):
        error = DataFormatError("Cannot parse", column="Start.Date", expected_type="Date")

        assert isinstance(error, ValidationError)
        assert error.details["column"] == "Start.Date"
        assert error.details["expected_type"] == "Date"


class TestConfigurationErrors:
    """Test ConfigurationError and InvalidTimestepUnit."""

    def test_valid_options_appended(self):
        error = ConfigurationError(
            "Invalid persistence mode",
            parameter="persistence",
            value="forever",
            valid_options=["none", "events-only", "all"]
        )

        assert "Valid options for 'persistence'" in str(error)
        assert error.valid_options == ["none", "events-only", "all"]

    def test_invalid_timestep_unit(self):
        error = InvalidTimestepUnit("weeks", ["days", "months", "years"])

        assert isinstance(error, ConfigurationError)
        assert error.parameter == "timesteps"
        assert error.value == "weeks"
        assert "Invalid timestep unit: weeks" in str(error)


class TestGraphErrors:
    """Test backend failure exceptions."""

    def test_graph_construction_context(self):
        error = GraphConstructionError(
            "Failed to add edges", backend="networkit", operation="add_edges", edge_count=12
        )

        assert error.context == {"backend": "networkit", "edge_count": 12, "operation": "add_edges"}

    def test_computation_error_resource_info(self):
        error = ComputationError(
            "Betweenness failed", operation="betweenness", resource_info={"nodes": 4}
        )

        assert error.details["nodes"] == 4
        assert error.context["operation"] == "betweenness"


class TestParameterHelpers:
    """Test validate_parameter and require_positive."""

    def test_validate_parameter_accepts_valid(self):
        validate_parameter("months", ["days", "months", "years"], "timesteps")

    def test_validate_parameter_rejects_invalid(self):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_parameter("weeks", ["days", "months"], "timesteps", "generate_windows")

        assert exc_info.value.function == "generate_windows"

    @pytest.mark.parametrize("value", [0, -1, -0.5])
    def test_require_positive_rejects(self, value):
        with pytest.raises(ConfigurationError):
            require_positive(value, "event_linger_months")

    def test_require_positive_allow_zero(self):
        require_positive(0, "n", allow_zero=True)

        with pytest.raises(ConfigurationError, match="non-negative"):
            require_positive(-1, "n", allow_zero=True)
