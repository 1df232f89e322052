"""
Custom exception hierarchy for the affilNet library.

Every error raised by the library derives from AffiliationNetworkError, so
callers can catch all library failures with a single except clause while
still being able to tell bad input data (ValidationError) apart from bad
options (ConfigurationError) and backend failures.

Empty windows and members missing from a window's graph are *not* errors:
they produce rows with null metrics.
"""

from typing import Dict, Any, Optional, List, Union
import traceback


class AffiliationNetworkError(Exception):
    """
    Base exception for all affilNet errors.

    Parameters
    ----------
    message : str
        Human-readable error message describing what went wrong
    details : Dict[str, Any], optional
        Additional structured information about the error
    cause : Exception, optional
        The underlying exception that caused this error
    context : Dict[str, Any], optional
        Additional context about the operation that failed

    Examples
    --------
    >>> raise AffiliationNetworkError("Window computation failed")
    >>> raise AffiliationNetworkError(
    ...     "Unexpected member count",
    ...     details={"members": 0, "edges": 10}
    ... )
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        self.message = message
        self.details = details or {}
        self.cause = cause
        self.context = context or {}

        full_message = message

        if self.details:
            detail_parts = []
            for key, value in self.details.items():
                if isinstance(value, (list, dict)) and len(str(value)) > 100:
                    # Truncate long collections
                    detail_parts.append(f"{key}=<{type(value).__name__} with {len(value)} items>")
                else:
                    detail_parts.append(f"{key}={value}")

            if detail_parts:
                full_message += f" (Details: {', '.join(detail_parts)})"

        if self.context:
            context_parts = [f"{k}={v}" for k, v in self.context.items()]
            if context_parts:
                full_message += f" (Context: {', '.join(context_parts)})"

        super().__init__(full_message)

        if cause is not None:
            self.__cause__ = cause

    def add_context(self, **kwargs: Any) -> 'AffiliationNetworkError':
        """
        Add additional context to the exception and return it.

        Examples
        --------
        >>> error = AffiliationNetworkError("Failed")
        >>> error.add_context(window_start="1980-01-01")
        """
        self.context.update(kwargs)
        return self

    def get_debug_info(self) -> Dict[str, Any]:
        """Get all available error information as a dictionary."""
        return {
            "exception_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
            "traceback": traceback.format_exc() if hasattr(self, '__traceback__') else None
        }


class ValidationError(AffiliationNetworkError):
    """
    Exception raised when input data does not meet the library's requirements.

    Parameters
    ----------
    message : str
        Descriptive error message explaining the validation failure
    field : str, optional
        Name of the field or column that failed validation
    value : Any, optional
        The invalid value that caused the error
    expected : str, optional
        Description of what was expected
    details : Dict[str, Any], optional
        Additional details about the validation failure

    Examples
    --------
    >>> raise ValidationError("Column contains null values", field="Member.ID")
    >>> raise ValidationError(
    ...     "Invalid date",
    ...     field="start",
    ...     value="1989-13-01",
    ...     expected="ISO date (YYYY-MM-DD)"
    ... )
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        expected: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> None:
        self.field = field
        self.value = value
        self.expected = expected

        enhanced_details = details or {}
        if field is not None:
            enhanced_details["field"] = field
        if value is not None:
            enhanced_details["invalid_value"] = value
        if expected is not None:
            enhanced_details["expected"] = expected

        if field:
            enhanced_message = f"Validation error in field '{field}': {message}"
        else:
            enhanced_message = f"Validation error: {message}"

        super().__init__(enhanced_message, details=enhanced_details, **kwargs)


class InvalidDateRange(ValidationError):
    """
    Exception raised when a query window starts after it ends.

    Parameters
    ----------
    start : Any
        Start of the requested range
    end : Any
        End of the requested range
    message : str, optional
        Override for the default message

    Examples
    --------
    >>> raise InvalidDateRange(date(1989, 4, 5), date(1989, 2, 6))
    """

    def __init__(
        self,
        start: Any,
        end: Any,
        message: Optional[str] = None,
        **kwargs
    ) -> None:
        self.start = start
        self.end = end

        details = kwargs.pop("details", {})
        details["start"] = str(start)
        details["end"] = str(end)

        super().__init__(
            message or "start date must not be after end date",
            field="date_range",
            details=details,
            **kwargs
        )


class DataFormatError(ValidationError):
    """
    Exception raised when column values cannot be coerced to the expected type.

    Parameters
    ----------
    message : str
        Description of the format error
    column : str, optional
        Column whose values could not be coerced
    expected_type : str, optional
        Type the values were expected to have (e.g. "Date")

    Examples
    --------
    >>> raise DataFormatError(
    ...     "Failed to parse dates",
    ...     column="Start.Date",
    ...     expected_type="Date"
    ... )
    """

    def __init__(
        self,
        message: str,
        column: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs
    ) -> None:
        details = kwargs.get('details', {})

        if column:
            details["column"] = column
        if expected_type:
            details["expected_type"] = expected_type

        kwargs["details"] = details
        super().__init__(message, **kwargs)


class GraphConstructionError(AffiliationNetworkError):
    """
    Exception raised when a graph backend fails to build a window's graph.

    Parameters
    ----------
    message : str
        Description of the graph construction error
    backend : str, optional
        Name of the graph backend in use
    node_count : int, optional
        Number of vertices when the error occurred
    edge_count : int, optional
        Number of edges processed when the error occurred
    operation : str, optional
        Specific operation that failed (e.g. "add_edges")

    Examples
    --------
    >>> raise GraphConstructionError(
    ...     "Failed to add edges to graph",
    ...     backend="networkit",
    ...     operation="add_edges",
    ...     edge_count=1500
    ... )
    """

    def __init__(
        self,
        message: str,
        backend: Optional[str] = None,
        node_count: Optional[int] = None,
        edge_count: Optional[int] = None,
        operation: Optional[str] = None,
        **kwargs
    ) -> None:
        self.backend = backend
        self.node_count = node_count
        self.edge_count = edge_count
        self.operation = operation

        context = {}
        if backend:
            context["backend"] = backend
        if node_count is not None:
            context["node_count"] = node_count
        if edge_count is not None:
            context["edge_count"] = edge_count
        if operation:
            context["operation"] = operation

        super().__init__(message, context=context, **kwargs)


class ConfigurationError(AffiliationNetworkError):
    """
    Exception raised for invalid option values or option combinations.

    Parameters
    ----------
    message : str
        Description of the configuration error
    parameter : str, optional
        Name of the problematic parameter
    value : Any, optional
        The invalid parameter value
    valid_options : List[Any], optional
        List of valid options for the parameter
    function : str, optional
        Name of the function where the error occurred

    Examples
    --------
    >>> raise ConfigurationError(
    ...     "Invalid persistence mode",
    ...     parameter="persistence",
    ...     value="forever",
    ...     valid_options=["none", "events-only", "all"]
    ... )
    """

    def __init__(
        self,
        message: str,
        parameter: Optional[str] = None,
        value: Optional[Any] = None,
        valid_options: Optional[List[Any]] = None,
        function: Optional[str] = None,
        **kwargs
    ) -> None:
        self.parameter = parameter
        self.value = value
        self.valid_options = valid_options
        self.function = function

        details = kwargs.get('details', {})
        if parameter:
            details["parameter"] = parameter
        if value is not None:
            details["invalid_value"] = value
        if valid_options:
            details["valid_options"] = valid_options
        if function:
            details["function"] = function

        enhanced_message = message
        if parameter and valid_options:
            enhanced_message += f". Valid options for '{parameter}': {valid_options}"

        kwargs["details"] = details
        super().__init__(enhanced_message, **kwargs)


class InvalidTimestepUnit(ConfigurationError):
    """
    Exception raised for an unrecognized ``timesteps`` value.

    Raised before any window is computed.

    Examples
    --------
    >>> raise InvalidTimestepUnit("weeks", ["days", "months", "years"])
    """

    def __init__(
        self,
        value: Any,
        valid_options: List[str],
        function: Optional[str] = None,
        **kwargs
    ) -> None:
        super().__init__(
            f"Invalid timestep unit: {value}",
            parameter="timesteps",
            value=value,
            valid_options=valid_options,
            function=function,
            **kwargs
        )


class ComputationError(AffiliationNetworkError):
    """
    Exception raised when a centrality computation fails inside a backend.

    Parameters
    ----------
    message : str
        Description of the computational error
    operation : str, optional
        The computational operation that failed
    error_type : str, optional
        Type of computational error (e.g. "numerical", "memory")
    resource_info : Dict[str, Any], optional
        Information about the graph when the error occurred

    Examples
    --------
    >>> raise ComputationError(
    ...     "Betweenness failed",
    ...     operation="betweenness",
    ...     resource_info={"nodes": 120, "edges": 860}
    ... )
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        error_type: Optional[str] = None,
        resource_info: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> None:
        self.operation = operation
        self.error_type = error_type
        self.resource_info = resource_info or {}

        context = {}
        if operation:
            context["operation"] = operation
        if error_type:
            context["error_type"] = error_type

        details = kwargs.get('details', {})
        details.update(self.resource_info)

        kwargs["details"] = details
        kwargs["context"] = context

        super().__init__(message, **kwargs)


# Convenience functions for common error patterns

def validate_parameter(
    value: Any,
    valid_options: List[Any],
    parameter_name: str,
    function_name: Optional[str] = None
) -> None:
    """
    Validate that a parameter value is in the list of valid options.

    Raises
    ------
    ConfigurationError
        If value is not in valid_options
    """
    if value not in valid_options:
        raise ConfigurationError(
            f"Invalid value for parameter '{parameter_name}': {value}",
            parameter=parameter_name,
            value=value,
            valid_options=valid_options,
            function=function_name
        )


def require_positive(
    value: Union[int, float],
    parameter_name: str,
    allow_zero: bool = False
) -> None:
    """
    Validate that a numeric parameter is positive (or non-negative).

    Raises
    ------
    ConfigurationError
        If value is not positive (or non-negative if allow_zero=True)
    """
    if allow_zero and value < 0:
        raise ConfigurationError(
            f"Parameter '{parameter_name}' must be non-negative, got {value}",
            parameter=parameter_name,
            value=value
        )
    elif not allow_zero and value <= 0:
        raise ConfigurationError(
            f"Parameter '{parameter_name}' must be positive, got {value}",
            parameter=parameter_name,
            value=value
        )
