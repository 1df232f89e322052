"""
Common utilities for the affilNet library.

This module provides shared functionality used across all other modules:
- Custom exception hierarchy
- Column names of the affiliation, edge list and metrics tables
- Input validation and date parsing
- ID mapping between member IDs and NetworkIt node indices
- Logging configuration
"""

from .exceptions import (
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

from .id_mapper import IDMapper
from .validators import (
    validate_affiliation_dataframe,
    coerce_affiliation_dates,
    parse_date,
    validate_date_range,
    normalize_members
)

from .logging_config import (
    setup_logging,
    get_logger,
    configure_external_library_logging,
    log_function_entry,
    log_performance_metric,
    LoggingTimer,
    JSONFormatter
)
