"""
affilNet: temporal co-affiliation network metrics.

Members are tied when they share an organization during overlapping date
ranges. affilNet builds one graph per time window from affiliation records
and tracks each member's betweenness and degree across windows.

Main modules:
- affiliations: Selecting records and finding the ones active in a window
- network: Edge lists, graph metrics, layouts
- timeseries: Windowed metric tables
- common: Exceptions, validation and logging
"""

__version__ = "0.1.0"

from .affiliations import filter_active_affiliations, select_affiliations
from .network import (
    build_edgelist,
    label_cross_connections,
    compute_metrics_from_edgelist,
    compute_layout,
    attach_layout_to_edges,
    apply_node_appearance
)
from .timeseries import generate_windows, compute_window_metrics, compute_all_metrics
from .common import (
    AffiliationNetworkError,
    ValidationError,
    InvalidDateRange,
    DataFormatError,
    GraphConstructionError,
    ConfigurationError,
    InvalidTimestepUnit,
    ComputationError,
    setup_logging,
    get_logger
)
