"""
Co-affiliation networks of one time window.

This module provides:
- Edge list construction from shared affiliations
- Graph backends (NetworkIt, NetworkX) behind a common interface
- Member metrics: betweenness, weighted degree, z-scores and ranks
- Cross-group connections and degree
- Layouts and node appearance for drawing
"""

from .edges import (
    build_edgelist,
    edges_for_window,
    normalize_key_sets,
    label_cross_connections,
    CROSS_CONNECTION,
    INTRA_CONNECTION
)

from .backends import (
    GraphBackend,
    NetworkitBackend,
    NetworkxBackend,
    AVAILABLE_BACKENDS,
    get_backend
)

from .metrics import (
    compute_metrics_from_edgelist,
    collapse_parallel_edges,
    metrics_columns
)

from .layout import compute_layout, attach_layout_to_edges, VALID_LAYOUT_ALGORITHMS
from .appearance import apply_node_appearance, NODE_GROUPINGS
