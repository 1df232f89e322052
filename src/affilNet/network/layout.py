"""
Node positions for drawing a window's co-affiliation graph.

Consecutive windows are usually drawn one after the other, so a layout can
be seeded with the previous window's positions: members that were already
placed start where they were, which keeps the picture stable while the
network changes.
"""

from typing import Dict, Optional, Tuple

import networkx as nx
import numpy as np
import polars as pl

from .metrics import collapse_parallel_edges
from ..common.exceptions import ComputationError, ValidationError, validate_parameter
from ..common.schema import FROM_COL, MEMBER_COL, TO_COL, WEIGHT_COL
from ..common.logging_config import get_logger

logger = get_logger(__name__)

VALID_LAYOUT_ALGORITHMS = ["kk", "fr"]

NAME_COL = "name"
LAYOUT_SCHEMA = {NAME_COL: pl.Utf8, "x": pl.Float64, "y": pl.Float64}


def compute_layout(
    edgelist: Optional[pl.DataFrame],
    node_meta: Optional[pl.DataFrame] = None,
    prev_layout: Optional[pl.DataFrame] = None,
    algorithm: str = "kk",
    seed: int = 42,
    member_col: str = MEMBER_COL
) -> pl.DataFrame:
    """
    Compute 2D positions for the members of an edge list.

    Parameters
    ----------
    edgelist : pl.DataFrame or None
        Edge list with ``from``, ``to`` and optionally ``weight``
    node_meta : pl.DataFrame, optional
        Member attributes keyed by ``member_col``. Every member listed here
        is placed, including isolated ones, and the attributes are joined
        onto the result.
    prev_layout : pl.DataFrame, optional
        Result of a previous call; its positions seed this layout
    algorithm : str, default "kk"
        ``"kk"`` for Kamada-Kawai or ``"fr"`` for Fruchterman-Reingold
    seed : int, default 42
        Seed for the positions of members without a previous position

    Returns
    -------
    pl.DataFrame
        ``name``, ``x``, ``y`` plus the ``node_meta`` attributes, sorted by
        name. Strongly tied members are drawn closer together (edge length
        is ``1 / weight``).

    Raises
    ------
    ConfigurationError
        If the algorithm is unknown
    ValidationError
        If node_meta or prev_layout lack their key columns

    Examples
    --------
    >>> first = compute_layout(edges_1980)
    >>> second = compute_layout(edges_1981, prev_layout=first)
    """
    validate_parameter(algorithm, VALID_LAYOUT_ALGORITHMS, "algorithm", "compute_layout")

    graph = _layout_graph(edgelist)

    if node_meta is not None:
        if member_col not in node_meta.columns:
            raise ValidationError(
                f"Node metadata has no '{member_col}' column",
                field="node_meta",
                details={"available_columns": node_meta.columns}
            )
        graph.add_nodes_from(node_meta[member_col].cast(pl.Utf8).drop_nulls().to_list())

    if graph.number_of_nodes() == 0:
        return pl.DataFrame(schema=LAYOUT_SCHEMA)

    initial = _initial_positions(graph, prev_layout, seed)

    try:
        if graph.number_of_nodes() == 1:
            positions = {node: np.zeros(2) for node in graph.nodes}
        elif algorithm == "kk":
            positions = nx.kamada_kawai_layout(graph, pos=initial, weight="distance")
        else:
            positions = nx.spring_layout(graph, pos=initial, weight="weight", seed=seed)
    except nx.NetworkXException as e:
        raise ComputationError(
            f"Layout computation failed: {str(e)}",
            operation=f"layout_{algorithm}",
            resource_info={"nodes": graph.number_of_nodes(), "edges": graph.number_of_edges()},
            cause=e
        )

    names = sorted(positions)
    layout = pl.DataFrame(
        {
            NAME_COL: names,
            "x": [float(positions[name][0]) for name in names],
            "y": [float(positions[name][1]) for name in names],
        },
        schema=LAYOUT_SCHEMA
    )

    logger.debug("%s layout for %d nodes (%d seeded from previous layout)",
                 algorithm, len(layout), len(_previous_positions(prev_layout)))

    if node_meta is not None:
        meta = (
            node_meta
            .with_columns(pl.col(member_col).cast(pl.Utf8))
            .unique(subset=member_col, keep="first", maintain_order=True)
            .rename({member_col: NAME_COL})
        )
        layout = layout.join(meta, on=NAME_COL, how="left")

    return layout


def _layout_graph(edgelist: Optional[pl.DataFrame]) -> nx.Graph:
    graph = nx.Graph()
    if edgelist is None or edgelist.is_empty():
        return graph

    edges = collapse_parallel_edges(edgelist)
    graph.add_nodes_from(edgelist[FROM_COL].cast(pl.Utf8).to_list())
    graph.add_nodes_from(edgelist[TO_COL].cast(pl.Utf8).to_list())
    graph.add_edges_from(
        (source, target, {"weight": weight, "distance": 1.0 / weight})
        for source, target, weight in edges.select([FROM_COL, TO_COL, WEIGHT_COL]).iter_rows()
    )
    return graph


def _previous_positions(prev_layout: Optional[pl.DataFrame]) -> Dict[str, Tuple[float, float]]:
    if prev_layout is None:
        return {}

    missing = [col for col in LAYOUT_SCHEMA if col not in prev_layout.columns]
    if missing:
        raise ValidationError(
            f"Previous layout is missing columns: {missing}",
            field="prev_layout",
            details={"available_columns": prev_layout.columns}
        )

    return {
        str(name): (x, y)
        for name, x, y in prev_layout.select(list(LAYOUT_SCHEMA)).iter_rows()
        if x is not None and y is not None
    }


def _initial_positions(
    graph: nx.Graph,
    prev_layout: Optional[pl.DataFrame],
    seed: int
) -> Dict[str, np.ndarray]:
    """Previous positions where known, seeded random ones in [-1, 1] otherwise."""
    previous = _previous_positions(prev_layout)
    rng = np.random.default_rng(seed)

    initial = {}
    for node in sorted(graph.nodes):
        if node in previous:
            initial[node] = np.array(previous[node], dtype=float)
        else:
            initial[node] = rng.uniform(-1.0, 1.0, size=2)
    return initial


def attach_layout_to_edges(edgelist: pl.DataFrame, layout: pl.DataFrame) -> pl.DataFrame:
    """
    Add the endpoint coordinates ``x_from``, ``y_from``, ``x_to``, ``y_to``.

    Row order of ``edgelist`` is kept; endpoints missing from the layout get
    null coordinates.

    Examples
    --------
    >>> segments = attach_layout_to_edges(edges, compute_layout(edges))
    """
    coordinates = layout.select(list(LAYOUT_SCHEMA))

    return (
        edgelist
        .with_row_index("_row")
        .join(
            coordinates.rename({NAME_COL: FROM_COL, "x": "x_from", "y": "y_from"}),
            on=FROM_COL, how="left"
        )
        .join(
            coordinates.rename({NAME_COL: TO_COL, "x": "x_to", "y": "y_to"}),
            on=TO_COL, how="left"
        )
        .sort("_row")
        .drop("_row")
    )
