"""
Member-level network metrics of one window's co-affiliation graph.

For every requested member the engine reports betweenness centrality and
weighted degree, their z-scores across the requested members, and their
descending ranks. Members that are not part of the window's graph keep a row
with null values, so that tables from different windows line up member by
member.
"""

from typing import Any, Iterable, List, Optional

import polars as pl

from .backends import GraphBackend, get_backend
from .edges import attach_member_groups, is_cross_connection
from ..common.exceptions import ConfigurationError
from ..common.schema import (
    CENTRALITY_COL,
    CROSS_DEGREE_COL,
    DEGREE_COL,
    FROM_COL,
    MEMBER_COL,
    TO_COL,
    WEIGHT_COL
)
from ..common.logging_config import get_logger

logger = get_logger(__name__)

NORMALIZED_SUFFIX = ".Normalized"
RANK_SUFFIX = ".Rank"


def compute_metrics_from_edgelist(
    edgelist: Optional[pl.DataFrame],
    members: Optional[Iterable[Any]],
    weighted: bool = False,
    backend: Any = "networkit",
    member_meta: Optional[pl.DataFrame] = None,
    group_col: Optional[str] = None,
    cross_only: bool = False
) -> pl.DataFrame:
    """
    Compute centrality, degree, z-scores and ranks for the requested members.

    Parameters
    ----------
    edgelist : pl.DataFrame or None
        Edge list with ``from``, ``to`` and optionally ``weight`` columns.
        None marks a window without any active affiliation.
    members : Iterable
        Member IDs to report on, in the order rows should appear
    weighted : bool, default False
        Use ``1 / weight`` as edge length for shortest paths. Degree always
        sums edge weights.
    backend : str or GraphBackend, default "networkit"
        Graph library, one of ``AVAILABLE_BACKENDS`` or a backend instance
    member_meta : pl.DataFrame, optional
        Member attributes; together with ``group_col`` adds cross-group degree
    group_col : str, optional
        Attribute of ``member_meta`` defining member groups
    cross_only : bool, default False
        Build the graph from cross-group edges only, so that centrality and
        degree measure brokerage between groups. Needs ``member_meta`` and
        ``group_col``; members without a cross-group edge get null rows.

    Returns
    -------
    pl.DataFrame
        One row per requested member with ``Member.ID``, ``Centrality``,
        ``Degree``, ``Centrality.Normalized``, ``Degree.Normalized``,
        ``Centrality.Rank``, ``Degree.Rank`` and, with ``group_col``,
        ``Cross.Degree``, ``Cross.Degree.Normalized``, ``Cross.Degree.Rank``.

    Raises
    ------
    ConfigurationError
        If the backend is unknown, only one of member_meta/group_col is
        given, or cross_only is set without them
    GraphConstructionError
        If the backend fails to build the graph
    ComputationError
        If the backend fails to compute betweenness

    Notes
    -----
    Parallel edges between the same two members (in either direction) are
    merged by summing their weights, and self-loops are ignored.

    Betweenness is unnormalized and counts unordered vertex pairs. z-scores
    use the sample standard deviation; when it is zero or undefined (fewer
    than two members with a value) every member with a value gets 0.0. Ranks
    are descending, 1 for the highest value, without gaps; ties keep the
    order of ``members``.

    Examples
    --------
    >>> edges = pl.DataFrame({"from": ["M1"], "to": ["M2"], "weight": [1.0]})
    >>> compute_metrics_from_edgelist(edges, ["M1", "M2", "M3"])["Degree"].to_list()
    [1.0, 1.0, None]
    """
    if (member_meta is None) != (group_col is None):
        raise ConfigurationError(
            "member_meta and group_col must be given together",
            parameter="group_col",
            value=group_col
        )
    if cross_only and group_col is None:
        raise ConfigurationError(
            "cross_only needs member_meta and group_col",
            parameter="cross_only",
            value=cross_only
        )
    graph_backend = get_backend(backend)
    with_cross = group_col is not None

    member_ids = _member_list(members)
    if not member_ids:
        return empty_metrics(with_cross)

    table = pl.DataFrame({MEMBER_COL: member_ids}, schema={MEMBER_COL: pl.Utf8})

    edges = collapse_parallel_edges(edgelist) if edgelist is not None else None
    if edges is not None and cross_only:
        edges = (
            attach_member_groups(edges, member_meta, group_col)
            .filter(is_cross_connection())
            .select(edges.columns)
        )

    if edges is None or edges.is_empty():
        values = _null_values(with_cross)
    else:
        values = _graph_values(edges, graph_backend, weighted)
        if with_cross:
            values = values.join(
                _cross_degree(edges, member_meta, group_col), on=MEMBER_COL, how="left"
            ).with_columns(pl.col(CROSS_DEGREE_COL).fill_null(0.0))

    table = (
        table
        .with_row_index("_row")
        .join(values, on=MEMBER_COL, how="left")
        .sort("_row")
        .drop("_row")
    )
    table = add_normalized_and_ranks(table, _metric_names(with_cross))

    present = table[DEGREE_COL].is_not_null().sum()
    logger.debug("Metrics for %d members, %d present in graph (%s backend)",
                 len(member_ids), present, graph_backend.name)

    return table.select(metrics_columns(with_cross))


def _graph_values(edges: pl.DataFrame, graph_backend: GraphBackend, weighted: bool) -> pl.DataFrame:
    graph, mapper = graph_backend.build(edges)
    vertices = graph_backend.vertices(graph, mapper)
    degree = graph_backend.degree(graph, mapper)
    betweenness = graph_backend.betweenness(graph, mapper, weighted)

    return pl.DataFrame(
        {
            MEMBER_COL: vertices,
            CENTRALITY_COL: [betweenness[v] for v in vertices],
            DEGREE_COL: [degree[v] for v in vertices],
        },
        schema={MEMBER_COL: pl.Utf8, CENTRALITY_COL: pl.Float64, DEGREE_COL: pl.Float64}
    )


def _cross_degree(edges: pl.DataFrame, member_meta: pl.DataFrame, group_col: str) -> pl.DataFrame:
    """Summed weight of each member's edges to members of another group."""
    cross = attach_member_groups(edges, member_meta, group_col).filter(is_cross_connection())

    endpoints = pl.concat([
        cross.select(pl.col(FROM_COL).alias(MEMBER_COL), pl.col(WEIGHT_COL)),
        cross.select(pl.col(TO_COL).alias(MEMBER_COL), pl.col(WEIGHT_COL)),
    ])

    return endpoints.group_by(MEMBER_COL).agg(pl.col(WEIGHT_COL).sum().alias(CROSS_DEGREE_COL))


def _null_values(with_cross: bool) -> pl.DataFrame:
    schema = {MEMBER_COL: pl.Utf8, CENTRALITY_COL: pl.Float64, DEGREE_COL: pl.Float64}
    if with_cross:
        schema[CROSS_DEGREE_COL] = pl.Float64
    return pl.DataFrame(schema=schema)


def collapse_parallel_edges(edgelist: pl.DataFrame) -> pl.DataFrame:
    """
    Merge edges between the same two members into one, summing weights.

    Endpoints are put in canonical order (``from <= to`` as strings),
    self-loops and non-positive totals are dropped. A missing ``weight``
    column means weight 1 for every edge.

    Examples
    --------
    >>> edges = pl.DataFrame({"from": ["B", "A"], "to": ["A", "B"], "weight": [1.0, 2.0]})
    >>> collapse_parallel_edges(edges).to_dicts()
    [{'from': 'A', 'to': 'B', 'weight': 3.0}]
    """
    source = pl.col(FROM_COL).cast(pl.Utf8)
    target = pl.col(TO_COL).cast(pl.Utf8)
    in_order = source <= target

    if WEIGHT_COL in edgelist.columns:
        weight = pl.col(WEIGHT_COL).cast(pl.Float64)
    else:
        weight = pl.lit(1.0, dtype=pl.Float64)

    canonical = edgelist.select(
        pl.when(in_order).then(source).otherwise(target).alias(FROM_COL),
        pl.when(in_order).then(target).otherwise(source).alias(TO_COL),
        weight.alias(WEIGHT_COL)
    )

    loops = canonical.filter(pl.col(FROM_COL) == pl.col(TO_COL))
    if not loops.is_empty():
        logger.debug("Ignoring %d self-loop edges", len(loops))

    return (
        canonical
        .filter(pl.col(FROM_COL) != pl.col(TO_COL))
        .group_by([FROM_COL, TO_COL])
        .agg(pl.col(WEIGHT_COL).sum())
        .filter(pl.col(WEIGHT_COL) > 0)
        .sort([FROM_COL, TO_COL])
    )


def zscore(values: pl.Series) -> pl.Series:
    """
    Sample z-scores of a series.

    When fewer than two distinct non-null values exist the standard
    deviation is zero or undefined and every non-null value maps to 0.0.
    Nulls stay null.

    Examples
    --------
    >>> zscore(pl.Series([2.0, 4.0, 6.0])).to_list()
    [-1.0, 0.0, 1.0]
    """
    valid = values.drop_nulls()
    if valid.n_unique() <= 1:
        return pl.Series(
            values.name, [None if v is None else 0.0 for v in values], dtype=pl.Float64
        )
    return ((values.cast(pl.Float64) - valid.mean()) / valid.std(ddof=1)).alias(values.name)


def descending_rank(column: str) -> pl.Expr:
    """Rank 1 for the largest value, ties in row order, null for null."""
    values = pl.col(column)
    # Ascending ordinal rank of the negated values keeps ties in row order
    return (
        pl.when(values.is_null()).then(None)
        .otherwise((-values).rank(method="ordinal"))
        .cast(pl.Int64)
    )


def add_normalized_and_ranks(table: pl.DataFrame, metric_names: List[str]) -> pl.DataFrame:
    """Add ``<metric>.Normalized`` and ``<metric>.Rank`` for each metric."""
    return table.with_columns(
        [zscore(table[name]).alias(name + NORMALIZED_SUFFIX) for name in metric_names] +
        [descending_rank(name).alias(name + RANK_SUFFIX) for name in metric_names]
    )


def _metric_names(with_cross: bool) -> List[str]:
    names = [CENTRALITY_COL, DEGREE_COL]
    if with_cross:
        names.append(CROSS_DEGREE_COL)
    return names


def metrics_columns(with_cross: bool = False) -> List[str]:
    """Column order of a metrics table, without the window bounds."""
    columns = [
        MEMBER_COL,
        CENTRALITY_COL,
        DEGREE_COL,
        CENTRALITY_COL + NORMALIZED_SUFFIX,
        DEGREE_COL + NORMALIZED_SUFFIX,
        CENTRALITY_COL + RANK_SUFFIX,
        DEGREE_COL + RANK_SUFFIX,
    ]
    if with_cross:
        columns += [
            CROSS_DEGREE_COL,
            CROSS_DEGREE_COL + NORMALIZED_SUFFIX,
            CROSS_DEGREE_COL + RANK_SUFFIX,
        ]
    return columns


def metrics_schema(with_cross: bool = False) -> dict:
    schema = {}
    for column in metrics_columns(with_cross):
        if column == MEMBER_COL:
            schema[column] = pl.Utf8
        elif column.endswith(RANK_SUFFIX):
            schema[column] = pl.Int64
        else:
            schema[column] = pl.Float64
    return schema


def empty_metrics(with_cross: bool = False) -> pl.DataFrame:
    return pl.DataFrame(schema=metrics_schema(with_cross))


def _member_list(members: Optional[Iterable[Any]]) -> List[str]:
    if members is None:
        return []
    if isinstance(members, (str, bytes)):
        members = [members]
    return list(dict.fromkeys(str(member) for member in members))
