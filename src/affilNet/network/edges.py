"""
Co-affiliation edge list construction.

Two members are tied when they share a grouping key value (an organization,
an umbrella, an umbrella/subgroup pair, ...) during a query window. Several
key sets can be combined; their edges are concatenated, so a pair tied on an
umbrella and on one of its subgroups carries one edge per key set.
"""

from datetime import date
from typing import List, Optional, Sequence, Union

import polars as pl

from ..affiliations.filtering import filter_overlapping, prepare_affiliations
from ..common.exceptions import ConfigurationError, ValidationError
from ..common.schema import (
    CROSS_CONNECTION_COL,
    EDGE_KEY_COL,
    EDGE_NAMES_COL,
    EDGELIST_SCHEMA,
    EVENT_TYPES,
    FROM_COL,
    MEMBER_COL,
    TO_COL,
    TYPE_CATEGORY_COL,
    WEIGHT_COL
)
from ..common.validators import DateLike, validate_date_range
from ..common.logging_config import get_logger, log_function_entry, LoggingTimer

logger = get_logger(__name__)

OnCols = Union[str, Sequence[Union[str, Sequence[str]]]]

CROSS_CONNECTION = "Cross-Connection"
INTRA_CONNECTION = "Intra-Connection"

_RIGHT = "_right"


def build_edgelist(
    affiliations: pl.DataFrame,
    on_cols: OnCols,
    start: DateLike,
    end: DateLike,
    weight_col: Optional[str] = None,
    get_edge_names: bool = True,
    label_col: Optional[str] = None,
    persistence: str = "none",
    event_linger_months: int = 1,
    type_col: str = TYPE_CATEGORY_COL,
    event_types: Sequence[str] = EVENT_TYPES
) -> Optional[pl.DataFrame]:
    """
    Build the co-affiliation edge list of one time window.

    Parameters
    ----------
    affiliations : pl.DataFrame
        Affiliation records with ``Member.ID``, ``Start.Date``, ``End.Date``
        and the key columns
    on_cols : str or list
        Grouping key(s). A column name, a list of column names (one composite
        key), or a list mixing names and lists of names (several key sets),
        e.g. ``["Umbrella", ["Umbrella", "Subgroup"]]``
    start, end : str, date or datetime
        Window bounds
    weight_col : str, optional
        Numeric column weighting a member's tie to a group. A pair's weight
        in a group is the mean of both members' weights
    get_edge_names : bool, default True
        Add ``Edge.Names`` (labels of the shared groups) and ``Edge.Key``
    label_col : str, optional
        Column naming a group in ``Edge.Names``. Defaults to the key values
        joined with ``" / "``
    persistence, event_linger_months, type_col, event_types
        End date adjustment, see
        :func:`affilNet.affiliations.filtering.filter_active_affiliations`

    Returns
    -------
    pl.DataFrame or None
        Columns ``from``, ``to``, ``weight`` (plus ``Edge.Names``,
        ``Edge.Key``), one row per member pair and key set with
        ``from < to``. None when no affiliation record is active in the
        window; an empty frame when records are active but no two members
        share a group.

    Raises
    ------
    InvalidDateRange
        If start is after end
    ConfigurationError
        If on_cols is empty or a persistence option is invalid
    ValidationError
        If a required column is missing or the weight column is invalid

    Examples
    --------
    >>> edges = build_edgelist(affiliations, "Org.ID", "1980-08-01", "1980-09-01")
    >>> edges.columns
    ['from', 'to', 'weight', 'Edge.Names', 'Edge.Key']
    """
    log_function_entry(
        "build_edgelist", on_cols=on_cols, start=start, end=end,
        weight_col=weight_col, persistence=persistence
    )

    start_date, end_date = validate_date_range(start, end)
    key_sets = normalize_key_sets(on_cols)

    if label_col is not None and label_col not in affiliations.columns:
        raise ValidationError(
            f"Label column '{label_col}' not found",
            field="label_col",
            details={"available_columns": affiliations.columns}
        )

    df = prepare_affiliations(
        affiliations,
        key_cols=key_columns(key_sets),
        weight_col=weight_col,
        persistence=persistence,
        event_linger_months=event_linger_months,
        type_col=type_col,
        event_types=event_types
    )

    return edges_for_window(
        df, key_sets, start_date, end_date,
        weight_col=weight_col,
        get_edge_names=get_edge_names,
        label_col=label_col
    )


def edges_for_window(
    prepared: pl.DataFrame,
    key_sets: List[List[str]],
    start: date,
    end: date,
    weight_col: Optional[str] = None,
    get_edge_names: bool = True,
    label_col: Optional[str] = None
) -> Optional[pl.DataFrame]:
    """
    Edge list of one window from an already prepared affiliation table.

    ``prepared`` must come from
    :func:`affilNet.affiliations.filtering.prepare_affiliations`; the
    windowed aggregation calls this once per window so that validation and
    date coercion run only once.
    """
    active = filter_overlapping(prepared, start, end)

    if active.is_empty():
        logger.warning("No affiliation records active between %s and %s", start, end)
        return None

    with LoggingTimer("build_edgelist", {"records": len(active), "key_sets": len(key_sets)}):
        frames = []
        for key_index, keys in enumerate(key_sets):
            edges = _edges_for_key_set(active, keys, weight_col, label_col)
            logger.debug("Key set %s: %d edges", keys, len(edges))
            frames.append(edges.with_columns(pl.lit(key_index).alias("_key_index")))

        edgelist = (
            pl.concat(frames, how="vertical")
            .sort(["_key_index", FROM_COL, TO_COL])
            .drop("_key_index")
        )

    if not get_edge_names:
        edgelist = edgelist.select(list(EDGELIST_SCHEMA))

    logger.debug("Window %s..%s: %d edges from %d records",
                 start, end, len(edgelist), len(active))

    return edgelist


def _edges_for_key_set(
    active: pl.DataFrame,
    keys: List[str],
    weight_col: Optional[str],
    label_col: Optional[str]
) -> pl.DataFrame:
    """Pairs of members sharing a value of ``keys``, aggregated per pair."""

    if weight_col is not None:
        weight_expr = pl.col(weight_col).cast(pl.Float64).fill_null(0.0)
    else:
        weight_expr = pl.lit(1.0, dtype=pl.Float64)

    if label_col is not None:
        label_expr = pl.col(label_col).cast(pl.Utf8)
    else:
        label_expr = pl.concat_str([pl.col(k).cast(pl.Utf8) for k in keys], separator=" / ")

    records = (
        active
        .filter(pl.all_horizontal([pl.col(k).is_not_null() for k in keys]))
        .select(
            *[pl.col(k) for k in keys],
            pl.col(MEMBER_COL),
            weight_expr.alias("_weight"),
            # One label per group even if the label column varies inside it
            label_expr.min().over(keys).alias("_label")
        )
    )

    # A member listed more than once in a group keeps its largest weight
    group_members = records.group_by(keys + [MEMBER_COL]).agg(
        pl.col("_weight").max(),
        pl.col("_label").first()
    )

    pairs = (
        group_members
        .join(group_members.select(keys + [MEMBER_COL, "_weight"]), on=keys, suffix=_RIGHT)
        .filter(pl.col(MEMBER_COL) < pl.col(MEMBER_COL + _RIGHT))
        .select(
            pl.col(MEMBER_COL).alias(FROM_COL),
            pl.col(MEMBER_COL + _RIGHT).alias(TO_COL),
            ((pl.col("_weight") + pl.col("_weight" + _RIGHT)) / 2).alias(WEIGHT_COL),
            pl.col("_label")
        )
    )

    return (
        pairs
        .group_by([FROM_COL, TO_COL])
        .agg(
            pl.col(WEIGHT_COL).sum(),
            pl.col("_label").drop_nulls().sort().alias(EDGE_NAMES_COL)
        )
        .filter(pl.col(WEIGHT_COL) > 0)
        .select(
            pl.col(FROM_COL).cast(pl.Utf8),
            pl.col(TO_COL).cast(pl.Utf8),
            pl.col(WEIGHT_COL).cast(pl.Float64),
            pl.col(EDGE_NAMES_COL).cast(pl.List(pl.Utf8)),
            pl.lit(key_set_name(keys), dtype=pl.Utf8).alias(EDGE_KEY_COL)
        )
    )


def normalize_key_sets(on_cols: OnCols) -> List[List[str]]:
    """
    Turn the ``on_cols`` argument into a list of key sets.

    A plain string or a flat list of strings is a single key set; a list
    containing at least one nested list is a list of key sets.

    Examples
    --------
    >>> normalize_key_sets("Org.ID")
    [['Org.ID']]
    >>> normalize_key_sets(["Umbrella", "Subgroup"])
    [['Umbrella', 'Subgroup']]
    >>> normalize_key_sets(["Umbrella", ["Umbrella", "Subgroup"]])
    [['Umbrella'], ['Umbrella', 'Subgroup']]
    """
    if isinstance(on_cols, str):
        return [[on_cols]]

    items = list(on_cols)
    if not items:
        raise ConfigurationError(
            "on_cols must name at least one key column",
            parameter="on_cols",
            value=on_cols
        )

    if all(isinstance(item, str) for item in items):
        return [items]

    key_sets = []
    for item in items:
        keys = [item] if isinstance(item, str) else list(item)
        if not keys or not all(isinstance(k, str) for k in keys):
            raise ConfigurationError(
                f"Invalid key set in on_cols: {item!r}",
                parameter="on_cols",
                value=on_cols
            )
        key_sets.append(keys)
    return key_sets


def key_columns(key_sets: List[List[str]]) -> List[str]:
    """Distinct key columns over all key sets, in first-use order."""
    return list(dict.fromkeys(col for keys in key_sets for col in keys))


def key_set_name(keys: Sequence[str]) -> str:
    return "+".join(keys)


def empty_edgelist(get_edge_names: bool = True) -> pl.DataFrame:
    """Edge list without rows, with the columns build_edgelist produces."""
    schema = dict(EDGELIST_SCHEMA)
    if get_edge_names:
        schema[EDGE_NAMES_COL] = pl.List(pl.Utf8)
        schema[EDGE_KEY_COL] = pl.Utf8
    return pl.DataFrame(schema=schema)


def attach_member_groups(
    edgelist: pl.DataFrame,
    member_meta: pl.DataFrame,
    group_col: str,
    member_col: str = MEMBER_COL
) -> pl.DataFrame:
    """
    Add ``group_from``/``group_to`` holding each endpoint's ``group_col`` value.

    A member listed several times in ``member_meta`` uses its first row.
    Row order of ``edgelist`` is kept.

    Raises
    ------
    ValidationError
        If ``member_meta`` lacks the member or group column
    """
    missing = [col for col in [member_col, group_col] if col not in member_meta.columns]
    if missing:
        raise ValidationError(
            f"Member metadata is missing columns: {missing}",
            field="member_meta",
            details={"available_columns": member_meta.columns}
        )

    groups = (
        member_meta
        .select(pl.col(member_col).cast(pl.Utf8).alias("_member"), pl.col(group_col).alias("_group"))
        .unique(subset="_member", keep="first", maintain_order=True)
    )

    return (
        edgelist
        .with_row_index("_row")
        .join(groups.rename({"_member": FROM_COL, "_group": "group_from"}), on=FROM_COL, how="left")
        .join(groups.rename({"_member": TO_COL, "_group": "group_to"}), on=TO_COL, how="left")
        .sort("_row")
        .drop("_row")
    )


def is_cross_connection() -> pl.Expr:
    """True for edges whose endpoints have different, non-null groups."""
    return (
        pl.col("group_from").is_not_null() &
        pl.col("group_to").is_not_null() &
        (pl.col("group_from") != pl.col("group_to"))
    ).fill_null(False)


def label_cross_connections(
    edgelist: Optional[pl.DataFrame],
    member_meta: pl.DataFrame,
    group_col: str,
    member_col: str = MEMBER_COL
) -> Optional[pl.DataFrame]:
    """
    Label each edge as a cross-group or intra-group connection.

    Parameters
    ----------
    edgelist : pl.DataFrame or None
        Output of :func:`build_edgelist`; None is passed through
    member_meta : pl.DataFrame
        Member attributes with ``member_col`` and ``group_col``
    group_col : str
        Attribute defining the groups, e.g. ``"RT Affiliation"``

    Returns
    -------
    pl.DataFrame or None
        ``edgelist`` with a ``Cross.Connection`` column holding
        ``"Cross-Connection"`` or ``"Intra-Connection"``. Edges with an
        endpoint of unknown group count as intra-group.

    Examples
    --------
    >>> labelled = label_cross_connections(edges, members, "RT Affiliation")
    >>> labelled["Cross.Connection"].value_counts()
    """
    if edgelist is None:
        return None

    labelled = attach_member_groups(edgelist, member_meta, group_col, member_col)

    return (
        labelled
        .with_columns(
            pl.when(is_cross_connection())
            .then(pl.lit(CROSS_CONNECTION))
            .otherwise(pl.lit(INTRA_CONNECTION))
            .alias(CROSS_CONNECTION_COL)
        )
        .drop(["group_from", "group_to"])
    )
