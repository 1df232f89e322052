"""
Subsetting affiliation tables by organization and member attributes.

Each filter is a mapping ``column -> allowed values``. Criteria inside one
mapping are OR-combined (a record is kept if any column matches), while the
organization and member mappings are AND-combined.
"""

from typing import Any, Dict, Iterable, Mapping, Optional

import polars as pl

from ..common.exceptions import ValidationError
from ..common.logging_config import get_logger

logger = get_logger(__name__)

FilterSpec = Mapping[str, Iterable[Any]]


def select_affiliations(
    affiliations: pl.DataFrame,
    org_filters: Optional[FilterSpec] = None,
    member_filters: Optional[FilterSpec] = None
) -> pl.DataFrame:
    """
    Keep the affiliation records matching the organization and member filters.

    Parameters
    ----------
    affiliations : pl.DataFrame
        Affiliation records, joined with organization and member attributes
    org_filters : Mapping[str, Iterable], optional
        Organization attribute criteria, e.g. ``{"Type_Category": ["Event"]}``
    member_filters : Mapping[str, Iterable], optional
        Member attribute criteria, e.g. ``{"Profession": ["Artist"]}``

    Returns
    -------
    pl.DataFrame
        Matching records. A filter that is None or empty keeps everything;
        a column mapped to an empty collection matches nothing.

    Raises
    ------
    ValidationError
        If a filter names a column that does not exist

    Examples
    --------
    >>> selected = select_affiliations(
    ...     affiliations,
    ...     org_filters={"Type_Category": ["Event"], "Name": ["Ausstellung"]},
    ...     member_filters={"RT Affiliation": ["Trace"]},
    ... )
    """
    df = affiliations
    for label, filters in [("org_filters", org_filters), ("member_filters", member_filters)]:
        condition = _any_of(filters, df.columns, label)
        if condition is not None:
            df = df.filter(condition)

    if len(df) < len(affiliations):
        logger.info("Selected %d of %d affiliation records", len(df), len(affiliations))

    return df


def _any_of(filters: Optional[FilterSpec], columns: list, label: str) -> Optional[pl.Expr]:
    """OR-combine ``column in values`` conditions, None when there is nothing to filter."""
    if not filters:
        return None

    missing = [col for col in filters if col not in columns]
    if missing:
        raise ValidationError(
            f"Filter columns not found: {missing}",
            field=label,
            details={"available_columns": columns}
        )

    conditions = [pl.col(col).is_in(list(values)) for col, values in filters.items()]

    combined = conditions[0]
    for condition in conditions[1:]:
        combined = combined | condition
    # is_in yields null for null cells; treat those as no match
    return combined.fill_null(False)


def unique_values(affiliations: pl.DataFrame, columns: Iterable[str]) -> Dict[str, list]:
    """
    Sorted non-null values of each column, for building filter choices.

    Examples
    --------
    >>> unique_values(affiliations, ["Type_Category"])
    {'Type_Category': ['Event', 'Group']}
    """
    return {
        col: affiliations[col].drop_nulls().unique().sort().to_list()
        for col in columns
    }
