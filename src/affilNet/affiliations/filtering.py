"""
Interval overlap filtering of affiliation records.

Selects the affiliation records that are active during a query window,
after stretching their end dates according to a persistence mode:

- ``"none"``: recorded end dates are used as they are
- ``"events-only"``: event-type affiliations linger for a number of months
  after their recorded end
- ``"all"``: every affiliation lasts forever once started

Records without an end date are open-ended in every mode.
"""

from datetime import date
from typing import Optional, Sequence

import polars as pl

from ..common.exceptions import ValidationError, validate_parameter, require_positive
from ..common.schema import END_COL, EVENT_TYPES, MAX_DATE, START_COL, TYPE_CATEGORY_COL
from ..common.validators import (
    DateLike,
    coerce_affiliation_dates,
    validate_affiliation_dataframe,
    validate_date_range
)
from ..common.logging_config import get_logger

logger = get_logger(__name__)

VALID_PERSISTENCE_MODES = ["none", "events-only", "all"]


def filter_active_affiliations(
    affiliations: pl.DataFrame,
    start: DateLike,
    end: DateLike,
    persistence: str = "none",
    event_linger_months: int = 1,
    type_col: str = TYPE_CATEGORY_COL,
    event_types: Sequence[str] = EVENT_TYPES
) -> pl.DataFrame:
    """
    Return the affiliation records active in the window ``[start, end)``.

    A record is active when ``Start.Date <= end`` and ``End.Date >= start``,
    where ``End.Date`` is first adjusted by :func:`adjust_end_dates`.

    Parameters
    ----------
    affiliations : pl.DataFrame
        Affiliation records with ``Member.ID``, ``Start.Date`` and ``End.Date``
    start, end : str, date or datetime
        Query window bounds (ISO strings are accepted)
    persistence : str, default "none"
        One of ``"none"``, ``"events-only"``, ``"all"``
    event_linger_months : int, default 1
        Months an event-type affiliation stays active after its end date
        (only used with ``persistence="events-only"``)
    type_col : str, default "Type_Category"
        Column telling event-type records apart
    event_types : Sequence[str], default ("Event",)
        Values of ``type_col`` that mark event-type records

    Returns
    -------
    pl.DataFrame
        Active records, with ``End.Date`` replaced by the adjusted end date

    Raises
    ------
    InvalidDateRange
        If start is after end
    ConfigurationError
        If persistence is unknown or event_linger_months is not positive
    ValidationError
        If required columns are missing

    Examples
    --------
    >>> active = filter_active_affiliations(
    ...     affiliations, "1980-08-01", "1980-09-01", persistence="events-only",
    ...     event_linger_months=6
    ... )
    """
    start_date, end_date = validate_date_range(start, end)
    _validate_persistence(persistence, event_linger_months)

    extra_cols = [type_col] if persistence == "events-only" else None
    validate_affiliation_dataframe(affiliations, extra_cols=extra_cols, allow_empty=True)

    df = coerce_affiliation_dates(affiliations)
    df = adjust_end_dates(df, persistence, event_linger_months, type_col, event_types)

    return filter_overlapping(df, start_date, end_date)


def adjust_end_dates(
    affiliations: pl.DataFrame,
    persistence: str = "none",
    event_linger_months: int = 1,
    type_col: str = TYPE_CATEGORY_COL,
    event_types: Sequence[str] = EVENT_TYPES
) -> pl.DataFrame:
    """
    Apply a persistence mode to ``End.Date``.

    Expects ``End.Date`` to already be a ``pl.Date`` column. Null end dates
    are replaced by ``MAX_DATE``.

    Examples
    --------
    >>> lifelong = adjust_end_dates(affiliations, persistence="all")
    >>> lifelong["End.Date"].unique().to_list()
    [datetime.date(9999, 12, 31)]
    """
    _validate_persistence(persistence, event_linger_months)

    end_expr = pl.col(END_COL)

    if persistence == "all":
        end_expr = pl.lit(MAX_DATE, dtype=pl.Date)
    elif persistence == "events-only":
        if type_col not in affiliations.columns:
            raise ValidationError(
                f"Column '{type_col}' is required to find event affiliations",
                field=type_col,
                details={"persistence": persistence}
            )
        is_event = pl.col(type_col).is_in(list(event_types))
        end_expr = (
            pl.when(is_event)
            .then(pl.col(END_COL).dt.offset_by(f"{event_linger_months}mo"))
            .otherwise(pl.col(END_COL))
        )

    return affiliations.with_columns(
        end_expr.fill_null(pl.lit(MAX_DATE, dtype=pl.Date)).alias(END_COL)
    )


def filter_overlapping(df: pl.DataFrame, start: date, end: date) -> pl.DataFrame:
    """Keep rows whose [Start.Date, End.Date] interval touches [start, end]."""

    active = df.filter(
        (pl.col(START_COL) <= pl.lit(end, dtype=pl.Date)) &
        (pl.col(END_COL) >= pl.lit(start, dtype=pl.Date))
    )

    logger.debug("Window %s..%s: %d of %d affiliation records active",
                 start, end, len(active), len(df))

    return active


def _validate_persistence(persistence: str, event_linger_months: int) -> None:
    validate_parameter(persistence, VALID_PERSISTENCE_MODES, "persistence")
    require_positive(event_linger_months, "event_linger_months")


def prepare_affiliations(
    affiliations: pl.DataFrame,
    key_cols: Optional[Sequence[str]] = None,
    weight_col: Optional[str] = None,
    persistence: str = "none",
    event_linger_months: int = 1,
    type_col: str = TYPE_CATEGORY_COL,
    event_types: Sequence[str] = EVENT_TYPES
) -> pl.DataFrame:
    """
    Validate, coerce and persistence-adjust an affiliation table once, so
    that per-window filtering only has to run the overlap test.
    """
    _validate_persistence(persistence, event_linger_months)

    extra_cols = [type_col] if persistence == "events-only" else None
    validate_affiliation_dataframe(
        affiliations, key_cols=key_cols, weight_col=weight_col, extra_cols=extra_cols,
        allow_empty=True
    )

    df = coerce_affiliation_dates(affiliations)
    return adjust_end_dates(df, persistence, event_linger_months, type_col, event_types)
