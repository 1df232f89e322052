"""
Input validation utilities for the affilNet library.

The affiliation table reaching the library is assumed to follow the known
schema, but the columns a call relies on are still checked up front so that
a wrong column name fails with a clear ValidationError instead of a polars
ColumnNotFoundError deep inside a window computation.
"""

from datetime import date, datetime
from typing import Any, Iterable, List, Optional, Sequence, Union
import warnings

import polars as pl

from .exceptions import ValidationError, DataFormatError, InvalidDateRange
from .schema import MEMBER_COL, START_COL, END_COL

DateLike = Union[str, date, datetime]


def validate_affiliation_dataframe(
    df: pl.DataFrame,
    key_cols: Optional[Sequence[str]] = None,
    weight_col: Optional[str] = None,
    extra_cols: Optional[Sequence[str]] = None,
    allow_empty: bool = False
) -> None:
    """
    Validate an affiliation DataFrame before edges are derived from it.

    Parameters
    ----------
    df : pl.DataFrame
        Affiliation records
    key_cols : Sequence[str], optional
        Grouping key columns that edges will be computed on
    weight_col : str, optional
        Name of the weight column (if used)
    extra_cols : Sequence[str], optional
        Any further columns the caller relies on
    allow_empty : bool, default False
        Accept a frame without rows as long as its columns are present.
        The windowed pipeline uses this, since a narrowed selection may
        leave nothing to connect.

    Raises
    ------
    ValidationError
        If the DataFrame is empty (unless allowed), misses a column, has null
        member IDs or start dates, or carries a non-numeric / negative weight
        column

    Examples
    --------
    >>> df = pl.DataFrame({
    ...     "Member.ID": ["M1", "M2"],
    ...     "Org.ID": ["O1", "O1"],
    ...     "Start.Date": ["1980-01-01", "1981-05-01"],
    ...     "End.Date": ["1982-01-01", None],
    ... })
    >>> validate_affiliation_dataframe(df, key_cols=["Org.ID"])
    """
    if df.is_empty() and not allow_empty:
        raise ValidationError("Affiliation DataFrame is empty", field="affiliations")

    required_cols = [MEMBER_COL, START_COL, END_COL]
    required_cols += list(key_cols or [])
    required_cols += [col for col in [weight_col] if col is not None]
    required_cols += list(extra_cols or [])

    missing_cols = [col for col in dict.fromkeys(required_cols) if col not in df.columns]
    if missing_cols:
        raise ValidationError(
            f"Missing required columns: {missing_cols}",
            field="columns",
            details={"available_columns": df.columns, "missing": missing_cols}
        )

    for col in [MEMBER_COL, START_COL]:
        null_count = df[col].null_count()
        if null_count > 0:
            raise ValidationError(
                f"Column contains {null_count} null values",
                field=col,
                details={"null_count": null_count, "total_rows": len(df)}
            )

    if weight_col is not None:
        weight_series = df[weight_col]

        if not weight_series.dtype.is_numeric():
            raise ValidationError(
                f"Weight column must be numeric, got {weight_series.dtype}",
                field=weight_col,
                details={"dtype": str(weight_series.dtype)}
            )

        null_count = weight_series.null_count()
        if null_count > 0:
            warnings.warn(
                f"Weight column contains {null_count} null values. "
                "These rows will be treated as zero weight."
            )

        non_null_weights = weight_series.drop_nulls()
        if len(non_null_weights) > 0 and non_null_weights.min() < 0:
            negative_count = int((non_null_weights < 0).sum())
            raise ValidationError(
                f"Weight column contains {negative_count} negative values",
                field=weight_col,
                details={"min_weight": non_null_weights.min(), "negative_count": negative_count}
            )


def coerce_affiliation_dates(df: pl.DataFrame) -> pl.DataFrame:
    """
    Return a copy of ``df`` with ``Start.Date``/``End.Date`` as ``pl.Date``
    and ``Member.ID`` as ``pl.Utf8``.

    String dates must be ISO formatted (``YYYY-MM-DD``); datetimes are
    truncated to their date.

    Raises
    ------
    DataFormatError
        If a date column cannot be parsed
    """
    expressions = [pl.col(MEMBER_COL).cast(pl.Utf8)]

    for col in [START_COL, END_COL]:
        dtype = df.schema[col]
        if dtype == pl.Date:
            continue
        if dtype == pl.Utf8:
            expressions.append(pl.col(col).str.to_date("%Y-%m-%d", strict=True))
        elif dtype == pl.Null:
            expressions.append(pl.col(col).cast(pl.Date))
        elif isinstance(dtype, pl.Datetime):
            expressions.append(pl.col(col).dt.date())
        else:
            raise DataFormatError(
                f"Column '{col}' has unsupported type {dtype}",
                column=col,
                expected_type="Date"
            )

    try:
        return df.with_columns(expressions)
    except (pl.exceptions.ComputeError, pl.exceptions.InvalidOperationError) as e:
        raise DataFormatError(
            f"Failed to parse affiliation dates: {e}",
            expected_type="Date",
            cause=e
        )


def parse_date(value: DateLike, name: str = "date") -> date:
    """
    Normalize a date argument to ``datetime.date``.

    Parameters
    ----------
    value : str, date or datetime
        ISO ``YYYY-MM-DD`` string or a date value
    name : str
        Argument name used in error messages

    Raises
    ------
    DataFormatError
        If a string cannot be parsed as an ISO date
    ValidationError
        If the value has an unsupported type

    Examples
    --------
    >>> parse_date("1989-02-06")
    datetime.date(1989, 2, 6)
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as e:
            raise DataFormatError(
                f"Cannot parse '{value}' as an ISO date",
                column=name,
                expected_type="YYYY-MM-DD",
                cause=e
            )
    raise ValidationError(
        f"Unsupported date type {type(value).__name__}",
        field=name,
        value=value,
        expected="ISO date string, date or datetime"
    )


def validate_date_range(start: DateLike, end: DateLike) -> tuple:
    """
    Parse both bounds of a range and check that start is not after end.

    Returns
    -------
    Tuple[date, date]
        Parsed ``(start, end)``

    Raises
    ------
    InvalidDateRange
        If start > end
    """
    start_date = parse_date(start, "start")
    end_date = parse_date(end, "end")
    if start_date > end_date:
        raise InvalidDateRange(start_date, end_date)
    return start_date, end_date


def normalize_members(members: Optional[Iterable[Any]], df: pl.DataFrame) -> List[str]:
    """
    Return the requested member IDs as strings, defaulting to every member
    in ``df`` in order of first appearance. Duplicates are dropped.
    """
    if members is None:
        return df[MEMBER_COL].cast(pl.Utf8).unique(maintain_order=True).to_list()
    if isinstance(members, (str, bytes)):
        raise ValidationError(
            "members must be a collection of IDs, not a single string",
            field="members",
            value=members
        )
    return list(dict.fromkeys(str(member) for member in members))
