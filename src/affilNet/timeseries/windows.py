"""
Generation of consecutive time windows over a date range.

Windows are ``[origin + k * unit, origin + (k + 1) * unit)`` and are always
computed from the origin, so month arithmetic clamps to the last day of
shorter months without drifting (Jan 31, Feb 28, Mar 31, ...).
"""

import calendar
from datetime import date, timedelta
from typing import List, Tuple

from ..common.exceptions import InvalidTimestepUnit, validate_parameter
from ..common.validators import DateLike, validate_date_range
from ..common.logging_config import get_logger

logger = get_logger(__name__)

VALID_TIMESTEPS = ["days", "months", "years"]

# "drop-last" keeps the historical window count of the metrics tables,
# floor(interval / unit) - 1; "full" yields every complete window
VALID_STEP_POLICIES = ["drop-last", "full"]

Window = Tuple[date, date]


def generate_windows(
    start: DateLike,
    end: DateLike,
    timesteps: str = "months",
    step_policy: str = "drop-last"
) -> List[Window]:
    """
    Split ``[start, end]`` into consecutive windows of one step unit.

    Parameters
    ----------
    start, end : str, date or datetime
        Range bounds
    timesteps : str, default "months"
        Step unit, one of ``"days"``, ``"months"``, ``"years"``
    step_policy : str, default "drop-last"
        ``"drop-last"`` yields ``floor(interval / unit) - 1`` windows,
        ``"full"`` yields ``floor(interval / unit)``. Never negative.

    Returns
    -------
    List[Tuple[date, date]]
        ``(window_start, window_end)`` pairs in chronological order

    Raises
    ------
    InvalidTimestepUnit
        If timesteps is not a known unit
    ConfigurationError
        If step_policy is unknown
    InvalidDateRange
        If start is after end

    Examples
    --------
    >>> generate_windows("1980-01-01", "1980-04-01")
    [(datetime.date(1980, 1, 1), datetime.date(1980, 2, 1)),
     (datetime.date(1980, 2, 1), datetime.date(1980, 3, 1))]
    >>> len(generate_windows("1980-01-01", "1980-04-01", step_policy="full"))
    3
    """
    validate_timesteps(timesteps)
    validate_parameter(step_policy, VALID_STEP_POLICIES, "step_policy", "generate_windows")
    start_date, end_date = validate_date_range(start, end)

    n_steps = count_steps(start_date, end_date, timesteps)
    if step_policy == "drop-last":
        n_steps = max(n_steps - 1, 0)

    windows = [
        (shift_date(start_date, k, timesteps), shift_date(start_date, k + 1, timesteps))
        for k in range(n_steps)
    ]

    logger.debug("%d %s windows between %s and %s (%s)",
                 len(windows), timesteps, start_date, end_date, step_policy)
    return windows


def validate_timesteps(timesteps: str) -> None:
    if timesteps not in VALID_TIMESTEPS:
        raise InvalidTimestepUnit(timesteps, VALID_TIMESTEPS)


def shift_date(origin: date, steps: int, timesteps: str) -> date:
    """
    Move ``origin`` forward by ``steps`` units.

    Examples
    --------
    >>> shift_date(date(1980, 1, 31), 1, "months")
    datetime.date(1980, 2, 29)
    """
    if timesteps == "days":
        return origin + timedelta(days=steps)
    if timesteps == "months":
        return _add_months(origin, steps)
    if timesteps == "years":
        return _add_months(origin, 12 * steps)
    raise InvalidTimestepUnit(timesteps, VALID_TIMESTEPS)


def _add_months(origin: date, months: int) -> date:
    month_index = origin.month - 1 + months
    year = origin.year + month_index // 12
    month = month_index % 12 + 1
    day = min(origin.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def count_steps(start: date, end: date, timesteps: str) -> int:
    """Number of whole units between start and end."""
    if timesteps == "days":
        return (end - start).days

    if timesteps == "months":
        steps = (end.year - start.year) * 12 + (end.month - start.month)
    else:
        steps = end.year - start.year

    # Calendar difference overshoots when the last unit is incomplete
    if steps > 0 and shift_date(start, steps, timesteps) > end:
        steps -= 1
    return max(steps, 0)
