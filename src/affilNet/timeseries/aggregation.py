"""
Longitudinal member metrics over consecutive time windows.

Each window runs the same pipeline: find the affiliations active in the
window, build the co-affiliation edge list, compute member metrics. The
requested member set is fixed for the whole call, so every window reports
the same members and the result can be pivoted by member.
"""

from concurrent.futures import ProcessPoolExecutor, as_completed
from datetime import date
import multiprocessing
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

import polars as pl

from .windows import (
    VALID_STEP_POLICIES,
    Window,
    generate_windows,
    validate_timesteps
)
from ..affiliations.filtering import adjust_end_dates, VALID_PERSISTENCE_MODES
from ..network.backends import get_backend
from ..network.edges import OnCols, edges_for_window, key_columns, normalize_key_sets
from ..network.metrics import compute_metrics_from_edgelist, metrics_schema
from ..common.exceptions import (
    ConfigurationError,
    ValidationError,
    validate_parameter,
    require_positive
)
from ..common.schema import END_COL, EVENT_TYPES, START_COL, TYPE_CATEGORY_COL
from ..common.validators import (
    DateLike,
    coerce_affiliation_dates,
    normalize_members,
    validate_affiliation_dataframe,
    validate_date_range
)
from ..common.logging_config import get_logger, log_function_entry, LoggingTimer

logger = get_logger(__name__)

# Keyword arguments of compute_window_metrics that compute_all_metrics forwards
WINDOW_OPTIONS = [
    "persistence",
    "event_linger_months",
    "type_col",
    "event_types",
    "backend",
    "member_meta",
    "group_col",
    "cross_only",
]


def compute_window_metrics(
    affiliations: pl.DataFrame,
    on_cols: OnCols,
    weight_col: Optional[str] = None,
    members: Optional[Iterable[Any]] = None,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
    persistence: str = "none",
    event_linger_months: int = 1,
    type_col: str = TYPE_CATEGORY_COL,
    event_types: Sequence[str] = EVENT_TYPES,
    backend: Any = "networkit",
    member_meta: Optional[pl.DataFrame] = None,
    group_col: Optional[str] = None,
    cross_only: bool = False
) -> pl.DataFrame:
    """
    Member metrics of a single time window.

    Parameters
    ----------
    affiliations : pl.DataFrame
        Affiliation records
    on_cols : str or list
        Grouping key(s), see :func:`affilNet.network.edges.build_edgelist`
    weight_col : str, optional
        Weight column; when given, shortest paths are weighted too
    members : Iterable, optional
        Members to report on. Defaults to every member in order of first
        appearance
    start, end : str, date or datetime, optional
        Window bounds. Default to the earliest and latest ``Start.Date``
    persistence, event_linger_months, type_col, event_types
        End date adjustment, see
        :func:`affilNet.affiliations.filtering.filter_active_affiliations`
    backend : str or GraphBackend, default "networkit"
        Graph library used for the metrics
    member_meta, group_col : optional
        Member attributes and grouping column for cross-group degree
    cross_only : bool, default False
        Compute the metrics on cross-group edges only

    Returns
    -------
    pl.DataFrame
        Metrics table (see
        :func:`affilNet.network.metrics.compute_metrics_from_edgelist`) with
        the window bounds in ``Start.Date`` and ``End.Date``

    Examples
    --------
    >>> window = compute_window_metrics(affiliations, "Org.ID",
    ...                                 start="1980-08-01", end="1980-09-01")
    """
    _validate_window_options(persistence, event_linger_months, backend)
    key_sets = normalize_key_sets(on_cols)

    df = _coerce(affiliations, key_sets, weight_col, persistence, type_col)

    if start is None:
        start = _inferred_bound(df[START_COL].min(), "start")
    if end is None:
        end = _inferred_bound(df[START_COL].max(), "end")
    window = validate_date_range(start, end)

    prepared = adjust_end_dates(df, persistence, event_linger_months, type_col, event_types)
    member_ids = normalize_members(members, df)

    return _window_metrics(
        prepared, key_sets, member_ids, window,
        weight_col=weight_col,
        backend=backend,
        member_meta=member_meta,
        group_col=group_col,
        cross_only=cross_only
    )


def compute_all_metrics(
    affiliations: pl.DataFrame,
    on_cols: OnCols,
    weight_col: Optional[str] = None,
    members: Optional[Iterable[Any]] = None,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
    timesteps: str = "months",
    step_policy: str = "drop-last",
    progress: Optional[Callable[[date], Any]] = None,
    n_jobs: int = 1,
    **window_kwargs
) -> pl.DataFrame:
    """
    Member metrics for every window of a date range.

    Parameters
    ----------
    affiliations : pl.DataFrame
        Affiliation records
    on_cols : str or list
        Grouping key(s), see :func:`affilNet.network.edges.build_edgelist`
    weight_col : str, optional
        Weight column; when given, shortest paths are weighted too
    members : Iterable, optional
        Members to report on in every window. Defaults to every member in
        order of first appearance
    start : str, date or datetime, optional
        Origin of the windows. Defaults to the earliest ``Start.Date``
    end : str, date or datetime, optional
        End of the range. Defaults to the latest recorded ``End.Date``
    timesteps : str, default "months"
        Window length, one of ``"days"``, ``"months"``, ``"years"``
    step_policy : str, default "drop-last"
        Window count policy, see :func:`affilNet.timeseries.windows.generate_windows`
    progress : callable, optional
        Called with each window's start date once the window is done
    n_jobs : int, default 1
        Worker processes; -1 uses all cores. With several workers,
        ``progress`` is called in completion order
    **window_kwargs
        ``persistence``, ``event_linger_months``, ``type_col``,
        ``event_types``, ``backend``, ``member_meta``, ``group_col``,
        ``cross_only``, forwarded to every window

    Returns
    -------
    pl.DataFrame
        Metrics tables of all windows concatenated in window order. A
        window without active affiliations contributes null rows.

    Raises
    ------
    InvalidTimestepUnit
        If timesteps is unknown (checked before anything is computed)
    InvalidDateRange
        If start is after end
    ConfigurationError
        If an option is invalid or an unknown keyword is given
    ValidationError
        If the affiliation table lacks required columns, or has no rows
        while start or end is left to be inferred

    Examples
    --------
    >>> metrics = compute_all_metrics(
    ...     affiliations, on_cols=["Umbrella", ["Umbrella", "Subgroup"]],
    ...     start="1980-01-01", end="1990-01-01", timesteps="years",
    ...     persistence="events-only", event_linger_months=6,
    ... )
    >>> metrics.pivot(on="Start.Date", index="Member.ID", values="Degree")
    """
    validate_timesteps(timesteps)
    validate_parameter(step_policy, VALID_STEP_POLICIES, "step_policy", "compute_all_metrics")

    unknown = [key for key in window_kwargs if key not in WINDOW_OPTIONS]
    if unknown:
        raise ConfigurationError(
            f"Unknown window options: {unknown}",
            parameter="window_kwargs",
            valid_options=WINDOW_OPTIONS,
            function="compute_all_metrics"
        )

    persistence = window_kwargs.get("persistence", "none")
    event_linger_months = window_kwargs.get("event_linger_months", 1)
    type_col = window_kwargs.get("type_col", TYPE_CATEGORY_COL)
    event_types = window_kwargs.get("event_types", EVENT_TYPES)
    backend = window_kwargs.get("backend", "networkit")
    _validate_window_options(persistence, event_linger_months, backend)
    if window_kwargs.get("cross_only") and window_kwargs.get("group_col") is None:
        raise ConfigurationError(
            "cross_only needs member_meta and group_col",
            parameter="cross_only",
            value=window_kwargs.get("cross_only")
        )

    if n_jobs != -1:
        require_positive(n_jobs, "n_jobs")

    log_function_entry(
        "compute_all_metrics", on_cols=on_cols, weight_col=weight_col, start=start,
        end=end, timesteps=timesteps, step_policy=step_policy, n_jobs=n_jobs
    )

    key_sets = normalize_key_sets(on_cols)
    df = _coerce(affiliations, key_sets, weight_col, persistence, type_col)

    if start is None:
        start = _inferred_bound(df[START_COL].min(), "start")
    if end is None:
        # Recorded end dates only; persistence would push this to MAX_DATE
        end = df[END_COL].max()
        if end is None:
            end = _inferred_bound(df[START_COL].max(), "end")

    windows = generate_windows(start, end, timesteps, step_policy)
    member_ids = normalize_members(members, df)

    logger.info("Computing metrics for %d members over %d %s windows",
                len(member_ids), len(windows), timesteps)

    with_cross = window_kwargs.get("group_col") is not None
    if not windows:
        logger.warning("Date range %s..%s holds no complete %s window", start, end, timesteps)
        return _empty_result(with_cross)

    prepared = adjust_end_dates(df, persistence, event_linger_months, type_col, event_types)

    task_kwargs = {
        "weight_col": weight_col,
        "backend": backend,
        "member_meta": window_kwargs.get("member_meta"),
        "group_col": window_kwargs.get("group_col"),
        "cross_only": window_kwargs.get("cross_only", False),
    }

    with LoggingTimer("compute_all_metrics", {"windows": len(windows), "n_jobs": n_jobs}):
        if n_jobs == 1:
            results = []
            for window in windows:
                results.append(_window_metrics(prepared, key_sets, member_ids, window, **task_kwargs))
                if progress is not None:
                    progress(window[0])
        else:
            results = _parallel_window_metrics(
                prepared, key_sets, member_ids, windows, task_kwargs, progress, n_jobs
            )

    return pl.concat(results, how="vertical")


def _parallel_window_metrics(
    prepared: pl.DataFrame,
    key_sets: List[List[str]],
    member_ids: List[str],
    windows: List[Window],
    task_kwargs: Dict[str, Any],
    progress: Optional[Callable[[date], Any]],
    n_jobs: int
) -> List[pl.DataFrame]:
    """Compute windows in worker processes, results in window order."""
    max_cores = multiprocessing.cpu_count()
    actual_workers = min(max_cores, len(windows)) if n_jobs == -1 else min(n_jobs, len(windows))

    logger.debug("Computing %d windows with %d workers", len(windows), actual_workers)

    results: Dict[int, pl.DataFrame] = {}

    with ProcessPoolExecutor(max_workers=actual_workers) as executor:
        future_to_index = {}
        for index, window in enumerate(windows):
            future = executor.submit(
                _window_metrics, prepared, key_sets, member_ids, window, **task_kwargs
            )
            future_to_index[future] = index

        for future in as_completed(future_to_index):
            index = future_to_index[future]
            # Worker failures propagate to the caller
            results[index] = future.result()
            if progress is not None:
                progress(windows[index][0])

    return [results[index] for index in range(len(windows))]


def _window_metrics(
    prepared: pl.DataFrame,
    key_sets: List[List[str]],
    member_ids: List[str],
    window: Window,
    weight_col: Optional[str] = None,
    backend: Any = "networkit",
    member_meta: Optional[pl.DataFrame] = None,
    group_col: Optional[str] = None,
    cross_only: bool = False
) -> pl.DataFrame:
    window_start, window_end = window

    edgelist = edges_for_window(
        prepared, key_sets, window_start, window_end,
        weight_col=weight_col,
        get_edge_names=False
    )

    metrics = compute_metrics_from_edgelist(
        edgelist,
        member_ids,
        weighted=weight_col is not None,
        backend=backend,
        member_meta=member_meta,
        group_col=group_col,
        cross_only=cross_only
    )

    logger.debug("Window %s..%s done", window_start, window_end)

    return metrics.with_columns(
        pl.lit(window_start, dtype=pl.Date).alias(START_COL),
        pl.lit(window_end, dtype=pl.Date).alias(END_COL)
    )


def _coerce(
    affiliations: pl.DataFrame,
    key_sets: List[List[str]],
    weight_col: Optional[str],
    persistence: str,
    type_col: str
) -> pl.DataFrame:
    extra_cols = [type_col] if persistence == "events-only" else None
    validate_affiliation_dataframe(
        affiliations, key_cols=key_columns(key_sets), weight_col=weight_col,
        extra_cols=extra_cols, allow_empty=True
    )
    return coerce_affiliation_dates(affiliations)


def _inferred_bound(value: Optional[date], name: str) -> date:
    if value is None:
        raise ValidationError(
            f"Cannot infer {name} from an affiliation table without dates",
            field=name,
            expected="explicit start and end for an empty selection"
        )
    return value


def _validate_window_options(persistence: str, event_linger_months: int, backend: Any) -> None:
    validate_parameter(persistence, VALID_PERSISTENCE_MODES, "persistence")
    require_positive(event_linger_months, "event_linger_months")
    get_backend(backend)


def _empty_result(with_cross: bool) -> pl.DataFrame:
    schema = metrics_schema(with_cross)
    schema[START_COL] = pl.Date
    schema[END_COL] = pl.Date
    return pl.DataFrame(schema=schema)
