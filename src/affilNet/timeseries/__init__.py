"""
Time-series network analysis.

This module provides:
- Generation of day, month and year windows over a date range
- Per-window member metrics, concatenated into a longitudinal table
"""

from .windows import generate_windows, VALID_TIMESTEPS, VALID_STEP_POLICIES
from .aggregation import compute_window_metrics, compute_all_metrics
