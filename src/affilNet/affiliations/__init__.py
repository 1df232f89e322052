"""
Affiliation table handling: selecting records and finding the ones active in
a time window.
"""

from .filtering import (
    VALID_PERSISTENCE_MODES,
    filter_active_affiliations,
    adjust_end_dates,
    prepare_affiliations
)
from .selection import select_affiliations, unique_values
