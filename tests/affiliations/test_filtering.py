"""
Tests for interval overlap filtering and persistence modes.
"""

from datetime import date

import polars as pl
import pytest

from affilNet.affiliations.filtering import (
    VALID_PERSISTENCE_MODES,
    adjust_end_dates,
    filter_active_affiliations,
    prepare_affiliations
)
from affilNet.common.exceptions import ConfigurationError, InvalidDateRange, ValidationError
from affilNet.common.schema import MAX_DATE


class TestFilterActiveAffiliations:
    """Test filter_active_affiliations."""

    def create_sample_data(self):
        return pl.DataFrame({
            "Member.ID": ["M1", "M2", "M3", "M4"],
            "Org.ID": ["O1", "O1", "O2", "O3"],
            "Start.Date": ["1980-01-01", "1980-06-01", "1979-01-01", "1980-01-01"],
            "End.Date": ["1980-12-31", None, "1979-12-31", "1980-01-02"],
            "Type_Category": ["Group", "Group", "Group", "Event"],
        })

    def test_overlapping_records(self):
        active = filter_active_affiliations(self.create_sample_data(), "1980-08-01", "1980-09-01")

        assert active["Member.ID"].to_list() == ["M1", "M2"]

    def test_open_ended_record_stays_active(self):
        active = filter_active_affiliations(self.create_sample_data(), "2001-01-01", "2001-02-01")

        assert active["Member.ID"].to_list() == ["M2"]
        assert active["End.Date"].to_list() == [MAX_DATE]

    def test_boundaries_inclusive(self):
        # M3 ends on 1979-12-31, M1 starts on 1980-01-01
        active = filter_active_affiliations(self.create_sample_data(), "1979-12-31", "1980-01-01")

        assert sorted(active["Member.ID"].to_list()) == ["M1", "M3", "M4"]

    def test_no_active_records(self):
        active = filter_active_affiliations(self.create_sample_data(), "1970-01-01", "1970-02-01")

    def test_empty_table(self):
        active = filter_active_affiliations(self.create_sample_data().head(0), "1980-01-01", "1980-02-01")

        assert active.is_empty()
        assert active.schema["End.Date"] == pl.Date

        assert active.is_empty()

    def test_start_after_end(self):
        with pytest.raises(InvalidDateRange):
            filter_active_affiliations(self.create_sample_data(), "1980-09-01", "1980-08-01")

    def test_input_not_mutated(self):
        df = self.create_sample_data()

        filter_active_affiliations(df, "1980-01-01", "1980-12-31", persistence="all")

        assert df["End.Date"].to_list() == ["1980-12-31", None, "1979-12-31", "1980-01-02"]


class TestPersistenceModes:
    """Test how persistence modes stretch end dates."""

    def create_sample_data(self):
        return pl.DataFrame({
            "Member.ID": ["M1", "M2"],
            "Org.ID": ["O3", "O1"],
            "Start.Date": [date(1980, 1, 1), date(1980, 1, 1)],
            "End.Date": [date(1980, 1, 31), date(1980, 1, 31)],
            "Type_Category": ["Event", "Group"],
        })

    def test_none_keeps_end_dates(self):
        active = filter_active_affiliations(
            self.create_sample_data(), "1980-03-01", "1980-04-01", persistence="none"
        )

        assert active.is_empty()

    def test_events_only_extends_events(self):
        active = filter_active_affiliations(
            self.create_sample_data(), "1980-03-01", "1980-04-01",
            persistence="events-only", event_linger_months=2
        )

        assert active["Member.ID"].to_list() == ["M1"]
        assert active["End.Date"].to_list() == [date(1980, 3, 31)]

    def test_events_only_short_linger(self):
        active = filter_active_affiliations(
            self.create_sample_data(), "1980-03-01", "1980-04-01",
            persistence="events-only", event_linger_months=1
        )

        assert active.is_empty()

    def test_all_makes_everything_lifelong(self):
        active = filter_active_affiliations(
            self.create_sample_data(), "1995-03-01", "1995-04-01", persistence="all"
        )

        assert active["Member.ID"].to_list() == ["M1", "M2"]

    def test_all_does_not_activate_future_records(self):
        active = filter_active_affiliations(
            self.create_sample_data(), "1979-03-01", "1979-04-01", persistence="all"
        )

        assert active.is_empty()

    def test_custom_event_types(self):
        df = self.create_sample_data().with_columns(pl.lit("Exhibition").alias("Kind"))

        active = filter_active_affiliations(
            df, "1980-02-15", "1980-03-01", persistence="events-only",
            type_col="Kind", event_types=["Exhibition"]
        )

        assert active["Member.ID"].to_list() == ["M1", "M2"]

    def test_unknown_persistence(self):
        with pytest.raises(ConfigurationError, match="persistence"):
            filter_active_affiliations(
                self.create_sample_data(), "1980-03-01", "1980-04-01", persistence="forever"
            )

    def test_non_positive_linger(self):
        with pytest.raises(ConfigurationError):
            filter_active_affiliations(
                self.create_sample_data(), "1980-03-01", "1980-04-01",
                persistence="events-only", event_linger_months=0
            )

    def test_events_only_requires_type_column(self):
        df = self.create_sample_data().drop("Type_Category")

        with pytest.raises(ValidationError):
            filter_active_affiliations(df, "1980-03-01", "1980-04-01", persistence="events-only")

    def test_valid_modes(self):
        assert VALID_PERSISTENCE_MODES == ["none", "events-only", "all"]


class TestAdjustEndDates:
    """Test adjust_end_dates on already coerced tables."""

    def test_null_end_becomes_max_date(self):
        df = pl.DataFrame({
            "Member.ID": ["M1"],
            "Start.Date": [date(1980, 1, 1)],
            "End.Date": pl.Series([None], dtype=pl.Date),
        })

        result = adjust_end_dates(df)

        assert result["End.Date"].to_list() == [MAX_DATE]

    def test_month_end_clamped(self):
        df = pl.DataFrame({
            "Member.ID": ["M1"],
            "Start.Date": [date(1980, 1, 1)],
            "End.Date": [date(1980, 1, 31)],
            "Type_Category": ["Event"],
        })

        result = adjust_end_dates(df, persistence="events-only", event_linger_months=1)

        assert result["End.Date"].to_list() == [date(1980, 2, 29)]

    def test_null_type_not_an_event(self):
        df = pl.DataFrame({
            "Member.ID": ["M1"],
            "Start.Date": [date(1980, 1, 1)],
            "End.Date": [date(1980, 1, 31)],
            "Type_Category": pl.Series([None], dtype=pl.Utf8),
        })

        result = adjust_end_dates(df, persistence="events-only", event_linger_months=6)

        assert result["End.Date"].to_list() == [date(1980, 1, 31)]


class TestPrepareAffiliations:
    """Test prepare_affiliations."""

    def test_validates_key_columns(self):
        df = pl.DataFrame({
            "Member.ID": ["M1"],
            "Start.Date": ["1980-01-01"],
            "End.Date": ["1980-02-01"],
        })

        with pytest.raises(ValidationError):
            prepare_affiliations(df, key_cols=["Org.ID"])

    def test_coerces_and_adjusts(self):
        df = pl.DataFrame({
            "Member.ID": [7],
            "Org.ID": ["O1"],
            "Start.Date": ["1980-01-01"],
            "End.Date": [None],
        })

        result = prepare_affiliations(df, key_cols=["Org.ID"])

        assert result["Member.ID"].to_list() == ["7"]
        assert result["End.Date"].to_list() == [MAX_DATE]
