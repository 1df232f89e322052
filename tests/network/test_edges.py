"""
Tests for co-affiliation edge list construction.
"""

from datetime import date

import polars as pl
import pytest

from affilNet.network.edges import (
    CROSS_CONNECTION,
    INTRA_CONNECTION,
    build_edgelist,
    empty_edgelist,
    label_cross_connections,
    normalize_key_sets
)
from affilNet.common.exceptions import ConfigurationError, InvalidDateRange, ValidationError


class TestBuildEdgelist:
    """Test build_edgelist on a single key column."""

    def create_sample_data(self):
        return pl.DataFrame({
            "Member.ID": ["M1", "M2", "M3", "M3", "M4"],
            "Org.ID": ["O1", "O1", "O2", "O1", None],
            "Start.Date": ["1980-01-01", "1980-06-01", "1979-01-01", "1981-01-01", "1980-01-01"],
            "End.Date": ["1980-12-31", None, "1979-12-31", "1981-06-30", "1980-12-31"],
            "weight": [2.0, 4.0, 1.0, 1.0, 1.0],
        })

    def test_basic_pair(self):
        edges = build_edgelist(self.create_sample_data(), "Org.ID", "1980-08-01", "1980-09-01")

        assert edges.columns == ["from", "to", "weight", "Edge.Names", "Edge.Key"]
        assert edges.to_dicts() == [
            {"from": "M1", "to": "M2", "weight": 1.0, "Edge.Names": ["O1"], "Edge.Key": "Org.ID"}
        ]

    def test_without_edge_names(self):
        edges = build_edgelist(
            self.create_sample_data(), "Org.ID", "1980-08-01", "1980-09-01", get_edge_names=False
        )

        assert edges.columns == ["from", "to", "weight"]

    def test_weighted_pair_uses_mean(self):
        edges = build_edgelist(
            self.create_sample_data(), "Org.ID", "1980-08-01", "1980-09-01", weight_col="weight"
        )

        assert edges["weight"].to_list() == [3.0]

    def test_no_active_records_returns_none(self):
        assert build_edgelist(self.create_sample_data(), "Org.ID", "1970-01-01", "1970-02-01") is None

    def test_empty_table_returns_none(self):
        edges = build_edgelist(self.create_sample_data().head(0), "Org.ID", "1980-01-01", "1980-02-01")

        assert edges is None

    def test_active_records_without_pairs(self):
        edges = build_edgelist(self.create_sample_data(), "Org.ID", "1979-03-01", "1979-04-01")

        assert edges is not None
        assert edges.is_empty()
        assert edges.schema == empty_edgelist().schema

    def test_null_keys_ignored(self):
        edges = build_edgelist(self.create_sample_data(), "Org.ID", "1980-08-01", "1980-09-01")

        assert "M4" not in edges["from"].to_list() + edges["to"].to_list()

    def test_canonical_order_and_no_self_pairs(self):
        df = pl.DataFrame({
            "Member.ID": ["Z", "A", "Z", "K"],
            "Org.ID": ["O1", "O1", "O1", "O1"],
            "Start.Date": [date(1980, 1, 1)] * 4,
            "End.Date": [date(1980, 12, 31)] * 4,
        })

        edges = build_edgelist(df, "Org.ID", "1980-02-01", "1980-03-01")

        assert list(zip(edges["from"], edges["to"])) == [("A", "K"), ("A", "Z"), ("K", "Z")]
        assert (edges["from"] < edges["to"]).all()
        assert edges["weight"].to_list() == [1.0, 1.0, 1.0]

    def test_pair_in_two_groups(self):
        df = pl.DataFrame({
            "Member.ID": ["M1", "M2", "M1", "M2"],
            "Org.ID": ["O2", "O2", "O1", "O1"],
            "Start.Date": [date(1980, 1, 1)] * 4,
            "End.Date": [date(1980, 12, 31)] * 4,
        })

        edges = build_edgelist(df, "Org.ID", "1980-02-01", "1980-03-01")

        assert edges.to_dicts() == [
            {"from": "M1", "to": "M2", "weight": 2.0, "Edge.Names": ["O1", "O2"], "Edge.Key": "Org.ID"}
        ]

    def test_repeated_membership_uses_max_weight(self):
        df = pl.DataFrame({
            "Member.ID": ["M1", "M1", "M2"],
            "Org.ID": ["O1", "O1", "O1"],
            "Start.Date": [date(1980, 1, 1)] * 3,
            "End.Date": [date(1980, 12, 31)] * 3,
            "weight": [1.0, 3.0, 1.0],
        })

        edges = build_edgelist(df, "Org.ID", "1980-02-01", "1980-03-01", weight_col="weight")

        assert edges["weight"].to_list() == [2.0]

    def test_zero_weight_pairs_dropped(self):
        df = pl.DataFrame({
            "Member.ID": ["M1", "M2", "M3"],
            "Org.ID": ["O1", "O1", "O1"],
            "Start.Date": [date(1980, 1, 1)] * 3,
            "End.Date": [date(1980, 12, 31)] * 3,
            "weight": [0.0, 0.0, 2.0],
        })

        edges = build_edgelist(df, "Org.ID", "1980-02-01", "1980-03-01", weight_col="weight")

        assert list(zip(edges["from"], edges["to"])) == [("M1", "M3"), ("M2", "M3")]

    def test_label_column(self):
        df = self.create_sample_data().with_columns(pl.lit("Round Table").alias("Name"))

        edges = build_edgelist(df, "Org.ID", "1980-08-01", "1980-09-01", label_col="Name")

        assert edges["Edge.Names"].to_list() == [["Round Table"]]

    def test_unknown_label_column(self):
        with pytest.raises(ValidationError, match="Label column"):
            build_edgelist(self.create_sample_data(), "Org.ID", "1980-08-01", "1980-09-01",
                           label_col="Name")

    def test_missing_key_column(self):
        with pytest.raises(ValidationError):
            build_edgelist(self.create_sample_data(), "Umbrella", "1980-08-01", "1980-09-01")

    def test_start_after_end(self):
        with pytest.raises(InvalidDateRange):
            build_edgelist(self.create_sample_data(), "Org.ID", "1980-09-01", "1980-08-01")

    def test_idempotent(self):
        df = self.create_sample_data()

        first = build_edgelist(df, "Org.ID", "1980-01-01", "1981-12-31")
        second = build_edgelist(df, "Org.ID", "1980-01-01", "1981-12-31")

        assert first.equals(second)


class TestKeySets:
    """Test composite keys and several key sets."""

    def create_sample_data(self):
        return pl.DataFrame({
            "Member.ID": ["M1", "M2", "M3"],
            "Umbrella": ["U1", "U1", "U1"],
            "Subgroup": ["S1", "S1", "S2"],
            "Start.Date": [date(1980, 1, 1)] * 3,
            "End.Date": [date(1980, 12, 31)] * 3,
        })

    def test_composite_key(self):
        edges = build_edgelist(self.create_sample_data(), ["Umbrella", "Subgroup"],
                               "1980-02-01", "1980-03-01")

        assert edges.to_dicts() == [{
            "from": "M1", "to": "M2", "weight": 1.0,
            "Edge.Names": ["U1 / S1"], "Edge.Key": "Umbrella+Subgroup"
        }]

    def test_several_key_sets_concatenated(self):
        edges = build_edgelist(self.create_sample_data(), ["Umbrella", ["Umbrella", "Subgroup"]],
                               "1980-02-01", "1980-03-01")

        assert list(zip(edges["from"], edges["to"], edges["Edge.Key"])) == [
            ("M1", "M2", "Umbrella"),
            ("M1", "M3", "Umbrella"),
            ("M2", "M3", "Umbrella"),
            ("M1", "M2", "Umbrella+Subgroup"),
        ]

    def test_normalize_key_sets(self):
        assert normalize_key_sets("Org.ID") == [["Org.ID"]]
        assert normalize_key_sets(["Umbrella", "Subgroup"]) == [["Umbrella", "Subgroup"]]
        assert normalize_key_sets(["Umbrella", ["Umbrella", "Subgroup"]]) == [
            ["Umbrella"], ["Umbrella", "Subgroup"]
        ]

    @pytest.mark.parametrize("on_cols", [[], ["Umbrella", []], ["Umbrella", [1]]])
    def test_invalid_key_sets(self, on_cols):
        with pytest.raises(ConfigurationError):
            normalize_key_sets(on_cols)


class TestLabelCrossConnections:
    """Test label_cross_connections."""

    def create_sample_data(self):
        edges = pl.DataFrame({
            "from": ["A", "A", "A"],
            "to": ["B", "C", "D"],
            "weight": [1.0, 1.0, 1.0],
        })
        members = pl.DataFrame({
            "Member.ID": ["A", "B", "C", "D"],
            "RT Affiliation": ["Trace", "Other", "Trace", None],
        })
        return edges, members

    def test_labels(self):
        edges, members = self.create_sample_data()

        labelled = label_cross_connections(edges, members, "RT Affiliation")

        assert labelled.columns == ["from", "to", "weight", "Cross.Connection"]
        assert labelled["Cross.Connection"].to_list() == [
            CROSS_CONNECTION, INTRA_CONNECTION, INTRA_CONNECTION
        ]

    def test_none_passes_through(self):
        _, members = self.create_sample_data()

        assert label_cross_connections(None, members, "RT Affiliation") is None

    def test_missing_group_column(self):
        edges, members = self.create_sample_data()

        with pytest.raises(ValidationError):
            label_cross_connections(edges, members, "Gender")
