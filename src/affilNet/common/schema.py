"""
Column names and fixed values of the affiliation, edge list and metrics tables.
"""

from datetime import date

import polars as pl

# Affiliation table
MEMBER_COL = "Member.ID"
ORG_COL = "Org.ID"
START_COL = "Start.Date"
END_COL = "End.Date"
TYPE_CATEGORY_COL = "Type_Category"
EVENT_TYPES = ("Event",)

# Edge list
FROM_COL = "from"
TO_COL = "to"
WEIGHT_COL = "weight"
EDGE_NAMES_COL = "Edge.Names"
EDGE_KEY_COL = "Edge.Key"
CROSS_CONNECTION_COL = "Cross.Connection"

# Metrics table
CENTRALITY_COL = "Centrality"
DEGREE_COL = "Degree"
CROSS_DEGREE_COL = "Cross.Degree"
METRICS_COLUMNS = [
    MEMBER_COL,
    "Centrality",
    "Degree",
    "Centrality.Normalized",
    "Degree.Normalized",
    "Centrality.Rank",
    "Degree.Rank",
    START_COL,
    END_COL,
]

# Open-ended affiliations end here
MAX_DATE = date(9999, 12, 31)

EDGELIST_SCHEMA = {
    FROM_COL: pl.Utf8,
    TO_COL: pl.Utf8,
    WEIGHT_COL: pl.Float64,
}
