"""
Color and shape groups for drawing members of a layout.
"""

from typing import Optional

import polars as pl

from .layout import NAME_COL
from ..common.exceptions import ValidationError, validate_parameter
from ..common.logging_config import get_logger

logger = get_logger(__name__)

# Grouping name -> expression giving each node's group; "none" puts every
# node in the same group
NODE_GROUPINGS = {
    "none": pl.lit("1"),
    "rt_affiliation": pl.col("RT Affiliation").cast(pl.Utf8),
    "profession": pl.col("Profession").cast(pl.Utf8),
    "gender": pl.col("Gender").cast(pl.Utf8),
}

COLOR_VAR_COL = "color_var"
SHAPE_VAR_COL = "shape_var"


def apply_node_appearance(
    layout: pl.DataFrame,
    color_by: str = "none",
    shape_by: str = "none",
    highlight_color: Optional[str] = None,
    highlight_shape: Optional[str] = None
) -> pl.DataFrame:
    """
    Add ``color_var`` and ``shape_var`` columns to a layout.

    Parameters
    ----------
    layout : pl.DataFrame
        Output of :func:`affilNet.network.layout.compute_layout` with the
        member attributes joined on
    color_by, shape_by : str, default "none"
        Keys of ``NODE_GROUPINGS``
    highlight_color, highlight_shape : str, optional
        Member ID singled out with its own color / shape group; its value in
        the column is the member ID itself

    Returns
    -------
    pl.DataFrame
        ``layout`` with ``color_var`` and ``shape_var``

    Raises
    ------
    ConfigurationError
        If a grouping name is unknown
    ValidationError
        If the layout lacks the attribute a grouping needs

    Examples
    --------
    >>> styled = apply_node_appearance(layout, color_by="profession",
    ...                                highlight_shape="M17")
    """
    validate_parameter(color_by, list(NODE_GROUPINGS), "color_by", "apply_node_appearance")
    validate_parameter(shape_by, list(NODE_GROUPINGS), "shape_by", "apply_node_appearance")

    for grouping in {color_by, shape_by}:
        needed = NODE_GROUPINGS[grouping].meta.root_names()
        missing = [col for col in needed if col not in layout.columns]
        if missing:
            raise ValidationError(
                f"Grouping '{grouping}' needs columns {missing}",
                field="layout",
                details={"available_columns": layout.columns}
            )

    return layout.with_columns(
        _highlighted(NODE_GROUPINGS[color_by], highlight_color).alias(COLOR_VAR_COL),
        _highlighted(NODE_GROUPINGS[shape_by], highlight_shape).alias(SHAPE_VAR_COL)
    )


def _highlighted(group: pl.Expr, member: Optional[str]) -> pl.Expr:
    if member is None:
        return group
    return pl.when(pl.col(NAME_COL) == str(member)).then(pl.lit(str(member))).otherwise(group)
