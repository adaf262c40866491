"""Placement of randomized plots on a rectangular field grid."""
import logging
from typing import Sequence, Tuple

from fielddesign.errors import ShapeMismatch
from fielddesign.models import FieldLayout, LayoutCell, LayoutOrder, PlotAssignment

logger = logging.getLogger(__name__)


def format_label(assignment: PlotAssignment) -> str:
    """Display label: plot id over treatment name."""
    return f"{assignment.plot_id}\n{assignment.treatment.name}"


def grid_position(index: int, rows: int, cols: int, order: LayoutOrder) -> Tuple[int, int]:
    """1-based (row, col) of the index-th plot (1-based) in traversal order."""
    if order == LayoutOrder.COLUMN_MAJOR:
        return (index - 1) % rows + 1, (index - 1) // rows + 1
    return (index - 1) // cols + 1, (index - 1) % cols + 1


def map_layout(
    assignments: Sequence[PlotAssignment],
    rows: int,
    cols: int,
    order: LayoutOrder = LayoutOrder.ROW_MAJOR
) -> FieldLayout:
    """
    Assign every plot a grid cell.

    Plots are taken in the order the randomizer produced them (CRD: plot
    number; RCBD: block then position) and written row by row, or column
    by column for COLUMN_MAJOR.

    Raises:
        ShapeMismatch: rows * cols differs from the number of plots
    """
    if rows < 1 or cols < 1:
        raise ShapeMismatch(f"Grid needs at least one row and column, got {rows} x {cols}")
    if rows * cols != len(assignments):
        raise ShapeMismatch(
            f"Grid {rows} x {cols} has {rows * cols} cells "
            f"but the design has {len(assignments)} plots"
        )

    cells = []
    for index, assignment in enumerate(assignments, start=1):
        row, col = grid_position(index, rows, cols, order)
        cells.append(LayoutCell(
            plot_id=assignment.plot_id,
            row=row,
            col=col,
            label=format_label(assignment),
            assignment=assignment
        ))

    logger.debug(f"Mapped {len(cells)} plots onto {rows} x {cols} grid ({order.value})")
    return FieldLayout(rows=rows, cols=cols, order=order, cells=cells)

