"""Plot assignment and field layout data models."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from fielddesign.models.design_parameters import DesignKind, LayoutOrder
from fielddesign.models.treatment import Treatment


class PlotAssignment(BaseModel):
    """One plot and the treatment randomized to it."""
    model_config = ConfigDict(frozen=True)

    plot_id: int
    treatment: Treatment
    replicate: int  # CRD: occurrence of the treatment; RCBD: block
    block: Optional[int] = None  # RCBD only
    position: Optional[int] = None  # RCBD only, 1-based rank within block


class LayoutCell(BaseModel):
    """Grid coordinate of a plot."""
    model_config = ConfigDict(frozen=True)

    plot_id: int
    row: int  # 1-based
    col: int  # 1-based
    label: str
    assignment: PlotAssignment

    @property
    def treatment(self) -> Treatment:
        return self.assignment.treatment


class FieldLayout(BaseModel):
    """Field layout definition."""
    rows: int
    cols: int
    order: LayoutOrder = LayoutOrder.ROW_MAJOR
    cells: List[LayoutCell]

    def get_cell(self, row: int, col: int) -> Optional[LayoutCell]:
        """Get cell by 1-based coordinate."""
        for cell in self.cells:
            if cell.row == row and cell.col == col:
                return cell
        return None

    def get_cells_by_treatment(self, treatment_id: str) -> List[LayoutCell]:
        """Get all cells for a treatment."""
        return [c for c in self.cells if c.treatment.id == treatment_id]

    def to_matrix(self) -> List[List[Optional[str]]]:
        """Convert to 2D matrix of labels for visualization."""
        matrix: List[List[Optional[str]]] = [
            [None for _ in range(self.cols)] for _ in range(self.rows)
        ]
        for cell in self.cells:
            matrix[cell.row - 1][cell.col - 1] = cell.label
        return matrix

    def to_records(self) -> List[Dict[str, Any]]:
        """Plain records in stable field order, one per plot."""
        records = []
        for cell in self.cells:
            a = cell.assignment
            record: Dict[str, Any] = {
                "plot_id": a.plot_id,
                "block": a.block,
                "replicate": a.replicate,
                "treatment_code": a.treatment.numeric_code,
                "treatment_id": a.treatment.id,
                "treatment_name": a.treatment.name,
            }
            record.update(a.treatment.factors)
            record["row"] = cell.row
            record["col"] = cell.col
            records.append(record)
        return records


class ConstraintViolation(BaseModel):
    """Constraint violation details."""
    constraint_name: str
    description: str
    severity: str  # "error" or "warning"
    affected_plots: List[int] = []


class DesignResult(BaseModel):
    """Randomized design with its layout."""
    kind: DesignKind
    seed: int
    replicates: int
    treatments: List[Treatment]
    assignments: List[PlotAssignment]
    layout: Optional[FieldLayout] = None
    violations: List[ConstraintViolation] = []
    message: Optional[str] = None
    generated_at: datetime = Field(default_factory=datetime.now)

    @property
    def has_errors(self) -> bool:
        return any(v.severity == "error" for v in self.violations)

    def get_block(self, block: int) -> List[PlotAssignment]:
        """Get all assignments of an RCBD block."""
        return [a for a in self.assignments if a.block == block]
