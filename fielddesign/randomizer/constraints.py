"""Design constraint definitions and checks."""
from collections import Counter
from typing import Dict, List, Sequence

import pandas as pd

from fielddesign.models import (
    ConstraintViolation, DesignKind, DesignResult, FieldLayout, PlotAssignment
)

# "error" constraints are structural invariants of the design;
# "warning" constraints flag chance arrangements worth a second look
CONSTRAINT_SEVERITY = {
    "unique_plot_ids": "error",
    "replication": "error",
    "complete_block": "error",
    "grid_bijection": "error",
    "adjacent_same_treatment": "warning",
}

CONSTRAINT_EXPLANATIONS = {
    "unique_plot_ids": "Every plot id occurs exactly once.",
    "replication": (
        "CRD: each treatment is applied to exactly as many plots as there "
        "are replicates, anywhere in the field."
    ),
    "complete_block": (
        "RCBD: each block holds every treatment exactly once, in its own "
        "random order."
    ),
    "grid_bijection": "Each plot occupies one grid cell and no cell is shared or left empty.",
    "adjacent_same_treatment": (
        "CRD places no restriction on neighbours, so identical treatments may "
        "share a border by chance."
    ),
}


def get_constraint_explanation(constraint_name: str) -> str:
    """Get explanation for a constraint."""
    return CONSTRAINT_EXPLANATIONS.get(
        constraint_name,
        f"Unknown constraint: {constraint_name}"
    )


def is_hard_constraint(constraint_name: str) -> bool:
    """Check if constraint is a structural invariant."""
    return CONSTRAINT_SEVERITY.get(constraint_name, "error") == "error"


def frequency_table(assignments: Sequence[PlotAssignment]) -> pd.Series:
    """Number of plots per treatment id, in first-seen order."""
    counts = Counter(a.treatment.id for a in assignments)
    return pd.Series(counts, name="plots", dtype="int64").rename_axis("treatment_id")


def check_unique_plot_ids(assignments: Sequence[PlotAssignment]) -> List[ConstraintViolation]:
    counts = Counter(a.plot_id for a in assignments)
    duplicates = sorted(pid for pid, n in counts.items() if n > 1)
    if not duplicates:
        return []
    return [ConstraintViolation(
        constraint_name="unique_plot_ids",
        description=f"Plot ids used more than once: {duplicates}",
        severity=CONSTRAINT_SEVERITY["unique_plot_ids"],
        affected_plots=duplicates
    )]


def check_replication(
    assignments: Sequence[PlotAssignment],
    treatment_ids: Sequence[str],
    replicates: int
) -> List[ConstraintViolation]:
    violations = []
    counts = Counter(a.treatment.id for a in assignments)
    for treatment_id in treatment_ids:
        if counts.get(treatment_id, 0) != replicates:
            violations.append(ConstraintViolation(
                constraint_name="replication",
                description=(
                    f"Treatment {treatment_id} has {counts.get(treatment_id, 0)} plots, "
                    f"expected {replicates}"
                ),
                severity=CONSTRAINT_SEVERITY["replication"],
                affected_plots=[a.plot_id for a in assignments if a.treatment.id == treatment_id]
            ))
    return violations


def check_complete_blocks(
    assignments: Sequence[PlotAssignment],
    treatment_ids: Sequence[str]
) -> List[ConstraintViolation]:
    violations = []
    blocks: Dict[int, List[PlotAssignment]] = {}
    for a in assignments:
        blocks.setdefault(a.block, []).append(a)

    expected = sorted(treatment_ids)
    for block, plots in sorted(blocks.items(), key=lambda item: (item[0] is None, item[0])):
        found = sorted(a.treatment.id for a in plots)
        if found != expected:
            violations.append(ConstraintViolation(
                constraint_name="complete_block",
                description=f"Block {block} is not a complete set of treatments",
                severity=CONSTRAINT_SEVERITY["complete_block"],
                affected_plots=[a.plot_id for a in plots]
            ))
    return violations


def check_grid_bijection(
    layout: FieldLayout,
    assignments: Sequence[PlotAssignment]
) -> List[ConstraintViolation]:
    violations = []
    coords = Counter((c.row, c.col) for c in layout.cells)
    shared = [pos for pos, n in coords.items() if n > 1]
    outside = [
        c.plot_id for c in layout.cells
        if not (1 <= c.row <= layout.rows and 1 <= c.col <= layout.cols)
    ]
    placed = {c.plot_id for c in layout.cells}
    missing = sorted(a.plot_id for a in assignments if a.plot_id not in placed)

    if shared or outside or missing or len(coords) != layout.rows * layout.cols:
        violations.append(ConstraintViolation(
            constraint_name="grid_bijection",
            description=(
                f"Layout is not one plot per cell: {len(shared)} shared cells, "
                f"{len(outside)} plots outside the grid, {len(missing)} plots unplaced"
            ),
            severity=CONSTRAINT_SEVERITY["grid_bijection"],
            affected_plots=sorted(set(outside) | set(missing))
        ))
    return violations


def check_adjacent_same_treatment(layout: FieldLayout) -> List[ConstraintViolation]:
    violations = []
    pos_map = {(c.row, c.col): c for c in layout.cells}
    for cell in layout.cells:
        for dr, dc in [(0, 1), (1, 0)]:
            neighbor = pos_map.get((cell.row + dr, cell.col + dc))
            if neighbor and neighbor.treatment.id == cell.treatment.id:
                violations.append(ConstraintViolation(
                    constraint_name="adjacent_same_treatment",
                    description=(
                        f"Treatment {cell.treatment.id} on neighbouring plots "
                        f"{cell.plot_id} and {neighbor.plot_id}"
                    ),
                    severity=CONSTRAINT_SEVERITY["adjacent_same_treatment"],
                    affected_plots=[cell.plot_id, neighbor.plot_id]
                ))
    return violations


def validate_design(result: DesignResult) -> List[ConstraintViolation]:
    """Re-check the invariants of a randomized design."""
    treatment_ids = [t.id for t in result.treatments]
    violations = check_unique_plot_ids(result.assignments)
    violations.extend(check_replication(result.assignments, treatment_ids, result.replicates))

    if result.kind == DesignKind.RCBD:
        violations.extend(check_complete_blocks(result.assignments, treatment_ids))

    if result.layout is not None:
        violations.extend(check_grid_bijection(result.layout, result.assignments))
        if result.kind == DesignKind.CRD:
            violations.extend(check_adjacent_same_treatment(result.layout))
    return violations
