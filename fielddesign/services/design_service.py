"""Design generation service."""
import logging
import time
from typing import List, Optional, Sequence

import pandas as pd

from fielddesign.config import settings
from fielddesign.layout import map_layout
from fielddesign.models import (
    ConstraintViolation, DesignParameters, DesignResult, Treatment, TreatmentSet
)
from fielddesign.randomizer import randomize, validate_design
from fielddesign.randomizer.constraints import get_constraint_explanation, is_hard_constraint

logger = logging.getLogger(__name__)

BASE_COLUMNS = [
    "plot_id", "block", "replicate",
    "treatment_code", "treatment_id", "treatment_name",
]


class DesignService:
    """Service for randomizing field trials and preparing their plans."""

    def __init__(self, plot_id_base: Optional[int] = None):
        self.plot_id_base = settings.plot_id_base if plot_id_base is None else plot_id_base

    def generate_design(
        self,
        treatments: Sequence[Treatment],
        params: DesignParameters
    ) -> DesignResult:
        """
        Randomize treatments and place the plots on the field grid.

        Args:
            treatments: Treatments to randomize
            params: Design parameters

        Returns:
            DesignResult with assignments, layout and constraint check

        Raises:
            DesignError: invalid treatments, replicates, seed or grid shape
        """
        start_time = time.time()

        assignments = randomize(treatments, params, base=self.plot_id_base)

        rows, cols = params.get_grid_shape(len(treatments))
        layout = map_layout(assignments, rows, cols, params.order)

        result = DesignResult(
            kind=params.kind,
            seed=params.seed,
            replicates=params.replicates,
            treatments=list(treatments),
            assignments=assignments,
            layout=layout
        )
        result.violations = self.validate_design(result)

        errors = sum(1 for v in result.violations if is_hard_constraint(v.constraint_name))
        warnings = len(result.violations) - errors
        solve_time = int((time.time() - start_time) * 1000)
        result.message = (
            f"{params.kind.value.upper()}: {len(assignments)} plots on a "
            f"{rows} x {cols} grid ({errors} errors, {warnings} warnings)"
        )
        logger.info(f"{result.message} in {solve_time} ms")
        return result

    def validate_design(self, result: DesignResult) -> List[ConstraintViolation]:
        """
        Validate a design against its structural constraints.

        Args:
            result: Design to validate

        Returns:
            List of violations; errors break the design, warnings do not
        """
        violations = validate_design(result)
        for violation in violations:
            explanation = get_constraint_explanation(violation.constraint_name)
            if is_hard_constraint(violation.constraint_name):
                logger.error(f"{violation.description}. {explanation}")
            else:
                logger.debug(f"{violation.description}. {explanation}")
        return violations

    def to_dataframe(self, result: DesignResult) -> pd.DataFrame:
        """
        Flatten a design into one row per plot.

        Columns: plot_id, block, replicate, treatment_code, treatment_id,
        treatment_name, one column per factor, row, col.
        """
        factor_names = TreatmentSet(result.treatments).factor_names

        if result.layout is not None:
            records = result.layout.to_records()
        else:
            records = []
            for a in result.assignments:
                record = {
                    "plot_id": a.plot_id,
                    "block": a.block,
                    "replicate": a.replicate,
                    "treatment_code": a.treatment.numeric_code,
                    "treatment_id": a.treatment.id,
                    "treatment_name": a.treatment.name,
                    "row": None,
                    "col": None,
                }
                record.update(a.treatment.factors)
                records.append(record)

        columns = BASE_COLUMNS + factor_names + ["row", "col"]
        df = pd.DataFrame.from_records(records, columns=columns)
        for col in ("block", "row", "col"):
            df[col] = df[col].astype("Int64")
        return df
