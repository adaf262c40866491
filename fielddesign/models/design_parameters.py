"""Design parameters data models."""
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, field_validator


class DesignKind(str, Enum):
    """Randomization scheme."""
    CRD = "crd"
    RCBD = "rcbd"


class LayoutOrder(str, Enum):
    """Traversal used to place plots on the field grid."""
    ROW_MAJOR = "row_major"
    COLUMN_MAJOR = "column_major"


class DesignParameters(BaseModel):
    """Field trial design parameters."""
    kind: DesignKind = DesignKind.CRD
    replicates: int = 4
    seed: int = 123
    rows: Optional[int] = None  # None: one block/replicate per row
    cols: Optional[int] = None
    order: LayoutOrder = LayoutOrder.ROW_MAJOR

    @field_validator("seed", mode="before")
    @classmethod
    def validate_seed(cls, seed):
        """Apply the randomizer's seed rules (rejects bools, floats, negatives)."""
        from fielddesign.randomizer.rng import check_seed
        return check_seed(seed)

    @classmethod
    def default(cls) -> "DesignParameters":
        """Create default parameters (4 replicates on a 4 x 9 grid)."""
        return cls(
            kind=DesignKind.CRD,
            replicates=4,
            seed=123,
            rows=4,
            cols=9,
            order=LayoutOrder.ROW_MAJOR
        )

    def total_plots(self, n_treatments: int) -> int:
        """Number of plots needed for n_treatments."""
        return n_treatments * self.replicates

    def get_grid_shape(self, n_treatments: int) -> Tuple[int, int]:
        """Get grid shape (rows, cols), filling in whichever side is missing."""
        total = self.total_plots(n_treatments)
        if self.rows is None and self.cols is None:
            return self.replicates, n_treatments
        if self.rows is None:
            return (total // self.cols if self.cols else 0), self.cols
        if self.cols is None:
            return self.rows, (total // self.rows if self.rows else 0)
        return self.rows, self.cols
