"""Field trial randomization: CRD/RCBD plans, field maps and exports."""
from fielddesign.errors import (
    DesignError,
    InvalidDesign,
    InvalidSeed,
    ShapeMismatch,
    DuplicateTreatmentId,
    IOFailure,
)

__version__ = "1.0.0"

__all__ = [
    "DesignError", "InvalidDesign", "InvalidSeed", "ShapeMismatch",
    "DuplicateTreatmentId", "IOFailure", "__version__",
]
