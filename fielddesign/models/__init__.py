"""Data models for field trial designs."""
from fielddesign.models.treatment import Treatment, TreatmentSet, validate_treatments
from fielddesign.models.design_parameters import (
    DesignParameters,
    DesignKind,
    LayoutOrder
)
from fielddesign.models.field_layout import (
    PlotAssignment,
    LayoutCell,
    FieldLayout,
    ConstraintViolation,
    DesignResult
)

__all__ = [
    "Treatment", "TreatmentSet", "validate_treatments",
    "DesignParameters", "DesignKind", "LayoutOrder",
    "PlotAssignment", "LayoutCell", "FieldLayout", "ConstraintViolation", "DesignResult"
]
