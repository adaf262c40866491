"""Exceptions raised by the randomizer, layout mapper and exporters."""


class DesignError(ValueError):
    """Base class for invalid design requests."""


class InvalidDesign(DesignError):
    """Treatment count or replicate count is not a positive integer."""


class InvalidSeed(DesignError):
    """Seed cannot drive a deterministic random stream."""


class ShapeMismatch(DesignError):
    """Grid shape does not hold exactly one cell per plot."""


class DuplicateTreatmentId(DesignError):
    """Treatment set contains the same id more than once."""


class IOFailure(OSError):
    """An export target could not be written."""

    def __init__(self, path, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Cannot write {self.path}: {reason}")
