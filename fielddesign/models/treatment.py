"""Treatment data models."""
import collections.abc
from itertools import product
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Union, overload

from pydantic import BaseModel, ConfigDict, field_validator

from fielddesign.errors import DuplicateTreatmentId, InvalidDesign

Level = Union[int, float, str]

# Element symbols for fertilizer factors
FACTOR_SYMBOLS = {
    "nitrogen": "N",
    "phosphorus": "P",
    "potassium": "K",
    "sulfur": "S",
    "calcium": "Ca",
    "magnesium": "Mg",
}

# Export columns a factor may not shadow
RESERVED_COLUMNS = frozenset({
    "plot_id", "block", "replicate", "treatment_code",
    "treatment_id", "treatment_name", "row", "col",
})


class Treatment(BaseModel):
    """A combination of factor levels applied to a plot."""
    model_config = ConfigDict(frozen=True)

    id: str  # e.g., "N100_K30"
    name: str  # display label, e.g., "N100 K30"
    numeric_code: int
    factors: Dict[str, Level] = {}

    @field_validator("factors")
    @classmethod
    def check_factor_names(cls, factors: Dict[str, Level]) -> Dict[str, Level]:
        clashes = sorted(f for f in factors if f in RESERVED_COLUMNS)
        if clashes:
            raise ValueError(f"Factor names clash with plan columns: {', '.join(clashes)}")
        return factors

    def level(self, factor: str) -> Optional[Level]:
        """Get the level of a factor, or None if the treatment lacks it."""
        return self.factors.get(factor)


def _format_level(level: Level) -> str:
    if isinstance(level, float):
        return f"{level:g}"
    return str(level)


def validate_treatments(treatments: Sequence[Treatment]) -> None:
    """Raise if the treatment list is empty or has duplicate ids."""
    if len(treatments) < 1:
        raise InvalidDesign("At least one treatment is required")

    seen = set()
    duplicates = []
    for treatment in treatments:
        if treatment.id in seen and treatment.id not in duplicates:
            duplicates.append(treatment.id)
        seen.add(treatment.id)
    if duplicates:
        raise DuplicateTreatmentId(
            f"Duplicate treatment ids: {', '.join(duplicates)}"
        )


class TreatmentSet(collections.abc.Sequence):
    """Fixed, ordered set of treatments with unique ids."""

    def __init__(self, treatments: Iterable[Treatment]):
        self._treatments = tuple(treatments)
        validate_treatments(self._treatments)
        self._by_id = {t.id: t for t in self._treatments}

    @classmethod
    def factorial(
        cls,
        levels: Mapping[str, Sequence[Level]],
        abbreviations: Optional[Mapping[str, str]] = None
    ) -> "TreatmentSet":
        """
        Build the full cross of factor levels.

        Treatments are ordered lexicographically over the factors in the
        order given, numbered 1..k. Ids join an abbreviation of each factor
        with its level (``N100_K30``); names use a space (``N100 K30``).

        Args:
            levels: Factor name -> levels, e.g. {"nitrogen": [0, 100, 200]}
            abbreviations: Optional factor name -> prefix. Defaults to the
                element symbol for nutrients (nitrogen -> N, potassium -> K),
                else the upper-cased initial; full names when prefixes collide.

        Returns:
            TreatmentSet with one treatment per level combination
        """
        factors = list(levels)
        if not factors or any(len(levels[f]) == 0 for f in factors):
            raise InvalidDesign("Every factor needs at least one level")

        if abbreviations is None:
            initials = [FACTOR_SYMBOLS.get(f.lower(), f[0].upper()) for f in factors]
            if len(set(initials)) == len(initials):
                abbreviations = dict(zip(factors, initials))
            else:
                abbreviations = {f: f for f in factors}

        treatments = []
        for code, combo in enumerate(product(*(levels[f] for f in factors)), start=1):
            parts = [f"{abbreviations[f]}{_format_level(lv)}" for f, lv in zip(factors, combo)]
            treatments.append(Treatment(
                id="_".join(parts),
                name=" ".join(parts),
                numeric_code=code,
                factors=dict(zip(factors, combo))
            ))
        return cls(treatments)

    @property
    def factor_names(self) -> List[str]:
        """Factor names in first-seen order."""
        names: List[str] = []
        for treatment in self._treatments:
            for factor in treatment.factors:
                if factor not in names:
                    names.append(factor)
        return names

    def ids(self) -> List[str]:
        return [t.id for t in self._treatments]

    def find(self, treatment_id: str) -> Optional[Treatment]:
        """Find treatment by id."""
        return self._by_id.get(treatment_id)

    @overload
    def __getitem__(self, index: int) -> Treatment: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[Treatment]: ...

    def __getitem__(self, index):
        return self._treatments[index]

    def __len__(self) -> int:
        return len(self._treatments)

    def __iter__(self) -> Iterator[Treatment]:
        return iter(self._treatments)

    def __repr__(self) -> str:
        return f"TreatmentSet({list(self.ids())!r})"
