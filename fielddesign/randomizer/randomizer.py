"""CRD and RCBD randomization of treatments to plots."""
import logging
import time
from typing import Any, List, Sequence

from fielddesign.errors import InvalidDesign
from fielddesign.models import (
    DesignKind, DesignParameters, PlotAssignment, Treatment, validate_treatments
)
from fielddesign.randomizer.rng import make_permuter

logger = logging.getLogger(__name__)

DEFAULT_PLOT_ID_BASE = 100


def _check_replicates(replicates: Any) -> int:
    if isinstance(replicates, bool) or not isinstance(replicates, int):
        raise InvalidDesign(f"Replicates must be an integer, got {replicates!r}")
    if replicates < 1:
        raise InvalidDesign(f"Replicates must be at least 1, got {replicates}")
    return replicates


def plot_id_base(n_treatments: int, minimum: int = DEFAULT_PLOT_ID_BASE) -> int:
    """Smallest power-of-ten multiple of minimum that exceeds n_treatments."""
    if isinstance(minimum, bool) or not isinstance(minimum, int) or minimum < 1:
        raise InvalidDesign(f"Plot id base must be a positive integer, got {minimum!r}")
    base = minimum
    while n_treatments >= base:
        base *= 10
    return base


def randomize_crd(
    treatments: Sequence[Treatment],
    replicates: int,
    seed: Any
) -> List[PlotAssignment]:
    """
    Completely randomized design.

    Treatment rows are laid out treatment-by-treatment, replicate-by-replicate,
    then a single random permutation of plot numbers 1..k*r is assigned to
    them. The result is ordered by plot number.

    Args:
        treatments: Treatments to randomize
        replicates: Number of plots per treatment
        seed: Integer seed or a Permuter

    Returns:
        One PlotAssignment per plot, sorted by plot_id
    """
    validate_treatments(treatments)
    replicates = _check_replicates(replicates)
    permuter = make_permuter(seed)

    rows = [(t, rep) for t in treatments for rep in range(1, replicates + 1)]
    plot_numbers = permuter.permutation(len(rows))

    assignments = [
        PlotAssignment(plot_id=plot_numbers[i] + 1, treatment=t, replicate=rep)
        for i, (t, rep) in enumerate(rows)
    ]
    assignments.sort(key=lambda a: a.plot_id)
    return assignments


def randomize_rcbd(
    treatments: Sequence[Treatment],
    replicates: int,
    seed: Any,
    base: int = DEFAULT_PLOT_ID_BASE
) -> List[PlotAssignment]:
    """
    Randomized complete block design.

    Each block draws its own permutation of the treatments from the shared
    stream, in block order. Plot ids are ``block * base + position``.

    Args:
        treatments: Treatments to randomize
        replicates: Number of blocks
        seed: Integer seed or a Permuter
        base: Plot id multiplier per block; raised to the next power of
            ten when there are as many treatments as the base

    Returns:
        PlotAssignments ordered by block, then position
    """
    validate_treatments(treatments)
    replicates = _check_replicates(replicates)
    permuter = make_permuter(seed)
    base = plot_id_base(len(treatments), base)

    assignments = []
    for block in range(1, replicates + 1):
        order = permuter.permutation(len(treatments))
        for position, idx in enumerate(order, start=1):
            assignments.append(PlotAssignment(
                plot_id=block * base + position,
                treatment=treatments[idx],
                replicate=block,
                block=block,
                position=position
            ))
    return assignments


def randomize(
    treatments: Sequence[Treatment],
    params: DesignParameters,
    base: int = DEFAULT_PLOT_ID_BASE
) -> List[PlotAssignment]:
    """Randomize treatments with the scheme named in params."""
    start_time = time.time()
    logger.info(
        f"Randomizing {params.kind.value.upper()}: "
        f"{len(treatments)} treatments x {params.replicates} replicates, seed={params.seed}"
    )

    if params.kind == DesignKind.CRD:
        assignments = randomize_crd(treatments, params.replicates, params.seed)
    elif params.kind == DesignKind.RCBD:
        assignments = randomize_rcbd(treatments, params.replicates, params.seed, base=base)
    else:
        raise InvalidDesign(f"Unsupported design kind: {params.kind}")

    elapsed_ms = (time.time() - start_time) * 1000
    logger.debug(f"Assigned {len(assignments)} plots in {elapsed_ms:.1f} ms")
    return assignments
