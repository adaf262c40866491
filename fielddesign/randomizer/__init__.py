"""Randomization schemes and design checks."""
from fielddesign.randomizer.rng import Permuter, SeededPermuter, check_seed, make_permuter
from fielddesign.randomizer.randomizer import (
    randomize, randomize_crd, randomize_rcbd, plot_id_base
)
from fielddesign.randomizer.constraints import validate_design, frequency_table

__all__ = [
    "Permuter", "SeededPermuter", "check_seed", "make_permuter",
    "randomize", "randomize_crd", "randomize_rcbd", "plot_id_base",
    "validate_design", "frequency_table"
]
