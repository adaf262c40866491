"""Shared fixtures."""
from typing import List

import pytest

from fielddesign.models import TreatmentSet


class ReversePermuter:
    """Deterministic permuter that always returns n-1..0."""

    def __init__(self):
        self.calls: List[int] = []

    def permutation(self, n: int) -> List[int]:
        self.calls.append(n)
        return list(range(n - 1, -1, -1))


class IdentityPermuter:
    """Deterministic permuter that always returns 0..n-1."""

    def permutation(self, n: int) -> List[int]:
        return list(range(n))


@pytest.fixture
def nk_treatments():
    """3 x 3 nitrogen x potassium factorial."""
    return TreatmentSet.factorial({
        "nitrogen": [0, 100, 200],
        "potassium": [0, 30, 60],
    })


@pytest.fixture
def two_treatments():
    return TreatmentSet.factorial({"variety": ["a", "b"]})


@pytest.fixture
def reverse_permuter():
    return ReversePermuter()


@pytest.fixture
def identity_permuter():
    return IdentityPermuter()
