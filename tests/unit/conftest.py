from __future__ import annotations

import numpy as np
import pytest

from svm_rank import RankingPair


def make_ranking_groups(
    seed: int = 0,
    n_groups: int = 6,
    n_relevant: int = 3,
    n_nonrelevant: int = 5,
    direction=(1.0, -0.5, 0.25, 0.0),
    separation: float = 1.0,
) -> list[RankingPair]:
    rng = np.random.default_rng(seed)
    direction = np.asarray(direction, dtype=float)
    groups = []
    for _ in range(n_groups):
        relevant = rng.normal(size=(n_relevant, direction.size)) + separation * direction
        nonrelevant = rng.normal(size=(n_nonrelevant, direction.size)) - separation * direction
        groups.append(RankingPair(relevant=list(relevant), nonrelevant=list(nonrelevant)))
    return groups


@pytest.fixture
def ranking_groups() -> list[RankingPair]:
    return make_ranking_groups()


@pytest.fixture
def separable_pair() -> RankingPair:
    return RankingPair(relevant=[np.array([1.0, 0.0])], nonrelevant=[np.array([0.0, 1.0])])


@pytest.fixture
def make_groups():
    return make_ranking_groups
