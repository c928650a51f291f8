"""
Linear decision function produced by the ranking SVM trainer.
"""

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .samples import vector_ops_for


@dataclass(frozen=True, eq=False)
class DecisionFunction:
    """
    Scores a sample as weights . x - bias.

    The trainer always sets bias to 0, so A ranks above B exactly when
    f(A) > f(B). The alpha/basis_vectors view describes the same function as a
    single support direction with coefficient 1.
    """
    weights: np.ndarray
    bias: float = 0.0

    def __post_init__(self):
        weights = np.array(self.weights, dtype=float)
        weights.setflags(write=False)
        object.__setattr__(self, 'weights', weights)

    @property
    def alpha(self) -> np.ndarray:
        return np.ones(1)

    @property
    def basis_vectors(self) -> List[np.ndarray]:
        return [self.weights]

    def __call__(self, sample) -> float:
        return vector_ops_for(sample).dot(sample, self.weights) - self.bias

    def score(self, samples: Sequence) -> np.ndarray:
        """Score every sample in a sequence."""
        return np.array([self(s) for s in samples], dtype=float)
