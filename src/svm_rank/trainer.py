"""
Ranking SVM Trainer

Trains a linear ranking function from query groups of relevant and nonrelevant
samples (the Ranking SVM of Joachims, "Optimizing Search Engines using
Clickthrough Data"). The pairwise hinge loss is averaged over all pairs, so C is
normalized by the pair count: multiply C by 1 / (number of pairs) to compare
against the unnormalized formulation.

Training uses the cutting-plane optimizer in oca.py with the O(N log N) risk
oracle from inversions.py.
"""

from typing import Optional, Sequence, Tuple, Union

from .decision_function import DecisionFunction
from .errors import InvalidArgumentError, InvalidRankingProblemError
from .inversions import RankingRiskOracle
from .oca import Oca, OcaConfig, OcaResult
from .ranking_pair import (
    RankingPair,
    as_training_set,
    count_ranking_pairs,
    find_ranking_problem_issues,
    max_index_plus_one,
)


class RankingSVMTrainer:
    """
    Linear ranking SVM trained with a bundle method.
    """

    def __init__(
        self,
        C: float = 1.0,
        epsilon: float = 0.001,
        max_iterations: int = 10000,
        verbose: bool = False,
        learns_nonnegative_weights: bool = False,
        oca: Optional[OcaConfig] = None
    ):
        """
        Initialize the trainer.

        Args:
            C: Regularization parameter. Larger values fit the training pairs more
                closely, smaller values may generalize better. Must be > 0.
            epsilon: Stopping tolerance. Training runs until the average ranking
                accuracy is within epsilon of its optimal value. Must be > 0.
            max_iterations: Maximum number of optimizer iterations
            verbose: Print optimizer progress
            learns_nonnegative_weights: Constrain every learned weight to be >= 0
            oca: Settings for the optimizer's inner QP solver
        """
        self.C = C
        self.epsilon = epsilon
        self.max_iterations = max_iterations
        self.verbose = verbose
        self.learns_nonnegative_weights = learns_nonnegative_weights
        self.oca = oca or OcaConfig()

    @property
    def C(self) -> float:
        return self._C

    @C.setter
    def C(self, value: float):
        if not value > 0:
            raise InvalidArgumentError(f"C must be > 0, got {value}")
        self._C = float(value)

    @property
    def epsilon(self) -> float:
        return self._epsilon

    @epsilon.setter
    def epsilon(self, value: float):
        if not value > 0:
            raise InvalidArgumentError(f"epsilon must be > 0, got {value}")
        self._epsilon = float(value)

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    @max_iterations.setter
    def max_iterations(self, value: int):
        if int(value) != value or value < 1:
            raise InvalidArgumentError(f"max_iterations must be a positive integer, got {value}")
        self._max_iterations = int(value)

    def be_verbose(self) -> None:
        self.verbose = True

    def be_quiet(self) -> None:
        self.verbose = False

    def train(self, samples: Union[RankingPair, Sequence[RankingPair]]) -> DecisionFunction:
        """
        Train a ranking function.

        Args:
            samples: A list of RankingPair objects, or a single RankingPair

        Returns:
            DecisionFunction f with f(A) > f(B) when A is ranked before B

        Raises:
            InvalidRankingProblemError: if samples is not a valid ranking problem
            NumericalError: if the optimizer produces non-finite values
        """
        decision_function, _ = self.train_with_status(samples)
        return decision_function

    def train_with_status(
        self,
        samples: Union[RankingPair, Sequence[RankingPair]]
    ) -> Tuple[DecisionFunction, OcaResult]:
        """
        Train a ranking function and also return the optimizer outcome.

        Hitting max_iterations is not an error; check result.status and
        result.gap to see how close the returned weights are to optimal.
        """
        samples = as_training_set(samples)
        issues = find_ranking_problem_issues(samples)
        if issues:
            raise InvalidRankingProblemError(issues)

        num_pairs = count_ranking_pairs(samples)
        dim = max_index_plus_one(samples)
        oracle = RankingRiskOracle(samples, dim=dim, scale=1.0 / num_pairs)

        if self.verbose:
            print(f"Training ranking SVM with C={self.C} (normalized by {num_pairs} pairs)...")
            print(f"  Groups: {len(samples)}, dimension: {dim}, epsilon: {self.epsilon}, "
                  f"max iterations: {self.max_iterations}")
            if self.learns_nonnegative_weights:
                print(f"  Constraining weights to be non-negative")

        result = Oca(self.oca).solve(
            oracle,
            dim=dim,
            C=self.C,
            epsilon=self.epsilon,
            max_iterations=self.max_iterations,
            nonnegative=self.learns_nonnegative_weights,
            verbose=self.verbose
        )
        return DecisionFunction(weights=result.w, bias=0.0), result
