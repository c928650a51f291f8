"""
Ranking Evaluation

Measures how well a scoring function orders the relevant samples of each query
above its nonrelevant ones:

    - ranking accuracy: fraction of (relevant, nonrelevant) pairs with
      f(relevant) > f(nonrelevant); ties count as mistakes
    - mean average precision: average precision of each query's ranking,
      averaged over queries
"""

from typing import Callable, List, Sequence, Tuple, Union

import numpy as np
from sklearn.metrics import average_precision_score
from sklearn.model_selection import KFold

from .errors import InvalidArgumentError, InvalidRankingProblemError
from .inversions import count_ranking_inversions
from .ranking_pair import RankingPair, as_training_set, find_ranking_problem_issues


def _score_groups(
    function: Callable,
    samples: Sequence[RankingPair]
) -> Tuple[int, int, List[float]]:
    """Return (correctly ordered pairs, total pairs, per-group average precision)."""
    correct = 0
    total = 0
    average_precisions = []
    for pair in samples:
        rel_scores = np.array([function(x) for x in pair.relevant], dtype=float)
        nonrel_scores = np.array([function(x) for x in pair.nonrelevant], dtype=float)

        rel_count, _ = count_ranking_inversions(rel_scores, nonrel_scores, inclusive=True)
        num_pairs = len(rel_scores) * len(nonrel_scores)
        total += num_pairs
        correct += num_pairs - int(rel_count.sum())

        y_true = np.concatenate([np.ones(len(rel_scores)), np.zeros(len(nonrel_scores))])
        y_score = np.concatenate([rel_scores, nonrel_scores])
        average_precisions.append(float(average_precision_score(y_true, y_score)))
    return correct, total, average_precisions


def test_ranking_function(
    function: Callable,
    samples: Union[RankingPair, Sequence[RankingPair]]
) -> np.ndarray:
    """
    Evaluate a scoring function on ranking data.

    Args:
        function: Callable mapping a sample to a score (e.g. a DecisionFunction)
        samples: One RankingPair or a list of them

    Returns:
        Array [ranking_accuracy, mean_average_precision]
    """
    samples = as_training_set(samples)
    issues = find_ranking_problem_issues(samples)
    if issues:
        raise InvalidRankingProblemError(issues)

    correct, total, average_precisions = _score_groups(function, samples)
    return np.array([correct / total, float(np.mean(average_precisions))])


# Keep pytest from collecting the evaluation function as a test
test_ranking_function.__test__ = False


def cross_validate_ranking_trainer(
    trainer,
    samples: Sequence[RankingPair],
    folds: int
) -> np.ndarray:
    """
    K-fold cross-validation over query groups.

    Groups are split into contiguous folds. Pair counts and average precisions
    are pooled over all held-out groups rather than averaged per fold.

    Args:
        trainer: Object with a train(samples) method returning a scoring function
        samples: List of RankingPair objects
        folds: Number of folds, 1 < folds <= len(samples)

    Returns:
        Array [ranking_accuracy, mean_average_precision]
    """
    samples = as_training_set(samples)
    issues = find_ranking_problem_issues(samples)
    if issues:
        raise InvalidRankingProblemError(issues)
    if not 1 < folds <= len(samples):
        raise InvalidArgumentError(
            f"folds must satisfy 1 < folds <= {len(samples)}, got {folds}"
        )

    total_correct = 0
    total_pairs = 0
    average_precisions: List[float] = []
    splitter = KFold(n_splits=int(folds), shuffle=False)
    for train_idx, test_idx in splitter.split(np.arange(len(samples))):
        function = trainer.train([samples[i] for i in train_idx])
        correct, total, aps = _score_groups(function, [samples[i] for i in test_idx])
        total_correct += correct
        total_pairs += total
        average_precisions.extend(aps)

    return np.array([total_correct / total_pairs, float(np.mean(average_precisions))])
