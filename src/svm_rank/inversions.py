"""
Pairwise Hinge Risk via Inversion Counting

The ranking risk of a weight vector w is

    R(w) = 1/P * sum over groups, sum over (r, n) of max(0, 1 - (w.r - w.n))

where P is the total number of (relevant, nonrelevant) pairs. Enumerating the
pairs costs |relevant| * |nonrelevant| per group. Instead, each group's scores
are sorted once and merged in a single sweep, the way merge sort counts
inversions, which yields for every sample the number of margin violations it
takes part in. Loss and subgradient both follow from those counts, so one
evaluation is O(N log N) in the number of samples.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from .errors import NumericalError
from .ranking_pair import RankingPair, count_ranking_pairs, max_index_plus_one, representation_of


def count_ranking_inversions(
    x: Sequence[float],
    y: Sequence[float],
    inclusive: bool = True
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Count, for every element of x and y, how many ranking inversions it is part of.

    The pair (x[i], y[j]) is an inversion when x[i] <= y[j], or x[i] < y[j] if
    inclusive is False. x holds the scores that should be larger.

    Args:
        x: Scores of the items that should rank higher
        y: Scores of the items that should rank lower
        inclusive: Whether a tie counts as an inversion

    Returns:
        Tuple (x_count, y_count) where x_count[i] is the number of j with
        (x[i], y[j]) inverted and y_count[j] the number of such i
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    x_order = np.argsort(x, kind='stable')
    y_order = np.argsort(y, kind='stable')

    x_count = np.zeros(len(x), dtype=np.int64)
    y_count = np.zeros(len(y), dtype=np.int64)

    i = j = 0
    nx, ny = len(x), len(y)
    while i < nx or j < ny:
        # Emit the y element first when it is not inverted with the next x element
        if j < ny and (i == nx or _y_first(y[y_order[j]], x[x_order[i]], inclusive)):
            # every x emitted so far scores below this y
            y_count[y_order[j]] = i
            j += 1
        else:
            # every y still pending scores at or above this x
            x_count[x_order[i]] = ny - j
            i += 1

    return x_count, y_count


def _y_first(y_value: float, x_value: float, inclusive: bool) -> bool:
    if inclusive:
        return y_value < x_value
    return y_value <= x_value


class RankingRiskOracle:
    """
    Loss and subgradient oracle for the ranking SVM.

    Sample matrices are built once per group at construction; each call then
    costs one matrix-vector product per group plus the sort-and-sweep count.
    A pair whose score difference is exactly 1 sits on the hinge and is treated
    as satisfied: it adds no loss and no subgradient term.
    """

    def __init__(
        self,
        samples: Sequence[RankingPair],
        dim: Optional[int] = None,
        scale: Optional[float] = None
    ):
        """
        Args:
            samples: Training set; groups without pairs are skipped
            dim: Weight vector dimension (default: max_index_plus_one(samples))
            scale: Factor applied to the summed loss (default: 1 / number of pairs)
        """
        self.num_pairs = count_ranking_pairs(samples)
        self.dim = max_index_plus_one(samples) if dim is None else int(dim)
        if scale is None:
            if self.num_pairs == 0:
                raise ValueError("Cannot normalize the ranking risk: the training set has no pairs")
            scale = 1.0 / self.num_pairs
        self.scale = float(scale)

        ops = representation_of(samples)
        self._groups: List[Tuple[object, object]] = []
        for pair in samples:
            if pair.num_pairs == 0:
                continue
            self._groups.append((
                ops.stack(pair.relevant, self.dim),
                ops.stack(pair.nonrelevant, self.dim),
            ))

    @property
    def num_groups(self) -> int:
        return len(self._groups)

    def __call__(self, w: np.ndarray) -> Tuple[float, np.ndarray]:
        """
        Evaluate the risk at w.

        Args:
            w: Dense weight vector of length self.dim

        Returns:
            Tuple (risk, subgradient)
        """
        w = np.asarray(w, dtype=float)
        loss = 0.0
        subgradient = np.zeros(self.dim)

        for relevant, nonrelevant in self._groups:
            rel_scores = np.asarray(relevant @ w, dtype=float).ravel()
            nonrel_scores = np.asarray(nonrelevant @ w, dtype=float).ravel()

            rel_count, nonrel_count = count_ranking_inversions(
                rel_scores, nonrel_scores + 1.0, inclusive=False
            )
            rel_count = rel_count.astype(float)
            nonrel_count = nonrel_count.astype(float)

            loss += np.dot(rel_count, 1.0 - rel_scores) + np.dot(nonrel_count, nonrel_scores)
            subgradient += np.asarray(nonrelevant.T @ nonrel_count).ravel()
            subgradient -= np.asarray(relevant.T @ rel_count).ravel()

        risk = self.scale * loss
        subgradient *= self.scale
        if not np.isfinite(risk) or not np.all(np.isfinite(subgradient)):
            raise NumericalError("Ranking risk evaluation produced non-finite values")
        return float(risk), subgradient
