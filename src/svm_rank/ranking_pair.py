"""
Ranking Training Data

A ranking problem is a list of RankingPair objects, one per query. Each pair
holds the samples that should be ranked above (relevant) and below
(nonrelevant) each other for that query. Every (relevant, nonrelevant)
combination inside a pair is one preference constraint.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from .samples import DENSE, SPARSE, is_sparse_sample, vector_ops_for


@dataclass(frozen=True, eq=False)
class RankingPair:
    """
    Samples for one query.

    Attributes:
        relevant: Samples that should receive the higher scores
        nonrelevant: Samples that should receive the lower scores
    """
    relevant: Sequence = field(default_factory=tuple)
    nonrelevant: Sequence = field(default_factory=tuple)

    def __post_init__(self):
        # Stored as tuples so groups stay immutable
        object.__setattr__(self, 'relevant', tuple(self.relevant))
        object.__setattr__(self, 'nonrelevant', tuple(self.nonrelevant))

    @property
    def num_pairs(self) -> int:
        return len(self.relevant) * len(self.nonrelevant)


@dataclass(frozen=True)
class RankingProblemIssue:
    """
    One failed well-formedness check.

    Attributes:
        check: Name of the failed check (e.g. 'empty_nonrelevant')
        group_index: Index of the offending RankingPair, None for whole-set checks
        detail: Human readable description
    """
    check: str
    group_index: Optional[int] = None
    detail: str = ''

    def __str__(self) -> str:
        where = f"group {self.group_index}" if self.group_index is not None else "training set"
        return f"{where}: {self.check}" + (f" ({self.detail})" if self.detail else "")


def as_training_set(samples: Union[RankingPair, Sequence[RankingPair]]) -> List[RankingPair]:
    """Wrap a single RankingPair in a list; pass sequences through as a list."""
    if isinstance(samples, RankingPair):
        return [samples]
    return list(samples)


def count_ranking_pairs(samples: Sequence[RankingPair]) -> int:
    """Total number of (relevant, nonrelevant) pairs across all groups."""
    return sum(pair.num_pairs for pair in samples)


def max_index_plus_one(samples: Sequence[RankingPair]) -> int:
    """
    Dimension of the weight vector needed to score every sample.

    Dense samples all share one dimension; sparse samples contribute their
    largest non-zero index plus one.
    """
    dim = 0
    for pair in samples:
        for sample in list(pair.relevant) + list(pair.nonrelevant):
            dim = max(dim, vector_ops_for(sample).dimension(sample))
    return dim


def find_ranking_problem_issues(samples: Sequence[RankingPair]) -> List[RankingProblemIssue]:
    """
    Run every well-formedness check on a training set.

    Checks:
        - the set is non-empty
        - every group has at least one relevant and one nonrelevant sample
        - samples are either all dense or all sparse
        - sparse samples parse as integer indices with numeric values, none negative
        - dense samples all share the same dimension
        - no sample contains NaN or infinite values
        - the set contains at least one (relevant, nonrelevant) pair

    Args:
        samples: Training set

    Returns:
        List of issues, empty when the set is a valid ranking problem
    """
    issues: List[RankingProblemIssue] = []
    if len(samples) == 0:
        return [RankingProblemIssue('empty_training_set', None, 'no ranking groups given')]

    representation = None
    dense_dim = None
    for idx, pair in enumerate(samples):
        if not isinstance(pair, RankingPair):
            issues.append(RankingProblemIssue(
                'not_a_ranking_pair', idx, f"got {type(pair).__name__}"
            ))
            continue
        if len(pair.relevant) == 0:
            issues.append(RankingProblemIssue('empty_relevant', idx, 'no relevant samples'))
        if len(pair.nonrelevant) == 0:
            issues.append(RankingProblemIssue('empty_nonrelevant', idx, 'no nonrelevant samples'))

        for sample in list(pair.relevant) + list(pair.nonrelevant):
            try:
                ops = vector_ops_for(sample)
            except TypeError as exc:
                issues.append(RankingProblemIssue('unsupported_sample', idx, str(exc)))
                break
            if representation is None:
                representation = ops.name
            elif ops.name != representation:
                issues.append(RankingProblemIssue(
                    'mixed_representation', idx,
                    f"{ops.name} sample in a {representation} training set"
                ))
                break
            if ops is SPARSE:
                try:
                    entries = ops.entries(sample)
                except (TypeError, ValueError) as exc:
                    issues.append(RankingProblemIssue('unsupported_sample', idx, str(exc)))
                    break
                negative = [i for i, _ in entries if i < 0]
                if negative:
                    issues.append(RankingProblemIssue(
                        'bad_sparse_index', idx, f"negative index {negative[0]}"
                    ))
                    break
            if not ops.is_finite(sample):
                issues.append(RankingProblemIssue('non_finite', idx, 'sample contains NaN or inf'))
                break
            if ops is DENSE:
                dim = ops.dimension(sample)
                if dense_dim is None:
                    dense_dim = dim
                elif dim != dense_dim:
                    issues.append(RankingProblemIssue(
                        'dimension_mismatch', idx,
                        f"expected dimension {dense_dim}, got {dim}"
                    ))
                    break

    if not issues and count_ranking_pairs(samples) == 0:
        issues.append(RankingProblemIssue('no_pairs', None, 'total pair count is zero'))
    return issues


def is_ranking_problem(samples: Union[RankingPair, Sequence[RankingPair]]) -> bool:
    """True when the training set passes every check in find_ranking_problem_issues."""
    return not find_ranking_problem_issues(as_training_set(samples))


def representation_of(samples: Sequence[RankingPair]):
    """Return the ops backend (DENSE or SPARSE) used by a validated training set."""
    for pair in samples:
        for sample in list(pair.relevant) + list(pair.nonrelevant):
            return SPARSE if is_sparse_sample(sample) else DENSE
    return DENSE
