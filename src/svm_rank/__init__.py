"""
Ranking SVM

Trains linear ranking functions from query groups of relevant and nonrelevant
samples using a cutting-plane optimizer and an O(N log N) pairwise hinge loss.
"""

from .decision_function import DecisionFunction
from .errors import (
    InvalidArgumentError,
    InvalidRankingProblemError,
    NumericalError,
    SvmRankError,
)
from .evaluation import cross_validate_ranking_trainer, test_ranking_function
from .inversions import RankingRiskOracle, count_ranking_inversions
from .oca import Oca, OcaConfig, OcaResult, TerminationStatus
from .ranking_pair import (
    RankingPair,
    RankingProblemIssue,
    count_ranking_pairs,
    find_ranking_problem_issues,
    is_ranking_problem,
    max_index_plus_one,
)
from .trainer import RankingSVMTrainer

__all__ = [
    # Data
    'RankingPair',
    'RankingProblemIssue',
    'count_ranking_pairs',
    'find_ranking_problem_issues',
    'is_ranking_problem',
    'max_index_plus_one',
    # Training
    'RankingSVMTrainer',
    'DecisionFunction',
    'Oca',
    'OcaConfig',
    'OcaResult',
    'TerminationStatus',
    'RankingRiskOracle',
    'count_ranking_inversions',
    # Evaluation
    'test_ranking_function',
    'cross_validate_ranking_trainer',
    # Errors
    'SvmRankError',
    'InvalidArgumentError',
    'InvalidRankingProblemError',
    'NumericalError',
]
