"""
Exception types raised by the ranking SVM trainer.
"""

from typing import List, Optional


class SvmRankError(Exception):
    """Base class for all errors raised by svm_rank."""


class InvalidArgumentError(SvmRankError, ValueError):
    """A parameter or dataset violates the trainer's preconditions."""


class InvalidRankingProblemError(InvalidArgumentError):
    """
    The training set is not a well-formed ranking problem.

    Attributes:
        issues: List of RankingProblemIssue records describing every failed check
    """

    def __init__(self, issues: List, message: Optional[str] = None):
        self.issues = list(issues)
        if message is None:
            shown = "; ".join(str(issue) for issue in self.issues[:5])
            if len(self.issues) > 5:
                shown += f"; ... ({len(self.issues) - 5} more)"
            message = f"Not a valid ranking problem: {shown}"
        super().__init__(message)


class NumericalError(SvmRankError, ArithmeticError):
    """The optimizer produced non-finite values and cannot continue."""
