"""
Cutting-Plane (Bundle Method) Optimizer

Minimizes

    J(w) = 0.5 * ||w||^2 + C * R(w)

for a convex, non-negative, piecewise-linear risk R that is only available
through an oracle returning R(w) and a subgradient. Every oracle call yields a
supporting hyperplane of R; the optimizer keeps all of them in a PlaneBundle and
minimizes the regularized maximum of the planes (the restricted master problem)
to get the next point. The restricted problem is solved in its dual, whose size
is the number of planes and does not depend on the dataset.

The best objective seen so far is an upper bound on min J, the dual value of
the restricted problem is a lower bound, and the optimizer stops once the gap
between them, divided by C, is within epsilon.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple

import numpy as np
from scipy.optimize import minimize

from .errors import InvalidArgumentError, NumericalError


class TerminationStatus(Enum):
    CONVERGED = 'converged'
    ITERATION_LIMIT_REACHED = 'iteration_limit_reached'


@dataclass(frozen=True)
class OcaConfig:
    """
    Settings for the restricted QP solver.

    Attributes:
        sub_eps: Convergence tolerance passed to the inner solver
        sub_max_iter: Iteration cap of the inner solver per outer iteration

    The restricted QP is re-solved with dense SLSQP every outer iteration and
    its size is the number of planes, so per-iteration cost grows roughly
    cubically with the iteration count. Runs that need thousands of iterations
    get slow; a looser epsilon or a lower max_iterations keeps them bounded.
    """
    sub_eps: float = 1e-10
    sub_max_iter: int = 1000

    def __post_init__(self):
        if not self.sub_eps > 0:
            raise InvalidArgumentError(f"sub_eps must be > 0, got {self.sub_eps}")
        if int(self.sub_max_iter) < 1:
            raise InvalidArgumentError(f"sub_max_iter must be >= 1, got {self.sub_max_iter}")


@dataclass(frozen=True, eq=False)
class CuttingPlane:
    """Affine lower bound w -> subgradient.w + offset of the risk."""
    subgradient: np.ndarray
    offset: float

    @classmethod
    def at(cls, w: np.ndarray, risk: float, subgradient: np.ndarray) -> 'CuttingPlane':
        """Supporting hyperplane that touches the risk at w."""
        subgradient = np.array(subgradient, dtype=float)
        return cls(subgradient=subgradient, offset=float(risk - np.dot(subgradient, w)))

    def __call__(self, w: np.ndarray) -> float:
        return float(np.dot(self.subgradient, w) + self.offset)


class PlaneBundle:
    """
    Append-only collection of cutting planes owned by one optimization run.
    """

    def __init__(self, dim: int):
        self.dim = int(dim)
        self._planes: List[CuttingPlane] = []
        self._subgradients = np.zeros((0, self.dim))
        self._offsets = np.zeros(0)

    def add(self, plane: CuttingPlane) -> None:
        if plane.subgradient.shape != (self.dim,):
            raise ValueError(
                f"Plane has shape {plane.subgradient.shape}, bundle expects ({self.dim},)"
            )
        self._planes.append(plane)
        self._subgradients = np.vstack([self._subgradients, plane.subgradient[None, :]])
        self._offsets = np.append(self._offsets, plane.offset)

    def __len__(self) -> int:
        return len(self._planes)

    @property
    def subgradients(self) -> np.ndarray:
        return self._subgradients

    @property
    def offsets(self) -> np.ndarray:
        return self._offsets

    def model(self, w: np.ndarray) -> float:
        """Piecewise-linear model of the risk: max(0, max over planes)."""
        if not self._planes:
            return 0.0
        return max(0.0, float(np.max(self._subgradients @ w + self._offsets)))


@dataclass
class RestrictedQPSolution:
    w: np.ndarray
    weights: np.ndarray
    lower_bound: float
    solver_success: bool
    message: str = ''


def _project_to_simplex_box(beta: np.ndarray) -> np.ndarray:
    # Feasible set of the scaled dual: 0 <= beta, sum(beta) <= 1
    beta = np.clip(np.nan_to_num(beta, nan=0.0), 0.0, 1.0)
    total = beta.sum()
    if total > 1.0:
        beta = beta / total
    return beta


def solve_restricted_qp(
    bundle: PlaneBundle,
    C: float,
    nonnegative: bool = False,
    config: Optional[OcaConfig] = None,
    warm_start: Optional[np.ndarray] = None
) -> RestrictedQPSolution:
    """
    Solve the restricted master problem

        min_w  0.5 * ||w||^2 + C * max(0, max_i a_i.w + b_i)     (w >= 0 if nonnegative)

    through its dual in beta = alpha / C:

        max  C * b.beta - 0.5 * ||w(beta)||^2,   beta >= 0, sum(beta) <= 1
        w(beta) = -C * A^T beta, clipped at zero when nonnegative

    Any feasible beta gives a valid lower bound on min J, so the solver output is
    projected back onto the feasible set and compared with the warm start; the
    better of the two is returned.

    Args:
        bundle: Planes collected so far
        C: Regularization constant
        nonnegative: Constrain w to the non-negative orthant
        config: Inner solver settings
        warm_start: Dual weights from the previous solve (missing entries are 0)

    Returns:
        RestrictedQPSolution with the primal point, dual weights and lower bound
    """
    config = config or OcaConfig()
    A = bundle.subgradients
    b = bundle.offsets
    m = len(bundle)
    if m == 0:
        return RestrictedQPSolution(np.zeros(bundle.dim), np.zeros(0), 0.0, True)

    def primal(beta: np.ndarray) -> np.ndarray:
        v = -C * (A.T @ beta)
        return np.maximum(v, 0.0) if nonnegative else v

    def dual_value(beta: np.ndarray) -> Tuple[float, np.ndarray]:
        w = primal(beta)
        return float(C * np.dot(b, beta) - 0.5 * np.dot(w, w)), w

    def objective(beta: np.ndarray) -> Tuple[float, np.ndarray]:
        w = primal(beta)
        value = 0.5 * np.dot(w, w) / C - np.dot(b, beta)
        grad = -(A @ w) - b
        return value, grad

    x0 = np.zeros(m)
    if warm_start is not None and len(warm_start) > 0:
        x0[:min(len(warm_start), m)] = warm_start[:m]
    x0 = _project_to_simplex_box(x0)

    result = minimize(
        objective,
        x0,
        jac=True,
        method='SLSQP',
        bounds=[(0.0, 1.0)] * m,
        constraints=[{
            'type': 'ineq',
            'fun': lambda beta: 1.0 - np.sum(beta),
            'jac': lambda beta: -np.ones_like(beta),
        }],
        options={'ftol': config.sub_eps, 'maxiter': int(config.sub_max_iter)}
    )

    if not np.all(np.isfinite(result.x)):
        raise NumericalError(
            f"Restricted QP solver returned non-finite weights with {m} planes: {result.message}"
        )

    beta = _project_to_simplex_box(result.x)
    value, w = dual_value(beta)
    start_value, start_w = dual_value(x0)
    if not np.isfinite(value) or not np.all(np.isfinite(w)):
        raise NumericalError(f"Restricted QP became ill-conditioned with {m} planes")
    if start_value > value:
        beta, value, w = x0, start_value, start_w

    return RestrictedQPSolution(
        w=w,
        weights=beta,
        lower_bound=value,
        solver_success=bool(result.success),
        message=str(result.message)
    )


@dataclass
class IterationRecord:
    iteration: int
    risk: float
    objective: float
    upper_bound: float
    lower_bound: float
    gap: float
    num_planes: int


@dataclass
class OcaResult:
    """
    Outcome of one optimization run.

    Attributes:
        w: Best weight vector found (lowest objective among evaluated points)
        status: Why the run stopped
        iterations: Number of oracle calls made
        upper_bound: Objective value of w
        lower_bound: Best lower bound on min J
        gap: (upper_bound - lower_bound) / C, in risk units
        history: One IterationRecord per iteration
    """
    w: np.ndarray
    status: TerminationStatus
    iterations: int
    upper_bound: float
    lower_bound: float
    gap: float
    history: List[IterationRecord] = field(default_factory=list)

    @property
    def converged(self) -> bool:
        return self.status is TerminationStatus.CONVERGED


class Oca:
    """
    Bundle-method solver for regularized risk minimization.

    Usage:
        result = Oca().solve(oracle, dim=10, C=1.0, epsilon=0.001, max_iterations=100)
    """

    def __init__(self, config: Optional[OcaConfig] = None):
        self.config = config or OcaConfig()

    def solve(
        self,
        oracle: Callable[[np.ndarray], Tuple[float, np.ndarray]],
        dim: int,
        C: float,
        epsilon: float,
        max_iterations: int,
        nonnegative: bool = False,
        verbose: bool = False
    ) -> OcaResult:
        """
        Minimize 0.5 * ||w||^2 + C * R(w).

        Args:
            oracle: Callable returning (R(w), subgradient of R at w)
            dim: Dimension of w
            C: Regularization constant (> 0)
            epsilon: Stop when (upper - lower) / C <= epsilon
            max_iterations: Maximum number of oracle calls
            nonnegative: Keep every component of w >= 0 throughout
            verbose: Print bounds after every iteration

        Returns:
            OcaResult
        """
        if not C > 0:
            raise InvalidArgumentError(f"C must be > 0, got {C}")
        if not epsilon > 0:
            raise InvalidArgumentError(f"epsilon must be > 0, got {epsilon}")
        if int(max_iterations) < 1:
            raise InvalidArgumentError(f"max_iterations must be >= 1, got {max_iterations}")

        w = np.zeros(dim)
        best_w = w.copy()
        bundle = PlaneBundle(dim)
        upper_bound = np.inf
        # J >= 0 everywhere
        lower_bound = 0.0
        weights = None
        history: List[IterationRecord] = []
        status = TerminationStatus.ITERATION_LIMIT_REACHED
        iteration = 0

        while True:
            iteration += 1
            risk, subgradient = oracle(w)
            objective = 0.5 * float(np.dot(w, w)) + C * risk
            if not np.isfinite(objective):
                raise NumericalError(f"Objective is not finite at iteration {iteration}")
            if objective < upper_bound:
                upper_bound = objective
                best_w = w.copy()

            bundle.add(CuttingPlane.at(w, risk, subgradient))
            solution = solve_restricted_qp(
                bundle, C, nonnegative=nonnegative, config=self.config, warm_start=weights
            )
            weights = solution.weights
            lower_bound = min(max(lower_bound, solution.lower_bound), upper_bound)
            gap = (upper_bound - lower_bound) / C

            history.append(IterationRecord(
                iteration=iteration,
                risk=risk,
                objective=objective,
                upper_bound=upper_bound,
                lower_bound=lower_bound,
                gap=gap,
                num_planes=len(bundle)
            ))
            if verbose:
                if not solution.solver_success:
                    print(f"    Warning: inner QP solver stopped early: {solution.message}")
                print(f"  Iteration {iteration}: objective={upper_bound:.6f} "
                      f"lower_bound={lower_bound:.6f} risk={risk:.6f} "
                      f"risk_gap={gap:.6f} planes={len(bundle)}")

            if gap <= epsilon:
                status = TerminationStatus.CONVERGED
                break
            if iteration >= max_iterations:
                break
            w = solution.w

        if verbose:
            print(f"  Stopped after {iteration} iterations ({status.value}), risk gap {gap:.6f}")

        return OcaResult(
            w=best_w,
            status=status,
            iterations=iteration,
            upper_bound=upper_bound,
            lower_bound=lower_bound,
            gap=gap,
            history=history
        )
