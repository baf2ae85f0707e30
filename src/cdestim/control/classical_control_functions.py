# Copyright (C) 2025 Gil Benezer
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Analysis and Design Functions

Stateless checks and the gain design used when a KalmanFilter is built:

- design_kalman_filter: steady-state gain from the discrete Riccati
  equation (DARE)
- analyze_stability: eigenvalue location
- analyze_observability: Kalman rank test, PBH modes when it fails
- is_detectable: PBH test restricted to the modes that do not decay

Inputs are converted to float arrays and never modified.

Mathematical Background
-----------------------
Kalman Filter for:
    x[k+1] = A_d x[k] + B_d u[k] + w[k],  w ~ N(0, Q_d)
    y[k]   = Cx[k] + Du[k] + v[k],        v ~ N(0, R_d)

A-priori error covariance from the DARE:
    P = A_d P A_d' - A_d P C'(CPC' + R_d)⁻¹ C P A_d' + Q_d

Correction gain (applied to the a-priori estimate):
    K = P C' (C P C' + R_d)⁻¹

Stable:          Re(λ) < 0 (continuous), |λ| < 1 (sampled)
Observable:      rank([C; CA; ...; CA^(n-1)]) = n
Detectability:   rank([λI - A; C]) = n for every |λ| >= 1 (discrete)

Usage
-----
>>> from cdestim.control import design_kalman_filter, is_detectable
>>>
>>> if is_detectable(A_d, C):
...     result = design_kalman_filter(A_d, C, Q_d, R_d)
...     K = result['gain']
"""

import logging

import numpy as np
from scipy import linalg

from cdestim.systems.utils.linear_system_validator import as_matrix, validate_covariance
from cdestim.types.control_classical import KalmanFilterResult, ObservabilityInfo, StabilityInfo
from cdestim.types.core import CovarianceMatrix, OutputMatrix, StateMatrix
from cdestim.types.exceptions import DimensionError, ModelError

_LOG: logging.Logger = logging.getLogger(__name__)


def _check_pair(A: StateMatrix, C: OutputMatrix):
    A_np = as_matrix(A, "A")
    nx = A_np.shape[0]
    if A_np.shape != (nx, nx):
        raise DimensionError(f"A must be square, got shape {A_np.shape}")
    C_np = as_matrix(C, "C")
    if C_np.shape[1] != nx:
        raise DimensionError(f"C must have {nx} columns, got {C_np.shape[1]}")
    return A_np, C_np


# ============================================================================
# Kalman Filter - Optimal State Estimation
# ============================================================================


def design_kalman_filter(
    A_d: StateMatrix,
    C: OutputMatrix,
    Q_d: CovarianceMatrix,
    R_d: CovarianceMatrix,
) -> KalmanFilterResult:
    """
    Design a steady-state discrete Kalman filter.

    Solves the DARE for the a-priori error covariance P, then derives the
    correction gain K = PC'S⁻¹ with S = CPC' + R_d. K is computed with a
    linear solve, never an explicit inverse.

    Args:
        A_d: Discrete state matrix (nx, nx)
        C: Output matrix (ny, nx)
        Q_d: Discrete process noise covariance (nx, nx), Q_d ≥ 0
        R_d: Discrete measurement noise covariance (ny, ny), R_d > 0

    Returns:
        KalmanFilterResult containing:
            - gain: Kalman gain K (nx, ny)
            - error_covariance: Steady-state a-priori covariance P (nx, nx)
            - innovation_covariance: S = CPC' + R_d (ny, ny)
            - estimator_eigenvalues: Eigenvalues of A_d(I - KC)

    Raises:
        DimensionError: If matrices have incompatible shapes
        ModelError: If Q_d or R_d is not symmetric PSD, or the Riccati
            equation has no stabilizing solution (undetectable pair,
            singular R_d), or its solution is not finite PSD

    Examples
    --------
    >>> A_d = np.array([[1, 0.02], [0, 1]])
    >>> C = np.array([[1, 0]])  # Measure position only
    >>> Q_d = 0.01 * np.eye(2)
    >>> R_d = np.array([[0.1]])
    >>>
    >>> result = design_kalman_filter(A_d, C, Q_d, R_d)
    >>> K = result['gain']
    >>>
    >>> # Check estimator stability
    >>> print(np.all(np.abs(result['estimator_eigenvalues']) < 1))  # True

    Notes
    -----
    - (A_d, C) must be detectable
    - R_d must be positive definite
    - The returned P is the covariance before a correction. After the
      correction it is (I - KC)P.
    """
    A_np, C_np = _check_pair(A_d, C)
    nx = A_np.shape[0]
    ny = C_np.shape[0]

    Q_np = validate_covariance(Q_d, "Q_d", nx)
    R_np = validate_covariance(R_d, "R_d", ny)

    try:
        P = linalg.solve_discrete_are(A_np.T, C_np.T, Q_np, R_np)
    except (np.linalg.LinAlgError, ValueError) as e:
        raise ModelError(
            f"Discrete Riccati equation has no stabilizing solution: {e}. "
            f"Check that (A_d, C) is detectable and R_d is positive definite."
        ) from e

    if not np.all(np.isfinite(P)):
        raise ModelError("Discrete Riccati solution contains non-finite entries")
    P = validate_covariance((P + P.T) / 2.0, "P", nx, tolerance=1e-6)

    S = C_np @ P @ C_np.T + R_np
    try:
        K = linalg.solve(S, C_np @ P, assume_a="sym").T
    except (np.linalg.LinAlgError, ValueError) as e:
        raise ModelError(f"Innovation covariance is singular: {e}") from e

    estimator_eigenvalues = np.linalg.eigvals(A_np @ (np.eye(nx) - K @ C_np))

    _LOG.debug(
        "Kalman design: nx=%d ny=%d, max |estimator eigenvalue| = %.6f",
        nx,
        ny,
        float(np.max(np.abs(estimator_eigenvalues))),
    )

    result: KalmanFilterResult = {
        "gain": K,
        "error_covariance": P,
        "innovation_covariance": S,
        "estimator_eigenvalues": estimator_eigenvalues,
    }

    return result


# ============================================================================
# Stability Analysis
# ============================================================================


def analyze_stability(
    A: StateMatrix,
    system_type: str = "continuous",
    tolerance: float = 1e-10,
) -> StabilityInfo:
    """
    Classify the eigenvalues of A against the continuous or sampled
    stability boundary.

    Args:
        A: State matrix (nx, nx)
        system_type: "continuous" (boundary Re(λ) = 0) or "discrete"
            (boundary |λ| = 1)
        tolerance: Half-width of the band counted as marginal

    Returns:
        StabilityInfo

    Examples
    --------
    >>> # Elevator velocity loop decays, position integrates
    >>> info = analyze_stability([[0.0, 1.0], [0.0, -0.4356]])
    >>> info["is_marginally_stable"]
    True
    >>>
    >>> # Discretized double integrator sits on the unit circle
    >>> Ad = np.array([[1, 0.02], [0, 1]])
    >>> stability = analyze_stability(Ad, system_type='discrete')
    >>> print(stability['is_marginally_stable'])  # True
    """
    A_np = as_matrix(A, "A")
    if A_np.shape[0] != A_np.shape[1]:
        raise DimensionError(f"A must be square matrix, got shape {A_np.shape}")

    eigenvalues = np.linalg.eigvals(A_np)
    magnitudes = np.abs(eigenvalues)
    max_magnitude = np.max(magnitudes)

    if system_type == "continuous":
        max_real = np.max(np.real(eigenvalues))
        is_stable = max_real < -tolerance
        is_marginally_stable = np.abs(max_real) <= tolerance
        is_unstable = max_real > tolerance
    elif system_type == "discrete":
        is_stable = max_magnitude < 1.0 - tolerance
        is_marginally_stable = np.abs(max_magnitude - 1.0) <= tolerance
        is_unstable = max_magnitude > 1.0 + tolerance
    else:
        raise ValueError(f"system_type must be 'continuous' or 'discrete', got '{system_type}'")

    result: StabilityInfo = {
        "eigenvalues": eigenvalues,
        "magnitudes": magnitudes,
        "spectral_radius": float(max_magnitude),
        "is_stable": bool(is_stable),
        "is_marginally_stable": bool(is_marginally_stable),
        "is_unstable": bool(is_unstable),
    }

    return result


# ============================================================================
# Observability Analysis
# ============================================================================


def _pbh_unobservable(A_np: np.ndarray, C_np: np.ndarray, eigenvalues: np.ndarray) -> np.ndarray:
    """Eigenvalues λ of A for which rank([λI - A; C]) < n."""
    nx = A_np.shape[0]
    failing = []
    for lam in eigenvalues:
        pencil = np.vstack([lam * np.eye(nx) - A_np, C_np.astype(complex)])
        if np.linalg.matrix_rank(pencil) < nx:
            failing.append(lam)
    return np.array(failing, dtype=complex)


def analyze_observability(
    A: StateMatrix,
    C: OutputMatrix,
    tolerance: float = 1e-10,
) -> ObservabilityInfo:
    """
    Rank test of (A, C) on the stacked matrix [C; CA; ...; CA^(n-1)].

    Unobservable modes are found with the PBH test: λ is unobservable if
    rank([λI - A; C]) < n.

    Args:
        A: State matrix (nx, nx)
        C: Output matrix (ny, nx)
        tolerance: Singular value cutoff, relative to the largest entry

    Returns:
        ObservabilityInfo

    Examples
    --------
    >>> # Position encoder
    >>> analyze_observability([[0, 1], [0, 0]], [[1, 0]])["is_observable"]
    True
    >>>
    >>> # Velocity measurement cannot recover position
    >>> A = np.array([[0, 1], [0, 0]])
    >>> C = np.array([[0, 1]])
    >>> info = analyze_observability(A, C)
    >>> print(info['unobservable_modes'])  # [0.+0.j]
    """
    A_np, C_np = _check_pair(A, C)
    nx = A_np.shape[0]
    ny = C_np.shape[0]

    O = np.zeros((nx * ny, nx))
    O[:ny, :] = C_np

    CA = C_np.copy()
    for i in range(1, nx):
        CA = CA @ A_np
        O[i * ny : (i + 1) * ny, :] = CA

    scale = max(1.0, float(np.max(np.abs(O))))
    rank = np.linalg.matrix_rank(O, tol=tolerance * scale)
    is_observable = rank == nx

    unobservable_modes = None
    if not is_observable:
        unobservable_modes = _pbh_unobservable(A_np, C_np, np.linalg.eigvals(A_np))

    result: ObservabilityInfo = {
        "observability_matrix": O,
        "rank": int(rank),
        "is_observable": bool(is_observable),
        "unobservable_modes": unobservable_modes,
    }

    return result


def is_detectable(
    A_d: StateMatrix,
    C: OutputMatrix,
    tolerance: float = 1e-10,
) -> bool:
    """
    Test detectability of a discrete pair (A_d, C).

    Every mode that does not decay (|λ| >= 1) must be observable:
        rank([λI - A_d; C]) = n  for all λ with |λ| >= 1 - tolerance

    Detectability is the condition for the DARE to have a stabilizing
    solution, so a steady-state Kalman filter exists.

    Examples
    --------
    >>> # Unmeasured decaying mode is fine
    >>> is_detectable(np.diag([1.0, 0.5]), np.array([[1.0, 0.0]]))
    True
    >>> # Unmeasured growing mode is not
    >>> is_detectable(np.diag([0.5, 1.2]), np.array([[1.0, 0.0]]))
    False
    """
    A_np, C_np = _check_pair(A_d, C)

    eigenvalues = np.linalg.eigvals(A_np)
    persistent = eigenvalues[np.abs(eigenvalues) >= 1.0 - tolerance]
    if persistent.size == 0:
        return True
    return _pbh_unobservable(A_np, C_np, persistent).size == 0


__all__ = [
    "design_kalman_filter",
    "analyze_stability",
    "analyze_observability",
    "is_detectable",
]
