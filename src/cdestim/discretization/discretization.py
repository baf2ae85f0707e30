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
Discretization - Continuous to Discrete Linear Systems

Pure functions converting continuous-time state-space matrices and noise
intensities to their sampled equivalents.

Mathematical Form
-----------------
Continuous: dx/dt = Ax + Bu + w,  E[w w'] = Q δ
Discrete:   x[k+1] = A_d x[k] + B_d u[k] + w[k],  w[k] ~ N(0, Q_d)

    A_d = e^(A dt)
    B_d = ∫₀^dt e^(Aτ) dτ B
    Q_d = ∫₀^dt e^(Aτ) Q e^(A'τ) dτ
    R_d = R / dt

A_d, B_d and Q_d are all blocks of one augmented matrix exponential, so
every function here goes through matrix_exponential().

Methods for Q_d
---------------
- discretize_aq: Van Loan's method, exact
- discretize_aq_taylor: truncated series, no augmented exponential,
  accurate while dt·‖A‖ is small
- integrate_process_noise: RK4 quadrature of the integral, for
  cross-checking the closed forms

Examples
--------
>>> A = np.array([[0.0, 1.0], [0.0, 0.0]])
>>> A_d, Q_d = discretize_aq(A, np.eye(2), dt=1.0)
>>> Q_d
array([[1.33333333, 0.5       ],
       [0.5       , 1.        ]])
"""

import logging
import warnings
from typing import Optional, Tuple

import numpy as np

from cdestim.numerical_integration.fixed_step_integrators import RK4Integrator
from cdestim.systems.utils.linear_system_validator import (
    as_matrix,
    validate_covariance,
    validate_time_step,
)
from cdestim.types.core import (
    ArrayLike,
    CovarianceMatrix,
    InputMatrix,
    ScalarLike,
    StateMatrix,
)
from cdestim.types.estimation import DiscretizationMethod, DiscretizationResult
from cdestim.types.exceptions import DimensionError
from cdestim.types.protocols import LinearSystemProtocol

from .matrix_exponential import matrix_exponential

_LOG: logging.Logger = logging.getLogger(__name__)

DEFAULT_TAYLOR_ORDER = 5
"""Number of series terms kept by discretize_aq_taylor."""

DISCRETIZATION_METHODS = ("van_loan", "taylor")


# ============================================================================
# Helpers
# ============================================================================


def _as_state_matrix(A: ArrayLike) -> StateMatrix:
    A_np = as_matrix(A, "A")
    if A_np.shape[0] != A_np.shape[1]:
        raise DimensionError(f"A must be square, got shape {A_np.shape}")
    return A_np


def _symmetrize(M: np.ndarray) -> np.ndarray:
    return (M + M.T) / 2.0


def make_covariance_matrix(std_devs: ArrayLike) -> CovarianceMatrix:
    """
    Build a diagonal covariance from standard deviations.

    Parameters
    ----------
    std_devs : ArrayLike
        Standard deviation of each independent noise channel (n,)

    Returns
    -------
    CovarianceMatrix
        diag(σ²) of shape (n, n)

    Raises
    ------
    ValueError
        If std_devs is not a non-empty 1-D vector of finite values

    Examples
    --------
    >>> make_covariance_matrix([0.1, 2.0])
    array([[0.01, 0.  ],
           [0.  , 4.  ]])
    """
    sigma = np.array(std_devs, dtype=float)
    if sigma.ndim == 0:
        sigma = sigma.reshape(1)
    if sigma.ndim != 1 or sigma.size == 0:
        raise ValueError(f"Standard deviations must be a non-empty vector, got shape {sigma.shape}")
    if not np.all(np.isfinite(sigma)):
        raise ValueError("Standard deviations must be finite")
    return np.diag(sigma**2)


# ============================================================================
# State and Input Matrices
# ============================================================================


def discretize_a(A: ArrayLike, dt: ScalarLike) -> StateMatrix:
    """
    Discretize the state matrix: A_d = e^(A dt).

    Parameters
    ----------
    A : ArrayLike
        Continuous state matrix (nx, nx)
    dt : float
        Sample period in seconds (>= 0). dt = 0 returns the identity.

    Returns
    -------
    StateMatrix
        A_d (nx, nx)

    Raises
    ------
    DimensionError
        If A is not square
    ValueError
        If dt is negative or not finite
    NumericalError
        If the exponential overflows

    Examples
    --------
    >>> discretize_a([[0.0, 1.0], [0.0, 0.0]], 0.1)
    array([[1. , 0.1],
           [0. , 1. ]])
    """
    A_np = _as_state_matrix(A)
    dt = validate_time_step(dt)
    return matrix_exponential(A_np * dt)


def discretize_ab(
    A: ArrayLike,
    B: ArrayLike,
    dt: ScalarLike,
) -> Tuple[StateMatrix, InputMatrix]:
    """
    Discretize the state and input matrices together.

    Exponentiates the augmented matrix

        M = [[A, B],
             [0, 0]] · dt

    whose blocks are e^M = [[A_d, B_d], [0, I]]. Exact for any B (zero-order
    hold on u).

    Parameters
    ----------
    A : ArrayLike
        Continuous state matrix (nx, nx)
    B : ArrayLike
        Continuous input matrix (nx, nu)
    dt : float
        Sample period in seconds (>= 0)

    Returns
    -------
    A_d : StateMatrix
        (nx, nx)
    B_d : InputMatrix
        (nx, nu)

    Examples
    --------
    >>> A_d, B_d = discretize_ab([[0.0, 1.0], [0.0, 0.0]], [[0.0], [1.0]], 0.1)
    >>> B_d
    array([[0.005],
           [0.1  ]])
    """
    A_np = _as_state_matrix(A)
    nx = A_np.shape[0]
    B_np = as_matrix(B, "B")
    if B_np.shape[0] != nx:
        raise DimensionError(f"B must have {nx} rows to match A, got {B_np.shape[0]}")
    nu = B_np.shape[1]
    dt = validate_time_step(dt)

    M = np.zeros((nx + nu, nx + nu))
    M[:nx, :nx] = A_np
    M[:nx, nx:] = B_np

    phi = matrix_exponential(M * dt)
    return phi[:nx, :nx], phi[:nx, nx:]


# ============================================================================
# Process Noise
# ============================================================================


def discretize_aq(
    A: ArrayLike,
    Q: ArrayLike,
    dt: ScalarLike,
) -> Tuple[StateMatrix, CovarianceMatrix]:
    """
    Discretize the state matrix and process noise with Van Loan's method.

    Exponentiates the augmented matrix

        M = [[-A, Q ],
             [ 0, A']] · dt

    and reads A_d = Φ₂₂' and Q_d = Φ₂₂' Φ₁₂ from its blocks. This is the
    closed form of ∫₀^dt e^(Aτ) Q e^(A'τ) dτ.

    Parameters
    ----------
    A : ArrayLike
        Continuous state matrix (nx, nx)
    Q : ArrayLike
        Continuous process noise intensity (nx, nx), symmetric PSD
    dt : float
        Sample period in seconds (>= 0)

    Returns
    -------
    A_d : StateMatrix
        (nx, nx)
    Q_d : CovarianceMatrix
        (nx, nx), symmetric

    Raises
    ------
    DimensionError
        If A is not square or Q does not match it
    ModelError
        If Q is not symmetric PSD
    ValueError
        If dt is negative
    NumericalError
        If the exponential overflows

    Notes
    -----
    The augmented matrix contains both A and -A, so for a stiff plant the
    top-right block grows like e^(‖A‖ dt) before the product brings it
    back down. Keep dt·‖A‖ moderate.
    """
    A_np = _as_state_matrix(A)
    nx = A_np.shape[0]
    Q_sym = validate_covariance(Q, "Q", nx)
    dt = validate_time_step(dt)

    M = np.zeros((2 * nx, 2 * nx))
    M[:nx, :nx] = -A_np
    M[:nx, nx:] = Q_sym
    M[nx:, nx:] = A_np.T

    phi = matrix_exponential(M * dt)
    phi12 = phi[:nx, nx:]
    phi22 = phi[nx:, nx:]

    A_d = phi22.T
    Q_d = _symmetrize(A_d @ phi12)
    return A_d, Q_d


def discretize_aq_taylor(
    A: ArrayLike,
    Q: ArrayLike,
    dt: ScalarLike,
    order: int = DEFAULT_TAYLOR_ORDER,
) -> Tuple[StateMatrix, CovarianceMatrix]:
    """
    Discretize the state matrix and process noise with a truncated series.

    Expands the top-right block of Van Loan's augmented exponential as

        Φ₁₂ = Σᵢ Tᵢ dtⁱ / i!,   T₁ = Q,   Tᵢ = -A Tᵢ₋₁ + Q (A')ⁱ⁻¹

    for i = 1..order, then Q_d = A_d Φ₁₂ with A_d = e^(A dt). Avoids the
    2nx × 2nx exponential.

    Parameters
    ----------
    A : ArrayLike
        Continuous state matrix (nx, nx)
    Q : ArrayLike
        Continuous process noise intensity (nx, nx), symmetric PSD
    dt : float
        Sample period in seconds (>= 0)
    order : int
        Number of series terms (>= 1). Default: 5

    Returns
    -------
    A_d : StateMatrix
        (nx, nx)
    Q_d : CovarianceMatrix
        (nx, nx), symmetric

    Warns
    -----
    RuntimeWarning
        If dt·‖A‖₂ > 1, where the truncated series loses accuracy

    Examples
    --------
    >>> # Double integrator: A is nilpotent, so the series is exact
    >>> A_d, Q_d = discretize_aq_taylor([[0.0, 1.0], [0.0, 0.0]], np.eye(2), 1.0)
    >>> Q_d
    array([[1.33333333, 0.5       ],
           [0.5       , 1.        ]])
    """
    if int(order) != order or order < 1:
        raise ValueError(f"Series order must be a positive integer, got {order}")
    order = int(order)

    A_np = _as_state_matrix(A)
    nx = A_np.shape[0]
    Q_sym = validate_covariance(Q, "Q", nx)
    dt = validate_time_step(dt)

    stiffness = dt * float(np.linalg.norm(A_np, 2))
    if stiffness > 1.0:
        warnings.warn(
            f"dt·‖A‖ = {stiffness:.3g} > 1: truncated series for Q_d may be "
            f"inaccurate. Use discretize_aq() or a smaller time step.",
            RuntimeWarning,
            stacklevel=2,
        )

    A_T = A_np.T
    last_term = Q_sym.copy()
    coeff = dt
    A_T_pow = A_T.copy()
    phi12 = last_term * coeff

    for i in range(2, order + 1):
        last_term = -A_np @ last_term + Q_sym @ A_T_pow
        coeff *= dt / i
        phi12 = phi12 + last_term * coeff
        A_T_pow = A_T_pow @ A_T

    A_d = discretize_a(A_np, dt)
    Q_d = _symmetrize(A_d @ phi12)
    return A_d, Q_d


def integrate_process_noise(
    A: ArrayLike,
    Q: ArrayLike,
    dt: ScalarLike,
    num_steps: int = 1,
) -> CovarianceMatrix:
    """
    Integrate Q_d = ∫₀^dt e^(Aτ) Q e^(A'τ) dτ with fixed-step RK4.

    Treats the integral as the matrix ODE dX/dτ = e^(Aτ) Q e^(A'τ),
    X(0) = 0, and integrates it over [0, dt]. With one step RK4 reduces to
    Simpson's rule. Independent of the closed forms, so it serves as a
    reference for them.

    Parameters
    ----------
    A : ArrayLike
        Continuous state matrix (nx, nx)
    Q : ArrayLike
        Continuous process noise intensity (nx, nx), symmetric PSD
    dt : float
        Sample period in seconds (>= 0)
    num_steps : int
        Number of RK4 steps across [0, dt]

    Returns
    -------
    CovarianceMatrix
        Q_d (nx, nx), symmetric
    """
    if int(num_steps) != num_steps or num_steps < 1:
        raise ValueError(f"num_steps must be a positive integer, got {num_steps}")

    A_np = _as_state_matrix(A)
    nx = A_np.shape[0]
    Q_sym = validate_covariance(Q, "Q", nx)
    dt = validate_time_step(dt)

    if dt == 0.0:
        return np.zeros((nx, nx))

    def integrand(t: float, X: np.ndarray) -> np.ndarray:
        phi = matrix_exponential(A_np * t)
        return phi @ Q_sym @ phi.T

    integrator = RK4Integrator(integrand, dt / num_steps, time_varying=True)
    result = integrator.integrate(
        np.zeros((nx, nx)),
        t_span=(0.0, dt),
        t_eval=np.linspace(0.0, dt, int(num_steps) + 1),
    )
    return _symmetrize(result["x"][-1])


# ============================================================================
# Measurement Noise
# ============================================================================


def discretize_r(R: ArrayLike, dt: ScalarLike) -> CovarianceMatrix:
    """
    Discretize measurement noise: R_d = R / dt.

    Parameters
    ----------
    R : ArrayLike
        Continuous measurement noise intensity (ny, ny), symmetric PSD
    dt : float
        Sample period in seconds (> 0)

    Returns
    -------
    CovarianceMatrix
        R_d (ny, ny)

    Raises
    ------
    ValueError
        If dt <= 0

    Examples
    --------
    >>> discretize_r(np.diag([2.0, 1.0]), 0.5)
    array([[4., 0.],
           [0., 2.]])
    """
    R_np = as_matrix(R, "R")
    R_sym = validate_covariance(R_np, "R", R_np.shape[0])
    dt = validate_time_step(dt, allow_zero=False)
    return R_sym / dt


# ============================================================================
# Whole System
# ============================================================================


def discretize_system(
    system: LinearSystemProtocol,
    Q: ArrayLike,
    R: ArrayLike,
    dt: ScalarLike,
    method: DiscretizationMethod = "van_loan",
    order: Optional[int] = None,
) -> DiscretizationResult:
    """
    Discretize a continuous plant and its noise model at one sample period.

    Parameters
    ----------
    system : LinearSystemProtocol
        Continuous plant (A, B, C, D)
    Q : ArrayLike
        Continuous process noise intensity (nx, nx)
    R : ArrayLike
        Continuous measurement noise intensity (ny, ny)
    dt : float
        Sample period in seconds (> 0)
    method : str
        'van_loan' (exact) or 'taylor' for Q_d
    order : Optional[int]
        Series order for 'taylor' (default: DEFAULT_TAYLOR_ORDER)

    Returns
    -------
    DiscretizationResult
        A_d, B_d, Q_d, R_d with the period and method used

    Raises
    ------
    ValueError
        If method is unknown or dt <= 0

    Examples
    --------
    >>> disc = discretize_system(plant, Q, R, dt=0.02, method="taylor")
    >>> x_next = disc["A_d"] @ x + disc["B_d"] @ u
    """
    if method not in DISCRETIZATION_METHODS:
        raise ValueError(f"Unknown method '{method}'. Choose from: {list(DISCRETIZATION_METHODS)}")
    dt = validate_time_step(dt, allow_zero=False)

    A = as_matrix(system.A, "A")
    C = as_matrix(system.C, "C")

    if method == "taylor":
        A_d, Q_d = discretize_aq_taylor(
            A, Q, dt, order=DEFAULT_TAYLOR_ORDER if order is None else order
        )
    else:
        A_d, Q_d = discretize_aq(A, Q, dt)
    _, B_d = discretize_ab(A, system.B, dt)
    R_d = discretize_r(as_matrix(R, "R", shape=(C.shape[0], C.shape[0])), dt)

    _LOG.debug("Discretized %d-state plant at dt=%g with method=%s", A.shape[0], dt, method)

    return {
        "A_d": A_d,
        "B_d": B_d,
        "Q_d": Q_d,
        "R_d": R_d,
        "dt": dt,
        "method": method,
    }


__all__ = [
    "DEFAULT_TAYLOR_ORDER",
    "DISCRETIZATION_METHODS",
    "make_covariance_matrix",
    "discretize_a",
    "discretize_ab",
    "discretize_aq",
    "discretize_aq_taylor",
    "integrate_process_noise",
    "discretize_r",
    "discretize_system",
]
