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
Kalman Filter - Linear State Estimation for Sampled Plants

Discrete-time Kalman filter built from a continuous-time linear plant and
its noise model.

    x[k+1] = A_d x[k] + B_d u[k] + w[k],  w[k] ~ N(0, Q_d)
    y[k]   = Cx[k] + Du[k] + v[k],        v[k] ~ N(0, R_d)

Predict (time update):
    x̂ ← A_d x̂ + B_d u
    P ← A_d P A_d' + Q_d

Correct (measurement update):
    e = y - (Cx̂ + Du)
    S = CPC' + R_d
    K = PC'S⁻¹
    x̂ ← x̂ + Ke
    P ← (I - KC)P(I - KC)' + K R_d K'

Modes
-----
- 'steady_state': K is solved once from the discrete Riccati equation at
  construction and held constant. P is still propagated.
- 'time_varying': K is recomputed from the propagated P at every
  correction.

The filter is not thread safe. Serialize calls on one instance.

Examples
--------
>>> plant = LinearSystem(
...     A=[[0.0, 1.0], [0.0, 0.0]],
...     B=[[0.0], [1.0]],
...     C=[[1.0, 0.0]],
... )
>>> kf = KalmanFilter(plant, state_std_devs=[0.1, 0.1], measurement_std_devs=[0.01], dt=0.02)
>>>
>>> for k in range(num_steps):
...     kf.correct(u, y[k])
...     kf.predict(u, 0.02)
...     x_estimate = kf.xhat
"""

import logging
import operator
from typing import Optional, Tuple

import numpy as np
from scipy import linalg

from cdestim.control.classical_control_functions import design_kalman_filter, is_detectable
from cdestim.discretization.discretization import (
    discretize_ab,
    discretize_aq,
    discretize_aq_taylor,
    discretize_r,
    make_covariance_matrix,
)
from cdestim.systems.utils.linear_system_validator import (
    LinearSystemValidator,
    as_matrix,
    as_vector,
    validate_covariance,
    validate_time_step,
)
from cdestim.types.core import (
    ArrayLike,
    ControlVector,
    CovarianceMatrix,
    GainMatrix,
    InputMatrix,
    OutputVector,
    ScalarLike,
    StateMatrix,
    StateVector,
)
from cdestim.types.estimation import DiscretizationResult, FilterMode
from cdestim.types.exceptions import ModelError, NumericalError
from cdestim.types.protocols import LinearSystemProtocol

_LOG: logging.Logger = logging.getLogger(__name__)

DT_RELATIVE_TOLERANCE = 1e-9
"""predict() re-discretizes when |dt - period| exceeds this fraction of the period."""

FILTER_MODES = ("steady_state", "time_varying")


def _finite_vector(v: ArrayLike, name: str, length: int) -> np.ndarray:
    v_np = as_vector(v, name, length)
    if not np.all(np.isfinite(v_np)):
        raise ValueError(f"{name} contains non-finite entries: {v_np}")
    return v_np


class KalmanFilter:
    """
    Linear Kalman filter for a periodically sampled continuous plant.

    Parameters
    ----------
    system : LinearSystemProtocol
        Continuous plant (A, B, C, D). Matrices are copied; the caller's
        object is never modified. D may be None (zeros).
    state_std_devs : ArrayLike
        Standard deviation of each state's process noise (nx,).
        Q = diag(σ²).
    measurement_std_devs : ArrayLike
        Standard deviation of each output's measurement noise (ny,).
        R = diag(σ²).
    dt : float
        Nominal sample period in seconds (> 0)
    mode : str
        'steady_state' (default) or 'time_varying'
    taylor_process_noise : bool
        Discretize Q with the truncated series (default) instead of Van
        Loan's exact method

    Raises
    ------
    DimensionError
        If the plant matrices or std-dev vectors have inconsistent sizes
    ModelError
        If (A_d, C) is not detectable or the Riccati equation fails
    ValueError
        If dt <= 0 or mode is unknown

    Examples
    --------
    >>> kf = KalmanFilter(plant, [0.05, 1.0], [0.0001], dt=0.005)
    >>> kf.predict(np.array([12.0]), 0.005)
    >>> kf.correct(np.array([12.0]), np.array([0.1]))
    >>> position = kf.get_xhat(0)
    """

    def __init__(
        self,
        system: LinearSystemProtocol,
        state_std_devs: ArrayLike,
        measurement_std_devs: ArrayLike,
        dt: ScalarLike,
        mode: FilterMode = "steady_state",
        taylor_process_noise: bool = True,
    ):
        Q = make_covariance_matrix(state_std_devs)
        R = make_covariance_matrix(measurement_std_devs)
        self._setup(
            system,
            Q,
            R,
            dt,
            discrete=False,
            mode=mode,
            taylor_process_noise=taylor_process_noise,
            initial_covariance=None,
        )

    @classmethod
    def from_covariances(
        cls,
        system: LinearSystemProtocol,
        Q: ArrayLike,
        R: ArrayLike,
        dt: ScalarLike,
        discrete: bool = False,
        mode: FilterMode = "steady_state",
        taylor_process_noise: bool = True,
        initial_covariance: Optional[ArrayLike] = None,
    ) -> "KalmanFilter":
        """
        Build a filter from full noise covariance matrices.

        Use for correlated noise that diagonal std-dev vectors cannot express.

        Parameters
        ----------
        system : LinearSystemProtocol
            Continuous plant (A, B, C, D)
        Q : ArrayLike
            Process noise covariance (nx, nx), symmetric PSD
        R : ArrayLike
            Measurement noise covariance (ny, ny), symmetric PSD
        dt : float
            Nominal sample period in seconds (> 0)
        discrete : bool
            If False (default), Q and R are continuous intensities and are
            discretized exactly like the std-dev constructor does. If True,
            they are already Q_d and R_d at period dt.
        mode : str
            'steady_state' or 'time_varying'
        taylor_process_noise : bool
            Series discretization of Q (ignored when discrete=True)
        initial_covariance : Optional[ArrayLike]
            Initial P (nx, nx). Defaults to the Riccati solution. In
            'time_varying' mode a supplied P skips the Riccati solve, so
            K is None until the first correction.

        Examples
        --------
        >>> Q = np.array([[0.01, 0.002], [0.002, 0.04]])
        >>> kf = KalmanFilter.from_covariances(plant, Q, [[1e-4]], dt=0.005)
        """
        kf = cls.__new__(cls)
        kf._setup(
            system,
            Q,
            R,
            dt,
            discrete=discrete,
            mode=mode,
            taylor_process_noise=taylor_process_noise,
            initial_covariance=initial_covariance,
        )
        return kf

    # ========================================================================
    # Construction
    # ========================================================================

    def _setup(
        self,
        system: LinearSystemProtocol,
        Q: ArrayLike,
        R: ArrayLike,
        dt: ScalarLike,
        discrete: bool,
        mode: str,
        taylor_process_noise: bool,
        initial_covariance: Optional[ArrayLike],
    ):
        if mode not in FILTER_MODES:
            raise ValueError(f"Unknown mode '{mode}'. Choose from: {list(FILTER_MODES)}")

        info = LinearSystemValidator(system).validate(raise_on_error=True).info
        self._nx, self._nu, self._ny = info["nx"], info["nu"], info["ny"]

        self._A = as_matrix(system.A, "A")
        self._B = as_matrix(system.B, "B")
        self._C = as_matrix(system.C, "C")
        D = getattr(system, "D", None)
        self._D = np.zeros((self._ny, self._nu)) if D is None else as_matrix(D, "D")

        self._dt = validate_time_step(dt, allow_zero=False)
        self._mode = mode
        self._discrete = bool(discrete)
        self._method = "taylor" if taylor_process_noise else "van_loan"

        Q_np = validate_covariance(Q, "Q", self._nx)
        R_np = validate_covariance(R, "R", self._ny)

        if self._discrete:
            self._method = "provided"
            self._Q = None
            self._A_d, self._B_d = discretize_ab(self._A, self._B, self._dt)
            self._Q_d = Q_np
            self._R_d = R_np
        else:
            self._Q = Q_np
            self._A_d, self._B_d, self._Q_d = self._discretize(self._dt)
            self._R_d = discretize_r(R_np, self._dt)

        if not is_detectable(self._A_d, self._C):
            raise ModelError(
                "Plant is not detectable: an unstable or marginal mode of A_d "
                "is not observable through C"
            )

        if mode == "time_varying" and initial_covariance is not None:
            P0 = validate_covariance(initial_covariance, "initial_covariance", self._nx)
            K0 = None
        else:
            design = design_kalman_filter(self._A_d, self._C, self._Q_d, self._R_d)
            K0 = design["gain"]
            P0 = design["error_covariance"]
            if initial_covariance is not None:
                P0 = validate_covariance(initial_covariance, "initial_covariance", self._nx)
            _LOG.debug(
                "Steady-state gain from Riccati solve: max |estimator eigenvalue| = %.6f",
                float(np.max(np.abs(design["estimator_eigenvalues"]))),
            )

        self._P0: CovarianceMatrix = P0
        self._K0: Optional[GainMatrix] = K0

        self._xhat: StateVector = np.zeros(self._nx)
        self._P: CovarianceMatrix = P0.copy()
        self._K: Optional[GainMatrix] = None if K0 is None else K0.copy()

    def _discretize(self, dt: float) -> Tuple[StateMatrix, InputMatrix, CovarianceMatrix]:
        """A_d, B_d and Q_d at period dt."""
        if self._Q is None:
            # Only Q_d at the nominal period is known; scale it to first order
            A_d, B_d = discretize_ab(self._A, self._B, dt)
            return A_d, B_d, self._Q_d * (dt / self._dt)

        _, B_d = discretize_ab(self._A, self._B, dt)

        if self._method == "taylor":
            A_d, Q_d = discretize_aq_taylor(self._A, self._Q, dt)
        else:
            A_d, Q_d = discretize_aq(self._A, self._Q, dt)
        return A_d, B_d, Q_d

    # ========================================================================
    # Predict / Correct
    # ========================================================================

    def predict(self, u: ArrayLike, dt: ScalarLike):
        """
        Propagate the estimate and covariance one sample forward.

            x̂ ← A_d x̂ + B_d u
            P ← A_d P A_d' + Q_d

        Parameters
        ----------
        u : ArrayLike
            Control input held over the interval (nu,)
        dt : float
            Time since the last predict, in seconds (>= 0). If it differs
            from the nominal period, the plant is re-discretized at dt for
            this call only.

        Raises
        ------
        DimensionError
            If u has the wrong length
        ValueError
            If dt is negative or u is not finite
        NumericalError
            If the propagated state or covariance is not finite

        Notes
        -----
        The filter does not check how regularly predict is called. A drift
        between the real call period and dt degrades the estimate silently.
        """
        u_np = _finite_vector(u, "u", self._nu)
        dt = validate_time_step(dt)

        if abs(dt - self._dt) > DT_RELATIVE_TOLERANCE * self._dt:
            _LOG.debug("Re-discretizing at dt=%g (nominal %g)", dt, self._dt)
            A_d, B_d, Q_d = self._discretize(dt)
        else:
            A_d, B_d, Q_d = self._A_d, self._B_d, self._Q_d

        xhat = A_d @ self._xhat + B_d @ u_np
        P = A_d @ self._P @ A_d.T + Q_d
        P = (P + P.T) / 2.0

        if not (np.all(np.isfinite(xhat)) and np.all(np.isfinite(P))):
            raise NumericalError("Prediction produced non-finite state or covariance")

        self._xhat = xhat
        self._P = P

    def correct(self, u: ArrayLike, y: ArrayLike):
        """
        Fuse a measurement into the estimate.

            e = y - (Cx̂ + Du)
            S = CPC' + R_d
            K = PC'S⁻¹          (time-varying mode; fixed otherwise)
            x̂ ← x̂ + Ke
            P ← (I - KC)P(I - KC)' + K R_d K'

        Parameters
        ----------
        u : ArrayLike
            Control input applied when y was sampled (nu,)
        y : ArrayLike
            Measurement (ny,)

        Raises
        ------
        DimensionError
            If u or y has the wrong length
        ValueError
            If u or y contains NaN or infinity
        NumericalError
            If S is singular or too ill-conditioned to solve. x̂ and P are
            left unchanged.
        """
        u_np = _finite_vector(u, "u", self._nu)
        y_np = _finite_vector(y, "y", self._ny)

        C = self._C
        innovation = y_np - (C @ self._xhat + self._D @ u_np)
        S = C @ self._P @ C.T + self._R_d

        with np.errstate(divide="ignore", invalid="ignore"):
            well_conditioned = bool(np.all(np.isfinite(S))) and bool(
                np.linalg.cond(S) <= 1.0 / np.finfo(float).eps
            )
        if not well_conditioned:
            raise NumericalError(
                "Innovation covariance S = CPC' + R_d is singular or ill-conditioned"
            )

        if self._mode == "time_varying":
            try:
                K = linalg.solve(S, C @ self._P, assume_a="sym").T
            except (np.linalg.LinAlgError, ValueError) as e:
                raise NumericalError(f"Could not solve for the Kalman gain: {e}") from e
        else:
            K = self._K

        # Joseph form stays PSD for any K, including a fixed gain applied to a
        # caller-supplied P
        I_KC = np.eye(self._nx) - K @ C
        xhat = self._xhat + K @ innovation
        P = I_KC @ self._P @ I_KC.T + K @ self._R_d @ K.T
        P = (P + P.T) / 2.0

        self._xhat = xhat
        self._P = P
        self._K = K

    # ========================================================================
    # State Access
    # ========================================================================

    def _check_index(self, i) -> int:
        i = operator.index(i)
        if not 0 <= i < self._nx:
            raise IndexError(f"State index {i} out of range for {self._nx} states")
        return i

    def get_xhat(self, i: Optional[int] = None):
        """
        Read the state estimate.

        Returns a copy of x̂ when i is None, otherwise the float x̂[i].

        Raises
        ------
        IndexError
            If i is outside [0, nx)
        """
        if i is None:
            return self._xhat.copy()
        return float(self._xhat[self._check_index(i)])

    def set_xhat(self, index_or_xhat, value: Optional[ScalarLike] = None):
        """
        Overwrite the state estimate without touching P.

        Call as set_xhat(xhat) to replace the whole vector or
        set_xhat(i, value) to replace one element.

        Raises
        ------
        IndexError
            If i is outside [0, nx)
        DimensionError
            If the vector has the wrong length
        ValueError
            If a new value is not finite

        Examples
        --------
        >>> kf.set_xhat([0.5, 0.0])
        >>> kf.set_xhat(1, 2.0)
        """
        if value is None:
            self._xhat = _finite_vector(index_or_xhat, "xhat", self._nx)
            return
        i = self._check_index(index_or_xhat)
        value = float(value)
        if not np.isfinite(value):
            raise ValueError(f"State value must be finite, got {value}")
        self._xhat[i] = value

    @property
    def xhat(self) -> StateVector:
        """Copy of the state estimate (nx,)"""
        return self._xhat.copy()

    @property
    def P(self) -> CovarianceMatrix:
        """Copy of the error covariance (nx, nx)"""
        return self._P.copy()

    def set_p(self, P: ArrayLike):
        """Overwrite the error covariance (validated symmetric PSD)."""
        self._P = validate_covariance(P, "P", self._nx)

    @property
    def K(self) -> Optional[GainMatrix]:
        """Current gain (nx, ny), or None before the first time-varying correction"""
        return None if self._K is None else self._K.copy()

    # ========================================================================
    # Model Access
    # ========================================================================

    @property
    def A_d(self) -> StateMatrix:
        return self._A_d.copy()

    @property
    def B_d(self) -> InputMatrix:
        return self._B_d.copy()

    @property
    def Q_d(self) -> CovarianceMatrix:
        return self._Q_d.copy()

    @property
    def R_d(self) -> CovarianceMatrix:
        return self._R_d.copy()

    @property
    def dt(self) -> float:
        """Nominal sample period in seconds"""
        return self._dt

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def nx(self) -> int:
        return self._nx

    @property
    def nu(self) -> int:
        return self._nu

    @property
    def ny(self) -> int:
        return self._ny

    def get_discretization(self) -> DiscretizationResult:
        """Discrete model at the nominal period (copies)."""
        return {
            "A_d": self._A_d.copy(),
            "B_d": self._B_d.copy(),
            "Q_d": self._Q_d.copy(),
            "R_d": self._R_d.copy(),
            "dt": self._dt,
            "method": self._method,
        }

    def output(self, u: ArrayLike) -> OutputVector:
        """Predicted measurement Cx̂ + Du for the current estimate."""
        u_np: ControlVector = as_vector(u, "u", self._nu)
        return self._C @ self._xhat + self._D @ u_np

    # ========================================================================
    # Reset
    # ========================================================================

    def reset(self, P: Optional[ArrayLike] = None):
        """
        Zero the estimate and restore the covariance.

        Parameters
        ----------
        P : Optional[ArrayLike]
            Covariance to restart from. Defaults to the construction-time P.

        Notes
        -----
        The steady-state gain is restored as well, so reset() after any
        sequence of predict/correct returns the filter to its
        construction-time state exactly.
        """
        new_P = self._P0.copy() if P is None else validate_covariance(P, "P", self._nx)

        self._xhat = np.zeros(self._nx)
        self._P = new_P
        self._K = None if self._K0 is None else self._K0.copy()
        _LOG.debug("Kalman filter reset")

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(nx={self._nx}, nu={self._nu}, ny={self._ny}, "
            f"dt={self._dt}, mode='{self._mode}')"
        )


__all__ = [
    "DT_RELATIVE_TOLERANCE",
    "FILTER_MODES",
    "KalmanFilter",
]
