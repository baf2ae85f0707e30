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
Analysis and Design Result Types

Result types for the linear analysis and design functions that back the
Kalman filter:
- Stability analysis
- Observability analysis
- Steady-state discrete Kalman gain design

Mathematical Background
----------------------
Steady-state Kalman filter:
    System: x[k+1] = A_d x[k] + B_d u[k] + w[k], w ~ N(0, Q_d)
            y[k] = Cx[k] + Du[k] + v[k],        v ~ N(0, R_d)
    Riccati: P = A_d(P - PC'(CPC' + R_d)⁻¹CP)A_d' + Q_d
    Gain:    K = PC'(CPC' + R_d)⁻¹
    Update:  x̂ ← x̂ + K(y - Cx̂ - Du)

Usage
-----
>>> from cdestim.types.control_classical import KalmanFilterResult
>>>
>>> kalman: KalmanFilterResult = design_kalman_filter(A_d, C, Q_d, R_d)
>>> K = kalman['gain']
"""

from typing import Optional

import numpy as np
from typing_extensions import TypedDict

from .core import CovarianceMatrix, GainMatrix, ObservabilityMatrix

# ============================================================================
# Analysis Types
# ============================================================================


class StabilityInfo(TypedDict):
    """
    Eigenvalue summary of a state matrix.

    A continuous A is stable when every Re(λ) < 0, a sampled A_d when
    every |λ| < 1. Kalman error dynamics A_d(I - KC) use the discrete test.

    Fields
    ------
    eigenvalues : np.ndarray
        Eigenvalues of A (complex)
    magnitudes : np.ndarray
        |λ| for each eigenvalue
    spectral_radius : float
        Maximum |λ|
    is_stable : bool
        Every mode decays
    is_marginally_stable : bool
        Slowest mode sits on the stability boundary (within tolerance)
    is_unstable : bool
        Some mode grows

    Examples
    --------
    >>> # Sampled double integrator: both modes on the unit circle
    >>> info: StabilityInfo = analyze_stability([[1.0, 0.02], [0.0, 1.0]], "discrete")
    >>> info["is_marginally_stable"], info["spectral_radius"]
    (True, 1.0)
    """

    eigenvalues: np.ndarray
    magnitudes: np.ndarray
    spectral_radius: float
    is_stable: bool
    is_marginally_stable: bool
    is_unstable: bool


class ObservabilityInfo(TypedDict):
    """
    Rank test of the pair (A, C).

    A pair (A, C) is observable if the initial state can be determined
    from output measurements over a finite time interval. It is
    detectable if every mode that is not asymptotically stable is
    observable, which is the condition a steady-state Kalman filter needs.

    Fields
    ------
    observability_matrix : ObservabilityMatrix
        Stacked [C; CA; ...; CA^(nx-1)], shape (nx*ny, nx)
    rank : int
        Numerical rank of observability_matrix
    is_observable : bool
        rank == nx
    unobservable_modes : Optional[np.ndarray]
        Eigenvalues that fail the PBH rank test (None if observable)

    Examples
    --------
    >>> # Encoder on the elevator carriage sees position; velocity follows
    >>> info: ObservabilityInfo = analyze_observability(
    ...     [[0.0, 1.0], [0.0, -0.4356]], [[1.0, 0.0]]
    ... )
    >>> info["is_observable"]
    True
    """

    observability_matrix: ObservabilityMatrix
    rank: int
    is_observable: bool
    unobservable_modes: Optional[np.ndarray]


# ============================================================================
# Design Result Types
# ============================================================================


class KalmanFilterResult(TypedDict):
    """
    Steady-state discrete Kalman filter design result.

    Fields
    ------
    gain : GainMatrix
        Kalman gain K of shape (nx, ny), applied to the a-priori estimate
    error_covariance : CovarianceMatrix
        Steady-state a-priori error covariance P (nx, nx), the DARE solution
    innovation_covariance : CovarianceMatrix
        Innovation covariance S = CPC' + R_d (ny, ny)
    estimator_eigenvalues : np.ndarray
        Eigenvalues of A_d(I - KC), the closed-loop error dynamics

    Examples
    --------
    >>> result: KalmanFilterResult = design_kalman_filter(A_d, C, Q_d, R_d)
    >>> K = result['gain']
    >>> print(np.all(np.abs(result['estimator_eigenvalues']) < 1))  # True
    """

    gain: GainMatrix
    error_covariance: CovarianceMatrix
    innovation_covariance: CovarianceMatrix
    estimator_eigenvalues: np.ndarray


__all__ = [
    "StabilityInfo",
    "ObservabilityInfo",
    "KalmanFilterResult",
]
