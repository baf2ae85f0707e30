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
Linear State Estimation Types

Types shared by the discretization functions and the Kalman filter.

Mathematical Background
----------------------
Continuous plant with white noise:
    dx/dt = Ax + Bu + w(t),  E[w(t)w(τ)'] = Q δ(t - τ)
    y(t)  = Cx + Du + v(t),  E[v(t)v(τ)'] = R δ(t - τ)

Sampled every dt seconds:
    x[k+1] = A_d x[k] + B_d u[k] + w[k],  w[k] ~ N(0, Q_d)
    y[k]   = Cx[k] + Du[k] + v[k],        v[k] ~ N(0, R_d)

    A_d = e^(A dt)
    B_d = ∫₀^dt e^(Aτ) dτ B
    Q_d = ∫₀^dt e^(Aτ) Q e^(A'τ) dτ
    R_d = R / dt

Usage
-----
>>> from cdestim.types.estimation import DiscretizationResult
>>>
>>> disc: DiscretizationResult = discretize_system(plant, Q, R, dt=0.02)
>>> A_d, Q_d = disc['A_d'], disc['Q_d']
"""

from typing import Literal

from typing_extensions import TypedDict

from .core import CovarianceMatrix, InputMatrix, StateMatrix

DiscretizationMethod = Literal["van_loan", "taylor"]
"""
How the process noise covariance is discretized.

- 'van_loan': exact, one augmented 2nx × 2nx matrix exponential
- 'taylor': truncated power series, cheaper, accurate for small dt·‖A‖
"""

FilterMode = Literal["steady_state", "time_varying"]
"""
Kalman gain policy.

- 'steady_state': K solved once from the discrete algebraic Riccati
  equation at construction and held constant
- 'time_varying': K recomputed from the propagated P at every correction
"""


class DiscretizationResult(TypedDict):
    """
    Discrete-time equivalent of a continuous linear system with noise.

    Fields
    ------
    A_d : StateMatrix
        Discrete state matrix e^(A dt) (nx, nx)
    B_d : InputMatrix
        Discrete input matrix (nx, nu)
    Q_d : CovarianceMatrix
        Discrete process noise covariance (nx, nx)
    R_d : CovarianceMatrix
        Discrete measurement noise covariance (ny, ny)
    dt : float
        Sample period the matrices are valid for (seconds)
    method : str
        Process noise discretization method ('van_loan' or 'taylor')

    Examples
    --------
    >>> disc: DiscretizationResult = discretize_system(plant, Q, R, 0.005)
    >>> x_next = disc['A_d'] @ x + disc['B_d'] @ u
    """

    A_d: StateMatrix
    B_d: InputMatrix
    Q_d: CovarianceMatrix
    R_d: CovarianceMatrix
    dt: float
    method: str


__all__ = [
    "DiscretizationMethod",
    "FilterMode",
    "DiscretizationResult",
]
