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
Core Types - Fundamental Building Blocks

Defines the most basic types used throughout the package:
- Semantic vector types (state, control, output)
- Matrix types (dynamics, input, output, covariance, gains)
- System dimensions
- Function signatures for dynamics

All numerical work is done in NumPy (float64). The aliases carry meaning
for readers and type checkers; at runtime they are plain ``np.ndarray``.

Usage
-----
>>> from cdestim.types.core import StateVector, StateMatrix, GainMatrix
>>>
>>> def correct(x: StateVector, K: GainMatrix, innovation) -> StateVector:
...     return x + K @ innovation
"""

from typing import Callable, Optional, Sequence, Tuple, Union

import numpy as np
from typing_extensions import TypedDict

# ============================================================================
# Basic Array Types
# ============================================================================

ArrayLike = Union[np.ndarray, Sequence[float], Sequence[Sequence[float]]]
"""
Anything ``np.asarray`` turns into a float array.

Public functions accept ArrayLike and always return ``np.ndarray``.

Examples
--------
>>> A: ArrayLike = [[0.0, 1.0], [0.0, 0.0]]
>>> A_np = np.asarray(A, dtype=float)
"""

ScalarLike = Union[float, int, np.number]
"""
Scalar value (time steps, tolerances, standard deviations).

Examples
--------
>>> dt: ScalarLike = 0.02
"""


# ============================================================================
# Vector Types - Semantic Naming by Role
# ============================================================================

StateVector = np.ndarray
"""
State vector x ∈ ℝⁿˣ, shape (nx,).

For a Kalman filter this is the estimate x̂.

Examples
--------
>>> xhat: StateVector = np.zeros(2)
"""

ControlVector = np.ndarray
"""
Control input vector u ∈ ℝⁿᵘ, shape (nu,).

Examples
--------
>>> u: ControlVector = np.array([12.0])
"""

OutputVector = np.ndarray
"""
Measurement vector y ∈ ℝⁿʸ, shape (ny,).

Examples
--------
>>> y: OutputVector = np.array([0.51])
"""


# ============================================================================
# Matrix Types
# ============================================================================

StateMatrix = np.ndarray
"""
State matrix A (nx, nx).

Continuous: dx/dt = Ax + Bu
Discrete:   x[k+1] = A_d x[k] + B_d u[k]
"""

InputMatrix = np.ndarray
"""
Input matrix B (nx, nu).
"""

OutputMatrix = np.ndarray
"""
Output matrix C (ny, nx).

Maps state to measurement: y = Cx + Du
"""

FeedthroughMatrix = np.ndarray
"""
Direct feedthrough matrix D (ny, nu).
"""

CovarianceMatrix = np.ndarray
"""
Symmetric positive semi-definite covariance matrix.

Process noise Q (nx, nx), measurement noise R (ny, ny),
error covariance P (nx, nx), innovation covariance S (ny, ny).

Properties
----------
- Symmetric: Σ = Σᵀ
- Positive semi-definite: all eigenvalues >= 0
"""

GainMatrix = np.ndarray
"""
Estimator gain K (nx, ny).

Kalman correction: x̂ ← x̂ + K(y - Cx̂ - Du)
"""

ObservabilityMatrix = np.ndarray
"""
Observability matrix O = [C; CA; CA²; ...; CA^(n-1)] of shape (nx*ny, nx).
"""


# ============================================================================
# System Dimensions
# ============================================================================


class SystemDimensions(TypedDict):
    """
    Dimensions of a linear state-space system.

    Fields
    ------
    nx : int
        Number of states
    nu : int
        Number of control inputs
    ny : int
        Number of outputs (measurements)

    Examples
    --------
    >>> dims: SystemDimensions = {"nx": 2, "nu": 1, "ny": 1}
    """

    nx: int
    nu: int
    ny: int


DimensionTuple = Tuple[int, int, int]
"""
Compact (nx, nu, ny) tuple.
"""


# ============================================================================
# Function Signatures
# ============================================================================

DynamicsFunction = Callable[[np.ndarray], np.ndarray]
"""
Time-invariant right-hand side f(x) -> dx/dt.

The state can be a vector or a matrix, as long as it supports
addition and scalar multiplication.
"""

ControlledDynamicsFunction = Callable[[np.ndarray, Optional[np.ndarray]], np.ndarray]
"""
Right-hand side with held input f(x, u) -> dx/dt.
"""

TimeVaryingDynamicsFunction = Callable[[float, np.ndarray], np.ndarray]
"""
Explicitly time-varying right-hand side f(t, x) -> dx/dt.

Examples
--------
>>> # Integrand of the discrete process noise covariance
>>> f = lambda t, X: expm(A * t) @ Q @ expm(A.T * t)
"""


__all__ = [
    "ArrayLike",
    "ScalarLike",
    "StateVector",
    "ControlVector",
    "OutputVector",
    "StateMatrix",
    "InputMatrix",
    "OutputMatrix",
    "FeedthroughMatrix",
    "CovarianceMatrix",
    "GainMatrix",
    "ObservabilityMatrix",
    "SystemDimensions",
    "DimensionTuple",
    "DynamicsFunction",
    "ControlledDynamicsFunction",
    "TimeVaryingDynamicsFunction",
]
