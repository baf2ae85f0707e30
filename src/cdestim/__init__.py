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
cdestim - Discretization and Linear Kalman Estimation

Converts continuous-time linear plants to their sampled equivalents and
estimates their state from noisy, partial measurements.

Quick Start
-----------
>>> import numpy as np
>>> from cdestim import KalmanFilter, LinearSystem
>>>
>>> plant = LinearSystem(
...     A=[[0.0, 1.0], [0.0, -0.4356]],
...     B=[[0.0], [1.3015]],
...     C=[[1.0, 0.0]],
... )
>>> kf = KalmanFilter(plant, [0.05, 1.0], [0.0001], dt=0.005)
>>> kf.correct([0.0], [0.01])
>>> kf.predict([12.0], 0.005)

Subpackages
-----------
- systems: LinearSystem and validation helpers
- numerical_integration: fixed-step RK4
- discretization: matrix exponential and discretize_* functions
- control: stability, observability, detectability, Kalman design
- estimators: KalmanFilter
- types: array aliases, result TypedDicts, exceptions
"""

from cdestim.control import (
    analyze_observability,
    analyze_stability,
    design_kalman_filter,
    is_detectable,
)
from cdestim.discretization import (
    discretize_a,
    discretize_ab,
    discretize_aq,
    discretize_aq_taylor,
    discretize_r,
    discretize_system,
    integrate_process_noise,
    make_covariance_matrix,
    matrix_exponential,
)
from cdestim.estimators import KalmanFilter
from cdestim.numerical_integration import RK4Integrator, rk4, rk4_time_varying
from cdestim.systems import LinearSystem
from cdestim.types.exceptions import DimensionError, EstimatorError, ModelError, NumericalError

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Systems
    "LinearSystem",
    # Integration
    "rk4",
    "rk4_time_varying",
    "RK4Integrator",
    # Discretization
    "matrix_exponential",
    "make_covariance_matrix",
    "discretize_a",
    "discretize_ab",
    "discretize_aq",
    "discretize_aq_taylor",
    "integrate_process_noise",
    "discretize_r",
    "discretize_system",
    # Analysis and design
    "analyze_stability",
    "analyze_observability",
    "is_detectable",
    "design_kalman_filter",
    # Estimation
    "KalmanFilter",
    # Errors
    "EstimatorError",
    "DimensionError",
    "ModelError",
    "NumericalError",
]
