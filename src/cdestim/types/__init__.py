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
Types Module - Type Definitions for cdestim

Central import point for all type definitions. Organized into
domain-specific modules but re-exported here for convenience.

Module Organization
------------------
- core: Arrays, vectors, matrices, dimensions, function signatures
- trajectories: Time grids and integration results
- control_classical: Stability, observability, Kalman design results
- estimation: Discretization results and filter modes
- protocols: Structural interface of the plant model
- exceptions: DimensionError, ModelError, NumericalError
"""

from .control_classical import KalmanFilterResult, ObservabilityInfo, StabilityInfo
from .core import (
    ArrayLike,
    ControlledDynamicsFunction,
    ControlVector,
    CovarianceMatrix,
    DimensionTuple,
    DynamicsFunction,
    FeedthroughMatrix,
    GainMatrix,
    InputMatrix,
    ObservabilityMatrix,
    OutputMatrix,
    OutputVector,
    ScalarLike,
    StateMatrix,
    StateVector,
    SystemDimensions,
    TimeVaryingDynamicsFunction,
)
from .estimation import DiscretizationMethod, DiscretizationResult, FilterMode
from .exceptions import DimensionError, EstimatorError, ModelError, NumericalError
from .protocols import LinearSystemProtocol
from .trajectories import IntegrationResult, TimePoints, TimeSpan

__all__ = [
    # Core
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
    # Trajectories
    "TimePoints",
    "TimeSpan",
    "IntegrationResult",
    # Results
    "StabilityInfo",
    "ObservabilityInfo",
    "KalmanFilterResult",
    "DiscretizationResult",
    "DiscretizationMethod",
    "FilterMode",
    # Protocols
    "LinearSystemProtocol",
    # Exceptions
    "EstimatorError",
    "DimensionError",
    "ModelError",
    "NumericalError",
]
