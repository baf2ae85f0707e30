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
Trajectory and Integration Types

Time series types and the result of fixed-step integration.

Shape Convention
----------------
Time-major ordering:
- t: (T,)
- x: (T, *state_shape) - states may be vectors or matrices

Usage
-----
>>> from cdestim.types.trajectories import IntegrationResult, TimeSpan
>>>
>>> t_span: TimeSpan = (0.0, 1.0)
>>> result: IntegrationResult = integrator.integrate(x0, t_span)
>>> x_final = result["x"][-1]
"""

from typing import Tuple

import numpy as np
from typing_extensions import TypedDict

TimePoints = np.ndarray
"""
Array of time points (T,), monotonically increasing.

Examples
--------
>>> t: TimePoints = np.linspace(0, 10, 101)
"""

TimeSpan = Tuple[float, float]
"""
Integration interval (t_start, t_end).

Examples
--------
>>> t_span: TimeSpan = (0.0, 10.0)
"""


class IntegrationResult(TypedDict):
    """
    Result from fixed-step integration.

    Attributes
    ----------
    t : TimePoints
        Time points (T,)
    x : np.ndarray
        State trajectory (T, ...) - time-major ordering
    success : bool
        Whether integration succeeded
    message : str
        Status message
    nfev : int
        Number of right-hand side evaluations in this call
    nsteps : int
        Number of integration steps
    integration_time : float
        Wall-clock computation time in seconds
    solver : str
        Name of solver used

    Examples
    --------
    >>> result: IntegrationResult = integrator.integrate(
    ...     x0=np.array([1.0, 0.0]),
    ...     t_span=(0.0, 10.0),
    ... )
    >>> print(f"Steps: {result['nsteps']}, evaluations: {result['nfev']}")
    """

    t: TimePoints
    x: np.ndarray
    success: bool
    message: str
    nfev: int
    nsteps: int
    integration_time: float
    solver: str


__all__ = [
    "TimePoints",
    "TimeSpan",
    "IntegrationResult",
]
