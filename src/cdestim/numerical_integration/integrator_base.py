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
Integrator Base - Abstract Interface for Fixed-Step Integration

Defines the interface shared by the fixed-step integrators in this package.
Integrators wrap a plain right-hand side callable rather than a system
object, so they can propagate vectors as well as matrices (the state only
needs to support addition and scalar multiplication).

Result Types
------------
integrate() returns the IntegrationResult TypedDict from
cdestim.types.trajectories.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional, Union

import numpy as np

from cdestim.types.core import (
    ControlledDynamicsFunction,
    ControlVector,
    DynamicsFunction,
    ScalarLike,
    StateVector,
    TimeVaryingDynamicsFunction,
)
from cdestim.types.trajectories import IntegrationResult, TimePoints, TimeSpan


class IntegratorBase(ABC):
    """
    Abstract base class for fixed-step integrators.

    All integrators must implement:
    - step(): Single integration step
    - integrate(): Multi-step integration over an interval
    - name: Integrator name for display

    Parameters
    ----------
    dynamics : Callable
        Right-hand side. Signature f(x) or f(x, u) when time_varying is
        False, f(t, x) when time_varying is True.
    dt : float
        Default step size (must be positive)
    time_varying : bool
        Whether dynamics takes time as its first argument

    Raises
    ------
    ValueError
        If dt is not a positive finite number

    Notes
    -----
    Integrators keep no statistics between calls. Each integrate() call
    reports its own function evaluation count.
    """

    def __init__(
        self,
        dynamics: Union[DynamicsFunction, ControlledDynamicsFunction, TimeVaryingDynamicsFunction],
        dt: ScalarLike,
        time_varying: bool = False,
    ):
        if dt is None:
            raise ValueError("Time step dt is required for fixed-step integration")
        dt = float(dt)
        if not np.isfinite(dt) or dt <= 0:
            raise ValueError(f"Time step dt must be positive, got {dt}")

        self.dynamics = dynamics
        self.dt = dt
        self.time_varying = time_varying

    @abstractmethod
    def step(
        self,
        x: StateVector,
        t: ScalarLike = 0.0,
        dt: Optional[ScalarLike] = None,
        u: Optional[ControlVector] = None,
    ) -> StateVector:
        """
        Take one integration step: x(t) → x(t + dt).

        Parameters
        ----------
        x : StateVector
            Current state (vector or matrix)
        t : float
            Current time (used only by time-varying dynamics)
        dt : Optional[float]
            Step size (uses self.dt if None)
        u : Optional[ControlVector]
            Input held constant over the step (time-invariant dynamics only)

        Returns
        -------
        StateVector
            State after the step, same shape as x
        """
        pass

    @abstractmethod
    def integrate(
        self,
        x0: StateVector,
        t_span: TimeSpan,
        t_eval: Optional[TimePoints] = None,
        u_func: Optional[Callable[[ScalarLike, StateVector], Optional[ControlVector]]] = None,
    ) -> IntegrationResult:
        """
        Integrate over a time interval.

        Parameters
        ----------
        x0 : StateVector
            Initial state
        t_span : TimeSpan
            Integration interval (t_start, t_end)
        t_eval : Optional[TimePoints]
            Grid to step across. If None, a uniform grid with spacing
            close to self.dt is used.
        u_func : Optional[Callable]
            Input policy (t, x) → u, evaluated at the start of each step

        Returns
        -------
        IntegrationResult
            Trajectory and diagnostics
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Integrator name for display"""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(dt={self.dt}, time_varying={self.time_varying})"
