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
Fixed-Step Integrators

Classic 4th-order Runge-Kutta, as stateless functions and as an
integrator object.

Algorithm:
    k1 = f(x_k)
    k2 = f(x_k + 0.5*dt*k1)
    k3 = f(x_k + 0.5*dt*k2)
    k4 = f(x_k + dt*k3)
    x_{k+1} = x_k + (dt/6) * (k1 + 2*k2 + 2*k3 + k4)

Characteristics:
- Order: 4 (error ∝ dt⁴)
- Function evaluations: 4 per step
- No error estimate, no step-size control

The state may be a vector or a matrix. The discretization tests use the
time-varying form to integrate the matrix-valued integrand
e^(At) Q e^(A't) as an independent check on the closed-form Q_d.
"""

import time
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

from .integrator_base import IntegratorBase

# ============================================================================
# Stateless Steps
# ============================================================================


def rk4(
    f: Union[DynamicsFunction, ControlledDynamicsFunction],
    x: StateVector,
    dt: ScalarLike,
    u: Optional[ControlVector] = None,
) -> StateVector:
    """
    One RK4 step of dx/dt = f(x), or dx/dt = f(x, u) with u held constant.

    Parameters
    ----------
    f : Callable
        Right-hand side f(x) (u is None) or f(x, u)
    x : StateVector
        Current state
    dt : float
        Step size
    u : Optional[ControlVector]
        Input held constant over the step

    Returns
    -------
    StateVector
        x(t + dt)

    Examples
    --------
    >>> # dx/dt = -x, one step from x = 1
    >>> rk4(lambda x: -x, np.array([1.0]), 0.1)
    array([0.9048375])
    """
    if u is None:
        k1 = f(x)
        k2 = f(x + 0.5 * dt * k1)
        k3 = f(x + 0.5 * dt * k2)
        k4 = f(x + dt * k3)
    else:
        k1 = f(x, u)
        k2 = f(x + 0.5 * dt * k1, u)
        k3 = f(x + 0.5 * dt * k2, u)
        k4 = f(x + dt * k3, u)

    return x + (dt / 6.0) * (k1 + 2 * k2 + 2 * k3 + k4)


def rk4_time_varying(
    f: TimeVaryingDynamicsFunction,
    t: ScalarLike,
    x: StateVector,
    dt: ScalarLike,
) -> StateVector:
    """
    One RK4 step of dx/dt = f(t, x).

    Stage times are t, t + dt/2, t + dt/2 and t + dt.

    Examples
    --------
    >>> # ∫₀¹ t² dt = 1/3 (exact: RK4 reduces to Simpson's rule)
    >>> rk4_time_varying(lambda t, x: t**2, 0.0, 0.0, 1.0)
    0.3333333333333333
    """
    half = 0.5 * dt
    k1 = f(t, x)
    k2 = f(t + half, x + half * k1)
    k3 = f(t + half, x + half * k2)
    k4 = f(t + dt, x + dt * k3)

    return x + (dt / 6.0) * (k1 + 2 * k2 + 2 * k3 + k4)


# ============================================================================
# Integrator Object
# ============================================================================


class RK4Integrator(IntegratorBase):
    """
    Classic 4th-order Runge-Kutta integrator.

    Best for:
    - Smooth, non-stiff dynamics over short horizons
    - Reference solutions in tests

    Not recommended for:
    - Stiff systems (no step-size control)

    Examples
    --------
    >>> # Controlled linear plant
    >>> integrator = RK4Integrator(plant.dynamics, dt=0.01)
    >>> x_next = integrator.step(np.array([1.0, 0.0]), u=np.array([0.5]))
    >>>
    >>> # Time-varying right-hand side with a matrix state
    >>> integrator = RK4Integrator(lambda t, P: A @ P + P @ A.T, dt=0.01, time_varying=True)
    >>> result = integrator.integrate(np.eye(2), t_span=(0.0, 1.0))
    >>> print(f"RK4: {result['nfev']} evaluations for {result['nsteps']} steps")
    """

    def step(
        self,
        x: StateVector,
        t: ScalarLike = 0.0,
        dt: Optional[ScalarLike] = None,
        u: Optional[ControlVector] = None,
    ) -> StateVector:
        """
        Take one RK4 step using four function evaluations.

        Notes
        -----
        Assumes u is constant over the step. For time-varying dynamics u
        must be None; fold the input into f(t, x) instead.
        """
        dt = self.dt if dt is None else float(dt)

        if self.time_varying:
            if u is not None:
                raise ValueError("Time-varying dynamics take no separate input u")
            return rk4_time_varying(self.dynamics, t, x, dt)
        return rk4(self.dynamics, x, dt, u)

    def integrate(
        self,
        x0: StateVector,
        t_span: TimeSpan,
        t_eval: Optional[TimePoints] = None,
        u_func: Optional[Callable[[ScalarLike, StateVector], Optional[ControlVector]]] = None,
    ) -> IntegrationResult:
        """
        Integrate using fixed RK4 steps.

        Examples
        --------
        >>> result = integrator.integrate(
        ...     x0=np.array([1.0, 0.0]),
        ...     t_span=(0.0, 10.0),
        ...     u_func=lambda t, x: np.array([0.5]),
        ... )
        >>> print(f"Final: {result['x'][-1]}")
        """
        start_time = time.time()

        t0, tf = float(t_span[0]), float(t_span[1])
        if tf < t0:
            raise ValueError(f"t_span must be increasing, got {t_span}")

        if t_eval is None:
            # Round first so an exact multiple of dt does not gain a sliver step
            num_steps = int(np.ceil(np.round((tf - t0) / self.dt, 9)))
            t_points = np.linspace(t0, tf, num_steps + 1)
        else:
            t_points = np.asarray(t_eval, dtype=float)
            if t_points.ndim != 1 or np.any(np.diff(t_points) < 0):
                raise ValueError("t_eval must be a 1-D non-decreasing array")

        nfev = 0
        dynamics = self.dynamics

        def counted(*args):
            nonlocal nfev
            nfev += 1
            return dynamics(*args)

        trajectory = [x0]
        x = x0

        for i in range(len(t_points) - 1):
            t = float(t_points[i])
            dt_step = float(t_points[i + 1] - t_points[i])

            if self.time_varying:
                x = rk4_time_varying(counted, t, x, dt_step)
            else:
                u = u_func(t, x) if u_func is not None else None
                x = rk4(counted, x, dt_step, u)
            trajectory.append(x)

        x_traj = np.stack([np.asarray(xi, dtype=float) for xi in trajectory])
        elapsed = time.time() - start_time

        result: IntegrationResult = {
            "t": t_points,
            "x": x_traj,
            "success": bool(np.all(np.isfinite(x_traj))),
            "message": "RK4 integration completed",
            "nfev": nfev,
            "nsteps": len(t_points) - 1,
            "integration_time": elapsed,
            "solver": self.name,
        }
        if not result["success"]:
            result["message"] = "RK4 integration produced non-finite states"

        return result

    @property
    def name(self) -> str:
        return "RK4 (Classic)"


__all__ = [
    "rk4",
    "rk4_time_varying",
    "RK4Integrator",
]
