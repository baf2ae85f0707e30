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
Linear System - Continuous-time state-space model

    dx/dt = Ax + Bu
    y     = Cx + Du

A plain container for the four matrices. Shapes are validated once at
construction; the stored matrices are private float copies.

Examples
--------
>>> # Double integrator measuring position
>>> plant = LinearSystem(
...     A=[[0.0, 1.0], [0.0, 0.0]],
...     B=[[0.0], [1.0]],
...     C=[[1.0, 0.0]],
... )
>>> plant.dimensions
{'nx': 2, 'nu': 1, 'ny': 1}
"""

from typing import Optional

import numpy as np

from cdestim.systems.utils.linear_system_validator import LinearSystemValidator
from cdestim.types.core import (
    ArrayLike,
    ControlVector,
    DimensionTuple,
    FeedthroughMatrix,
    InputMatrix,
    OutputMatrix,
    OutputVector,
    StateMatrix,
    StateVector,
    SystemDimensions,
)


class LinearSystem:
    """
    Continuous-time linear time-invariant plant.

    Parameters
    ----------
    A : ArrayLike
        State matrix (nx, nx)
    B : ArrayLike
        Input matrix (nx, nu)
    C : ArrayLike
        Output matrix (ny, nx)
    D : Optional[ArrayLike]
        Feedthrough matrix (ny, nu). Zeros if None.

    Raises
    ------
    DimensionError
        If the matrix shapes are inconsistent

    Notes
    -----
    Satisfies LinearSystemProtocol. Matrices are exposed as read-only
    properties returning the stored arrays; treat them as immutable.
    """

    def __init__(
        self,
        A: ArrayLike,
        B: ArrayLike,
        C: ArrayLike,
        D: Optional[ArrayLike] = None,
    ):
        self._A: StateMatrix = np.array(A, dtype=float)
        self._B: InputMatrix = np.array(B, dtype=float)
        self._C: OutputMatrix = np.array(C, dtype=float)
        self._D: Optional[FeedthroughMatrix] = None if D is None else np.array(D, dtype=float)

        result = LinearSystemValidator(self).validate(raise_on_error=True)
        self._nx = result.info["nx"]
        self._nu = result.info["nu"]
        self._ny = result.info["ny"]

        if self._D is None:
            self._D = np.zeros((self._ny, self._nu))

    # ========================================================================
    # Matrices
    # ========================================================================

    @property
    def A(self) -> StateMatrix:
        return self._A

    @property
    def B(self) -> InputMatrix:
        return self._B

    @property
    def C(self) -> OutputMatrix:
        return self._C

    @property
    def D(self) -> Optional[FeedthroughMatrix]:
        return self._D

    # ========================================================================
    # Dimensions
    # ========================================================================

    @property
    def nx(self) -> int:
        """Number of states"""
        return self._nx

    @property
    def nu(self) -> int:
        """Number of inputs"""
        return self._nu

    @property
    def ny(self) -> int:
        """Number of outputs"""
        return self._ny

    @property
    def dimensions(self) -> SystemDimensions:
        return {"nx": self._nx, "nu": self._nu, "ny": self._ny}

    @property
    def shape(self) -> DimensionTuple:
        return (self._nx, self._nu, self._ny)

    # ========================================================================
    # Evaluation
    # ========================================================================

    def dynamics(self, x: StateVector, u: Optional[ControlVector] = None) -> StateVector:
        """
        Evaluate dx/dt = Ax + Bu.

        The signature matches ControlledDynamicsFunction, so the method can
        be handed to rk4() or RK4Integrator directly. A missing u is zero.
        """
        dx = self._A @ x
        if u is not None:
            dx = dx + self._B @ u
        return dx

    def output(self, x: StateVector, u: Optional[ControlVector] = None) -> OutputVector:
        """Evaluate y = Cx + Du."""
        y = self._C @ x
        if u is not None:
            y = y + self._D @ u
        return y

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(nx={self._nx}, nu={self._nu}, ny={self._ny})"


__all__ = ["LinearSystem"]
