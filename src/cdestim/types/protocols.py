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
Structural Subtyping Protocols
==============================

The plant model is owned by the caller. The estimator only needs the four
continuous-time matrices, so it is typed against a Protocol rather than a
concrete class: any object exposing ``A``, ``B``, ``C`` and ``D`` works,
including :class:`cdestim.systems.LinearSystem`.

Naming Convention
-----------------
Protocols use the "Protocol" suffix:

- Import from ``cdestim.types.protocols`` → interface/contract
- Import from ``cdestim.systems`` → concrete implementation

Examples
--------
>>> from cdestim.types.protocols import LinearSystemProtocol
>>>
>>> class MotorModel:
...     def __init__(self):
...         self.A = np.array([[-2.0]])
...         self.B = np.array([[1.0]])
...         self.C = np.array([[1.0]])
...         self.D = np.zeros((1, 1))
>>>
>>> isinstance(MotorModel(), LinearSystemProtocol)
True
"""

from typing import Protocol, runtime_checkable

from .core import FeedthroughMatrix, InputMatrix, OutputMatrix, StateMatrix


@runtime_checkable
class LinearSystemProtocol(Protocol):
    """
    Continuous-time linear system dx/dt = Ax + Bu, y = Cx + Du.

    Required Attributes
    -------------------
    A : StateMatrix
        State matrix (nx, nx)
    B : InputMatrix
        Input matrix (nx, nu)
    C : OutputMatrix
        Output matrix (ny, nx)
    D : FeedthroughMatrix
        Feedthrough matrix (ny, nu)

    Notes
    -----
    Consumers read these matrices once and copy them. They never write
    back to the object.
    """

    A: StateMatrix
    B: InputMatrix
    C: OutputMatrix
    D: FeedthroughMatrix


__all__ = [
    "LinearSystemProtocol",
]
