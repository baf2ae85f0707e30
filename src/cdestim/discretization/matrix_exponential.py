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
Matrix Exponential

The single matrix-exponential primitive shared by every discretization
function. Each of them reduces to "exponentiate an (augmented) matrix, then
slice blocks", so overflow handling lives here once.

Uses scipy.linalg.expm (scaling and squaring with a Padé approximant).
"""

import numpy as np
from scipy.linalg import expm

from cdestim.types.core import ArrayLike
from cdestim.types.exceptions import DimensionError, NumericalError


def matrix_exponential(M: ArrayLike) -> np.ndarray:
    """
    Compute e^M for a square matrix.

    Parameters
    ----------
    M : ArrayLike
        Square matrix (n, n)

    Returns
    -------
    np.ndarray
        e^M (n, n)

    Raises
    ------
    DimensionError
        If M is not square
    NumericalError
        If M or e^M contains non-finite entries (overflow for very large
        ‖M‖; use a smaller time step)

    Examples
    --------
    >>> matrix_exponential(np.zeros((2, 2)))
    array([[1., 0.],
           [0., 1.]])
    >>> matrix_exponential([[0.0, 1.0], [0.0, 0.0]])
    array([[1., 1.],
           [0., 1.]])
    """
    M_np = np.array(M, dtype=float)
    if M_np.ndim != 2 or M_np.shape[0] != M_np.shape[1]:
        raise DimensionError(f"Matrix exponential requires a square matrix, got shape {M_np.shape}")
    if not np.all(np.isfinite(M_np)):
        raise NumericalError("Matrix exponential input contains non-finite entries")

    with np.errstate(over="ignore", invalid="ignore"):
        result = expm(M_np)

    if not np.all(np.isfinite(result)):
        norm = float(np.linalg.norm(M_np, 1))
        raise NumericalError(
            f"Matrix exponential overflowed (‖M‖₁ = {norm:.3e}). Use a smaller time step."
        )
    return result


__all__ = ["matrix_exponential"]
