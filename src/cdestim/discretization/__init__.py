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
Discretization

Exact and approximate conversion of continuous linear systems and their
noise models to a fixed sample period.
"""

from .discretization import (
    DEFAULT_TAYLOR_ORDER,
    DISCRETIZATION_METHODS,
    discretize_a,
    discretize_ab,
    discretize_aq,
    discretize_aq_taylor,
    discretize_r,
    discretize_system,
    integrate_process_noise,
    make_covariance_matrix,
)
from .matrix_exponential import matrix_exponential

__all__ = [
    "DEFAULT_TAYLOR_ORDER",
    "DISCRETIZATION_METHODS",
    "matrix_exponential",
    "make_covariance_matrix",
    "discretize_a",
    "discretize_ab",
    "discretize_aq",
    "discretize_aq_taylor",
    "integrate_process_noise",
    "discretize_r",
    "discretize_system",
]
