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
Estimator Exceptions

Error taxonomy shared by the discretization, analysis and estimator modules.

- DimensionError: matrix/vector sizes disagree with the declared nx/nu/ny.
  Raised before any computation starts.
- ModelError: the plant or noise model cannot support an estimator
  (undetectable pair, Riccati failure, non-PSD covariance).
- NumericalError: an operation hit a degenerate numeric state (singular
  innovation covariance, matrix exponential overflow).

Every error is raised synchronously at the call site. Estimator state is
never modified by a call that raises.

Examples
--------
>>> try:
...     kf.correct(u, y)
... except NumericalError:
...     # fall back to open-loop prediction this cycle
...     pass
"""


class EstimatorError(Exception):
    """Base class for all cdestim errors"""

    pass


class DimensionError(EstimatorError, ValueError):
    """Raised when array shapes are inconsistent with system dimensions"""

    pass


class ModelError(EstimatorError, ValueError):
    """Raised when the model cannot support a stable estimator"""

    pass


class NumericalError(EstimatorError, ArithmeticError):
    """Raised when a computation hits a singular or non-finite intermediate"""

    pass


__all__ = [
    "EstimatorError",
    "DimensionError",
    "ModelError",
    "NumericalError",
]
