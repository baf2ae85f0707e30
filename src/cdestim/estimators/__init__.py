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
Estimators Module

Recursive state estimators for sampled linear plants.
"""

from .kalman_filter import DT_RELATIVE_TOLERANCE, FILTER_MODES, KalmanFilter

__all__ = [
    "DT_RELATIVE_TOLERANCE",
    "FILTER_MODES",
    "KalmanFilter",
]
