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
Control Module

Linear analysis and estimator design functions.
"""

from .classical_control_functions import (
    analyze_observability,
    analyze_stability,
    design_kalman_filter,
    is_detectable,
)

__all__ = [
    "design_kalman_filter",
    "analyze_stability",
    "analyze_observability",
    "is_detectable",
]
