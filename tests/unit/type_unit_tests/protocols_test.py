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
Unit tests for the structural plant protocol and the error taxonomy
"""

from types import SimpleNamespace

import numpy as np
import pytest

from cdestim.types import (
    DimensionError,
    EstimatorError,
    LinearSystemProtocol,
    ModelError,
    NumericalError,
)


class MotorModel:
    def __init__(self):
        self.A = np.array([[-2.0]])
        self.B = np.array([[1.0]])
        self.C = np.array([[1.0]])
        self.D = np.zeros((1, 1))


class TestLinearSystemProtocol:
    def test_plain_class_satisfies_protocol(self):
        assert isinstance(MotorModel(), LinearSystemProtocol)

    def test_namespace_satisfies_protocol(self):
        plant = SimpleNamespace(A=np.eye(1), B=np.eye(1), C=np.eye(1), D=None)
        assert isinstance(plant, LinearSystemProtocol)

    def test_missing_attribute(self):
        plant = SimpleNamespace(A=np.eye(1), B=np.eye(1), C=np.eye(1))
        assert not isinstance(plant, LinearSystemProtocol)


class TestExceptionHierarchy:
    @pytest.mark.parametrize("error", [DimensionError, ModelError, NumericalError])
    def test_common_base(self, error):
        assert issubclass(error, EstimatorError)

    def test_value_errors(self):
        assert issubclass(DimensionError, ValueError)
        assert issubclass(ModelError, ValueError)

    def test_numerical_error_is_arithmetic(self):
        with pytest.raises(ArithmeticError):
            raise NumericalError("singular")
