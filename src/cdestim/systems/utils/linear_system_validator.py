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
Linear System Validator

Validates that continuous-time state-space matrices are well formed and
mutually consistent, and provides the boundary conversions used by every
public function in the package.

Checks:
- Required attributes (A, B, C, D)
- Matrix rank-2 shapes and finite entries
- Dimension consistency (A square, B rows = nx, C columns = nx,
  D = (ny, nu))

Boundary helpers:
- as_matrix / as_vector: convert ArrayLike to float arrays with shape checks
- validate_covariance: symmetric positive semi-definite check
- validate_time_step: non-negative (or strictly positive) finite period
"""

import warnings
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from cdestim.types.core import ArrayLike, CovarianceMatrix
from cdestim.types.exceptions import DimensionError, ModelError

PSD_TOLERANCE = 1e-9
"""Smallest eigenvalue accepted for a PSD matrix, relative to its scale."""

SYMMETRY_TOLERANCE = 1e-9
"""Largest |M - M'| accepted before a covariance is rejected, relative to its scale."""


# ============================================================================
# Validation Result Container
# ============================================================================


@dataclass
class ValidationResult:
    """
    Container for validation results.

    Attributes
    ----------
    is_valid : bool
        True if system passed all validation checks
    errors : List[str]
        List of validation errors (empty if valid)
    warnings : List[str]
        List of validation warnings (non-fatal issues)
    info : Dict
        Dimensions of the validated system
    """

    is_valid: bool
    errors: List[str]
    warnings: List[str]
    info: Dict[str, Any]


# ============================================================================
# Boundary Conversions
# ============================================================================


def as_matrix(
    M: ArrayLike,
    name: str,
    shape: Optional[Tuple[int, int]] = None,
) -> np.ndarray:
    """
    Convert to a 2-D float array, optionally enforcing its shape.

    Parameters
    ----------
    M : ArrayLike
        Matrix-like input
    name : str
        Name used in error messages
    shape : Optional[Tuple[int, int]]
        Required shape

    Returns
    -------
    np.ndarray
        New float64 array (never aliases the input)

    Raises
    ------
    DimensionError
        If M is not 2-D or does not have the required shape

    Examples
    --------
    >>> as_matrix([[0, 1], [0, 0]], "A", shape=(2, 2))
    array([[0., 1.],
           [0., 0.]])
    """
    M_np = np.array(M, dtype=float)
    if M_np.ndim != 2:
        raise DimensionError(f"{name} must be a 2-D matrix, got shape {M_np.shape}")
    if shape is not None and M_np.shape != tuple(shape):
        raise DimensionError(f"{name} must have shape {tuple(shape)}, got {M_np.shape}")
    return M_np


def as_vector(v: ArrayLike, name: str, length: int) -> np.ndarray:
    """
    Convert to a 1-D float array of the given length.

    Column vectors (n, 1) are flattened; scalars are accepted when
    length == 1.

    Raises
    ------
    DimensionError
        If v cannot be read as a vector of the given length

    Examples
    --------
    >>> as_vector([[1.0], [2.0]], "y", 2)
    array([1., 2.])
    """
    v_np = np.array(v, dtype=float)
    if v_np.ndim == 2 and v_np.shape[1] == 1:
        v_np = v_np[:, 0]
    elif v_np.ndim == 0:
        v_np = v_np.reshape(1)
    if v_np.ndim != 1 or v_np.shape[0] != length:
        raise DimensionError(f"{name} must be a vector of length {length}, got shape {np.shape(v)}")
    return v_np


def validate_covariance(
    M: ArrayLike,
    name: str,
    n: int,
    tolerance: float = PSD_TOLERANCE,
) -> CovarianceMatrix:
    """
    Check that M is an (n, n) symmetric positive semi-definite matrix.

    Small asymmetry from floating-point round-off is removed by returning
    (M + M') / 2.

    Parameters
    ----------
    M : ArrayLike
        Candidate covariance
    name : str
        Name used in error messages
    n : int
        Required dimension
    tolerance : float
        Relative tolerance for negative eigenvalues. Asymmetry is always
        held to SYMMETRY_TOLERANCE.

    Returns
    -------
    CovarianceMatrix
        Symmetrized copy of M

    Raises
    ------
    DimensionError
        If M is not (n, n)
    ModelError
        If M is not symmetric, not finite, or has a negative eigenvalue

    Examples
    --------
    >>> validate_covariance(np.diag([0.01, 0.1]), "Q", 2)
    array([[0.01, 0.  ],
           [0.  , 0.1 ]])
    """
    M_np = as_matrix(M, name, shape=(n, n))
    if not np.all(np.isfinite(M_np)):
        raise ModelError(f"{name} contains non-finite entries")

    scale = max(1.0, float(np.max(np.abs(M_np))) if M_np.size else 1.0)
    asymmetry = float(np.max(np.abs(M_np - M_np.T))) if M_np.size else 0.0
    if asymmetry > SYMMETRY_TOLERANCE * scale:
        raise ModelError(f"{name} must be symmetric (max |{name} - {name}'| = {asymmetry:.3e})")

    M_sym = (M_np + M_np.T) / 2.0
    if M_sym.size:
        min_eig = float(np.min(np.linalg.eigvalsh(M_sym)))
        if min_eig < -tolerance * scale:
            raise ModelError(
                f"{name} must be positive semi-definite (min eigenvalue {min_eig:.3e})"
            )
    return M_sym


def validate_time_step(dt: float, allow_zero: bool = True) -> float:
    """
    Check a sample period.

    Raises
    ------
    ValueError
        If dt is not finite, negative, or zero when allow_zero is False
    """
    dt = float(dt)
    if not np.isfinite(dt):
        raise ValueError(f"Time step dt must be finite, got {dt}")
    if dt < 0 or (dt == 0 and not allow_zero):
        qualifier = "non-negative" if allow_zero else "positive"
        raise ValueError(f"Time step dt must be {qualifier}, got {dt}")
    return dt


# ============================================================================
# Linear System Validator
# ============================================================================


class LinearSystemValidator:
    """
    Validates continuous-time state-space matrices.

    Works on any object with A, B, C, D attributes (D may be None).

    Examples
    --------
    >>> validator = LinearSystemValidator(plant)
    >>> result = validator.validate(raise_on_error=False)
    >>> if not result.is_valid:
    ...     print(result.errors)
    """

    def __init__(self, system: Any):
        self.system = system
        self._errors: List[str] = []
        self._warnings: List[str] = []

    def validate(self, raise_on_error: bool = True) -> ValidationResult:
        """
        Validate system matrices.

        Parameters
        ----------
        raise_on_error : bool
            If True, raise DimensionError on validation failure

        Returns
        -------
        ValidationResult
            Validation results with errors, warnings, and dimensions

        Raises
        ------
        DimensionError
            If validation fails and raise_on_error=True
        """
        self._errors = []
        self._warnings = []

        matrices = self._collect_matrices()

        # Shape relations only make sense once every matrix is 2-D
        if not self._errors:
            self._validate_dimensions(matrices)
            self._validate_values(matrices)

        is_valid = len(self._errors) == 0

        result = ValidationResult(
            is_valid=is_valid,
            errors=self._errors.copy(),
            warnings=self._warnings.copy(),
            info=self._build_info(matrices) if is_valid else {},
        )

        for message in result.warnings:
            warnings.warn(message, UserWarning, stacklevel=3)

        if not is_valid and raise_on_error:
            raise DimensionError(self._format_error_message())

        return result

    # ========================================================================
    # Validation Checks
    # ========================================================================

    def _collect_matrices(self) -> Dict[str, Optional[np.ndarray]]:
        matrices: Dict[str, Optional[np.ndarray]] = {}
        for name in ("A", "B", "C", "D"):
            value = getattr(self.system, name, None)
            if value is None:
                if name != "D":
                    self._errors.append(f"Missing required matrix '{name}'")
                matrices[name] = None
                continue
            M = np.array(value, dtype=float)
            if M.ndim != 2:
                self._errors.append(f"{name} must be 2-D, got shape {M.shape}")
            matrices[name] = M
        return matrices

    def _validate_dimensions(self, matrices: Dict[str, Optional[np.ndarray]]):
        A, B, C, D = (matrices[k] for k in ("A", "B", "C", "D"))

        nx = A.shape[0]
        if A.shape != (nx, nx):
            self._errors.append(f"A must be square, got shape {A.shape}")
        if nx == 0:
            self._errors.append("System must have at least one state")
        if B.shape[0] != nx:
            self._errors.append(f"B must have {nx} rows to match A, got {B.shape[0]}")
        if C.shape[1] != nx:
            self._errors.append(f"C must have {nx} columns to match A, got {C.shape[1]}")
        if C.shape[0] == 0:
            self._errors.append("System must have at least one output")
        if D is not None and D.shape != (C.shape[0], B.shape[1]):
            self._errors.append(f"D must have shape {(C.shape[0], B.shape[1])}, got {D.shape}")

    def _validate_values(self, matrices: Dict[str, Optional[np.ndarray]]):
        for name, M in matrices.items():
            if M is not None and not np.all(np.isfinite(M)):
                self._errors.append(f"{name} contains non-finite entries")

        B = matrices["B"]
        if B is not None and B.size and not np.any(B):
            self._warnings.append("B is all zeros; control inputs have no effect on the state")

    def _build_info(self, matrices: Dict[str, Optional[np.ndarray]]) -> Dict[str, Any]:
        return {
            "nx": int(matrices["A"].shape[0]),
            "nu": int(matrices["B"].shape[1]),
            "ny": int(matrices["C"].shape[0]),
        }

    def _format_error_message(self) -> str:
        lines = [f"Linear system validation failed with {len(self._errors)} error(s):"]
        lines.extend(f"  - {error}" for error in self._errors)
        return "\n".join(lines)


__all__ = [
    "PSD_TOLERANCE",
    "SYMMETRY_TOLERANCE",
    "ValidationResult",
    "LinearSystemValidator",
    "as_matrix",
    "as_vector",
    "validate_covariance",
    "validate_time_step",
]
