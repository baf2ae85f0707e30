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
Unit tests for KalmanFilter

Tests cover:
1. Construction from std-dev vectors and from covariance matrices
2. Predict / correct algebra against hand-written formulas
3. Re-discretization when predict() is called with an off-nominal dt
4. Time-varying gain mode
5. Failure modes (dimensions, detectability, singular innovation)
6. State access, reset and logging
7. Closed-loop behaviour on a planar drivetrain model
"""

import logging
from types import SimpleNamespace

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from cdestim.control import design_kalman_filter
from cdestim.discretization import discretize_ab, discretize_aq_taylor
from cdestim.estimators import DT_RELATIVE_TOLERANCE, KalmanFilter
from cdestim.systems import LinearSystem
from cdestim.types.exceptions import DimensionError, ModelError, NumericalError

DT = 0.02

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def elevator():
    """Position/velocity elevator model driven by one motor voltage"""
    return LinearSystem(
        A=[[0.0, 1.0], [0.0, -0.4356]],
        B=[[0.0], [1.3015]],
        C=[[1.0, 0.0]],
    )


@pytest.fixture
def swerve():
    """
    Planar drivetrain: states (x, y, θ, vx, vy, ω), inputs are the three
    accelerations, outputs are the three positions.
    """
    Z = np.zeros((3, 3))
    I = np.eye(3)
    return LinearSystem(
        A=np.block([[Z, I], [Z, Z]]),
        B=np.vstack([Z, I]),
        C=np.hstack([I, Z]),
        D=Z,
    )


@pytest.fixture
def swerve_filter(swerve):
    return KalmanFilter(swerve, [0.1] * 6, [2.0] * 3, DT)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


def run_cycles(kf, rng, steps, u=None):
    u = np.zeros(kf.nu) if u is None else u
    for _ in range(steps):
        kf.correct(u, rng.standard_normal(kf.ny))
        kf.predict(u, kf.dt)


# ============================================================================
# Construction
# ============================================================================


class TestConstruction:
    def test_elevator_constructs(self, elevator):
        kf = KalmanFilter(elevator, [0.05, 1.0], [0.0001], 0.00505)

        assert kf.nx == 2 and kf.nu == 1 and kf.ny == 1
        assert kf.mode == "steady_state"
        assert kf.K.shape == (2, 1)
        assert_array_equal(kf.xhat, np.zeros(2))
        assert_allclose(kf.P, kf.P.T)
        assert np.all(np.linalg.eigvalsh(kf.P) >= -1e-12)

    def test_swerve_constructs(self, swerve_filter):
        assert swerve_filter.K.shape == (6, 3)
        assert swerve_filter.dt == DT
        assert swerve_filter.get_discretization()["method"] == "taylor"

    def test_van_loan_option(self, swerve):
        taylor = KalmanFilter(swerve, [0.1] * 6, [2.0] * 3, DT)
        exact = KalmanFilter(swerve, [0.1] * 6, [2.0] * 3, DT, taylor_process_noise=False)

        assert exact.get_discretization()["method"] == "van_loan"
        # The double integrator's series terminates, so both agree
        assert_allclose(exact.Q_d, taylor.Q_d, rtol=1e-9, atol=1e-15)

    def test_discrete_covariances(self, elevator):
        Q = np.diag([0.05, 1.0]) ** 2
        R = np.array([[1e-8]])
        kf = KalmanFilter.from_covariances(elevator, Q, R, 0.005)

        assert_allclose(kf.R_d, R / 0.005)

    def test_std_devs_match_covariances(self, swerve):
        """Weights and the equivalent diagonal matrices give the same filter"""
        sigma_q = np.array([0.1, 0.2, 0.3, 0.4, 0.5, 0.6])
        sigma_r = np.array([2.0, 3.0, 1.0])

        from_weights = KalmanFilter(swerve, sigma_q, sigma_r, DT)
        from_matrices = KalmanFilter.from_covariances(
            swerve, np.diag(sigma_q**2), np.diag(sigma_r**2), DT
        )

        assert_allclose(from_matrices.Q_d, from_weights.Q_d, rtol=1e-12)
        assert_allclose(from_matrices.R_d, from_weights.R_d, rtol=1e-12)
        assert_allclose(from_matrices.K, from_weights.K, rtol=1e-10)

    def test_pre_discretized_covariances(self, swerve_filter, swerve):
        kf = KalmanFilter.from_covariances(
            swerve, swerve_filter.Q_d, swerve_filter.R_d, DT, discrete=True
        )

        disc = kf.get_discretization()
        assert disc["method"] == "provided"
        assert_array_equal(disc["Q_d"], swerve_filter.Q_d)
        assert_array_equal(disc["R_d"], swerve_filter.R_d)
        assert_allclose(kf.K, swerve_filter.K, rtol=1e-9, atol=1e-12)

    def test_plant_matrices_are_copied(self):
        plant = SimpleNamespace(
            A=np.array([[0.0, 1.0], [0.0, 0.0]]),
            B=np.array([[0.0], [1.0]]),
            C=np.array([[1.0, 0.0]]),
            D=None,
        )
        kf = KalmanFilter(plant, [0.1, 0.1], [0.01], DT)
        A_d = kf.A_d

        plant.A[0, 1] = 100.0

        assert_array_equal(kf.A_d, A_d)
        assert_array_equal(kf.output([0.0]), np.zeros(1))

    def test_undetectable_plant(self):
        # Second state is unstable and invisible to C
        plant = LinearSystem(
            A=[[0.0, 0.0], [0.0, 1.0]],
            B=[[1.0], [1.0]],
            C=[[1.0, 0.0]],
        )
        with pytest.raises(ModelError, match="detectable"):
            KalmanFilter(plant, [1.0, 1.0], [1.0], DT)

    def test_wrong_state_std_dev_length(self, swerve):
        with pytest.raises(DimensionError):
            KalmanFilter(swerve, [0.1] * 5, [2.0] * 3, DT)

    def test_wrong_measurement_std_dev_length(self, swerve):
        with pytest.raises(DimensionError):
            KalmanFilter(swerve, [0.1] * 6, [2.0] * 2, DT)

    def test_inconsistent_plant(self):
        plant = SimpleNamespace(
            A=np.eye(2), B=np.ones((3, 1)), C=np.array([[1.0, 0.0]]), D=None
        )
        with pytest.raises(DimensionError):
            KalmanFilter(plant, [0.1, 0.1], [0.01], DT)

    def test_non_psd_covariance(self, elevator):
        with pytest.raises(ModelError):
            KalmanFilter.from_covariances(elevator, [[1.0, 0.0], [0.0, -1.0]], [[1.0]], DT)

    @pytest.mark.parametrize("dt", [0.0, -0.02, np.inf])
    def test_invalid_period(self, elevator, dt):
        with pytest.raises(ValueError):
            KalmanFilter(elevator, [0.05, 1.0], [0.0001], dt)

    def test_unknown_mode(self, elevator):
        with pytest.raises(ValueError, match="Unknown mode"):
            KalmanFilter(elevator, [0.05, 1.0], [0.0001], DT, mode="extended")

    def test_repr(self, swerve_filter):
        assert repr(swerve_filter) == (
            "KalmanFilter(nx=6, nu=3, ny=3, dt=0.02, mode='steady_state')"
        )


# ============================================================================
# Predict / Correct
# ============================================================================


class TestPredictCorrect:
    def test_predict_matches_formula(self, swerve_filter, rng):
        x0 = rng.standard_normal(6)
        u = rng.standard_normal(3)
        swerve_filter.set_xhat(x0)
        P0 = swerve_filter.P
        A_d, B_d, Q_d = swerve_filter.A_d, swerve_filter.B_d, swerve_filter.Q_d

        swerve_filter.predict(u, DT)

        assert_allclose(swerve_filter.xhat, A_d @ x0 + B_d @ u, rtol=1e-12, atol=1e-15)
        assert_allclose(swerve_filter.P, A_d @ P0 @ A_d.T + Q_d, rtol=1e-12, atol=1e-15)

    def test_correct_matches_formula(self, swerve, rng):
        kf = KalmanFilter(swerve, [0.1] * 6, [2.0] * 3, DT, mode="time_varying")
        x0 = rng.standard_normal(6)
        y = rng.standard_normal(3)
        kf.set_xhat(x0)
        P0, C, R_d = kf.P, swerve.C, kf.R_d

        kf.correct(np.zeros(3), y)

        K = P0 @ C.T @ np.linalg.inv(C @ P0 @ C.T + R_d)
        assert_allclose(kf.K, K, rtol=1e-9, atol=1e-12)
        assert_allclose(kf.xhat, x0 + K @ (y - C @ x0), rtol=1e-9, atol=1e-12)
        assert_allclose(kf.P, (np.eye(6) - K @ C) @ P0, rtol=1e-9, atol=1e-12)

    def test_fixed_gain_keeps_covariance_psd(self, elevator):
        """A caller-supplied P stays PSD when corrected with the stored gain"""
        kf = KalmanFilter(elevator, [0.05, 1.0], [0.0001], 0.00505)
        K = kf.K
        P0 = np.array([[1.0, 0.999], [0.999, 1.0]])
        kf.reset(P=P0)

        kf.correct([0.0], [0.0])

        I_KC = np.eye(2) - K @ elevator.C
        expected = I_KC @ P0 @ I_KC.T + K @ kf.R_d @ K.T
        assert_allclose(kf.P, expected, rtol=1e-10, atol=1e-15)
        assert np.min(np.linalg.eigvalsh(kf.P)) >= -1e-12

    def test_fixed_gain_after_set_p(self, swerve_filter, rng):
        swerve_filter.set_p(np.full((6, 6), 0.5) + 0.5 * np.eye(6))
        run_cycles(swerve_filter, rng, 10)
        assert np.min(np.linalg.eigvalsh(swerve_filter.P)) >= -1e-12

    def test_steady_state_gain_is_fixed(self, swerve_filter, rng):
        K = swerve_filter.K
        run_cycles(swerve_filter, rng, 20)
        assert_array_equal(swerve_filter.K, K)

    def test_covariance_stays_symmetric(self, swerve_filter, rng):
        run_cycles(swerve_filter, rng, 50)
        P = swerve_filter.P
        assert_array_equal(P, P.T)

    def test_feedthrough_enters_innovation(self, rng):
        plant = LinearSystem(
            A=[[0.0, 1.0], [0.0, 0.0]], B=[[0.0], [1.0]], C=[[1.0, 0.0]], D=[[2.0]]
        )
        kf = KalmanFilter(plant, [0.1, 0.1], [0.01], DT)

        # y equals the predicted output, so the estimate must not move
        kf.correct([3.0], [6.0])

        assert_allclose(kf.xhat, np.zeros(2), atol=1e-15)
        assert_allclose(kf.output([3.0]), [6.0])

    def test_column_vectors_accepted(self, swerve_filter):
        swerve_filter.correct(np.zeros((3, 1)), np.ones((3, 1)))
        swerve_filter.predict(np.zeros((3, 1)), DT)
        assert swerve_filter.xhat.shape == (6,)

    @pytest.mark.parametrize(
        "u, y",
        [
            ([0.0, 0.0, 0.0], [np.nan, 0.0, 0.0]),
            ([0.0, 0.0, 0.0], [0.0, np.inf, 0.0]),
            ([np.nan, 0.0, 0.0], [0.0, 0.0, 0.0]),
        ],
    )
    def test_non_finite_correct_leaves_state(self, swerve_filter, u, y):
        swerve_filter.set_xhat(np.arange(6.0))
        P = swerve_filter.P

        with pytest.raises(ValueError, match="non-finite"):
            swerve_filter.correct(u, y)

        assert_array_equal(swerve_filter.xhat, np.arange(6.0))
        assert_array_equal(swerve_filter.P, P)
        swerve_filter.predict(np.zeros(3), DT)

    def test_non_finite_predict_input(self, swerve_filter):
        P = swerve_filter.P
        with pytest.raises(ValueError, match="non-finite"):
            swerve_filter.predict([np.inf, 0.0, 0.0], DT)
        assert_array_equal(swerve_filter.xhat, np.zeros(6))
        assert_array_equal(swerve_filter.P, P)

    def test_wrong_input_length(self, swerve_filter):
        with pytest.raises(DimensionError):
            swerve_filter.predict(np.zeros(2), DT)

    def test_wrong_measurement_length(self, swerve_filter):
        with pytest.raises(DimensionError):
            swerve_filter.correct(np.zeros(3), np.zeros(4))

    def test_negative_dt_leaves_state(self, swerve_filter):
        swerve_filter.set_xhat(np.arange(6.0))
        P = swerve_filter.P

        with pytest.raises(ValueError):
            swerve_filter.predict(np.zeros(3), -DT)

        assert_array_equal(swerve_filter.xhat, np.arange(6.0))
        assert_array_equal(swerve_filter.P, P)

    def test_singular_innovation(self, elevator):
        """Zero measurement noise and zero covariance make S singular"""
        kf = KalmanFilter.from_covariances(
            elevator,
            np.eye(2) * 0.01,
            [[0.0]],
            DT,
            discrete=True,
            mode="time_varying",
            initial_covariance=np.zeros((2, 2)),
        )
        kf.set_xhat([1.0, 2.0])
        assert kf.K is None

        with pytest.raises(NumericalError):
            kf.correct([0.0], [5.0])

        assert_array_equal(kf.xhat, [1.0, 2.0])
        assert_array_equal(kf.P, np.zeros((2, 2)))
        assert kf.K is None


# ============================================================================
# Variable Sample Period
# ============================================================================


class TestVariablePeriod:
    def test_off_nominal_dt_rediscretizes(self, swerve, swerve_filter, rng):
        x0 = rng.standard_normal(6)
        u = rng.standard_normal(3)
        swerve_filter.set_xhat(x0)
        P0 = swerve_filter.P

        swerve_filter.predict(u, 2 * DT)

        A_d, B_d = discretize_ab(swerve.A, swerve.B, 2 * DT)
        _, Q_d = discretize_aq_taylor(swerve.A, np.eye(6) * 0.01, 2 * DT)
        assert_allclose(swerve_filter.xhat, A_d @ x0 + B_d @ u, rtol=1e-10, atol=1e-15)
        assert_allclose(swerve_filter.P, A_d @ P0 @ A_d.T + Q_d, rtol=1e-10, atol=1e-15)

    def test_nominal_model_is_kept(self, swerve_filter):
        before = swerve_filter.get_discretization()

        swerve_filter.predict(np.zeros(3), 0.5 * DT)

        after = swerve_filter.get_discretization()
        assert after["dt"] == DT
        assert_array_equal(after["A_d"], before["A_d"])
        assert_array_equal(after["B_d"], before["B_d"])
        assert_array_equal(after["Q_d"], before["Q_d"])

    def test_next_nominal_call_uses_stored_model(self, swerve_filter, rng):
        swerve_filter.predict(np.zeros(3), 3 * DT)
        x = swerve_filter.xhat
        u = rng.standard_normal(3)

        swerve_filter.predict(u, DT)

        assert_array_equal(swerve_filter.xhat, swerve_filter.A_d @ x + swerve_filter.B_d @ u)

    def test_dt_within_tolerance(self, swerve_filter, rng, caplog):
        x0 = rng.standard_normal(6)
        u = rng.standard_normal(3)
        swerve_filter.set_xhat(x0)

        with caplog.at_level(logging.DEBUG, logger="cdestim.estimators.kalman_filter"):
            swerve_filter.predict(u, DT * (1 + 0.1 * DT_RELATIVE_TOLERANCE))

        assert "Re-discretizing" not in caplog.text
        assert_array_equal(swerve_filter.xhat, swerve_filter.A_d @ x0 + swerve_filter.B_d @ u)

    def test_rediscretization_is_logged(self, swerve_filter, caplog):
        with caplog.at_level(logging.DEBUG, logger="cdestim.estimators.kalman_filter"):
            swerve_filter.predict(np.zeros(3), 2 * DT)
        assert "Re-discretizing" in caplog.text

    def test_zero_dt_is_identity(self, swerve_filter, rng):
        swerve_filter.set_xhat(rng.standard_normal(6))
        x, P = swerve_filter.xhat, swerve_filter.P

        swerve_filter.predict(np.ones(3), 0.0)

        assert_allclose(swerve_filter.xhat, x, atol=1e-15)
        assert_allclose(swerve_filter.P, P, atol=1e-15)

    def test_pre_discretized_noise_scales_with_dt(self, swerve, swerve_filter):
        kf = KalmanFilter.from_covariances(
            swerve, swerve_filter.Q_d, swerve_filter.R_d, DT, discrete=True
        )
        P0 = kf.P

        kf.predict(np.zeros(3), 2 * DT)

        A_d, _ = discretize_ab(swerve.A, swerve.B, 2 * DT)
        assert_allclose(kf.P, A_d @ P0 @ A_d.T + 2 * swerve_filter.Q_d, rtol=1e-10, atol=1e-15)


# ============================================================================
# Time-Varying Mode
# ============================================================================


class TestTimeVarying:
    def test_first_gain_matches_steady_state(self, swerve, swerve_filter, rng):
        kf = KalmanFilter(swerve, [0.1] * 6, [2.0] * 3, DT, mode="time_varying")
        assert_allclose(kf.K, swerve_filter.K, rtol=1e-10, atol=1e-12)

        kf.correct(np.zeros(3), rng.standard_normal(3))

        assert_allclose(kf.K, swerve_filter.K, rtol=1e-8, atol=1e-12)

    def test_converges_to_riccati_solution(self, elevator):
        steady = KalmanFilter(elevator, [0.05, 1.0], [0.0001], 0.005)
        kf = KalmanFilter.from_covariances(
            elevator,
            np.diag([0.05, 1.0]) ** 2,
            [[1e-8]],
            0.005,
            mode="time_varying",
            initial_covariance=np.eye(2) * 10.0,
        )

        for _ in range(1000):
            kf.correct([0.0], [0.0])
            kf.predict([0.0], 0.005)

        design = design_kalman_filter(steady.A_d, elevator.C, steady.Q_d, steady.R_d)
        assert_allclose(kf.P, design["error_covariance"], rtol=1e-6, atol=1e-12)
        assert_allclose(kf.K, design["gain"], rtol=1e-6)


# ============================================================================
# State Access and Reset
# ============================================================================


class TestStateAccess:
    def test_get_and_set_element(self, swerve_filter):
        P = swerve_filter.P
        swerve_filter.set_xhat(2, 1.5)

        assert swerve_filter.get_xhat(2) == 1.5
        assert isinstance(swerve_filter.get_xhat(2), float)
        assert_array_equal(swerve_filter.P, P)

    def test_set_whole_vector(self, swerve_filter):
        swerve_filter.set_xhat(np.arange(6.0))
        assert_array_equal(swerve_filter.get_xhat(), np.arange(6.0))

    @pytest.mark.parametrize("index", [6, -1, 100])
    def test_index_out_of_range(self, swerve_filter, index):
        with pytest.raises(IndexError):
            swerve_filter.get_xhat(index)
        with pytest.raises(IndexError):
            swerve_filter.set_xhat(index, 1.0)

    def test_non_integer_index(self, swerve_filter):
        with pytest.raises(TypeError):
            swerve_filter.get_xhat(1.5)

    def test_non_finite_value(self, swerve_filter):
        with pytest.raises(ValueError):
            swerve_filter.set_xhat(0, np.nan)

    def test_non_finite_vector(self, swerve_filter):
        swerve_filter.set_xhat(np.ones(6))
        with pytest.raises(ValueError, match="non-finite"):
            swerve_filter.set_xhat([np.inf, 0.0, 0.0, 0.0, 0.0, 0.0])
        assert_array_equal(swerve_filter.xhat, np.ones(6))

    def test_wrong_vector_length(self, swerve_filter):
        with pytest.raises(DimensionError):
            swerve_filter.set_xhat(np.zeros(5))

    def test_accessors_return_copies(self, swerve_filter):
        swerve_filter.xhat[0] = 10.0
        swerve_filter.P[0, 0] = 10.0
        swerve_filter.K[0, 0] = 10.0

        assert swerve_filter.get_xhat(0) == 0.0
        assert swerve_filter.P[0, 0] != 10.0
        assert swerve_filter.K[0, 0] != 10.0

    def test_set_p_validates(self, swerve_filter):
        swerve_filter.set_p(np.eye(6))
        assert_array_equal(swerve_filter.P, np.eye(6))

        with pytest.raises(ModelError):
            swerve_filter.set_p(-np.eye(6))


class TestReset:
    def test_reset_restores_construction_state(self, swerve_filter, rng):
        P0, K0 = swerve_filter.P, swerve_filter.K
        run_cycles(swerve_filter, rng, 30, u=np.ones(3))

        swerve_filter.reset()

        assert_array_equal(swerve_filter.xhat, np.zeros(6))
        assert_array_equal(swerve_filter.P, P0)
        assert_array_equal(swerve_filter.K, K0)

    def test_reset_is_idempotent(self, swerve_filter, rng):
        run_cycles(swerve_filter, rng, 5)
        swerve_filter.reset()
        P_once = swerve_filter.P
        swerve_filter.reset()
        assert_array_equal(swerve_filter.P, P_once)

    def test_reset_with_covariance(self, swerve_filter):
        swerve_filter.reset(np.eye(6) * 3.0)
        assert_array_equal(swerve_filter.P, np.eye(6) * 3.0)

    def test_reset_restores_time_varying_gain(self, swerve, rng):
        kf = KalmanFilter(swerve, [0.1] * 6, [2.0] * 3, DT, mode="time_varying")
        K0 = kf.K
        kf.set_p(np.eye(6))
        kf.correct(np.zeros(3), rng.standard_normal(3))

        kf.reset()

        assert_array_equal(kf.K, K0)

    def test_reset_is_logged(self, swerve_filter, caplog):
        with caplog.at_level(logging.DEBUG, logger="cdestim.estimators.kalman_filter"):
            swerve_filter.reset()
        assert "reset" in caplog.text


# ============================================================================
# Closed-Loop Behaviour
# ============================================================================


class TestSwerveBehaviour:
    def test_stationary(self, swerve_filter, rng):
        """Noisy measurements of a robot at rest keep the estimate near zero"""
        for _ in range(100):
            swerve_filter.correct(np.zeros(3), rng.standard_normal(3))
            swerve_filter.predict(np.zeros(3), DT)

        assert abs(swerve_filter.get_xhat(0)) < 0.3
        assert abs(swerve_filter.get_xhat(1)) < 0.3

    def test_moving_without_accelerating(self, swerve, rng):
        """
        The estimate starts at (0.5, 0.5) while the robot is parked at the
        origin; measurements pull it back.
        """
        kf = KalmanFilter(swerve, [0.1] * 6, [4.0] * 3, DT)
        kf.set_xhat(0, 0.5)
        kf.set_xhat(1, 0.5)
        measurement_noise = np.array([0.1, 0.1, 0.25])

        for _ in range(300):
            kf.correct(np.zeros(3), measurement_noise * rng.standard_normal(3))
            kf.predict(np.zeros(3), DT)

        assert abs(kf.get_xhat(0)) < 0.2
        assert abs(kf.get_xhat(1)) < 0.2

    def test_follows_trajectory(self, swerve, rng):
        """
        Drive diagonally from (0, 0) to about (5, 5) with a trapezoidal
        velocity profile (2 m/s cruise, 2 m/s² ramps) and check the final
        estimate against the simulated plant.
        """
        kf = KalmanFilter(swerve, [0.1] * 6, [4.0] * 3, DT)
        A_d, B_d = discretize_ab(swerve.A, swerve.B, DT)

        direction = np.array([1.0, 1.0, 0.0]) / np.sqrt(2.0)
        accelerations = [2.0] * 50 + [0.0] * 127 + [-2.0] * 50
        measurement_noise = np.array([0.2, 0.2, 1.0 / 3.0])

        x_true = np.zeros(6)
        for a in accelerations:
            u = a * direction
            y = swerve.C @ x_true + measurement_noise * rng.standard_normal(3)
            kf.correct(u, y)
            kf.predict(u, DT)
            x_true = A_d @ x_true + B_d @ u

        assert_allclose(x_true[:2], [5.0, 5.0], atol=0.01)
        assert_allclose(x_true[3:], np.zeros(3), atol=1e-12)
        assert_allclose(kf.xhat[:2], x_true[:2], atol=0.2)
        assert_allclose(kf.xhat[:2], [5.0, 5.0], atol=0.2)
