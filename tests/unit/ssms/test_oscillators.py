"""Unit tests for the oscillator models."""

import numpy as np
import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from vibration_id.ssm import SDOFOscillator, TDOFOscillator


class TestSDOFOscillator:

    @pytest.fixture
    def model(self):
        return SDOFOscillator(mass=1.0, damping=0.3, stiffness=9.0)

    def test_dimensions(self, model):
        assert (model.n_state, model.n_param, model.n_obs) == (2, 2, 1)
        np.testing.assert_allclose(model.true_parameters, [9.0, 0.3])

    def test_rhs(self, model):
        dx = model.rhs(np.array([0.1, -0.2]), 0.5)
        # a = -(0.3 * -0.2 + 9 * 0.1) / 1 - 0.5
        np.testing.assert_allclose(dx, [-0.2, -0.84 - 0.5])

    def test_augmented_rhs_matches_rhs_at_true_parameters(self, model, rng):
        x = rng.standard_normal(2)
        aug = np.concatenate([x, model.true_parameters])

        dx = model.augmented_rhs(aug, 0.7)

        np.testing.assert_allclose(dx[:2], model.rhs(x, 0.7))
        np.testing.assert_allclose(dx[2:], 0.0)

    def test_acceleration_excludes_ground_motion(self, model, rng):
        x = rng.standard_normal(2)
        aug = np.concatenate([x, model.true_parameters])

        np.testing.assert_allclose(model.acceleration(x), model.rhs(x, 0.0)[1])
        np.testing.assert_allclose(model.augmented_acceleration(aug), model.acceleration(x))

    def test_batch_evaluation(self, model, rng):
        X = rng.standard_normal((6, 4))
        batch = model.augmented_rhs(X, 0.2)

        assert batch.shape == (6, 4)
        np.testing.assert_allclose(batch[3], model.augmented_rhs(X[3], 0.2))
        assert model.augmented_acceleration(X).shape == (6,)


class TestTDOFOscillator:

    @pytest.fixture
    def model(self):
        return TDOFOscillator()

    def test_dimensions(self, model):
        assert (model.n_state, model.n_param, model.n_obs) == (4, 4, 2)
        np.testing.assert_allclose(model.true_parameters, [12.0, 10.0, 0.6, 0.5])

    def test_matches_matrix_form(self, model, rng):
        """Accelerations equal -M^-1 (C v + K x) for the shear frame matrices."""
        M = np.diag([model.m1, model.m2])
        C = np.array([[model.c1 + model.c2, -model.c2], [-model.c2, model.c2]])
        K = np.array([[model.k1 + model.k2, -model.k2], [-model.k2, model.k2]])
        x = rng.standard_normal(4)

        expected = -np.linalg.solve(M, C @ x[2:] + K @ x[:2])

        np.testing.assert_allclose(model.acceleration(x), expected)
        np.testing.assert_allclose(model.rhs(x, 0.3)[2:], expected - 0.3)
        np.testing.assert_allclose(model.rhs(x, 0.3)[:2], x[2:])

    def test_augmented_forms(self, model, rng):
        x = rng.standard_normal(4)
        aug = np.concatenate([x, model.true_parameters])

        np.testing.assert_allclose(model.augmented_rhs(aug, -0.4)[:4], model.rhs(x, -0.4))
        np.testing.assert_allclose(model.augmented_rhs(aug, -0.4)[4:], 0.0)
        np.testing.assert_allclose(model.augmented_acceleration(aug), model.acceleration(x))

    def test_batch_evaluation(self, model, rng):
        X = rng.standard_normal((5, 8))
        assert model.augmented_rhs(X, 0.0).shape == (5, 8)
        assert model.augmented_acceleration(X).shape == (5, 2)
