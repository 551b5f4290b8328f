"""Unit tests for metrics utility functions."""

import numpy as np
import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from vibration_id.utils.metrics import (
    compute_mse, compute_rmse, compute_nees, stability_summary,
    compute_symmetry_error, compute_min_eigenvalues, standard_deviations,
    relative_error_stats, parameter_estimate, parameter_relative_errors,
)


class TestComputeMSE:
    """Tests for MSE computation."""

    def test_known_value(self):
        """MSE should match hand-computed value."""
        estimated = np.array([1.0, 2.0, 3.0])
        true = np.array([0.0, 0.0, 0.0])

        # MSE = (1 + 4 + 9) / 3 = 14/3
        np.testing.assert_allclose(compute_mse(estimated, true), 14.0 / 3.0)
        np.testing.assert_allclose(compute_rmse(estimated, true), np.sqrt(14.0 / 3.0))


class TestComputeNEES:
    """Tests for NEES computation."""

    def test_identity_covariance(self, rng):
        T, n_x = 20, 3
        m_filt = rng.standard_normal((T, n_x))
        xs = rng.standard_normal((T, n_x))
        P_filt = np.array([np.eye(n_x) for _ in range(T)])

        nees = compute_nees(m_filt, P_filt, xs, regularize=0.0)

        np.testing.assert_allclose(nees, np.sum((xs - m_filt)**2, axis=1))

    def test_fallback_for_singular(self, rng):
        """Should stay finite for singular matrices."""
        T, n_x = 5, 2
        nees = compute_nees(rng.standard_normal((T, n_x)), np.zeros((T, n_x, n_x)),
                            rng.standard_normal((T, n_x)))

        assert np.all(np.isfinite(nees))


class TestCovarianceDiagnostics:

    def test_stability_summary(self):
        summary = stability_summary(np.array([10.0, 20.0, 30.0]), mse=0.5)
        assert summary == {'mean_cond': 20.0, 'max_cond': 30.0, 'mse': 0.5}

    def test_symmetry_error(self):
        P = np.array([[10.0, 0.1], [0.2, 10.0]])
        err = compute_symmetry_error(np.array([P, np.eye(2), np.zeros((2, 2))]))

        assert err[0] > 0
        np.testing.assert_allclose(err[1:], 0.0)

    def test_min_eigenvalues(self):
        P_bad = np.array([[1.0, 2.0], [2.0, 1.0]])  # eigenvalues: 3, -1
        np.testing.assert_allclose(compute_min_eigenvalues(np.array([P_bad, np.eye(2)])),
                                   [-1.0, 1.0])

    def test_standard_deviations(self):
        P_filt = np.array([np.diag([4.0, 9.0]), np.diag([1.0, 0.0])])
        np.testing.assert_allclose(standard_deviations(P_filt), [[2.0, 3.0], [1.0, 0.0]])


class TestRelativeErrors:

    def test_known_values(self):
        true = np.array([1.0, 2.0, 4.0])
        estimated = np.array([1.1, 1.8, 4.4])  # errors 0.1, -0.1, 0.1

        stats = relative_error_stats(estimated, true)

        np.testing.assert_allclose(stats['mean'], 0.1 / 3)
        np.testing.assert_allclose(stats['var'], np.var([0.1, -0.1, 0.1], ddof=1))
        np.testing.assert_allclose(stats['mean_square'], stats['var'] + stats['mean']**2)

    def test_zero_truth_skipped(self):
        stats = relative_error_stats(np.array([5.0, 2.0]), np.array([0.0, 1.0]))
        assert stats['mean'] == pytest.approx(1.0)
        assert stats['var'] == 0.0

    def test_parameter_estimate_averages_tail(self):
        means = np.zeros((10, 4))
        means[:, 2] = np.arange(10.0)
        means[:, 3] = 0.3

        theta = parameter_estimate(means, [2, 3], start=5)

        np.testing.assert_allclose(theta, [7.0, 0.3])

    def test_parameter_estimate_start_past_end(self):
        with pytest.raises(ValueError):
            parameter_estimate(np.zeros((10, 4)), [2, 3], start=10)

    def test_parameter_relative_errors(self):
        np.testing.assert_allclose(parameter_relative_errors([9.9, 0.33], [9.0, 0.3]), [0.1, 0.1])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
