"""Unit tests for Kalman Filter implementation."""

import numpy as np
import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from vibration_id.filters.common import ConfigurationError
from vibration_id.filters.kf import kalman_filter, _solve_lu, _solve_cholesky
from tests.unit.conftest import check_psd


class TestSolvers:
    """Tests for linear system solvers."""

    @pytest.mark.parametrize("solver_func", [_solve_lu, _solve_cholesky])
    def test_solver_correctness(self, solver_func):
        """Solvers should produce correct solution S @ X = B."""
        S = np.array([[4.0, 1.0], [1.0, 3.0]])
        B = np.array([[1.0], [2.0]])

        X = solver_func(S, B)

        np.testing.assert_allclose(S @ X, B, rtol=1e-10)

    def test_solver_selection(self, linear_ssm):
        """Both solvers should give the same trajectory."""
        m = linear_ssm
        args = (m['A'], m['C'], m['Q'], m['R'], m['m0'], m['P0'], m['ys'])

        m_lu, _, _ = kalman_filter(*args, us=m['us'], G=m['G'], solver='lu')
        m_chol, _, _ = kalman_filter(*args, us=m['us'], G=m['G'], solver='cholesky')

        np.testing.assert_allclose(m_lu, m_chol, rtol=1e-8)

    def test_unknown_solver(self, linear_ssm):
        m = linear_ssm
        with pytest.raises(ConfigurationError):
            kalman_filter(m['A'], m['C'], m['Q'], m['R'], m['m0'], m['P0'], m['ys'],
                          solver='inv')


class TestKalmanFilter:
    """Tests for Kalman Filter."""

    def test_output_shapes(self, linear_ssm):
        m = linear_ssm
        m_filt, P_filt, cond_nums = kalman_filter(
            m['A'], m['C'], m['Q'], m['R'], m['m0'], m['P0'], m['ys'], us=m['us'], G=m['G']
        )

        assert m_filt.shape == (m['T'], 2)
        assert P_filt.shape == (m['T'], 2, 2)
        assert cond_nums.shape == (m['T'],)

    def test_covariances_stay_psd(self, linear_ssm):
        m = linear_ssm
        _, P_filt, _ = kalman_filter(
            m['A'], m['C'], m['Q'], m['R'], m['m0'], m['P0'], m['ys'], us=m['us'], G=m['G'],
            joseph=False,
        )

        for P in P_filt:
            assert check_psd(P)

    def test_input_shifts_mean(self, linear_model):
        """With no information in the measurements, the input drives the mean."""
        m = linear_model
        T = 5
        ys = np.zeros((T, 1))
        R = np.array([[1e8]])
        us = np.ones(T)

        m_filt, _, _ = kalman_filter(m['A'], m['C'], m['Q'], R, m['m0'], m['P0'], ys,
                                     us=us, G=m['G'])

        expected = np.zeros(2)
        for t in range(T):
            expected = m['A'] @ expected + m['G'] * us[t]
        np.testing.assert_allclose(m_filt[-1], expected, atol=1e-6)

    def test_inputs_require_gain_matrix(self, linear_ssm):
        m = linear_ssm
        with pytest.raises(ConfigurationError):
            kalman_filter(m['A'], m['C'], m['Q'], m['R'], m['m0'], m['P0'], m['ys'], us=m['us'])
