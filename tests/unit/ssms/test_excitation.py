"""Unit tests for ground excitation records."""

import numpy as np
import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from vibration_id.ssm.excitation import (
    GRAVITY, load_excitation, harmonic_excitation, white_noise_excitation,
)


class TestLoadExcitation:

    def test_converts_g_to_acceleration(self, tmp_path):
        path = tmp_path / 'record.txt'
        np.savetxt(path, np.column_stack([0.02 * np.arange(1, 6), [0.1, -0.2, 0.0, 0.3, 0.05]]))

        t, x_g = load_excitation(path)

        np.testing.assert_allclose(t, 0.02 * np.arange(1, 6))
        np.testing.assert_allclose(x_g, GRAVITY * np.array([0.1, -0.2, 0.0, 0.3, 0.05]))

    def test_rejects_non_uniform_sampling(self, tmp_path):
        path = tmp_path / 'record.txt'
        np.savetxt(path, np.column_stack([[0.0, 0.02, 0.05], [0.0, 0.1, 0.2]]))
        with pytest.raises(ValueError):
            load_excitation(path)

    def test_rejects_wrong_columns(self, tmp_path):
        path = tmp_path / 'record.txt'
        np.savetxt(path, np.ones((4, 3)))
        with pytest.raises(ValueError):
            load_excitation(path)


class TestSyntheticExcitation:

    def test_harmonic_shape_and_ramp(self):
        t, x_g = harmonic_excitation(500, 0.02, ramp_time=2.0)
        _, x_full = harmonic_excitation(500, 0.02)

        assert t.shape == x_g.shape == (500,)
        np.testing.assert_allclose(t[0], 0.02)
        np.testing.assert_allclose(x_g, x_full * np.minimum(t / 2.0, 1.0))

    def test_harmonic_single_component(self):
        t, x_g = harmonic_excitation(100, 0.01, frequencies=(2.0,), amplitudes=(3.0,))
        np.testing.assert_allclose(x_g, 3.0 * np.sin(2 * np.pi * 2.0 * t))

    def test_white_noise_reproducible(self):
        _, a = white_noise_excitation(100, 0.02, np.random.default_rng(5), std=2.0)
        _, b = white_noise_excitation(100, 0.02, np.random.default_rng(5), std=2.0)
        np.testing.assert_array_equal(a, b)

    def test_white_noise_envelope(self, rng):
        t, x_g = white_noise_excitation(100, 0.02, rng, envelope=lambda t: (t > 1.0).astype(float))
        np.testing.assert_allclose(x_g[t <= 1.0], 0.0)
