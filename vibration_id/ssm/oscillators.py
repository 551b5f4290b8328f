"""Base-excited linear oscillators and their parameter-augmented forms.

All model functions take a single state [n] or a batch [N, n] and index
state components as x[..., i], so particle clouds propagate in one call.
The input u is the ground acceleration.
"""
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class SDOFOscillator:
    """
    Single degree of freedom oscillator under ground acceleration.

        m x'' + c x' + k x = -m x_g''

    State: [x, v] (relative displacement and velocity).
    Augmented state: [x, v, k, c] with constant parameters.

    Parameters
    ----------
    mass : float
        Mass (kN s^2/m), known to the filters
    damping : float
        Damping coefficient (kN s/m)
    stiffness : float
        Stiffness (kN/m)
    """
    mass: float = 1.0
    damping: float = 0.3
    stiffness: float = 9.0

    n_state = 2
    n_param = 2
    n_obs = 1
    parameter_names = ('stiffness', 'damping')

    @property
    def true_parameters(self):
        return np.array([self.stiffness, self.damping])

    def rhs(self, x, u):
        """Time derivative of [x, v]."""
        d, v = x[..., 0], x[..., 1]
        a = -(self.damping * v + self.stiffness * d) / self.mass - u
        return np.stack([v, a], axis=-1)

    def acceleration(self, x):
        """Absolute acceleration -(c v + k x) / m."""
        return -(self.damping * x[..., 1] + self.stiffness * x[..., 0]) / self.mass

    def augmented_rhs(self, x, u):
        """Time derivative of [x, v, k, c]; the parameters do not evolve."""
        d, v, k, c = x[..., 0], x[..., 1], x[..., 2], x[..., 3]
        a = -(c * v + k * d) / self.mass - u
        zero = np.zeros_like(d)
        return np.stack([v, a, zero, zero], axis=-1)

    def augmented_acceleration(self, x):
        """Absolute acceleration predicted from [x, v, k, c]."""
        return -(x[..., 3] * x[..., 1] + x[..., 2] * x[..., 0]) / self.mass


@dataclass(frozen=True)
class TDOFOscillator:
    """
    Two degree of freedom shear frame under ground acceleration.

        m1 x1'' + (c1 + c2) x1' - c2 x2' + (k1 + k2) x1 - k2 x2 = -m1 x_g''
        m2 x2'' - c2 x1' + c2 x2' - k2 x1 + k2 x2 = -m2 x_g''

    State: [x1, x2, v1, v2].
    Augmented state: [x1, x2, v1, v2, k1, k2, c1, c2].
    """
    m1: float = 1.0
    m2: float = 1.0
    c1: float = 0.6
    c2: float = 0.5
    k1: float = 12.0
    k2: float = 10.0

    n_state = 4
    n_param = 4
    n_obs = 2
    parameter_names = ('k1', 'k2', 'c1', 'c2')

    @property
    def true_parameters(self):
        return np.array([self.k1, self.k2, self.c1, self.c2])

    def _accelerations(self, x, k1, k2, c1, c2):
        x1, x2, v1, v2 = x[..., 0], x[..., 1], x[..., 2], x[..., 3]
        a1 = -((c1 + c2) * v1 - c2 * v2 + (k1 + k2) * x1 - k2 * x2) / self.m1
        a2 = -(-c2 * v1 + c2 * v2 - k2 * x1 + k2 * x2) / self.m2
        return a1, a2

    def rhs(self, x, u):
        """Time derivative of [x1, x2, v1, v2]."""
        a1, a2 = self._accelerations(x, self.k1, self.k2, self.c1, self.c2)
        return np.stack([x[..., 2], x[..., 3], a1 - u, a2 - u], axis=-1)

    def acceleration(self, x):
        """Absolute floor accelerations [a1, a2]."""
        return np.stack(self._accelerations(x, self.k1, self.k2, self.c1, self.c2), axis=-1)

    def augmented_rhs(self, x, u):
        """Time derivative of the augmented state; the parameters do not evolve."""
        a1, a2 = self._accelerations(x, x[..., 4], x[..., 5], x[..., 6], x[..., 7])
        zero = np.zeros_like(a1)
        return np.stack([x[..., 2], x[..., 3], a1 - u, a2 - u, zero, zero, zero, zero], axis=-1)

    def augmented_acceleration(self, x):
        """Absolute floor accelerations predicted from the augmented state."""
        return np.stack(self._accelerations(x, x[..., 4], x[..., 5], x[..., 6], x[..., 7]), axis=-1)
