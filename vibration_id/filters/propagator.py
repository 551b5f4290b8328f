"""Fixed-step discretization of continuous-time dynamics."""
import functools

from .common import check_step


def rk4_step(f, x, u, h):
    """
    Classical fourth-order Runge-Kutta step.

    Parameters
    ----------
    f : callable
        Vector field f(x, u) -> dx/dt. May accept a batch of states [N, n].
    x : ndarray [n] or [N, n]
        Current state(s)
    u : float or ndarray
        Input, held constant over the step
    h : float
        Step size

    Returns
    -------
    ndarray
        State(s) one step ahead. Non-finite values from f are returned as is.
    """
    k1 = f(x, u)
    k2 = f(x + 0.5 * h * k1, u)
    k3 = f(x + 0.5 * h * k2, u)
    k4 = f(x + h * k3, u)
    return x + (h / 6.0) * (k1 + 2*k2 + 2*k3 + k4)


def make_discrete(f, step):
    """
    Wrap a vector field into a step map g(x, u) -> x_next.

    With step=None, f is assumed to be a step map already and is returned
    unchanged.
    """
    check_step(step)
    if step is None:
        return f
    return functools.partial(_rk4_map, f, step)


def _rk4_map(f, h, x, u):
    return rk4_step(f, x, u, h)
