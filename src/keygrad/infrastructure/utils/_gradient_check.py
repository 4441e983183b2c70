"""
Finite-difference gradient checking.

`gradient_check` compares the analytic gradients produced by the reverse-mode
engine against centered finite differences of ``sum(f(*inputs))``. Checks
run in float64 so that the finite-difference error stays well below the
comparison tolerance.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import numpy as np

from .._config import no_grad, using_config
from ..ndarray import NdArray
from ..variable._variable import Variable

logger = logging.getLogger(__name__)


def _total(y: Any) -> float:
    value = y.value if isinstance(y, Variable) else y
    return float(value.sum().item())


def numerical_grad(
    f: Callable[[Variable], Any], x: Any, eps: float = 1e-4
) -> NdArray:
    """
    Centered finite-difference gradient of ``sum(f(x))`` with respect to `x`.

    Parameters
    ----------
    f : Callable[[Variable], Variable or NdArray]
        Function of one input. It receives a constant Variable.
    x : NdArray or array-like
        Point at which to differentiate.
    eps : float, optional
        Perturbation step. Defaults to 1e-4.

    Returns
    -------
    NdArray
        Array of the same shape as `x`.
    """
    if isinstance(x, Variable):
        x = x.value
    base = np.array(x.to_numpy() if isinstance(x, NdArray) else x, dtype=np.float64)
    grad = np.zeros_like(base)

    with no_grad():
        for idx in np.ndindex(base.shape):
            orig = base[idx]
            base[idx] = orig + eps
            f_plus = _total(f(Variable(base, requires_grad=False)))
            base[idx] = orig - eps
            f_minus = _total(f(Variable(base, requires_grad=False)))
            base[idx] = orig
            grad[idx] = (f_plus - f_minus) / (2.0 * eps)

    return NdArray(grad)


def gradient_check(
    f: Callable[..., Variable],
    *inputs: Any,
    eps: float = 1e-4,
    rtol: float = 1e-3,
    atol: float = 1e-5,
) -> bool:
    """
    Return True if the analytic gradients of ``sum(f(*inputs))`` match
    centered finite differences for every input.

    Parameters
    ----------
    f : Callable[..., Variable]
        Function under test; receives one Variable per input.
    *inputs : NdArray or array-like
        Evaluation point.
    eps : float, optional
        Finite-difference step.
    rtol, atol : float, optional
        Tolerances passed to `np.allclose`.

    Notes
    -----
    The whole check, including the backward pass, runs with
    ``dtype="float64"``.
    """
    with using_config("dtype", "float64"):
        xs = [
            Variable(x.to_numpy() if isinstance(x, (NdArray, Variable)) else x)
            for x in inputs
        ]
        y = f(*xs)
        y.backward()

        for i, x in enumerate(xs):

            def partial(xi: Variable, i: int = i) -> Any:
                args = [Variable(v.value, requires_grad=False) for v in xs]
                args[i] = xi
                return f(*args)

            expected = numerical_grad(partial, x.value, eps).to_numpy()
            actual = (
                x.grad.to_numpy() if x.grad is not None else np.zeros_like(expected)
            )
            if not np.allclose(actual, expected, rtol=rtol, atol=atol):
                logger.debug(
                    "gradient_check failed for input %d: max abs diff %g",
                    i,
                    float(np.max(np.abs(actual - expected))),
                )
                return False
    return True
