"""
Broadcasting arithmetic Functions: Add, Sub, Mul, Div, Neg, Pow.

Binary operators accept broadcast-compatible operands. Their backward rules
sum the upstream gradient back down to each input's own shape.
"""

from __future__ import annotations

from typing import Any, Sequence

from ..ndarray import NdArray
from ..variable._variable import Variable
from ._base import Function


class _BinaryFunction(Function):
    """
    Shared plumbing for two-input broadcasting operators.
    """

    def require_input_num(self) -> int:
        return 2

    def _remember_shapes(self, x0: NdArray, x1: NdArray) -> None:
        self.saved_meta["x0_shape"] = x0.shape
        self.saved_meta["x1_shape"] = x1.shape

    def _reduce(self, g0: NdArray, g1: NdArray) -> Sequence[NdArray]:
        return (
            g0.sum_to(self.saved_meta["x0_shape"]),
            g1.sum_to(self.saved_meta["x1_shape"]),
        )


class Add(_BinaryFunction):
    def forward(self, x0: NdArray, x1: NdArray) -> NdArray:
        """
        Compute ``x0 + x1`` with broadcasting.

        Parameters
        ----------
        x0, x1 : NdArray
            Broadcast-compatible operands.

        Returns
        -------
        NdArray
            Sum in the broadcast shape.
        """
        self._remember_shapes(x0, x1)
        return x0.add(x1)

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        """
        Pass `gy` to both inputs, each summed down to its own shape.
        """
        return self._reduce(gy, gy)


class Sub(_BinaryFunction):
    def forward(self, x0: NdArray, x1: NdArray) -> NdArray:
        """
        Compute ``x0 - x1`` with broadcasting.
        """
        self._remember_shapes(x0, x1)
        return x0.sub(x1)

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        """
        Return ``(gy, -gy)``, each summed down to its input's shape.
        """
        return self._reduce(gy, gy.neg())


class Mul(_BinaryFunction):
    def forward(self, x0: NdArray, x1: NdArray) -> NdArray:
        """
        Compute the elementwise product ``x0 * x1`` with broadcasting.

        Both operands are saved; each one's gradient is scaled by the other.

        Parameters
        ----------
        x0, x1 : NdArray
            Broadcast-compatible operands.

        Returns
        -------
        NdArray
            Product in the broadcast shape.
        """
        self._remember_shapes(x0, x1)
        self.save_for_backward(x0, x1)
        return x0.mul(x1)

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        """
        Vector-Jacobian product of the elementwise product.

        Parameters
        ----------
        gy : NdArray
            Upstream gradient in the broadcast shape.

        Returns
        -------
        tuple[NdArray, NdArray]
            ``gy * x1`` and ``gy * x0``, reduced to the shapes of `x0` and
            `x1`.
        """
        x0, x1 = self.saved_tensors
        return self._reduce(gy.mul(x1), gy.mul(x0))


class Div(_BinaryFunction):
    """
    Elementwise division ``x0 / x1``.

    Backward
    --------
    ``d/dx0 = gy / x1`` and ``d/dx1 = -gy * x0 / x1**2``. The second term is
    evaluated as two divisions by `x1` so that it never divides by a value
    smaller than the one accepted in `forward`.
    """

    def forward(self, x0: NdArray, x1: NdArray) -> NdArray:
        """
        Compute ``x0 / x1`` with broadcasting.

        Raises
        ------
        DivisionByZeroError
            If any element of `x1` is within `config.epsilon` of zero.
        """
        self._remember_shapes(x0, x1)
        self.save_for_backward(x0, x1)
        return x0.div(x1)

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        x0, x1 = self.saved_tensors
        g0 = gy.div(x1)
        g1 = g0.mul(x0).div(x1).neg()
        return self._reduce(g0, g1)


class Neg(Function):
    def forward(self, x: NdArray) -> NdArray:
        return x.neg()

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        return (gy.neg(),)


class Pow(Function):
    """
    Raise the input to a constant scalar power `p`.

    Backward
    --------
    ``d/dx x**p = p * x**(p - 1)``
    """

    def __init__(self, p: float) -> None:
        super().__init__()
        self.p = float(p)

    def forward(self, x: NdArray) -> NdArray:
        """
        Compute ``x ** p`` elementwise.

        Parameters
        ----------
        x : NdArray
            Base values.

        Returns
        -------
        NdArray
            Powers of `x`, same shape as `x`.

        Raises
        ------
        DomainError
            If `p` is not an integer and `x` has negative elements.
        DivisionByZeroError
            If `p` is negative and `x` has elements within `config.epsilon`
            of zero.
        """
        self.save_for_backward(x)
        return x.pow(self.p)

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        """
        Return ``gy * p * x ** (p - 1)``.

        Raises
        ------
        DivisionByZeroError
            If ``p - 1`` is negative and `x` has elements within
            `config.epsilon` of zero, where the derivative is unbounded.
        """
        (x,) = self.saved_tensors
        if self.p == 0.0:
            return (gy.mul(0.0),)
        return (gy.mul(x.pow(self.p - 1.0)).mul(self.p),)


# -------------------------------------------------------------------------
# Functional wrappers
# -------------------------------------------------------------------------
def add(x0: Any, x1: Any) -> Variable:
    return Add()(x0, x1)


def sub(x0: Any, x1: Any) -> Variable:
    return Sub()(x0, x1)


def mul(x0: Any, x1: Any) -> Variable:
    return Mul()(x0, x1)


def div(x0: Any, x1: Any) -> Variable:
    return Div()(x0, x1)


def neg(x: Any) -> Variable:
    return Neg()(x)


def pow(x: Any, p: float) -> Variable:
    return Pow(p)(x)
