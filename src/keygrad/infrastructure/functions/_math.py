"""
Elementwise math Functions: Square, Sqrt, Exp, Log, Sin, Cos, Tanh, Abs, Clip.
"""

from __future__ import annotations

from typing import Any, Sequence

from ..ndarray import NdArray
from ..variable._variable import Variable
from ._base import Function


class Square(Function):
    def forward(self, x: NdArray) -> NdArray:
        """
        Compute ``x ** 2`` elementwise.

        Parameters
        ----------
        x : NdArray
            Input values.

        Returns
        -------
        NdArray
            Squares of `x`, same shape as `x`.
        """
        self.save_for_backward(x)
        return x.square()

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        """
        Return ``2 * x * gy``.
        """
        (x,) = self.saved_tensors
        return (gy.mul(x).mul(2.0),)


class Sqrt(Function):
    """
    Square root.

    Backward
    --------
    ``d/dx sqrt(x) = 1 / (2 * sqrt(x))``; undefined (raises) at ``x == 0``.
    """

    def forward(self, x: NdArray) -> NdArray:
        """
        Compute ``sqrt(x)`` and save the result for backward.

        Raises
        ------
        DomainError
            If `x` has negative elements.
        """
        y = x.sqrt()
        self.save_for_backward(y)
        return y

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        """
        Return ``gy / (2 * sqrt(x))``.

        Raises
        ------
        DivisionByZeroError
            If any saved output is within `config.epsilon` of zero.
        """
        (y,) = self.saved_tensors
        return (gy.div(y.mul(2.0)),)


class Exp(Function):
    def forward(self, x: NdArray) -> NdArray:
        """
        Compute ``exp(x)``. The output is saved, since it is also the
        derivative.
        """
        y = x.exp()
        self.save_for_backward(y)
        return y

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        (y,) = self.saved_tensors
        return (gy.mul(y),)


class Log(Function):
    def forward(self, x: NdArray) -> NdArray:
        """
        Compute the natural logarithm of `x`.

        Parameters
        ----------
        x : NdArray
            Strictly positive input.

        Returns
        -------
        NdArray
            ``log(x)``, same shape as `x`.

        Raises
        ------
        DomainError
            If any element of `x` is ``<= 0``.
        """
        self.save_for_backward(x)
        return x.log()

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        """
        Return ``gy / x``.
        """
        (x,) = self.saved_tensors
        return (gy.div(x),)


class Sin(Function):
    def forward(self, x: NdArray) -> NdArray:
        self.save_for_backward(x)
        return x.sin()

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        (x,) = self.saved_tensors
        return (gy.mul(x.cos()),)


class Cos(Function):
    def forward(self, x: NdArray) -> NdArray:
        self.save_for_backward(x)
        return x.cos()

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        (x,) = self.saved_tensors
        return (gy.mul(x.sin()).neg(),)


class Tanh(Function):
    def forward(self, x: NdArray) -> NdArray:
        y = x.tanh()
        self.save_for_backward(y)
        return y

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        """
        Return ``gy * (1 - tanh(x) ** 2)`` using the saved output.
        """
        (y,) = self.saved_tensors
        return (gy.mul(1.0 - y.square()),)


class Abs(Function):
    """
    Absolute value. The subgradient at 0 is taken as 0.
    """

    def forward(self, x: NdArray) -> NdArray:
        self.save_for_backward(x)
        return x.abs()

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        """
        Return ``gy * sign(x)``, which is zero where ``x == 0``.
        """
        (x,) = self.saved_tensors
        sign = x.gt(0.0).sub(x.lt(0.0))
        return (gy.mul(sign),)


class Clip(Function):
    """
    Clamp into ``[lo, hi]``. Gradient passes only where the input was inside
    the closed interval.
    """

    def __init__(self, lo: float, hi: float) -> None:
        super().__init__()
        self.lo = float(lo)
        self.hi = float(hi)

    def forward(self, x: NdArray) -> NdArray:
        """
        Clamp every element of `x` into ``[lo, hi]``.

        Parameters
        ----------
        x : NdArray
            Input values.

        Returns
        -------
        NdArray
            Clamped values, same shape as `x`.
        """
        self.save_for_backward(x)
        return x.clip(self.lo, self.hi)

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        """
        Pass `gy` where ``lo <= x <= hi`` and zero elsewhere.
        """
        (x,) = self.saved_tensors
        inside = 1.0 - x.lt(self.lo) - x.gt(self.hi)
        return (gy.mul(inside),)


# -------------------------------------------------------------------------
# Functional wrappers
# -------------------------------------------------------------------------
def square(x: Any) -> Variable:
    return Square()(x)


def sqrt(x: Any) -> Variable:
    return Sqrt()(x)


def exp(x: Any) -> Variable:
    return Exp()(x)


def log(x: Any) -> Variable:
    return Log()(x)


def sin(x: Any) -> Variable:
    return Sin()(x)


def cos(x: Any) -> Variable:
    return Cos()(x)


def tanh(x: Any) -> Variable:
    return Tanh()(x)


def abs(x: Any) -> Variable:
    return Abs()(x)


def clip(x: Any, lo: float, hi: float) -> Variable:
    return Clip(lo, hi)(x)
