"""
Elementwise unary kernels.

Domain-restricted functions (``log``, ``sqrt``, non-integer ``pow``) validate
their input first and raise `DomainError` instead of producing NaN.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Union

import numpy as np

from ....domain._errors import DivisionByZeroError, DomainError
from ..._config import config

if TYPE_CHECKING:
    from .._ndarray import NdArray


class NdArrayMixinUnary:
    """
    Elementwise unary math on NdArray.

    Every method returns a new array of the same shape as ``self``.
    """

    def _unary(self, fn) -> "NdArray":
        return type(self)._wrap(fn(self._data))

    def neg(self) -> "NdArray":
        return self._unary(np.negative)

    def abs(self) -> "NdArray":
        return self._unary(np.abs)

    def square(self) -> "NdArray":
        return self._unary(np.square)

    def exp(self) -> "NdArray":
        return self._unary(np.exp)

    def sin(self) -> "NdArray":
        return self._unary(np.sin)

    def cos(self) -> "NdArray":
        return self._unary(np.cos)

    def tanh(self) -> "NdArray":
        return self._unary(np.tanh)

    def sigmoid(self) -> "NdArray":
        """
        Logistic sigmoid, evaluated as ``0.5 * (tanh(x / 2) + 1)``.

        The tanh form never overflows for large ``|x|``.
        """
        return self._unary(lambda a: 0.5 * (np.tanh(0.5 * a) + 1.0))

    def log(self) -> "NdArray":
        """
        Natural logarithm.

        Raises
        ------
        DomainError
            If any element is ``<= 0``.
        """
        if np.any(self._data <= 0):
            raise DomainError("log", "input must be strictly positive")
        return self._unary(np.log)

    def sqrt(self) -> "NdArray":
        """
        Square root.

        Raises
        ------
        DomainError
            If any element is negative.
        """
        if np.any(self._data < 0):
            raise DomainError("sqrt", "input must be non-negative")
        return self._unary(np.sqrt)

    def pow(self, p: float) -> "NdArray":
        """
        Raise every element to the scalar power `p`.

        Raises
        ------
        DomainError
            If `p` is not an integer and any element is negative.
        DivisionByZeroError
            If `p` is negative and any element is within `config.epsilon`
            of zero.
        """
        p = float(p)
        if not p.is_integer() and np.any(self._data < 0):
            raise DomainError("pow", f"negative base with non-integer exponent {p}")
        if p < 0 and np.any(np.abs(self._data) < config.epsilon):
            raise DivisionByZeroError(config.epsilon)
        return self._unary(lambda a: np.power(a, p))

    def clip(self, lo: float, hi: float) -> "NdArray":
        """
        Clamp every element into ``[lo, hi]``.

        Raises
        ------
        ValueError
            If ``lo > hi``.
        """
        if lo > hi:
            raise ValueError(f"clip: lo={lo} is greater than hi={hi}")
        return self._unary(lambda a: np.clip(a, lo, hi))

    def mask(self, threshold: float = 0.0) -> "NdArray":
        """
        Return 1.0 where ``x > threshold`` and 0.0 elsewhere.
        """
        return self._unary(lambda a: (a > threshold).astype(a.dtype))

    def maximum(self, other: Union["NdArray", float]) -> "NdArray":
        """
        Elementwise maximum against a scalar or a broadcast-compatible array.
        """
        other = self._as_ndarray(other)
        self._shape.broadcast_with(other._shape, op="maximum")
        return type(self)._wrap(np.maximum(self._data, other._data))
