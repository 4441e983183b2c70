"""
Elementwise binary arithmetic and comparison kernels.

Operands must have identical or broadcast-compatible shapes. Python scalars
and NumPy values are lifted to 0-d arrays first, so ``x + 1.0`` and
``2.0 / x`` broadcast naturally.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Union

import numpy as np

from ....domain._errors import DivisionByZeroError
from ..._config import config

if TYPE_CHECKING:
    from .._ndarray import NdArray

Operand = Union["NdArray", int, float]


class NdArrayMixinArithmetic:
    """
    Broadcasting binary kernels: ``add``, ``sub``, ``mul``, ``div`` and the
    0/1-mask comparisons ``eq``, ``gt``, ``lt``.

    Notes
    -----
    - The result shape is ``self.shape.broadcast_with(other.shape)``.
      Incompatible shapes raise `ShapeMismatchError` naming the operation.
    - Division rejects any divisor whose magnitude is below
      ``config.epsilon``.
    """

    def _binary(self, other: Operand, op: str, fn) -> "NdArray":
        other = self._as_ndarray(other)
        self._shape.broadcast_with(other._shape, op=op)
        return type(self)._wrap(fn(self._data, other._data))

    def _rbinary(self, other: Operand, op: str, fn) -> "NdArray":
        return self._as_ndarray(other)._binary(self, op, fn)

    # ---------------------------------------------------------------------
    # Arithmetic
    # ---------------------------------------------------------------------
    def add(self, other: Operand) -> "NdArray":
        return self._binary(other, "add", np.add)

    def sub(self, other: Operand) -> "NdArray":
        return self._binary(other, "sub", np.subtract)

    def mul(self, other: Operand) -> "NdArray":
        return self._binary(other, "mul", np.multiply)

    def div(self, other: Operand) -> "NdArray":
        """
        Elementwise true division.

        Raises
        ------
        DivisionByZeroError
            If any divisor element satisfies ``|b| < config.epsilon``.
        ShapeMismatchError
            If the operands cannot be broadcast together.
        """
        other = self._as_ndarray(other)
        _check_divisor(other._data)
        return self._binary(other, "div", np.divide)

    def __add__(self, other: Operand) -> "NdArray":
        return self.add(other)

    def __radd__(self, other: Operand) -> "NdArray":
        return self._rbinary(other, "add", np.add)

    def __sub__(self, other: Operand) -> "NdArray":
        return self.sub(other)

    def __rsub__(self, other: Operand) -> "NdArray":
        return self._rbinary(other, "sub", np.subtract)

    def __mul__(self, other: Operand) -> "NdArray":
        return self.mul(other)

    def __rmul__(self, other: Operand) -> "NdArray":
        return self._rbinary(other, "mul", np.multiply)

    def __truediv__(self, other: Operand) -> "NdArray":
        return self.div(other)

    def __rtruediv__(self, other: Operand) -> "NdArray":
        return self._as_ndarray(other).div(self)

    def __neg__(self) -> "NdArray":
        return type(self)._wrap(-self._data)

    def __pow__(self, p: float) -> "NdArray":
        return self.pow(p)

    # ---------------------------------------------------------------------
    # Comparisons (0/1 masks)
    # ---------------------------------------------------------------------
    def eq(self, other: Operand) -> "NdArray":
        return self._binary(other, "eq", np.equal)

    def gt(self, other: Operand) -> "NdArray":
        return self._binary(other, "gt", np.greater)

    def lt(self, other: Operand) -> "NdArray":
        return self._binary(other, "lt", np.less)


def _check_divisor(b: np.ndarray) -> None:
    eps = config.epsilon
    if np.any(np.abs(b) < eps):
        raise DivisionByZeroError(eps)
