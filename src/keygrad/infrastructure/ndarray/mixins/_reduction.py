"""
Reduction kernels and numerically stable softmax.

``axis=None`` reduces over every element and yields the scalar shape ``()``.
``keepdims=True`` is implemented as the plain reduction followed by a
reshape that reinserts size-1 axes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import numpy as np

from ....domain._errors import NotSupportedAxisError
from ..._config import config

if TYPE_CHECKING:
    from .._ndarray import NdArray


class NdArrayMixinReduction:
    """
    Axis reductions (sum, mean, max, min, var), arg-reductions and softmax.
    """

    def _reduce(
        self, fn, op: str, axis: Optional[int], keepdims: bool
    ) -> "NdArray":
        if axis is None:
            out = fn(self._data)
            if keepdims:
                out = np.reshape(out, (1,) * self.ndim)
            return type(self)._wrap(np.asarray(out, dtype=self._data.dtype))

        try:
            a = self._shape.normalize_axis(axis)
        except NotSupportedAxisError as e:
            raise NotSupportedAxisError(op, axis, self.ndim) from e
        out = fn(self._data, axis=a)
        if keepdims:
            out = np.reshape(out, self._shape.keepdims(a).dims)
        return type(self)._wrap(np.asarray(out, dtype=self._data.dtype))

    def sum(self, axis: Optional[int] = None, keepdims: bool = False) -> "NdArray":
        return self._reduce(np.sum, "sum", axis, keepdims)

    def mean(self, axis: Optional[int] = None, keepdims: bool = False) -> "NdArray":
        return self._reduce(np.mean, "mean", axis, keepdims)

    def max(self, axis: Optional[int] = None, keepdims: bool = False) -> "NdArray":
        return self._reduce(np.max, "max", axis, keepdims)

    def min(self, axis: Optional[int] = None, keepdims: bool = False) -> "NdArray":
        return self._reduce(np.min, "min", axis, keepdims)

    def var(self, axis: Optional[int] = None, keepdims: bool = False) -> "NdArray":
        """
        Population variance (``ddof=0``).
        """
        return self._reduce(np.var, "var", axis, keepdims)

    # ---------------------------------------------------------------------
    # Arg-reductions
    # ---------------------------------------------------------------------
    def _arg_reduce(self, fn, op: str, axis: int) -> "NdArray":
        if self.ndim < 1:
            raise NotSupportedAxisError(op, axis, self.ndim)
        a = axis + self.ndim if axis < 0 else axis
        innermost = {self.ndim - 1}
        if self.ndim >= 2:
            innermost.add(self.ndim - 2)
        if a not in innermost:
            raise NotSupportedAxisError(
                op, axis, self.ndim, detail="only the two innermost axes are supported"
            )
        idx = fn(self._data, axis=a)
        return type(self)._wrap(
            np.reshape(idx, self._shape.keepdims(a).dims).astype(self._data.dtype)
        )

    def argmax(self, axis: int = -1) -> "NdArray":
        """
        Index of the maximum along `axis`, stored as floats.

        Only the last two axes are supported; the reduced axis is kept with
        size 1.

        Raises
        ------
        NotSupportedAxisError
            For any other axis.
        """
        return self._arg_reduce(np.argmax, "argmax", axis)

    def argmin(self, axis: int = -1) -> "NdArray":
        return self._arg_reduce(np.argmin, "argmin", axis)

    # ---------------------------------------------------------------------
    # Softmax
    # ---------------------------------------------------------------------
    def softmax(self, axis: int = -1) -> "NdArray":
        """
        Numerically stable softmax along `axis`.

        The per-axis max is subtracted before exponentiation and the
        normalizer is floored at ``config.epsilon``.
        """
        a = self._shape.normalize_axis(axis)
        x = self._data
        e = np.exp(x - np.max(x, axis=a, keepdims=True))
        s = np.maximum(np.sum(e, axis=a, keepdims=True), config.epsilon)
        return type(self)._wrap((e / s).astype(x.dtype, copy=False))

    def log_softmax(self, axis: int = -1) -> "NdArray":
        """
        Log of the softmax along `axis`, computed via log-sum-exp.
        """
        a = self._shape.normalize_axis(axis)
        x = self._data
        shifted = x - np.max(x, axis=a, keepdims=True)
        lse = np.log(np.sum(np.exp(shifted), axis=a, keepdims=True))
        return type(self)._wrap((shifted - lse).astype(x.dtype, copy=False))
