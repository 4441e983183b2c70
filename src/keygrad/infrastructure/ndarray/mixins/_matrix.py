"""
Matrix products and 2-D convolution kernels.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Tuple, Union

import numpy as np

from ....domain._errors import ShapeMismatchError
from ...ops.conv2d_cpu import conv2d_forward_cpu

if TYPE_CHECKING:
    from .._ndarray import NdArray


class NdArrayMixinMatrix:
    """
    ``dot`` (2-D), batched ``matmul`` and im2col ``conv2d``.
    """

    def dot(self, other: "NdArray") -> "NdArray":
        """
        Plain 2-D matrix product.

        Raises
        ------
        ShapeMismatchError
            If either operand is not 2-D or the inner dimensions differ.
        """
        if self.ndim != 2 or other.ndim != 2 or self._shape[1] != other._shape[0]:
            raise ShapeMismatchError("dot", self._shape, other._shape)
        return type(self)._wrap(self._data @ other._data)

    def matmul(self, other: "NdArray") -> "NdArray":
        """
        Batched matrix product contracting the last two axes.

        Both operands need ``ndim >= 2`` and the same rank; leading batch
        dimensions must match positionally.

        Raises
        ------
        ShapeMismatchError
            On rank, batch or contraction mismatch.
        """
        a, b = self._shape, other._shape
        if (
            a.ndim < 2
            or b.ndim != a.ndim
            or a.dims[:-2] != b.dims[:-2]
            or a[-1] != b[-2]
        ):
            raise ShapeMismatchError("matmul", a, b)
        return type(self)._wrap(np.matmul(self._data, other._data))

    def __matmul__(self, other: "NdArray") -> "NdArray":
        return self.matmul(other)

    def conv2d(
        self,
        kernel: "NdArray",
        stride: Union[int, Tuple[int, int]] = 1,
        padding: Union[int, Tuple[int, int]] = 0,
    ) -> "NdArray":
        """
        2-D cross-correlation via im2col and a single matmul.

        Parameters
        ----------
        kernel : NdArray
            Kernel of shape (C_out, C_in, K_h, K_w), or (K_h, K_w) when this
            array is a 2-D single-channel image.
        stride, padding : int or tuple[int, int]
            Convolution hyperparameters.

        Returns
        -------
        NdArray
            (N, C_out, H_out, W_out) output, or a 2-D map for 2-D inputs.

        Raises
        ------
        ShapeMismatchError
            On rank or channel mismatch, or if the output would be empty.
        """
        x, w = self._data, kernel._data
        squeeze = x.ndim == 2 and w.ndim == 2
        if squeeze:
            x = x[np.newaxis, np.newaxis]
            w = w[np.newaxis, np.newaxis]
        y, _ = conv2d_forward_cpu(x, w, None, stride, padding)
        if squeeze:
            y = y[0, 0]
        return type(self)._wrap(y)
