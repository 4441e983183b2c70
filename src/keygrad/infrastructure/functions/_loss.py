"""
Loss Functions: MeanSquaredError and SoftmaxCrossEntropy.

Both reduce to a scalar (shape ``()``) by averaging.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

import numpy as np

from ...domain._errors import IndexOutOfRangeError, ShapeMismatchError
from ..ndarray import NdArray
from ..variable._variable import Variable
from ._base import Function


class MeanSquaredError(Function):
    """
    ``mean((x0 - x1) ** 2)`` over every element.

    Raises
    ------
    ShapeMismatchError
        If the operands do not have identical shapes.
    """

    def require_input_num(self) -> int:
        return 2

    def forward(self, x0: NdArray, x1: NdArray) -> NdArray:
        if x0.shape != x1.shape:
            raise ShapeMismatchError("mean_squared_error", x0.shape, x1.shape)
        diff = x0.sub(x1)
        self.save_for_backward(diff)
        return diff.square().sum().mul(1.0 / diff.size)

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        (diff,) = self.saved_tensors
        g0 = diff.mul(gy).mul(2.0 / diff.size)
        return (g0, g0.neg())


class SoftmaxCrossEntropy(Function):
    """
    Mean cross-entropy between ``softmax(x, axis=1)`` and targets `t`.

    Parameters (call-time)
    ----------------------
    x : (N, C)
        Unnormalized logits.
    t : (N,) or (N, C)
        Either integer class labels (stored as floats) or per-class target
        probabilities (e.g., one-hot rows).

    Backward
    --------
    ``dL/dx = (softmax(x) * sum(t, axis=1) - t) / N``, which reduces to
    ``(softmax(x) - onehot(t)) / N`` for labels. Labels receive no gradient;
    probability targets receive ``-log_softmax(x) / N``.

    Raises
    ------
    ShapeMismatchError
        If `x` is not 2-D or `t` has neither accepted shape.
    IndexOutOfRangeError
        If a label is outside ``[0, C)``.
    """

    def require_input_num(self) -> int:
        return 2

    def forward(self, x: NdArray, t: NdArray) -> NdArray:
        if x.ndim != 2:
            raise ShapeMismatchError(
                "softmax_cross_entropy", x.shape, t.shape, detail="logits must be 2-D"
            )
        n, c = x.shape.dims
        log_p = x.log_softmax(axis=1)

        if t.shape == x.shape:
            target = t
            self.saved_meta["labels"] = False
        elif t.shape == (n,):
            labels = t.to_numpy().astype(np.int64)
            if labels.min() < 0 or labels.max() >= c:
                raise IndexOutOfRangeError("softmax_cross_entropy", labels.tolist(), x.shape)
            target = NdArray._wrap(np.eye(c, dtype=x.dtype)[labels])
            self.saved_meta["labels"] = True
        else:
            raise ShapeMismatchError("softmax_cross_entropy", x.shape, t.shape)

        self.save_for_backward(log_p, target)
        return log_p.mul(target).sum().mul(-1.0 / n)

    def backward(self, gy: NdArray) -> Sequence[Optional[NdArray]]:
        log_p, target = self.saved_tensors
        n = log_p.shape[0]
        scale = gy.mul(1.0 / n)
        mass = target.sum(1, keepdims=True)
        gx = log_p.exp().mul(mass).sub(target).mul(scale)
        if self.saved_meta["labels"]:
            return (gx, None)
        return (gx, log_p.mul(scale).neg())


def mean_squared_error(x0: Any, x1: Any) -> Variable:
    return MeanSquaredError()(x0, x1)


def softmax_cross_entropy(x: Any, t: Any) -> Variable:
    return SoftmaxCrossEntropy()(x, t)
