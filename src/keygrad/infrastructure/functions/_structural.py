"""
Shape and indexing Functions: Reshape, Transpose, BroadcastTo, GetItem,
Concat.
"""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np

from ...domain._shape import Shape
from ..ndarray import NdArray
from ..variable._variable import Variable
from ._base import Function


class Reshape(Function):
    def __init__(self, shape: Any) -> None:
        super().__init__()
        self.shape = Shape.coerce(shape)

    def forward(self, x: NdArray) -> NdArray:
        self.saved_meta["x_shape"] = x.shape
        return x.reshape(self.shape)

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        return (gy.reshape(self.saved_meta["x_shape"]),)


class Transpose(Function):
    """
    Axis permutation. With no axes the order is reversed.

    Backward applies the inverse permutation.
    """

    def __init__(self, *axes: int) -> None:
        super().__init__()
        if len(axes) == 1 and isinstance(axes[0], (tuple, list)):
            axes = tuple(axes[0])
        self.axes = tuple(axes)

    def forward(self, x: NdArray) -> NdArray:
        self.saved_meta["ndim"] = x.ndim
        return x.transpose(*self.axes)

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        if not self.axes:
            return (gy.transpose(),)
        ndim = self.saved_meta["ndim"]
        perm = [a + ndim if a < 0 else a for a in self.axes]
        inverse = tuple(int(i) for i in np.argsort(perm))
        return (gy.transpose(*inverse),)


class BroadcastTo(Function):
    def __init__(self, shape: Any) -> None:
        super().__init__()
        self.shape = Shape.coerce(shape)

    def forward(self, x: NdArray) -> NdArray:
        self.saved_meta["x_shape"] = x.shape
        return x.broadcast_to(self.shape)

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        return (gy.sum_to(self.saved_meta["x_shape"]),)


class GetItem(Function):
    """
    Basic or integer-array indexing.

    Backward scatter-adds the upstream gradient into a zero array of the
    input shape, so repeated indices accumulate.
    """

    def __init__(self, key: Any) -> None:
        super().__init__()
        if isinstance(key, Variable):
            key = key.value
        self.key = key

    def forward(self, x: NdArray) -> NdArray:
        self.saved_meta["x_shape"] = x.shape
        return x.get_item(self.key)

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        zeros = NdArray.zeros(self.saved_meta["x_shape"])
        return (zeros.add_at(self.key, gy),)


class Concat(Function):
    """
    Join any number of inputs along `axis`.

    Backward slices the upstream gradient back into per-input pieces.
    """

    def __init__(self, axis: int = 0) -> None:
        super().__init__()
        self.axis = axis

    def require_input_num(self) -> int:
        return -1

    def forward(self, *xs: NdArray) -> NdArray:
        y = NdArray.concat(xs, self.axis)
        self.saved_meta["sizes"] = [x.shape[self.axis] for x in xs]
        self.saved_meta["axis"] = y.shape.normalize_axis(self.axis)
        return y

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        axis = self.saved_meta["axis"]
        lead = (slice(None),) * axis
        grads = []
        start = 0
        for n in self.saved_meta["sizes"]:
            grads.append(gy.get_item(lead + (slice(start, start + n),)))
            start += n
        return tuple(grads)


# -------------------------------------------------------------------------
# Functional wrappers
# -------------------------------------------------------------------------
def reshape(x: Any, shape: Any) -> Variable:
    return Reshape(shape)(x)


def transpose(x: Any, *axes: int) -> Variable:
    return Transpose(*axes)(x)


def broadcast_to(x: Any, shape: Any) -> Variable:
    return BroadcastTo(shape)(x)


def get_item(x: Any, key: Any) -> Variable:
    return GetItem(key)(x)


def concat(xs: Sequence[Any], axis: int = 0) -> Variable:
    return Concat(axis)(*xs)
