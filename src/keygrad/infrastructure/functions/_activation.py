"""
Activation Functions: Sigmoid, ReLU, Maximum, Softmax, LogSoftmax.
"""

from __future__ import annotations

from typing import Any, Sequence

from ..ndarray import NdArray
from ..variable._variable import Variable
from ._base import Function


class Sigmoid(Function):
    """
    Logistic sigmoid.

    Backward
    --------
    ``d/dx sigmoid(x) = y * (1 - y)`` with ``y = sigmoid(x)``.
    """

    def forward(self, x: NdArray) -> NdArray:
        y = x.sigmoid()
        self.save_for_backward(y)
        return y

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        (y,) = self.saved_tensors
        return (gy.mul(y).mul(1.0 - y),)


class Maximum(Function):
    """
    Elementwise ``max(x, floor)`` against a constant scalar floor.

    The gradient passes where ``x > floor`` and is 0 elsewhere, ties
    included.
    """

    def __init__(self, floor: float = 0.0) -> None:
        super().__init__()
        self.floor = float(floor)

    def forward(self, x: NdArray) -> NdArray:
        self.save_for_backward(x)
        return x.maximum(self.floor)

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        (x,) = self.saved_tensors
        return (gy.mul(x.mask(self.floor)),)


class ReLU(Maximum):
    def __init__(self) -> None:
        super().__init__(0.0)


class Softmax(Function):
    """
    Numerically stable softmax along `axis`.

    Backward
    --------
    ``gx = y * (gy - sum(gy * y, axis, keepdims=True))``
    """

    def __init__(self, axis: int = -1) -> None:
        super().__init__()
        self.axis = axis

    def forward(self, x: NdArray) -> NdArray:
        y = x.softmax(self.axis)
        self.save_for_backward(y)
        return y

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        (y,) = self.saved_tensors
        dot = gy.mul(y).sum(self.axis, keepdims=True)
        return (y.mul(gy.sub(dot)),)


class LogSoftmax(Function):
    """
    Log-softmax along `axis`.

    Backward
    --------
    ``gx = gy - exp(y) * sum(gy, axis, keepdims=True)``
    """

    def __init__(self, axis: int = -1) -> None:
        super().__init__()
        self.axis = axis

    def forward(self, x: NdArray) -> NdArray:
        y = x.log_softmax(self.axis)
        self.save_for_backward(y)
        return y

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        (y,) = self.saved_tensors
        return (gy.sub(y.exp().mul(gy.sum(self.axis, keepdims=True))),)


# -------------------------------------------------------------------------
# Functional wrappers
# -------------------------------------------------------------------------
def sigmoid(x: Any) -> Variable:
    return Sigmoid()(x)


def relu(x: Any) -> Variable:
    return ReLU()(x)


def maximum(x: Any, floor: float = 0.0) -> Variable:
    return Maximum(floor)(x)


def softmax(x: Any, axis: int = -1) -> Variable:
    return Softmax(axis)(x)


def log_softmax(x: Any, axis: int = -1) -> Variable:
    return LogSoftmax(axis)(x)
