"""
Reduction Functions: Sum, SumTo, Mean, Max, Min.

Backward rules re-expand the upstream gradient to the input shape: the
reduced axis is restored as size 1 (when ``keepdims=False``) and then
broadcast.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from ...domain._shape import Shape
from ..ndarray import NdArray
from ..variable._variable import Variable
from ._base import Function


def _expand_grad(
    gy: NdArray, x_shape: Shape, axis: Optional[int], keepdims: bool
) -> NdArray:
    """
    Broadcast a reduced gradient back to `x_shape`.
    """
    if axis is not None and not keepdims:
        gy = gy.reshape(x_shape.keepdims(axis))
    return gy.broadcast_to(x_shape)


class _AxisReduction(Function):
    def __init__(self, axis: Optional[int] = None, keepdims: bool = False) -> None:
        super().__init__()
        self.axis = axis
        self.keepdims = keepdims


class Sum(_AxisReduction):
    def forward(self, x: NdArray) -> NdArray:
        """
        Sum `x` over `axis`, or over every element when `axis` is None.

        Parameters
        ----------
        x : NdArray
            Input values.

        Returns
        -------
        NdArray
            The reduced array. A full reduction without `keepdims` is 0-d.
        """
        self.saved_meta["x_shape"] = x.shape
        return x.sum(self.axis, self.keepdims)

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        """
        Broadcast `gy` back over the summed axes.
        """
        x_shape = self.saved_meta["x_shape"]
        return (_expand_grad(gy, x_shape, self.axis, self.keepdims),)


class Mean(_AxisReduction):
    def forward(self, x: NdArray) -> NdArray:
        """
        Average `x` over `axis`, remembering how many elements fed each
        output.
        """
        y = x.mean(self.axis, self.keepdims)
        self.saved_meta["x_shape"] = x.shape
        self.saved_meta["count"] = x.size // y.size
        return y

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        """
        Broadcast `gy` back and divide by the element count per output.
        """
        x_shape = self.saved_meta["x_shape"]
        g = _expand_grad(gy, x_shape, self.axis, self.keepdims)
        return (g.mul(1.0 / self.saved_meta["count"]),)


class _Extremum(_AxisReduction):
    """
    Shared backward for Max/Min: the gradient is split evenly among the
    elements that attain the extremum.
    """

    def _kernel(self, x: NdArray) -> NdArray:
        raise NotImplementedError

    def forward(self, x: NdArray) -> NdArray:
        y = self._kernel(x)
        self.save_for_backward(x, y)
        return y

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        """
        Route `gy` to the elements equal to the extremum.

        Parameters
        ----------
        gy : NdArray
            Upstream gradient in the reduced shape.

        Returns
        -------
        tuple[NdArray]
            Gradient in the input shape. Ties share the gradient equally.
        """
        x, y = self.saved_tensors
        hit = x.eq(_expand_grad(y, x.shape, self.axis, self.keepdims))
        if self.axis is None:
            count = hit.sum(keepdims=True)
        else:
            count = hit.sum(self.axis, keepdims=True)
        share = hit.div(count)
        return (share.mul(_expand_grad(gy, x.shape, self.axis, self.keepdims)),)


class Max(_Extremum):
    def _kernel(self, x: NdArray) -> NdArray:
        return x.max(self.axis, self.keepdims)


class Min(_Extremum):
    def _kernel(self, x: NdArray) -> NdArray:
        return x.min(self.axis, self.keepdims)


class SumTo(Function):
    """
    Sum-reduce the input down to a broadcast-compatible target shape.
    """

    def __init__(self, shape: Any) -> None:
        super().__init__()
        self.shape = Shape.coerce(shape)

    def forward(self, x: NdArray) -> NdArray:
        """
        Sum `x` down to the target shape.

        Raises
        ------
        ShapeMismatchError
            If the target shape does not broadcast to the shape of `x`.
        """
        self.saved_meta["x_shape"] = x.shape
        return x.sum_to(self.shape)

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        return (gy.broadcast_to(self.saved_meta["x_shape"]),)


# -------------------------------------------------------------------------
# Functional wrappers
# -------------------------------------------------------------------------
def sum(x: Any, axis: Optional[int] = None, keepdims: bool = False) -> Variable:
    return Sum(axis, keepdims)(x)


def mean(x: Any, axis: Optional[int] = None, keepdims: bool = False) -> Variable:
    return Mean(axis, keepdims)(x)


def max(x: Any, axis: Optional[int] = None, keepdims: bool = False) -> Variable:
    return Max(axis, keepdims)(x)


def min(x: Any, axis: Optional[int] = None, keepdims: bool = False) -> Variable:
    return Min(axis, keepdims)(x)


def sum_to(x: Any, shape: Any) -> Variable:
    return SumTo(shape)(x)
