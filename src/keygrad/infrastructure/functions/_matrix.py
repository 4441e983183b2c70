"""
Matrix product Function.
"""

from __future__ import annotations

from typing import Any, Sequence

from ..ndarray import NdArray
from ..variable._variable import Variable
from ._base import Function


def _swap_last_two(a: NdArray) -> NdArray:
    perm = list(range(a.ndim))
    perm[-2], perm[-1] = perm[-1], perm[-2]
    return a.transpose(*perm)


class MatMul(Function):
    """
    Batched matrix product ``x @ w`` over the last two axes.

    Backward
    --------
    If ``y = x @ w``, then:

    - ``dL/dx = gy @ w^T``
    - ``dL/dw = x^T @ gy``

    where ``^T`` swaps the last two axes.
    """

    def require_input_num(self) -> int:
        return 2

    def forward(self, x: NdArray, w: NdArray) -> NdArray:
        self.save_for_backward(x, w)
        return x.matmul(w)

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        x, w = self.saved_tensors
        return (gy.matmul(_swap_last_two(w)), _swap_last_two(x).matmul(gy))


def matmul(x: Any, w: Any) -> Variable:
    return MatMul()(x, w)
