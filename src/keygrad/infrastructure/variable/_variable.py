"""
Variable implementation and the reverse-mode differentiation engine.

A `Variable` wraps an `NdArray` value and records the `Function` that produced
it. Calling `backward()` on a Variable walks the recorded graph in decreasing
generation order, evaluates each Function's backward rule exactly once, and
accumulates the resulting gradients into every reached Variable that
requires them.

Graph ownership
---------------
- A Variable holds a strong reference to its creator Function.
- A Function holds strong references to its input Variables and a weak
  reference to its output, so the recorded graph contains no strong cycles.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Union

import numpy as np

from ...domain._errors import GradientShapeError, ShapeMismatchError
from ..ndarray import NdArray

if TYPE_CHECKING:
    from ..functions._base import Function

logger = logging.getLogger(__name__)

Number = Union[int, float]


class Variable:
    """
    Graph value node.

    Parameters
    ----------
    value : NdArray or array-like
        The wrapped value. An `NdArray` is stored as-is; NumPy arrays, nested
        sequences and scalars are converted with the configured dtype.
    name : Optional[str], optional
        Human-readable label used in ``repr``.
    requires_grad : bool, optional
        Whether gradients should flow into and accumulate on this variable.
        Defaults to True.

    Notes
    -----
    - `generation` is 0 for leaves and ``1 + max(input generations)`` for
      Function outputs.
    - The gradient accumulator is allocated lazily on the first backward pass
      that reaches this variable.
    """

    # `ndarray * Variable` defers to Variable.__rmul__.
    __array_ufunc__ = None
    __array_priority__ = 2000

    def __init__(
        self,
        value: Any,
        name: Optional[str] = None,
        requires_grad: bool = True,
    ) -> None:
        if isinstance(value, Variable):
            value = value.value
        self._value = value if isinstance(value, NdArray) else NdArray(value)
        self.name = name
        self._requires_grad = bool(requires_grad)
        self._creator: Optional["Function"] = None
        self.generation = 0
        self._grad: Optional[NdArray] = None

    # ---------------------------------------------------------------------
    # Value & metadata
    # ---------------------------------------------------------------------
    @property
    def value(self) -> NdArray:
        return self._value

    @value.setter
    def value(self, new_value: Any) -> None:
        """
        Replace the wrapped value (e.g., for a parameter update).
        """
        self._value = (
            new_value if isinstance(new_value, NdArray) else NdArray(new_value)
        )

    @property
    def shape(self):
        return self._value.shape

    @property
    def ndim(self) -> int:
        return self._value.ndim

    @property
    def size(self) -> int:
        return self._value.size

    @property
    def dtype(self) -> np.dtype:
        return self._value.dtype

    def to_numpy(self) -> np.ndarray:
        return self._value.to_numpy()

    def item(self) -> float:
        return self._value.item()

    def __len__(self) -> int:
        return len(self._value)

    def __repr__(self) -> str:
        label = f", name={self.name!r}" if self.name is not None else ""
        body = np.array2string(self._value._data, precision=6, separator=", ")
        return f"Variable({body}, shape={self.shape.dims}{label})"

    @property
    def requires_grad(self) -> bool:
        return self._requires_grad

    @requires_grad.setter
    def requires_grad(self, value: bool) -> None:
        self._requires_grad = bool(value)

    # ---------------------------------------------------------------------
    # Graph edges
    # ---------------------------------------------------------------------
    @property
    def creator(self) -> Optional["Function"]:
        return self._creator

    def set_creator(self, func: "Function") -> None:
        """
        Attach the Function that produced this variable.

        The generation becomes one more than the creator's generation.
        """
        self._creator = func
        self.generation = func.generation + 1

    def is_leaf(self) -> bool:
        return self._creator is None

    @staticmethod
    def call(function: "Function", *inputs: Any) -> "Variable":
        """
        Invoke `function` on `inputs`; equivalent to ``function(*inputs)``.
        """
        return function(*inputs)

    # ---------------------------------------------------------------------
    # Gradient accumulator
    # ---------------------------------------------------------------------
    @property
    def grad(self) -> Optional[NdArray]:
        """
        The accumulated gradient, or None if nothing has been accumulated.
        """
        return self._grad

    def get_grad(self) -> Optional[NdArray]:
        return self._grad

    def clear_grad(self) -> None:
        """
        Reset the gradient accumulator.

        Notes
        -----
        Training loops typically call this before each backward pass to
        avoid accumulating gradients across iterations.
        """
        self._grad = None

    zero_grad = clear_grad

    def _accumulate_grad_(self, g: NdArray) -> None:
        """
        Sum `g` into the gradient buffer, allocating it on first use.

        Raises
        ------
        GradientShapeError
            If `g` does not have this variable's shape.
        """
        if g.shape != self.shape:
            raise GradientShapeError("accumulate_grad", self.shape, g.shape)
        if self._grad is None:
            self._grad = g.copy()
            return
        if self._grad.shape != g.shape:
            raise GradientShapeError("accumulate_grad", self._grad.shape, g.shape)
        self._grad._iadd_(g)

    # ---------------------------------------------------------------------
    # Graph traversal
    # ---------------------------------------------------------------------
    def _iter_functions(self) -> Iterator["Function"]:
        """
        Yield every Function reachable from this variable's creator, once.
        """
        if self._creator is None:
            return
        stack: List["Function"] = [self._creator]
        seen = {id(self._creator)}
        while stack:
            f = stack.pop()
            yield f
            for x in f.inputs:
                c = x.creator
                if c is not None and id(c) not in seen:
                    seen.add(id(c))
                    stack.append(c)

    def backward(self, grad: Optional[Any] = None) -> None:
        """
        Backpropagate gradients from this variable through the recorded graph.

        Parameters
        ----------
        grad : Optional[NdArray or array-like], optional
            Seed gradient (a vector-Jacobian seed) with this variable's shape.
            If omitted, an all-ones array of this variable's shape is used,
            which for a non-scalar output is the gradient of ``sum(self)``.

        Raises
        ------
        ShapeMismatchError
            If an explicit seed does not match this variable's shape.
        ArityError
            If a Function's backward returns the wrong number of gradients.
        GradientShapeError
            If a Function's backward returns a gradient of the wrong shape.

        Notes
        -----
        - Calling backward on a leaf is a no-op.
        - Each Function is processed once, in strictly decreasing generation
          order, so every fan-out gradient is fully summed before it is
          propagated further.
        - Per-pass gradients are summed in a local table and only then added
          into each variable's `grad`; repeated passes therefore accumulate.
        """
        if self._creator is None:
            logger.debug("backward() on a leaf variable is a no-op")
            return

        if grad is None:
            if not self.shape.is_scalar():
                logger.debug(
                    "Implicit all-ones seed for non-scalar output shape=%s",
                    self.shape,
                )
            seed = NdArray.ones(self.shape)
        else:
            if isinstance(grad, Variable):
                grad = grad.value
            seed = grad if isinstance(grad, NdArray) else NdArray(grad)
            if seed.shape != self.shape:
                raise ShapeMismatchError("backward", self.shape, seed.shape)

        logger.debug(
            "backward start: shape=%s generation=%d", self.shape, self.generation
        )

        grads: Dict[int, NdArray] = {id(self): seed}
        reached: Dict[int, Variable] = {id(self): self}

        heap: list = []
        counter = itertools.count()
        queued = set()

        def push(f: "Function") -> None:
            if id(f) in queued:
                return
            queued.add(id(f))
            heapq.heappush(heap, (-f.generation, next(counter), f))

        push(self._creator)
        processed = 0

        while heap:
            _, _, f = heapq.heappop(heap)
            out = f.output
            if out is None:
                continue
            gy = grads.get(id(out))
            if gy is None:
                continue

            gxs = f.backward_checked(gy)
            processed += 1

            for x, gx in zip(f.inputs, gxs):
                if gx is None or not x.requires_grad:
                    continue
                xid = id(x)
                if xid in grads:
                    grads[xid] = grads[xid] + gx
                else:
                    grads[xid] = gx
                    reached[xid] = x
                if x.creator is not None:
                    push(x.creator)

        for vid, g in grads.items():
            v = reached[vid]
            if v.requires_grad:
                v._accumulate_grad_(g)

        logger.debug("backward done: %d functions processed", processed)

    def clear_grads(self) -> None:
        """
        Clear the gradient of this variable and of every variable reachable
        from it through creator edges.
        """
        self.clear_grad()
        for f in self._iter_functions():
            for x in f.inputs:
                x.clear_grad()

    # ---------------------------------------------------------------------
    # Graph cutting
    # ---------------------------------------------------------------------
    def unchain(self) -> None:
        """
        Drop this variable's creator edge, turning it into a leaf.
        """
        self._creator = None
        self.generation = 0

    def unchain_backward(self) -> None:
        """
        Sever every creator edge in the subgraph this variable dominates,
        including its own, so the whole recorded history can be collected.
        """
        funcs = list(self._iter_functions())
        for f in funcs:
            for x in f.inputs:
                x.unchain()
            f.release()
        self.unchain()
        logger.debug("unchain_backward: severed %d functions", len(funcs))

    def detach(self) -> "Variable":
        """
        Return a new leaf sharing this value, with ``requires_grad=False``.
        """
        return Variable(self._value, name=self.name, requires_grad=False)

    # ---------------------------------------------------------------------
    # Operator overloads
    # ---------------------------------------------------------------------
    def __add__(self, other: Any) -> "Variable":
        from ..functions import add

        return add(self, other)

    def __radd__(self, other: Any) -> "Variable":
        from ..functions import add

        return add(other, self)

    def __sub__(self, other: Any) -> "Variable":
        from ..functions import sub

        return sub(self, other)

    def __rsub__(self, other: Any) -> "Variable":
        from ..functions import sub

        return sub(other, self)

    def __mul__(self, other: Any) -> "Variable":
        from ..functions import mul

        return mul(self, other)

    def __rmul__(self, other: Any) -> "Variable":
        from ..functions import mul

        return mul(other, self)

    def __truediv__(self, other: Any) -> "Variable":
        from ..functions import div

        return div(self, other)

    def __rtruediv__(self, other: Any) -> "Variable":
        from ..functions import div

        return div(other, self)

    def __neg__(self) -> "Variable":
        from ..functions import neg

        return neg(self)

    def __pow__(self, p: Number) -> "Variable":
        from ..functions import pow

        return pow(self, p)

    def __matmul__(self, other: Any) -> "Variable":
        from ..functions import matmul

        return matmul(self, other)

    def __rmatmul__(self, other: Any) -> "Variable":
        from ..functions import matmul

        return matmul(other, self)

    def __getitem__(self, key: Any) -> "Variable":
        from ..functions import get_item

        return get_item(self, key)

    # ---------------------------------------------------------------------
    # Functional API mirrors
    # ---------------------------------------------------------------------
    def sum(self, axis: Optional[int] = None, keepdims: bool = False) -> "Variable":
        from ..functions import sum as _sum

        return _sum(self, axis, keepdims)

    def mean(self, axis: Optional[int] = None, keepdims: bool = False) -> "Variable":
        from ..functions import mean

        return mean(self, axis, keepdims)

    def max(self, axis: Optional[int] = None, keepdims: bool = False) -> "Variable":
        from ..functions import max as _max

        return _max(self, axis, keepdims)

    def min(self, axis: Optional[int] = None, keepdims: bool = False) -> "Variable":
        from ..functions import min as _min

        return _min(self, axis, keepdims)

    def reshape(self, *shape: Any) -> "Variable":
        from ..functions import reshape

        return reshape(self, shape[0] if len(shape) == 1 else shape)

    def transpose(self, *axes: int) -> "Variable":
        from ..functions import transpose

        return transpose(self, *axes)

    @property
    def T(self) -> "Variable":
        return self.transpose()

    def broadcast_to(self, shape: Any) -> "Variable":
        from ..functions import broadcast_to

        return broadcast_to(self, shape)

    def sum_to(self, shape: Any) -> "Variable":
        from ..functions import sum_to

        return sum_to(self, shape)

    def matmul(self, other: Any) -> "Variable":
        from ..functions import matmul

        return matmul(self, other)

    def exp(self) -> "Variable":
        from ..functions import exp

        return exp(self)

    def log(self) -> "Variable":
        from ..functions import log

        return log(self)

    def sqrt(self) -> "Variable":
        from ..functions import sqrt

        return sqrt(self)

    def square(self) -> "Variable":
        from ..functions import square

        return square(self)

    def sin(self) -> "Variable":
        from ..functions import sin

        return sin(self)

    def cos(self) -> "Variable":
        from ..functions import cos

        return cos(self)

    def tanh(self) -> "Variable":
        from ..functions import tanh

        return tanh(self)

    def sigmoid(self) -> "Variable":
        from ..functions import sigmoid

        return sigmoid(self)

    def relu(self) -> "Variable":
        from ..functions import relu

        return relu(self)

    def abs(self) -> "Variable":
        from ..functions import abs as _abs

        return _abs(self)

    def clip(self, lo: float, hi: float) -> "Variable":
        from ..functions import clip

        return clip(self, lo, hi)

    def softmax(self, axis: int = -1) -> "Variable":
        from ..functions import softmax

        return softmax(self, axis)

    def log_softmax(self, axis: int = -1) -> "Variable":
        from ..functions import log_softmax

        return log_softmax(self, axis)

    def conv2d(
        self,
        kernel: Any,
        stride: Union[int, tuple] = 1,
        padding: Union[int, tuple] = 0,
    ) -> "Variable":
        from ..convolution import conv2d

        return conv2d(self, kernel, stride=stride, padding=padding)


def as_variable(obj: Any) -> Variable:
    """
    Return `obj` unchanged if it is a Variable, otherwise wrap it as a
    constant (``requires_grad=False``) leaf.
    """
    if isinstance(obj, Variable):
        return obj
    return Variable(obj, requires_grad=False)
