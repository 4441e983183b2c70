"""
Concrete Function base class: graph wiring around forward/backward rules.

Subclasses implement `forward` over raw `NdArray` values and `backward` as a
vector-Jacobian product, and declare their arity via `require_input_num`.
`Function.__call__` handles everything else:

1. arity validation
2. lifting raw inputs (NdArray, NumPy arrays, scalars) to constant Variables
3. running `forward`
4. wrapping the output and recording graph edges when gradients are enabled
"""

from __future__ import annotations

import logging
import warnings
import weakref
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ...domain._errors import ArityError, FunctionReuseError, GradientShapeError
from ...domain._function import IFunction
from .._config import is_grad_enabled
from ..ndarray import NdArray
from ..variable._variable import Variable, as_variable

logger = logging.getLogger(__name__)


class Function(IFunction):
    """
    Base class for every differentiable operator.

    A Function instance is one node of one graph. It keeps its input
    Variables, a weak reference to its output, its generation, and any state
    saved during `forward` for use in `backward`.

    Attributes
    ----------
    inputs : tuple[Variable, ...]
        Inputs of the most recent recorded call. Empty when the call was not
        recorded (no input required grad, or graph recording was disabled).
    generation : int
        Maximum generation among `inputs`.
    saved_tensors : list[NdArray]
        Arrays saved during `forward` (outputs, masks, intermediates).
    saved_meta : dict[str, Any]
        Non-array metadata required for backward (shapes, axes, indices).

    Notes
    -----
    - `backward` may return ``None`` for an input that cannot receive a
      gradient (e.g., integer class labels); the engine skips it.
    - Calling the same instance again while the output of its previous
      recorded call is alive raises `FunctionReuseError`. Once that output
      is gone the instance may be reused, with a `RuntimeWarning`. The
      lowercase functional wrappers create a fresh instance per call.
    """

    def __init__(self) -> None:
        self.inputs: Tuple[Variable, ...] = ()
        self._output: Optional[weakref.ReferenceType] = None
        self.generation: int = 0
        self.saved_tensors: List[NdArray] = []
        self.saved_meta: Dict[str, Any] = {}
        self._num_calls = 0

    # ---------------------------------------------------------------------
    # Identity
    # ---------------------------------------------------------------------
    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def output(self) -> Optional[Variable]:
        """
        The output Variable, or None if it was never recorded or has been
        garbage-collected.
        """
        return None if self._output is None else self._output()

    def __repr__(self) -> str:
        return f"{self.name}(generation={self.generation})"

    def require_input_num(self) -> int:
        return 1

    # ---------------------------------------------------------------------
    # Saved state
    # ---------------------------------------------------------------------
    def save_for_backward(self, *arrays: NdArray) -> None:
        """
        Save arrays for use during the backward computation.
        """
        self.saved_tensors.extend(arrays)

    def release(self) -> None:
        """
        Drop inputs, output reference and saved state.
        """
        self.inputs = ()
        self._output = None
        self.saved_tensors = []
        self.saved_meta = {}

    # ---------------------------------------------------------------------
    # Invocation
    # ---------------------------------------------------------------------
    def __call__(self, *inputs: Any) -> Variable:
        """
        Apply the operator to `inputs` and record the graph edge.

        Raises
        ------
        ArityError
            If the number of inputs does not match `require_input_num()`.
        FunctionReuseError
            If the output of the previous recorded call is still alive.
        """
        expected = self.require_input_num()
        if expected >= 0 and len(inputs) != expected:
            raise ArityError(self.name, expected, len(inputs))
        if expected < 0 and not inputs:
            raise ArityError(self.name, 1, 0)

        if self.output is not None:
            raise FunctionReuseError(self.name)
        if self._num_calls:
            warnings.warn(
                f"{self.name} instance invoked again; its previous graph edges "
                "are replaced. Use a fresh instance per call.",
                RuntimeWarning,
                stacklevel=2,
            )
        self._num_calls += 1
        self.release()

        xs = tuple(as_variable(x) for x in inputs)
        y = self.forward(*(x.value for x in xs))

        record = is_grad_enabled() and any(x.requires_grad for x in xs)
        out = Variable(y, requires_grad=record)
        if record:
            self.inputs = xs
            self.generation = max(x.generation for x in xs)
            out.set_creator(self)
            self._output = weakref.ref(out)
        else:
            self.saved_tensors = []
            self.saved_meta = {}
            logger.debug("%s: graph recording skipped", self.name)
        return out

    def backward_checked(self, gy: NdArray) -> Sequence[Optional[NdArray]]:
        """
        Run `backward` and validate the result against the recorded inputs.

        Raises
        ------
        ArityError
            If the number of gradients differs from the number of inputs.
        GradientShapeError
            If a gradient's shape differs from its input's shape.
        """
        gxs = self.backward(gy)
        if not isinstance(gxs, (tuple, list)):
            gxs = (gxs,)
        if len(gxs) != len(self.inputs):
            raise ArityError(
                f"{self.name}.backward", len(self.inputs), len(gxs), what="gradients"
            )
        for x, gx in zip(self.inputs, gxs):
            if gx is not None and gx.shape != x.shape:
                raise GradientShapeError(f"{self.name}.backward", x.shape, gx.shape)
        return gxs
