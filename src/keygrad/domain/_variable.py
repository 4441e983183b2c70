"""
Variable interface definitions.

This module defines the structural interface of graph value nodes. A variable
wraps an array value, remembers the operator that produced it (its
"creator") and owns a gradient accumulator populated by reverse-mode
differentiation.

The protocol is split out from the concrete implementation so that code
written against the graph (layers, optimizers) can type against it without
importing the NumPy backend.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

from ._ndarray import INdArray


@runtime_checkable
class IVariable(Protocol):
    """
    Graph value node interface.

    Lifecycle
    ---------
    - Leaf: no creator (user-constructed, or detached).
    - Intermediate: produced by a Function call while gradients are tracked.
    - GradientPopulated: `grad` holds an accumulated gradient after `backward`.
    """

    @property
    def value(self) -> INdArray:
        """
        The wrapped array value.
        """
        ...

    @property
    def name(self) -> Optional[str]:
        ...

    @property
    def requires_grad(self) -> bool:
        """
        Whether gradients flow into (and accumulate on) this variable.
        """
        ...

    @property
    def creator(self) -> Optional[Any]:
        """
        The Function that produced this variable, or None for leaves.
        """
        ...

    @property
    def generation(self) -> int:
        """
        Topological depth: 0 for leaves, ``1 + max(input generations)`` otherwise.
        """
        ...

    @property
    def grad(self) -> Optional[INdArray]:
        """
        Accumulated gradient, or None if none has been accumulated.
        """
        ...

    def backward(self, grad: Optional[INdArray] = None) -> None:
        """
        Run reverse-mode differentiation from this variable.

        Parameters
        ----------
        grad : Optional[INdArray], optional
            Explicit seed gradient. When omitted, an all-ones array matching
            the value's shape is used.
        """
        ...

    def clear_grad(self) -> None:
        """
        Reset the gradient accumulator.
        """
        ...

    def unchain_backward(self) -> None:
        """
        Sever every creator edge in the subgraph this variable dominates.
        """
        ...
