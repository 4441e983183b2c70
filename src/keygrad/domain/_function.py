"""
Autograd function interface definitions.

This module defines the abstract contract for differentiable operations in
the automatic differentiation system. Concrete subclasses implement both the
forward computation over raw arrays and the corresponding backward rule.

This design is inspired by function-level autograd systems (e.g., PyTorch's
`autograd.Function`) while remaining lightweight and framework-agnostic: the
contract only speaks about arrays, not about how the graph is recorded.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from ._ndarray import INdArray


class IFunction(ABC):
    """
    Abstract base class for differentiable operations.

    An `IFunction` represents a single operator node in the computation graph
    and encapsulates:
    - the forward computation (pure, deterministic given input values)
    - the backward (vector-Jacobian) computation
    - the declared input arity

    Notes
    -----
    - `backward` must return exactly one gradient per forward input, in the
      same order as the inputs.
    - Any broadcasting performed in `forward` must be undone in `backward` by
      sum-reducing the gradient back to the corresponding input's shape.
    - Instances may keep state saved during `forward` for use in `backward`,
      but must not mutate their inputs.
    """

    @abstractmethod
    def forward(self, *xs: INdArray) -> INdArray:
        """
        Perform the forward computation.

        Parameters
        ----------
        *xs : INdArray
            Input arrays, one per declared input.

        Returns
        -------
        INdArray
            The output array.
        """
        ...

    @abstractmethod
    def backward(self, gy: INdArray) -> Sequence[INdArray]:
        """
        Compute gradients with respect to the forward inputs.

        Parameters
        ----------
        gy : INdArray
            Gradient of the loss with respect to the output of this operation.

        Returns
        -------
        Sequence[INdArray]
            One gradient per forward input, each shaped like its input.
        """
        ...

    @abstractmethod
    def require_input_num(self) -> int:
        """
        Return the number of inputs this operator expects.

        Returns
        -------
        int
            Exact number of inputs, or -1 for variadic operators.
        """
        ...
