"""
N-dimensional array interface definitions.

This module defines the domain-level interface for array-like objects using
structural typing. The interface captures the kernel surface the operator
layer is written against: elementwise math, reductions, structural
transforms, matrix products and convolution.

Notes
-----
The concrete NumPy-backed `NdArray` in the infrastructure layer exposes
additional helpers (factories, comparison masks, scatter utilities). This
protocol only mirrors what `Function` implementations rely on, so that an
alternative backend can satisfy the same contract.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence, Union, runtime_checkable

from ._shape import Shape

Number = Union[int, float]


@runtime_checkable
class INdArray(Protocol):
    """
    Array interface.

    An `INdArray` is an immutable-shape, value-semantics container of floats.
    Every operation returns a new array; inputs are never mutated.
    """

    # ---------------------------------------------------------------------
    # Core identity
    # ---------------------------------------------------------------------
    @property
    def shape(self) -> Shape:
        """
        Return the array shape.
        """
        ...

    @property
    def ndim(self) -> int:
        ...

    @property
    def size(self) -> int:
        ...

    def to_numpy(self) -> Any:
        """
        Return a copy of the contents as a backend-native array.
        """
        ...

    def item(self) -> float:
        """
        Return the single value of a one-element array as a Python float.

        Raises
        ------
        ValueError
            If the array holds more than one element.
        """
        ...

    # ---------------------------------------------------------------------
    # Elementwise arithmetic (broadcasting)
    # ---------------------------------------------------------------------
    def __add__(self, other: Union["INdArray", Number]) -> "INdArray":
        ...

    def __sub__(self, other: Union["INdArray", Number]) -> "INdArray":
        ...

    def __mul__(self, other: Union["INdArray", Number]) -> "INdArray":
        ...

    def __truediv__(self, other: Union["INdArray", Number]) -> "INdArray":
        """
        Elementwise division.

        Raises
        ------
        DivisionByZeroError
            If any divisor magnitude is below the configured epsilon.
        """
        ...

    def __neg__(self) -> "INdArray":
        ...

    # ---------------------------------------------------------------------
    # Elementwise math
    # ---------------------------------------------------------------------
    def exp(self) -> "INdArray":
        ...

    def log(self) -> "INdArray":
        """
        Elementwise natural logarithm.

        Raises
        ------
        DomainError
            If any element is non-positive.
        """
        ...

    def sqrt(self) -> "INdArray":
        ...

    def pow(self, p: Number) -> "INdArray":
        ...

    # ---------------------------------------------------------------------
    # Reductions
    # ---------------------------------------------------------------------
    def sum(self, axis: Optional[int] = None, keepdims: bool = False) -> "INdArray":
        ...

    def max(self, axis: Optional[int] = None, keepdims: bool = False) -> "INdArray":
        ...

    # ---------------------------------------------------------------------
    # Structural
    # ---------------------------------------------------------------------
    def reshape(self, shape: Sequence[int]) -> "INdArray":
        """
        Return an array with the same elements in a new shape.

        Raises
        ------
        ShapeMismatchError
            If the element count would change.
        """
        ...

    def transpose(self, *axes: int) -> "INdArray":
        ...

    def broadcast_to(self, shape: Sequence[int]) -> "INdArray":
        ...

    def sum_to(self, shape: Sequence[int]) -> "INdArray":
        """
        Sum-reduce a broadcast result back to a pre-broadcast `shape`.
        """
        ...

    # ---------------------------------------------------------------------
    # Matrix products
    # ---------------------------------------------------------------------
    def matmul(self, other: "INdArray") -> "INdArray":
        """
        Batched matrix product over the last two axes.

        Raises
        ------
        ShapeMismatchError
            If contraction or batch dimensions do not match.
        """
        ...
