"""
Shape abstraction and broadcasting rules.

This module defines `Shape`, the immutable dimensionality descriptor shared by
every `NdArray`, together with the broadcasting helpers used by elementwise
kernels and by backward rules that must undo a forward broadcast.

Broadcasting follows the usual right-aligned rule: two shapes are compatible
when, comparing dimensions from the right, each pair is equal or one of the
pair is 1. The result dimension is the max of the pair.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Sequence, Union

from ._errors import IndexOutOfRangeError, NotSupportedAxisError, ShapeMismatchError

ShapeLike = Union["Shape", Sequence[int]]


class Shape:
    """
    Immutable ordered sequence of positive dimensions.

    Parameters
    ----------
    dims : Iterable[int]
        Dimensions of the shape. Every dimension must be an integer > 0.
        An empty sequence denotes the scalar shape (size 1).

    Raises
    ------
    ShapeMismatchError
        If any dimension is not a positive integer.

    Notes
    -----
    - `Shape` compares equal to plain tuples with the same dimensions, so
      `arr.shape == (2, 3)` works as expected.
    - `__slots__` keeps instances small and prevents accidental mutation.
    """

    __slots__ = ("_dims",)

    def __init__(self, dims: Iterable[int] = ()) -> None:
        dims = tuple(dims)
        normalized = []
        for d in dims:
            if isinstance(d, bool) or int(d) != d or int(d) <= 0:
                raise ShapeMismatchError(
                    "Shape", dims, detail="dimensions must be positive ints"
                )
            normalized.append(int(d))
        self._dims = tuple(normalized)

    @classmethod
    def of(cls, *dims: int) -> "Shape":
        """
        Construct a shape from positional dimensions, e.g. ``Shape.of(2, 3)``.
        """
        return cls(dims)

    @classmethod
    def coerce(cls, shape: ShapeLike) -> "Shape":
        """
        Return `shape` as a `Shape`, accepting tuples/lists or an int.
        """
        if isinstance(shape, Shape):
            return shape
        if isinstance(shape, int):
            return cls((shape,))
        return cls(tuple(shape))

    # ---------------------------------------------------------------------
    # Basic properties
    # ---------------------------------------------------------------------
    @property
    def dims(self) -> tuple[int, ...]:
        return self._dims

    @property
    def ndim(self) -> int:
        return len(self._dims)

    @property
    def size(self) -> int:
        """
        Total number of elements (product of the dimensions).
        """
        n = 1
        for d in self._dims:
            n *= d
        return n

    def is_scalar(self) -> bool:
        return self.size == 1

    def is_matrix(self) -> bool:
        return self.ndim == 2

    def __len__(self) -> int:
        return len(self._dims)

    def __iter__(self) -> Iterator[int]:
        return iter(self._dims)

    def __getitem__(self, i):
        return self._dims[i]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Shape):
            return self._dims == other._dims
        if isinstance(other, (tuple, list)):
            return self._dims == tuple(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._dims)

    def __repr__(self) -> str:
        return f"Shape{self._dims}"

    # ---------------------------------------------------------------------
    # Axis helpers
    # ---------------------------------------------------------------------
    def normalize_axis(self, axis: int) -> int:
        """
        Normalize a possibly negative axis into ``[0, ndim)``.

        Raises
        ------
        NotSupportedAxisError
            If the axis is out of range.
        """
        n = self.ndim
        a = axis + n if axis < 0 else axis
        if a < 0 or a >= n:
            raise NotSupportedAxisError("normalize_axis", axis, n)
        return a

    def keepdims(self, axis: int) -> "Shape":
        """
        Return this shape with `axis` set to 1.
        """
        a = self.normalize_axis(axis)
        dims = list(self._dims)
        dims[a] = 1
        return Shape(dims)

    def without_axis(self, axis: int) -> "Shape":
        a = self.normalize_axis(axis)
        return Shape(self._dims[:a] + self._dims[a + 1 :])

    # ---------------------------------------------------------------------
    # Broadcasting
    # ---------------------------------------------------------------------
    def broadcast_with(self, other: ShapeLike, op: str = "broadcast") -> "Shape":
        """
        Compute the broadcast result shape of `self` and `other`.

        Parameters
        ----------
        other : ShapeLike
            The second operand shape.
        op : str, optional
            Operation name reported in the error message.

        Raises
        ------
        ShapeMismatchError
            If the shapes are not broadcast-compatible.
        """
        other = Shape.coerce(other)
        a, b = self._dims, other._dims
        n = max(len(a), len(b))
        a = (1,) * (n - len(a)) + a
        b = (1,) * (n - len(b)) + b

        out = []
        for da, db in zip(a, b):
            if da == db or db == 1:
                out.append(da)
            elif da == 1:
                out.append(db)
            else:
                raise ShapeMismatchError(op, self, other)
        return Shape(out)

    def is_broadcastable_to(self, target: ShapeLike) -> bool:
        """
        Return True if `self` can be expanded to exactly `target`.
        """
        target = Shape.coerce(target)
        if self.ndim > target.ndim:
            return False
        padded = (1,) * (target.ndim - self.ndim) + self._dims
        return all(s == t or s == 1 for s, t in zip(padded, target.dims))

    def broadcast_source_index(
        self, index: Sequence[int], target: ShapeLike
    ) -> tuple[int, ...]:
        """
        Map an index in the expanded `target` shape to an index in `self`.

        Leading axes that only exist in `target` are dropped; axes where
        `self` has size 1 are clamped to 0.

        Raises
        ------
        ShapeMismatchError
            If `self` cannot be broadcast to `target`.
        IndexOutOfRangeError
            If `index` is not a valid index of `target`.
        """
        target = Shape.coerce(target)
        if not self.is_broadcastable_to(target):
            raise ShapeMismatchError("broadcast_source_index", self, target)
        if len(index) != target.ndim or any(
            i < 0 or i >= d for i, d in zip(index, target.dims)
        ):
            raise IndexOutOfRangeError("broadcast_source_index", tuple(index), target)

        pad = target.ndim - self.ndim
        return tuple(
            0 if d == 1 else i for i, d in zip(tuple(index)[pad:], self._dims)
        )

    # ---------------------------------------------------------------------
    # Row-major addressing
    # ---------------------------------------------------------------------
    def flat_index(self, index: Sequence[int]) -> int:
        """
        Convert a multi-dimensional index into a row-major flat offset.
        """
        if len(index) != self.ndim:
            raise IndexOutOfRangeError("flat_index", tuple(index), self)
        flat = 0
        for i, d in zip(index, self._dims):
            if i < 0 or i >= d:
                raise IndexOutOfRangeError("flat_index", tuple(index), self)
            flat = flat * d + i
        return flat

    def multi_index(self, flat: int) -> tuple[int, ...]:
        """
        Convert a row-major flat offset into a multi-dimensional index.
        """
        if flat < 0 or flat >= self.size:
            raise IndexOutOfRangeError("multi_index", flat, self)
        out = []
        for d in reversed(self._dims):
            out.append(flat % d)
            flat //= d
        return tuple(reversed(out))


def broadcast_shapes(*shapes: ShapeLike) -> Shape:
    """
    Fold `Shape.broadcast_with` over any number of shapes.
    """
    if not shapes:
        return Shape()
    out = Shape.coerce(shapes[0])
    for s in shapes[1:]:
        out = out.broadcast_with(s)
    return out


def sum_to_shape_axes(
    src_shape: ShapeLike, target_shape: ShapeLike
) -> tuple[int, tuple[int, ...]]:
    """
    Compute the reduction needed to collapse `src_shape` back to `target_shape`.

    Given a source (broadcast result) shape and the pre-broadcast target
    shape, returns:

    pad:
        Number of leading source axes that do not exist in the target.
        They are summed away entirely.
    reduce_axes:
        Axes (in source coordinates) where the target has size 1 but the
        source does not. They are summed with ``keepdims=True``.

    Raises
    ------
    ShapeMismatchError
        If `target_shape` could not have been broadcast to `src_shape`.
    """
    src = Shape.coerce(src_shape)
    tgt = Shape.coerce(target_shape)
    if not tgt.is_broadcastable_to(src):
        raise ShapeMismatchError("sum_to", src, tgt)

    pad = src.ndim - tgt.ndim
    reduce_axes = tuple(
        pad + i
        for i, (td, sd) in enumerate(zip(tgt.dims, src.dims[pad:]))
        if td == 1 and sd != 1
    )
    return pad, reduce_axes
