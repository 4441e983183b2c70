"""
Shape-changing, indexing and scatter kernels.

All kernels here are copy-on-write: ``set_item``, ``add_at`` and ``add_to``
return a modified copy and leave the receiver untouched.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

import numpy as np

from ....domain._errors import (
    IndexOutOfRangeError,
    NotSupportedAxisError,
    ShapeMismatchError,
)
from ....domain._shape import Shape, sum_to_shape_axes
from .._broadcast import broadcast_array, sum_to_array

if TYPE_CHECKING:
    from .._ndarray import NdArray


def _normalize_key(op: str, key: Any, shape: Shape) -> Any:
    """
    Validate an indexing key against `shape` and convert NdArray index
    operands to integer NumPy arrays.

    Supports ints, slices, ``None``, ``Ellipsis``, integer arrays (including
    NdArrays holding integral floats) and boolean masks.

    Raises
    ------
    IndexOutOfRangeError
        If an integer or integer-array entry falls outside its axis, or if
        the key addresses more axes than `shape` has.
    """
    from .._ndarray import NdArray

    items = key if isinstance(key, tuple) else (key,)
    converted = []
    for item in items:
        if isinstance(item, NdArray):
            item = item._data.astype(np.int64)
        elif isinstance(item, (list, np.ndarray)):
            arr = np.asarray(item)
            if arr.dtype != bool:
                arr = arr.astype(np.int64)
            item = arr
        converted.append(item)

    consuming = [
        it
        for it in converted
        if it is not None and it is not Ellipsis
    ]
    n_axes = sum(
        it.ndim if isinstance(it, np.ndarray) and it.dtype == bool else 1
        for it in consuming
    )
    if n_axes > shape.ndim:
        raise IndexOutOfRangeError(op, key, shape)

    dim = 0
    for it in converted:
        if it is None:
            continue
        if it is Ellipsis:
            dim += shape.ndim - n_axes
            continue
        if isinstance(it, slice):
            dim += 1
            continue
        if isinstance(it, np.ndarray) and it.dtype == bool:
            if it.shape != tuple(shape.dims[dim : dim + it.ndim]):
                raise IndexOutOfRangeError(op, key, shape)
            dim += it.ndim
            continue
        if isinstance(it, (bool, np.bool_)):
            raise TypeError(f"{op}: boolean scalars are not valid indices")
        size = shape[dim]
        arr = np.asarray(it)
        if arr.dtype.kind not in "iu":
            raise TypeError(f"{op}: unsupported index type {type(it)!r}")
        if arr.size and (arr.min() < -size or arr.max() >= size):
            raise IndexOutOfRangeError(op, key, shape)
        dim += 1

    return tuple(converted)


class NdArrayMixinStructural:
    """
    Reshape, transpose, broadcast, slicing and block/scatter kernels.
    """

    # ---------------------------------------------------------------------
    # Shape manipulation
    # ---------------------------------------------------------------------
    def reshape(self, *shape: Any) -> "NdArray":
        """
        Return a copy with a new shape of the same size.

        Accepts either a single shape argument or positional dimensions.

        Raises
        ------
        ShapeMismatchError
            If the new shape has a different number of elements.
        """
        target = Shape.coerce(shape[0] if len(shape) == 1 else shape)
        if target.size != self.size:
            raise ShapeMismatchError("reshape", self._shape, target)
        return type(self)._wrap(self._data.reshape(target.dims).copy())

    def flatten(self) -> "NdArray":
        return self.reshape((self.size,))

    def transpose(self, *axes: Any) -> "NdArray":
        """
        Permute axes. With no arguments the axis order is reversed.

        Raises
        ------
        NotSupportedAxisError
            If `axes` is not a permutation of ``range(ndim)``.
        """
        if len(axes) == 1 and isinstance(axes[0], (tuple, list)):
            axes = tuple(axes[0])
        if not axes:
            perm = tuple(reversed(range(self.ndim)))
        else:
            perm = tuple(a + self.ndim if a < 0 else a for a in axes)
            if sorted(perm) != list(range(self.ndim)):
                raise NotSupportedAxisError(
                    "transpose", axes, self.ndim, detail="not a permutation"
                )
        return type(self)._wrap(np.transpose(self._data, perm))

    @property
    def T(self) -> "NdArray":
        return self.transpose()

    def broadcast_to(self, shape: Any) -> "NdArray":
        """
        Expand size-1 and missing leading axes to `shape`.

        Raises
        ------
        ShapeMismatchError
            If this array cannot be broadcast to exactly `shape`.
        """
        target = Shape.coerce(shape)
        if not self._shape.is_broadcastable_to(target):
            raise ShapeMismatchError("broadcast_to", self._shape, target)
        return type(self)._wrap(broadcast_array(self._data, target.dims))

    def sum_to(self, shape: Any) -> "NdArray":
        """
        Sum-reduce this array down to `shape`, undoing a broadcast.

        Raises
        ------
        ShapeMismatchError
            If `shape` could not have been broadcast to this array's shape.
        """
        target = Shape.coerce(shape)
        pad, axes = sum_to_shape_axes(self._shape, target)
        return type(self)._wrap(sum_to_array(self._data, target.dims, pad, axes))

    # ---------------------------------------------------------------------
    # Indexing
    # ---------------------------------------------------------------------
    def get_item(self, key: Any) -> "NdArray":
        """
        Basic or integer-array indexing, returning a copy.

        Raises
        ------
        IndexOutOfRangeError
            If an index is out of bounds or the selection is empty.
        """
        k = _normalize_key("get_item", key, self._shape)
        out = np.array(self._data[k])
        if out.size == 0:
            raise IndexOutOfRangeError("get_item", key, self._shape)
        return type(self)._wrap(out)

    def __getitem__(self, key: Any) -> "NdArray":
        return self.get_item(key)

    def set_item(self, key: Any, values: Any) -> "NdArray":
        """
        Return a copy with ``copy[key] = values``.
        """
        k = _normalize_key("set_item", key, self._shape)
        v = self._as_ndarray(values)._data
        out = self._data.copy()
        out[k] = v
        return type(self)._wrap(out)

    def add_at(self, key: Any, values: Any) -> "NdArray":
        """
        Scatter-add `values` into a copy at `key`.

        Duplicate indices accumulate, so this is the adjoint of `get_item`.
        """
        k = _normalize_key("add_at", key, self._shape)
        v = self._as_ndarray(values)._data
        out = self._data.copy()
        np.add.at(out, k, v)
        return type(self)._wrap(out)

    def add_to(self, offset: Sequence[int], other: "NdArray") -> "NdArray":
        """
        Return a copy with `other` added to the block starting at `offset`.

        Raises
        ------
        ShapeMismatchError
            If `other` has a different rank.
        IndexOutOfRangeError
            If the block does not fit inside this array.
        """
        other = self._as_ndarray(other)
        offset = tuple(int(o) for o in offset)
        if other.ndim != self.ndim or len(offset) != self.ndim:
            raise ShapeMismatchError("add_to", self._shape, other._shape)
        for o, d, n in zip(offset, other._shape.dims, self._shape.dims):
            if o < 0 or o + d > n:
                raise IndexOutOfRangeError("add_to", offset, self._shape)
        region = tuple(slice(o, o + d) for o, d in zip(offset, other._shape.dims))
        out = self._data.copy()
        out[region] += other._data
        return type(self)._wrap(out)

    def sub_ndarray(self, r0: int, r1: int, c0: int, c1: int) -> "NdArray":
        """
        Copy the 2-D block ``[r0:r1, c0:c1]``.

        Raises
        ------
        ShapeMismatchError
            If this array is not 2-D.
        IndexOutOfRangeError
            If the block is empty or out of bounds.
        """
        if self.ndim != 2:
            raise ShapeMismatchError("sub_ndarray", self._shape, detail="expected 2-D")
        rows, cols = self._shape.dims
        if not (0 <= r0 < r1 <= rows and 0 <= c0 < c1 <= cols):
            raise IndexOutOfRangeError("sub_ndarray", (r0, r1, c0, c1), self._shape)
        return type(self)._wrap(self._data[r0:r1, c0:c1].copy())

    # ---------------------------------------------------------------------
    # Joining
    # ---------------------------------------------------------------------
    @classmethod
    def concat(cls, arrays: Sequence["NdArray"], axis: int = 0) -> "NdArray":
        """
        Join arrays along an existing axis.

        Raises
        ------
        ShapeMismatchError
            If the arrays differ in any dimension other than `axis`.
        """
        arrays = list(arrays)
        if not arrays:
            raise ValueError("concat requires at least one array")
        first = arrays[0]._shape
        a = first.normalize_axis(axis)
        for arr in arrays[1:]:
            s = arr._shape
            if s.ndim != first.ndim or any(
                i != a and d0 != d1 for i, (d0, d1) in enumerate(zip(first, s))
            ):
                raise ShapeMismatchError("concat", first, s)
        return cls._wrap(np.concatenate([arr._data for arr in arrays], axis=a))

    @classmethod
    def stack(cls, arrays: Sequence["NdArray"], axis: int = 0) -> "NdArray":
        """
        Join same-shape arrays along a new axis.
        """
        arrays = list(arrays)
        if not arrays:
            raise ValueError("stack requires at least one array")
        first = arrays[0]._shape
        for arr in arrays[1:]:
            if arr._shape != first:
                raise ShapeMismatchError("stack", first, arr._shape)
        n = first.ndim + 1
        a = axis + n if axis < 0 else axis
        if a < 0 or a >= n:
            raise NotSupportedAxisError("stack", axis, n)
        return cls._wrap(np.stack([arr._data for arr in arrays], axis=a))
