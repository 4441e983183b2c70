"""
Concrete NdArray implementation (NumPy backend).

This module provides `NdArray`, the value type every operator computes on. An
`NdArray` owns a contiguous NumPy buffer of the configured float dtype and an
immutable `Shape`. All kernels are pure: they return new arrays and never
mutate their operands. The single exception is `_iadd_`, reserved for the
gradient accumulator owned by the reverse-mode engine.

Kernels are grouped into mixins by family (arithmetic, unary, reduction,
structural, matrix), mirroring the layout of the kernel modules.

Design notes
------------
- Construction from a flat buffer plus explicit shape (`NdArray.of`) is the
  preferred builder; nested sequences are accepted and validated by NumPy.
- Every dimension must be positive, so empty arrays cannot be produced.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, Union

import numpy as np

from ...domain._errors import ShapeMismatchError
from ...domain._shape import Shape, ShapeLike
from .._config import get_dtype
from .mixins import (
    NdArrayMixinArithmetic,
    NdArrayMixinMatrix,
    NdArrayMixinReduction,
    NdArrayMixinStructural,
    NdArrayMixinUnary,
)

Number = Union[int, float]


class NdArray(
    NdArrayMixinArithmetic,
    NdArrayMixinUnary,
    NdArrayMixinReduction,
    NdArrayMixinStructural,
    NdArrayMixinMatrix,
):
    """
    N-dimensional float array with value semantics.

    Parameters
    ----------
    data : array-like or NdArray
        Source values: a NumPy array, nested sequence, scalar, another
        `NdArray`, or a flat buffer when `shape` is given. Data is copied.
    shape : ShapeLike, optional
        Explicit target shape. The element count of `data` must match.
    dtype : optional
        Override of the configured dtype.

    Raises
    ------
    ShapeMismatchError
        If `shape` does not match the number of elements in `data`, or if the
        resulting shape contains a zero-sized dimension.
    """

    # NumPy operands on the left defer to the reflected NdArray operator.
    __array_ufunc__ = None
    __array_priority__ = 1000

    __slots__ = ("_data", "_shape")

    def __init__(
        self,
        data: Any,
        shape: Optional[ShapeLike] = None,
        *,
        dtype: Any = None,
    ) -> None:
        dt = np.dtype(dtype) if dtype is not None else get_dtype()
        if isinstance(data, NdArray):
            arr = np.array(data._data, dtype=dt, copy=True)
        else:
            arr = np.array(data, dtype=dt)

        if shape is not None:
            target = Shape.coerce(shape)
            if arr.size != target.size:
                raise ShapeMismatchError(
                    "NdArray", arr.shape, target, detail="buffer size != shape size"
                )
            arr = arr.reshape(target.dims)

        self._shape = Shape(arr.shape)
        self._data = np.require(arr, requirements="C")

    # ---------------------------------------------------------------------
    # Internal construction
    # ---------------------------------------------------------------------
    @classmethod
    def _wrap(cls, arr: Any) -> "NdArray":
        """
        Wrap a freshly computed NumPy result without an extra copy.

        Non-float results (masks, indices) are cast to the configured dtype.
        """
        arr = np.asarray(arr)
        if arr.dtype.kind != "f":
            arr = arr.astype(get_dtype())
        obj = cls.__new__(cls)
        obj._shape = Shape(arr.shape)
        obj._data = np.require(arr, requirements="C")
        return obj

    def _as_ndarray(self, x: Union["NdArray", Number, np.ndarray]) -> "NdArray":
        """
        Lift a scalar or NumPy operand to an `NdArray` of this array's dtype.

        Scalars become 0-d arrays and broadcast against any shape.
        """
        if isinstance(x, NdArray):
            return x
        if isinstance(x, (int, float, np.number, np.ndarray)) and not isinstance(
            x, bool
        ):
            return type(self)._wrap(np.asarray(x, dtype=self._data.dtype))
        raise TypeError(f"Unsupported operand type: {type(x)!r}")

    # ---------------------------------------------------------------------
    # Factories
    # ---------------------------------------------------------------------
    @classmethod
    def of(cls, buffer: Sequence[float], shape: ShapeLike) -> "NdArray":
        """
        Build an array from a flat buffer and an explicit shape.
        """
        return cls(np.asarray(buffer).ravel(), shape)

    @classmethod
    def zeros(cls, shape: ShapeLike) -> "NdArray":
        return cls._wrap(np.zeros(Shape.coerce(shape).dims, dtype=get_dtype()))

    @classmethod
    def ones(cls, shape: ShapeLike) -> "NdArray":
        return cls._wrap(np.ones(Shape.coerce(shape).dims, dtype=get_dtype()))

    @classmethod
    def full(cls, shape: ShapeLike, value: Number) -> "NdArray":
        """
        Array of `shape` with every element set to `value`.
        """
        return cls._wrap(
            np.full(Shape.coerce(shape).dims, float(value), dtype=get_dtype())
        )

    like = full

    @classmethod
    def eye(cls, shape: Union[int, ShapeLike]) -> "NdArray":
        """
        Identity matrix. An int gives a square matrix; a 2-D shape gives
        ones on the main diagonal of a rectangular matrix.
        """
        s = Shape.coerce(shape)
        if s.ndim == 1:
            s = Shape.of(s[0], s[0])
        if s.ndim != 2:
            raise ShapeMismatchError("eye", s, detail="expected a 2-D shape")
        return cls._wrap(np.eye(s[0], s[1], dtype=get_dtype()))

    @classmethod
    def rand(
        cls,
        shape: ShapeLike,
        low: float = 0.0,
        high: float = 1.0,
        seed: Optional[int] = None,
    ) -> "NdArray":
        """
        Uniform random values in ``[low, high)``.
        """
        rng = np.random.default_rng(seed)
        dims = Shape.coerce(shape).dims
        return cls._wrap(rng.uniform(low, high, size=dims).astype(get_dtype()))

    @classmethod
    def randn(cls, shape: ShapeLike, seed: Optional[int] = None) -> "NdArray":
        """
        Standard normal random values.
        """
        rng = np.random.default_rng(seed)
        dims = Shape.coerce(shape).dims
        return cls._wrap(rng.standard_normal(size=dims).astype(get_dtype()))

    @classmethod
    def linspace(cls, start: float, stop: float, num: int) -> "NdArray":
        if num <= 0:
            raise ShapeMismatchError("linspace", (num,), detail="num must be positive")
        return cls._wrap(np.linspace(start, stop, num, dtype=get_dtype()))

    @classmethod
    def zeros_like(cls, other: "NdArray") -> "NdArray":
        return cls.zeros(other.shape)

    @classmethod
    def ones_like(cls, other: "NdArray") -> "NdArray":
        return cls.ones(other.shape)

    # ---------------------------------------------------------------------
    # Accessors
    # ---------------------------------------------------------------------
    @property
    def shape(self) -> Shape:
        return self._shape

    @property
    def ndim(self) -> int:
        return self._shape.ndim

    @property
    def size(self) -> int:
        return self._shape.size

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    def to_numpy(self) -> np.ndarray:
        """
        Return a copy of the buffer as a NumPy array of this array's shape.
        """
        return self._data.copy()

    def item(self) -> float:
        """
        Return the value of a single-element array as a Python float.

        Raises
        ------
        ValueError
            If the array holds more than one element.
        """
        if self.size != 1:
            raise ValueError(
                f"item() requires a single-element array, got shape={self.shape}"
            )
        return float(self._data.reshape(()))

    def get(self, *index: int) -> float:
        """
        Read one element by multi-dimensional index (bounds-checked).
        """
        flat = self._shape.flat_index(index)
        return float(self._data.reshape(-1)[flat])

    def flat(self) -> np.ndarray:
        """
        Return a copy of the row-major flat buffer.
        """
        return self._data.reshape(-1).copy()

    def copy(self) -> "NdArray":
        return type(self)._wrap(self._data.copy())

    def astype(self, dtype: Any) -> "NdArray":
        return type(self)(self, dtype=dtype)

    def allclose(
        self, other: Union["NdArray", Number], rtol: float = 1e-5, atol: float = 1e-8
    ) -> bool:
        other = self._as_ndarray(other)
        return bool(np.allclose(self._data, other._data, rtol=rtol, atol=atol))

    def __len__(self) -> int:
        if self.ndim == 0:
            raise TypeError("len() of a 0-d NdArray")
        return self._shape[0]

    def __repr__(self) -> str:
        body = np.array2string(self._data, precision=6, separator=", ")
        return f"NdArray({body}, shape={self._shape.dims}, dtype={self._data.dtype})"

    def __bool__(self) -> bool:
        raise TypeError(
            "The truth value of an NdArray is ambiguous; use .item() or allclose()."
        )

    # ---------------------------------------------------------------------
    # In-place accumulation (gradient buffers only)
    # ---------------------------------------------------------------------
    def _iadd_(self, other: "NdArray") -> None:
        """
        Add `other` into this buffer in place.

        Reserved for the engine's gradient accumulator; every other kernel is
        copy-on-write. Shapes must match exactly.
        """
        if other.shape != self.shape:
            raise ShapeMismatchError("accumulate", self.shape, other.shape)
        self._data += other._data.astype(self._data.dtype, copy=False)
