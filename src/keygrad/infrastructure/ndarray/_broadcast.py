"""
NumPy helpers for broadcasting and its adjoint (sum-to-shape).

Shape validation lives in `keygrad.domain._shape`; the helpers here assume
their arguments have already been checked.
"""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np


def broadcast_array(a: np.ndarray, shape: Tuple[int, ...]) -> np.ndarray:
    """
    Materialize `a` expanded to `shape` as a contiguous copy.
    """
    return np.array(np.broadcast_to(a, shape))


def sum_to_array(
    g: np.ndarray,
    shape: Tuple[int, ...],
    pad: int,
    reduce_axes: Sequence[int],
) -> np.ndarray:
    """
    Reduce `g` to `shape` by summing the leading `pad` axes away and summing
    `reduce_axes` with ``keepdims=True``.

    Parameters
    ----------
    g : np.ndarray
        Gradient in the broadcast (source) shape.
    shape : tuple[int, ...]
        Pre-broadcast target shape.
    pad : int
        Number of leading axes of `g` absent from `shape`.
    reduce_axes : Sequence[int]
        Axes of `g` (source coordinates) that were expanded from size 1.
    """
    out = g
    if reduce_axes:
        out = np.sum(out, axis=tuple(reduce_axes), keepdims=True)
    if pad:
        out = np.sum(out, axis=tuple(range(pad)))
    return np.require(np.reshape(out, shape), requirements="C")
