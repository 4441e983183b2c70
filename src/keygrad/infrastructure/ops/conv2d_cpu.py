"""
CPU im2col-based Conv2D kernels for KeyGrad.

Convolution is lowered to a single matrix product: every receptive field of
the padded input is unrolled into one row of a column matrix (im2col), the
kernel is flattened to ``(C_out, C_in * K_h * K_w)``, and the output is
``cols @ kernel.T`` reshaped back to NCHW. The backward pass uses the
transposed products and folds column gradients back with col2im.

Tensor layout
-------------
All tensors follow the NCHW layout:

- N: batch size
- C: channels
- H: height
- W: width

Non-goals
---------
- Dilation, groups or asymmetric padding
- GPU execution
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from ...domain._errors import ShapeMismatchError


def _pair(v: int | Tuple[int, int]) -> Tuple[int, int]:
    """
    Normalize an integer or pair into a 2-tuple.

    Parameters
    ----------
    v : int or tuple[int, int]
        A scalar value or a 2D pair.

    Returns
    -------
    tuple[int, int]
        A normalized (height, width) pair.
    """
    return tuple(v) if isinstance(v, (tuple, list)) else (v, v)


def conv2d_output_size(
    in_size: int, kernel: int, stride: int, padding: int
) -> int:
    """
    Spatial output size ``floor((in + 2 * pad - k) / stride) + 1``.

    Raises
    ------
    ShapeMismatchError
        If `stride` is below 1, `padding` is negative, or the result is not
        positive.
    """
    if stride < 1 or padding < 0:
        raise ShapeMismatchError(
            "conv2d",
            (in_size,),
            (kernel,),
            detail=f"invalid stride={stride} or padding={padding}",
        )
    out = (in_size + 2 * padding - kernel) // stride + 1
    if out <= 0:
        raise ShapeMismatchError(
            "conv2d",
            (in_size,),
            (kernel,),
            detail=f"non-positive output size with stride={stride}, padding={padding}",
        )
    return out


def im2col(
    x: np.ndarray,
    kernel_size: Tuple[int, int],
    stride: int | Tuple[int, int],
    padding: int | Tuple[int, int],
) -> np.ndarray:
    """
    Unfold receptive fields of an NCHW input into rows.

    Parameters
    ----------
    x : np.ndarray
        Input of shape (N, C, H, W).
    kernel_size : tuple[int, int]
        (K_h, K_w).
    stride, padding : int or tuple[int, int]
        Convolution hyperparameters.

    Returns
    -------
    np.ndarray
        Column matrix of shape ``(N * H_out * W_out, C * K_h * K_w)``. Each row
        is one receptive field flattened in (C, K_h, K_w) order.
    """
    N, C, H, W = x.shape
    K_h, K_w = kernel_size
    s_h, s_w = _pair(stride)
    p_h, p_w = _pair(padding)
    H_out = conv2d_output_size(H, K_h, s_h, p_h)
    W_out = conv2d_output_size(W, K_w, s_w, p_w)

    x_pad = np.pad(
        x,
        pad_width=((0, 0), (0, 0), (p_h, p_h), (p_w, p_w)),
        mode="constant",
        constant_values=0.0,
    )

    cols = np.empty((N, C, K_h, K_w, H_out, W_out), dtype=x.dtype)
    for i in range(K_h):
        i_max = i + s_h * H_out
        for j in range(K_w):
            j_max = j + s_w * W_out
            cols[:, :, i, j, :, :] = x_pad[:, :, i:i_max:s_h, j:j_max:s_w]

    return cols.transpose(0, 4, 5, 1, 2, 3).reshape(N * H_out * W_out, -1)


def col2im(
    cols: np.ndarray,
    x_shape: Tuple[int, int, int, int],
    kernel_size: Tuple[int, int],
    stride: int | Tuple[int, int],
    padding: int | Tuple[int, int],
) -> np.ndarray:
    """
    Fold a column matrix back into an NCHW array, summing overlaps.

    This is the adjoint of `im2col`.
    """
    N, C, H, W = x_shape
    K_h, K_w = kernel_size
    s_h, s_w = _pair(stride)
    p_h, p_w = _pair(padding)
    H_out = conv2d_output_size(H, K_h, s_h, p_h)
    W_out = conv2d_output_size(W, K_w, s_w, p_w)

    cols6 = cols.reshape(N, H_out, W_out, C, K_h, K_w).transpose(0, 3, 4, 5, 1, 2)
    x_pad = np.zeros((N, C, H + 2 * p_h, W + 2 * p_w), dtype=cols.dtype)
    for i in range(K_h):
        i_max = i + s_h * H_out
        for j in range(K_w):
            j_max = j + s_w * W_out
            x_pad[:, :, i:i_max:s_h, j:j_max:s_w] += cols6[:, :, i, j, :, :]

    return x_pad[:, :, p_h : p_h + H, p_w : p_w + W]


def _check_shapes(x: np.ndarray, w: np.ndarray, b: Optional[np.ndarray]) -> None:
    if x.ndim != 4 or w.ndim != 4:
        raise ShapeMismatchError(
            "conv2d", x.shape, w.shape, detail="expected NCHW input and OIHW kernel"
        )
    if x.shape[1] != w.shape[1]:
        raise ShapeMismatchError(
            "conv2d",
            x.shape,
            w.shape,
            detail=f"in_channels mismatch: x has {x.shape[1]}, weight has {w.shape[1]}",
        )
    if b is not None and (b.ndim != 1 or b.shape[0] != w.shape[0]):
        raise ShapeMismatchError(
            "conv2d", b.shape, (w.shape[0],), detail="bias shape mismatch"
        )


def conv2d_forward_cpu(
    x: np.ndarray,
    w: np.ndarray,
    b: Optional[np.ndarray],
    stride: int | Tuple[int, int],
    padding: int | Tuple[int, int],
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute the forward pass of a 2D convolution (CPU, NumPy).

    Parameters
    ----------
    x : np.ndarray
        Input tensor of shape (N, C_in, H, W).
    w : np.ndarray
        Convolution kernel weights of shape (C_out, C_in, K_h, K_w).
    b : Optional[np.ndarray]
        Optional bias of shape (C_out,). If None, no bias is added.
    stride : int or tuple[int, int]
        Convolution stride.
    padding : int or tuple[int, int]
        Symmetric zero-padding.

    Returns
    -------
    (np.ndarray, np.ndarray)
        The output of shape (N, C_out, H_out, W_out), and the im2col column
        matrix, which the backward pass reuses.

    Raises
    ------
    ShapeMismatchError
        If ranks or channel counts do not match, or the output would be empty.
    """
    _check_shapes(x, w, b)
    N = x.shape[0]
    C_out, _, K_h, K_w = w.shape
    s_h, s_w = _pair(stride)
    p_h, p_w = _pair(padding)
    H_out = conv2d_output_size(x.shape[2], K_h, s_h, p_h)
    W_out = conv2d_output_size(x.shape[3], K_w, s_w, p_w)

    cols = im2col(x, (K_h, K_w), stride, padding)
    y = cols @ w.reshape(C_out, -1).T
    if b is not None:
        y = y + b
    y = y.reshape(N, H_out, W_out, C_out).transpose(0, 3, 1, 2)
    return np.ascontiguousarray(y, dtype=x.dtype), cols


def conv2d_backward_cpu(
    x_shape: Tuple[int, int, int, int],
    w: np.ndarray,
    cols: np.ndarray,
    grad_out: np.ndarray,
    stride: int | Tuple[int, int],
    padding: int | Tuple[int, int],
    with_bias: bool = False,
) -> Tuple[np.ndarray, np.ndarray, Optional[np.ndarray]]:
    """
    Compute the backward pass of a 2D convolution (CPU, NumPy).

    Parameters
    ----------
    x_shape : tuple[int, int, int, int]
        Shape of the forward input.
    w : np.ndarray
        Forward kernel of shape (C_out, C_in, K_h, K_w).
    cols : np.ndarray
        im2col matrix saved by `conv2d_forward_cpu`.
    grad_out : np.ndarray
        Upstream gradient of shape (N, C_out, H_out, W_out).
    stride, padding : int or tuple[int, int]
        Forward hyperparameters.
    with_bias : bool
        Whether to also return the bias gradient.

    Returns
    -------
    (grad_x, grad_w, grad_b)
        Gradients with the shapes of x, w and the bias (``None`` when
        `with_bias` is False).
    """
    C_out = w.shape[0]
    gy = grad_out.transpose(0, 2, 3, 1).reshape(-1, C_out)

    grad_w = (gy.T @ cols).reshape(w.shape)
    grad_cols = gy @ w.reshape(C_out, -1)
    grad_x = col2im(grad_cols, x_shape, w.shape[2:], stride, padding)
    grad_b = gy.sum(axis=0) if with_bias else None
    return (
        np.ascontiguousarray(grad_x, dtype=grad_out.dtype),
        np.ascontiguousarray(grad_w, dtype=grad_out.dtype),
        grad_b,
    )
