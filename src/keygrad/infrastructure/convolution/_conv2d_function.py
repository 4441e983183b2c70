"""
Autograd-enabled Conv2D Function (CPU).

`Conv2d` wraps the im2col kernels in `ops.conv2d_cpu`. The forward pass
saves the unfolded column matrix so the backward pass needs only two
matrix products and a col2im fold.

Layout
------
- x: (N, C_in, H, W), or (H, W) for a single-channel single-image input
- w: (C_out, C_in, K_h, K_w), or (K_h, K_w) alongside a 2-D input
- b: (C_out,) optional third input
- y: (N, C_out, H_out, W_out), or (H_out, W_out) in the 2-D case
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, Tuple, Union

from ...domain._errors import ShapeMismatchError
from ..functions._base import Function
from ..ndarray import NdArray
from ..ops.conv2d_cpu import conv2d_backward_cpu, conv2d_forward_cpu
from ..variable._variable import Variable


class Conv2d(Function):
    """
    2-D convolution (cross-correlation) with stride and symmetric padding.

    Parameters
    ----------
    stride : int or tuple[int, int], optional
        Convolution stride. Defaults to 1.
    padding : int or tuple[int, int], optional
        Zero-padding on each spatial side. Defaults to 0.
    bias : bool, optional
        When True the Function takes a third input, a bias of shape (C_out,).

    Notes
    -----
    Output spatial size is ``floor((in + 2 * pad - k) / stride) + 1``; a
    non-positive size raises `ShapeMismatchError`.
    """

    def __init__(
        self,
        stride: Union[int, Tuple[int, int]] = 1,
        padding: Union[int, Tuple[int, int]] = 0,
        bias: bool = False,
    ) -> None:
        super().__init__()
        self.stride = stride
        self.padding = padding
        self.bias = bias

    def require_input_num(self) -> int:
        return 3 if self.bias else 2

    def forward(self, x: NdArray, w: NdArray, b: Optional[NdArray] = None) -> NdArray:
        squeeze = x.ndim == 2 and w.ndim == 2
        if squeeze and b is not None:
            raise ShapeMismatchError(
                "conv2d", x.shape, w.shape, detail="bias requires NCHW input"
            )
        x_np, w_np = x.to_numpy(), w.to_numpy()
        if squeeze:
            x_np = x_np[None, None]
            w_np = w_np[None, None]

        y, cols = conv2d_forward_cpu(
            x_np,
            w_np,
            None if b is None else b.to_numpy(),
            self.stride,
            self.padding,
        )

        self.saved_meta["squeeze"] = squeeze
        self.saved_meta["x_shape"] = x_np.shape
        self.saved_meta["w"] = w_np
        self.saved_meta["cols"] = cols
        return NdArray._wrap(y[0, 0] if squeeze else y)

    def backward(self, gy: NdArray) -> Sequence[NdArray]:
        squeeze = self.saved_meta["squeeze"]
        w_np = self.saved_meta["w"]
        g = gy.to_numpy()
        if squeeze:
            g = g[None, None]

        gx, gw, gb = conv2d_backward_cpu(
            self.saved_meta["x_shape"],
            w_np,
            self.saved_meta["cols"],
            g,
            self.stride,
            self.padding,
            with_bias=self.bias,
        )
        if squeeze:
            gx, gw = gx[0, 0], gw[0, 0]

        grads = [NdArray._wrap(gx), NdArray._wrap(gw)]
        if self.bias:
            grads.append(NdArray._wrap(gb))
        return tuple(grads)


def conv2d(
    x: Any,
    w: Any,
    b: Any = None,
    stride: Union[int, Tuple[int, int]] = 1,
    padding: Union[int, Tuple[int, int]] = 0,
) -> Variable:
    """
    Functional 2-D convolution: ``Conv2d(stride, padding, bias)(x, w[, b])``.
    """
    if b is None:
        return Conv2d(stride, padding)(x, w)
    return Conv2d(stride, padding, bias=True)(x, w, b)
