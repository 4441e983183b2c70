"""
Kernel mixins composing the concrete NdArray.

Each mixin groups one family of pure NumPy kernels:

- ``NdArrayMixinArithmetic`` : broadcasting add/sub/mul/div and comparisons
- ``NdArrayMixinUnary``      : elementwise math (exp, log, tanh, clip, ...)
- ``NdArrayMixinReduction``  : sum/mean/max/min/var, arg-reductions, softmax
- ``NdArrayMixinStructural`` : reshape, transpose, broadcast, slicing, scatter
- ``NdArrayMixinMatrix``     : dot, batched matmul and 2-D convolution

Mixins assume the host class provides ``_data`` (a NumPy buffer), ``_shape``
and the ``_wrap`` / ``_as_ndarray`` constructors.
"""

from ._arithmetic import NdArrayMixinArithmetic
from ._unary import NdArrayMixinUnary
from ._reduction import NdArrayMixinReduction
from ._structural import NdArrayMixinStructural
from ._matrix import NdArrayMixinMatrix

__all__ = [
    NdArrayMixinArithmetic.__name__,
    NdArrayMixinUnary.__name__,
    NdArrayMixinReduction.__name__,
    NdArrayMixinStructural.__name__,
    NdArrayMixinMatrix.__name__,
]
