"""
KeyGrad: a define-by-run reverse-mode automatic differentiation engine over
NumPy-backed N-dimensional arrays.

Typical use::

    from keygrad import Variable, functions as F

    x = Variable([[1.0, 2.0], [3.0, 4.0]])
    y = F.sum(F.tanh(x) * 2)
    y.backward()
    x.grad
"""

import logging

from .domain import (
    KeyGradError,
    ShapeMismatchError,
    GradientShapeError,
    ArityError,
    DomainError,
    DivisionByZeroError,
    IndexOutOfRangeError,
    NotSupportedAxisError,
    FunctionReuseError,
    Shape,
    broadcast_shapes,
)
from .infrastructure._config import (
    Config,
    config,
    load_config,
    using_config,
    no_grad,
    no_grad_fn,
    is_grad_enabled,
    get_dtype,
)
from .infrastructure.ndarray import NdArray
from .infrastructure.variable import Variable, as_variable
from .infrastructure.functions import Function
from .infrastructure import functions
from .infrastructure.convolution import Conv2d, conv2d
from .infrastructure.utils import gradient_check, numerical_grad

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "KeyGradError",
    "ShapeMismatchError",
    "GradientShapeError",
    "ArityError",
    "DomainError",
    "DivisionByZeroError",
    "IndexOutOfRangeError",
    "NotSupportedAxisError",
    "FunctionReuseError",
    "Shape",
    "broadcast_shapes",
    "Config",
    "config",
    "load_config",
    "using_config",
    "no_grad",
    "no_grad_fn",
    "is_grad_enabled",
    "get_dtype",
    "NdArray",
    "Variable",
    "as_variable",
    "Function",
    "functions",
    "Conv2d",
    "conv2d",
    "gradient_check",
    "numerical_grad",
]
