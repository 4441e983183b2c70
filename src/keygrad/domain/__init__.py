"""
Backend-agnostic contracts: errors, shapes and the array/function/variable
interfaces.
"""

from ._errors import (
    KeyGradError,
    ShapeMismatchError,
    GradientShapeError,
    ArityError,
    DomainError,
    DivisionByZeroError,
    IndexOutOfRangeError,
    NotSupportedAxisError,
    FunctionReuseError,
)
from ._shape import Shape, broadcast_shapes, sum_to_shape_axes
from ._ndarray import INdArray
from ._function import IFunction
from ._variable import IVariable

__all__ = [
    KeyGradError.__name__,
    ShapeMismatchError.__name__,
    GradientShapeError.__name__,
    ArityError.__name__,
    DomainError.__name__,
    DivisionByZeroError.__name__,
    IndexOutOfRangeError.__name__,
    NotSupportedAxisError.__name__,
    FunctionReuseError.__name__,
    Shape.__name__,
    broadcast_shapes.__name__,
    sum_to_shape_axes.__name__,
    INdArray.__name__,
    IFunction.__name__,
    IVariable.__name__,
]
