"""
Concrete differentiable operators and their functional wrappers.

Every operator is a `Function` subclass; the lowercase wrappers create a
fresh instance per call, e.g. ``add(x0, x1) == Add()(x0, x1)``.
"""

from ._base import Function
from ._arithmetic import Add, Sub, Mul, Div, Neg, Pow, add, sub, mul, div, neg, pow
from ._math import (
    Square,
    Sqrt,
    Exp,
    Log,
    Sin,
    Cos,
    Tanh,
    Abs,
    Clip,
    square,
    sqrt,
    exp,
    log,
    sin,
    cos,
    tanh,
    abs,
    clip,
)
from ._activation import (
    Sigmoid,
    ReLU,
    Maximum,
    Softmax,
    LogSoftmax,
    sigmoid,
    relu,
    maximum,
    softmax,
    log_softmax,
)
from ._reduction import Sum, SumTo, Mean, Max, Min, sum, sum_to, mean, max, min
from ._structural import (
    Reshape,
    Transpose,
    BroadcastTo,
    GetItem,
    Concat,
    reshape,
    transpose,
    broadcast_to,
    get_item,
    concat,
)
from ._matrix import MatMul, matmul
from ._loss import (
    MeanSquaredError,
    SoftmaxCrossEntropy,
    mean_squared_error,
    softmax_cross_entropy,
)

__all__ = [
    "Function",
    "Add",
    "Sub",
    "Mul",
    "Div",
    "Neg",
    "Pow",
    "Square",
    "Sqrt",
    "Exp",
    "Log",
    "Sin",
    "Cos",
    "Tanh",
    "Abs",
    "Clip",
    "Sigmoid",
    "ReLU",
    "Maximum",
    "Softmax",
    "LogSoftmax",
    "Sum",
    "SumTo",
    "Mean",
    "Max",
    "Min",
    "Reshape",
    "Transpose",
    "BroadcastTo",
    "GetItem",
    "Concat",
    "MatMul",
    "MeanSquaredError",
    "SoftmaxCrossEntropy",
    "add",
    "sub",
    "mul",
    "div",
    "neg",
    "pow",
    "square",
    "sqrt",
    "exp",
    "log",
    "sin",
    "cos",
    "tanh",
    "abs",
    "clip",
    "sigmoid",
    "relu",
    "maximum",
    "softmax",
    "log_softmax",
    "sum",
    "sum_to",
    "mean",
    "max",
    "min",
    "reshape",
    "transpose",
    "broadcast_to",
    "get_item",
    "concat",
    "matmul",
    "mean_squared_error",
    "softmax_cross_entropy",
]
