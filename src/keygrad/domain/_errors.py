"""
Numerical and graph-construction exceptions for KeyGrad.

This module defines the error taxonomy raised by the tensor kernels, the
operator (`Function`) layer and the reverse-mode engine. Every error is
raised at the point of detection and aborts the current forward or backward
call; nothing in the core retries or substitutes a fallback value.

Each exception also derives from the closest Python builtin (`ValueError`,
`IndexError`, ...) so callers that already catch builtins keep working, while
callers that want to distinguish KeyGrad failures can catch `KeyGradError`.
"""

from typing import Any, Optional


class KeyGradError(Exception):
    """
    Root of all KeyGrad-specific exceptions.
    """


class ShapeMismatchError(KeyGradError, ValueError):
    """
    Raised when operand shapes are incompatible for an operation.

    This covers failed broadcasts, reshape requests that do not preserve the
    element count, matmul contraction mismatches and invalid `Shape`
    construction.

    Attributes
    ----------
    op : str
        Name of the operation that rejected the shapes.
    shapes : tuple
        The offending shapes, in operand order.
    """

    def __init__(self, op: str, *shapes: Any, detail: Optional[str] = None) -> None:
        """
        Initialize the ShapeMismatchError.

        Parameters
        ----------
        op : str
            Operation name (e.g., "add", "reshape", "matmul").
        *shapes : Any
            Shapes involved in the failed operation.
        detail : Optional[str], optional
            Additional human-readable context.
        """
        rendered = " vs ".join(str(tuple(s)) for s in shapes)
        msg = f"{op}: shape mismatch {rendered}".rstrip()
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)
        self.op = op
        self.shapes = tuple(tuple(s) for s in shapes)


class GradientShapeError(ShapeMismatchError):
    """
    Raised when a backward rule produces (or the engine accumulates) a
    gradient whose shape differs from the shape of the value it belongs to.

    This always signals a bug in an operator's backward implementation and is
    not recoverable.
    """


class ArityError(KeyGradError, TypeError):
    """
    Raised when a Function receives the wrong number of inputs, or when its
    backward returns a different number of gradients than it has inputs.

    Attributes
    ----------
    op : str
        Operator name.
    expected : int
        Number of inputs (or gradients) expected.
    got : int
        Number actually provided.
    """

    def __init__(self, op: str, expected: int, got: int, *, what: str = "inputs") -> None:
        super().__init__(f"{op} expects {expected} {what}, got {got}.")
        self.op = op
        self.expected = expected
        self.got = got


class DomainError(KeyGradError, ValueError):
    """
    Raised when a numeric operation is evaluated outside its real domain
    (e.g., log of a non-positive value, sqrt of a negative value).
    """

    def __init__(self, op: str, detail: str) -> None:
        super().__init__(f"{op}: {detail}")
        self.op = op


class DivisionByZeroError(KeyGradError, ZeroDivisionError):
    """
    Raised when a divisor's magnitude falls below the configured epsilon.

    Attributes
    ----------
    epsilon : float
        Threshold under which a divisor is considered zero.
    """

    def __init__(self, epsilon: float) -> None:
        super().__init__(f"divisor magnitude below epsilon={epsilon!r}")
        self.epsilon = epsilon


class IndexOutOfRangeError(KeyGradError, IndexError):
    """
    Raised when slicing, scatter-add or flat addressing refers to a position
    outside the buffer bounds.
    """

    def __init__(self, op: str, index: Any, shape: Any) -> None:
        super().__init__(f"{op}: index {index!r} out of range for shape {tuple(shape)}")
        self.op = op
        self.index = index
        self.shape = tuple(shape)


class NotSupportedAxisError(KeyGradError, ValueError):
    """
    Raised for axis arguments that are out of range, for invalid axis
    permutations, and for kernels restricted to a subset of axes
    (argmax/argmin only support the two innermost axes).
    """

    def __init__(self, op: str, axis: Any, ndim: int, detail: Optional[str] = None) -> None:
        msg = f"{op}: unsupported axis {axis!r} for ndim={ndim}"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)
        self.op = op
        self.axis = axis
        self.ndim = ndim


class FunctionReuseError(KeyGradError, RuntimeError):
    """
    Raised when a Function instance is called again while the output of its
    previous recorded call is still alive.

    Attributes
    ----------
    op : str
        Name of the reused Function.
    """

    def __init__(self, op: str) -> None:
        super().__init__(
            f"{op}: instance is still the creator of a live output; "
            "use a fresh instance per call"
        )
        self.op = op
