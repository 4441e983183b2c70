from ._gradient_check import gradient_check, numerical_grad

__all__ = [
    gradient_check.__name__,
    numerical_grad.__name__,
]
