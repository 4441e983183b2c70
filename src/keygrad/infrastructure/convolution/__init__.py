from ._conv2d_function import Conv2d, conv2d

__all__ = [
    Conv2d.__name__,
    conv2d.__name__,
]
