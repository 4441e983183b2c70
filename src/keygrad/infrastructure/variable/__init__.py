from ._variable import Variable, as_variable

__all__ = [
    Variable.__name__,
    as_variable.__name__,
]
