import unittest

import numpy as np

from keygrad import (
    Function,
    NdArray,
    Variable,
    gradient_check,
    numerical_grad,
    using_config,
)
from keygrad import functions as F


class _BrokenSquare(Function):
    """Square with a backward rule that forgets the factor of two."""

    def forward(self, x: NdArray) -> NdArray:
        self.save_for_backward(x)
        return x.square()

    def backward(self, gy: NdArray):
        (x,) = self.saved_tensors
        return (gy.mul(x),)


class TestNumericalGrad(unittest.TestCase):
    def setUp(self) -> None:
        self._ctx = using_config("dtype", "float64")
        self._ctx.__enter__()

    def tearDown(self) -> None:
        self._ctx.__exit__(None, None, None)

    def test_square(self) -> None:
        x = np.array([[1.0, -2.0], [0.5, 3.0]])
        g = numerical_grad(F.square, x)
        self.assertEqual(g.shape, (2, 2))
        np.testing.assert_allclose(g.to_numpy(), 2 * x, rtol=1e-6)

    def test_accepts_variable_and_leaves_it_untouched(self) -> None:
        v = Variable([1.0, 2.0])
        g = numerical_grad(lambda u: u * 3.0, v)
        np.testing.assert_allclose(g.to_numpy(), [3.0, 3.0], rtol=1e-6)
        np.testing.assert_allclose(v.to_numpy(), [1.0, 2.0])
        self.assertIsNone(v.grad)


class TestGradientCheck(unittest.TestCase):
    def test_accepts_correct_rule(self) -> None:
        self.assertTrue(gradient_check(F.tanh, np.linspace(-1.0, 1.0, 5)))

    def test_rejects_wrong_rule(self) -> None:
        x = np.array([0.5, 1.5, -2.0])
        self.assertFalse(gradient_check(lambda v: _BrokenSquare()(v), x))

    def test_input_without_gradient_path(self) -> None:
        # `b` does not influence the output; both sides must agree on zero.
        a, b = np.array([1.0, 2.0]), np.array([3.0, 4.0])
        self.assertTrue(gradient_check(lambda u, v: u * 2.0, a, b))

    def test_runs_in_float64(self) -> None:
        seen = []

        def record_dtype(v: Variable) -> Variable:
            seen.append(v.dtype)
            return v * 1.0

        gradient_check(record_dtype, NdArray([1.0, 2.0]))
        self.assertTrue(all(dt == np.float64 for dt in seen))


if __name__ == "__main__":
    unittest.main()
