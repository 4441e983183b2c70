import unittest

import numpy as np

from keygrad import NdArray, gradient_check
from keygrad import functions as F
from keygrad.infrastructure.convolution import conv2d


def rand(shape, low=-1.0, high=1.0, seed=0) -> np.ndarray:
    return np.random.default_rng(seed).uniform(low, high, size=shape)


def away_from(values: np.ndarray, points, margin: float = 0.05) -> np.ndarray:
    """
    Nudge entries that sit within `margin` of a kink so finite differences
    do not straddle it.
    """
    out = values.copy()
    for p in points:
        near = np.abs(out - p) < margin
        out[near] = p + margin * 2
    return out


class TestArithmeticGradients(unittest.TestCase):
    def test_add_sub_with_broadcast(self) -> None:
        a, b = rand((2, 3), seed=1), rand((3,), seed=2)
        self.assertTrue(gradient_check(F.add, a, b))
        self.assertTrue(gradient_check(F.sub, a, b))
        self.assertTrue(gradient_check(F.sub, rand((2, 1), seed=3), a))

    def test_mul_div_with_broadcast(self) -> None:
        a = rand((2, 3), seed=4)
        b = rand((2, 1), low=0.5, high=2.0, seed=5)
        self.assertTrue(gradient_check(F.mul, a, b))
        self.assertTrue(gradient_check(F.div, a, b))
        self.assertTrue(gradient_check(F.div, b, rand((3,), low=1.0, high=2.0, seed=6)))

    def test_neg_and_pow(self) -> None:
        self.assertTrue(gradient_check(F.neg, rand((3, 2), seed=7)))
        x = rand((4,), low=0.5, high=2.0, seed=8)
        self.assertTrue(gradient_check(lambda v: F.pow(v, 3), x))
        self.assertTrue(gradient_check(lambda v: F.pow(v, 0.5), x))
        self.assertTrue(gradient_check(lambda v: v**2, rand((2, 2), seed=9)))


class TestMathGradients(unittest.TestCase):
    def test_smooth_unary(self) -> None:
        x = rand((2, 3), seed=10)
        for fn in (F.square, F.exp, F.sin, F.cos, F.tanh, F.sigmoid):
            self.assertTrue(gradient_check(fn, x), fn.__name__)

    def test_positive_domain(self) -> None:
        x = rand((2, 3), low=0.5, high=3.0, seed=11)
        self.assertTrue(gradient_check(F.sqrt, x))
        self.assertTrue(gradient_check(F.log, x))

    def test_piecewise(self) -> None:
        x = away_from(rand((3, 4), low=-2.0, high=2.0, seed=12), (0.0, -1.0, 1.0))
        self.assertTrue(gradient_check(F.abs, x))
        self.assertTrue(gradient_check(F.relu, x))
        self.assertTrue(gradient_check(lambda v: F.maximum(v, -1.0), x))
        self.assertTrue(gradient_check(lambda v: F.clip(v, -1.0, 1.0), x))


class TestReductionGradients(unittest.TestCase):
    def test_sum_mean(self) -> None:
        x = rand((2, 3, 4), seed=13)
        for axis in (None, 0, 1, -1):
            for keepdims in (False, True):
                self.assertTrue(gradient_check(lambda v: F.sum(v, axis, keepdims), x))
                self.assertTrue(gradient_check(lambda v: F.mean(v, axis, keepdims), x))

    def test_full_reduction_scaled_by_constant(self) -> None:
        x = rand((3, 2), seed=30)
        self.assertTrue(gradient_check(lambda v: F.sum(v) * 2.0, x))
        self.assertTrue(gradient_check(lambda v: 3.0 * F.mean(v) - 1.0, x))

    def test_max_min(self) -> None:
        x = np.random.default_rng(14).permutation(24).reshape(2, 3, 4) / 10.0
        for axis in (None, 0, 2):
            self.assertTrue(gradient_check(lambda v: F.max(v, axis), x))
            self.assertTrue(gradient_check(lambda v: F.min(v, axis, True), x))

    def test_max_splits_gradient_between_ties(self) -> None:
        from keygrad import Variable

        x = Variable([1.0, 3.0, 3.0])
        F.max(x).backward()
        np.testing.assert_allclose(x.grad.to_numpy(), [0.0, 0.5, 0.5])

    def test_sum_to_and_broadcast_to(self) -> None:
        self.assertTrue(gradient_check(lambda v: F.sum_to(v, (3,)), rand((2, 3), seed=15)))
        self.assertTrue(gradient_check(lambda v: F.sum_to(v, (2, 1)), rand((2, 3), seed=16)))
        self.assertTrue(
            gradient_check(lambda v: F.broadcast_to(v, (4, 2, 3)), rand((2, 1), seed=17))
        )


class TestStructuralGradients(unittest.TestCase):
    def test_reshape_transpose(self) -> None:
        x = rand((2, 3, 4), seed=18)
        self.assertTrue(gradient_check(lambda v: F.reshape(v, (6, 4)) * 2.0, x))
        self.assertTrue(gradient_check(lambda v: F.transpose(v) * NdArray(rand((4, 3, 2))), x))
        w = NdArray(rand((3, 2, 4), seed=19))
        self.assertTrue(gradient_check(lambda v: F.transpose(v, 1, 0, 2) * w, x))

    def test_get_item_with_repeated_indices(self) -> None:
        x = rand((4, 3), seed=20)
        self.assertTrue(gradient_check(lambda v: F.get_item(v, [0, 2, 2]) * 3.0, x))
        self.assertTrue(gradient_check(lambda v: v[1:, 0], x))

    def test_concat(self) -> None:
        a, b, c = rand((2, 3), seed=21), rand((1, 3), seed=22), rand((3, 3), seed=23)
        weights = NdArray(rand((6, 3), seed=24))
        self.assertTrue(gradient_check(lambda *v: F.concat(v, axis=0) * weights, a, b, c))
        d, e = rand((2, 1), seed=25), rand((2, 2), seed=26)
        self.assertTrue(gradient_check(lambda *v: F.concat(v, axis=-1).square(), d, e))


class TestMatrixAndConvGradients(unittest.TestCase):
    def test_matmul_2d_and_batched(self) -> None:
        self.assertTrue(gradient_check(F.matmul, rand((2, 3), seed=27), rand((3, 4), seed=28)))
        self.assertTrue(
            gradient_check(F.matmul, rand((2, 2, 3), seed=29), rand((2, 3, 2), seed=30))
        )

    def test_conv2d(self) -> None:
        x = rand((2, 2, 5, 5), seed=31)
        w = rand((3, 2, 3, 3), seed=32)
        b = rand((3,), seed=33)
        self.assertTrue(gradient_check(lambda u, v: conv2d(u, v, stride=2, padding=1), x, w))
        self.assertTrue(gradient_check(lambda u, v, c: conv2d(u, v, c, padding=1), x, w, b))

    def test_conv2d_single_channel_2d(self) -> None:
        self.assertTrue(gradient_check(conv2d, rand((4, 4), seed=34), rand((2, 2), seed=35)))


class TestActivationAndLossGradients(unittest.TestCase):
    def test_softmax_log_softmax(self) -> None:
        x = rand((3, 4), low=-2.0, high=2.0, seed=36)
        w = NdArray(rand((3, 4), seed=37))
        self.assertTrue(gradient_check(lambda v: F.softmax(v) * w, x))
        self.assertTrue(gradient_check(lambda v: F.softmax(v, axis=0) * w, x))
        self.assertTrue(gradient_check(lambda v: F.log_softmax(v) * w, x))

    def test_mean_squared_error(self) -> None:
        self.assertTrue(
            gradient_check(F.mean_squared_error, rand((4, 2), seed=38), rand((4, 2), seed=39))
        )

    def test_softmax_cross_entropy_with_labels(self) -> None:
        x = rand((4, 3), low=-2.0, high=2.0, seed=40)
        t = NdArray([0.0, 2.0, 1.0, 2.0])
        self.assertTrue(gradient_check(lambda v: F.softmax_cross_entropy(v, t), x))

    def test_softmax_cross_entropy_with_probabilities(self) -> None:
        x = rand((2, 3), seed=41)
        t = np.array([[0.2, 0.3, 0.9], [1.0, 0.0, 0.0]])
        self.assertTrue(gradient_check(F.softmax_cross_entropy, x, t))


if __name__ == "__main__":
    unittest.main()
