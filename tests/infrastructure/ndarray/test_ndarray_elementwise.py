import unittest

import numpy as np

from keygrad import (
    DivisionByZeroError,
    DomainError,
    NdArray,
    ShapeMismatchError,
)


class TestBinaryKernels(unittest.TestCase):
    def setUp(self) -> None:
        self.a = NdArray([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
        self.row = NdArray([10.0, 20.0, 30.0])

    def test_same_shape(self) -> None:
        b = NdArray([[1.0, 1.0, 1.0], [2.0, 2.0, 2.0]])
        np.testing.assert_allclose(self.a.add(b).to_numpy(), self.a.to_numpy() + b.to_numpy())
        np.testing.assert_allclose(self.a.sub(b).to_numpy(), self.a.to_numpy() - b.to_numpy())
        np.testing.assert_allclose(self.a.mul(b).to_numpy(), self.a.to_numpy() * b.to_numpy())
        np.testing.assert_allclose(self.a.div(b).to_numpy(), self.a.to_numpy() / b.to_numpy())

    def test_broadcast_row(self) -> None:
        out = self.a + self.row
        self.assertEqual(out.shape, (2, 3))
        np.testing.assert_allclose(out.to_numpy(), [[11, 22, 33], [14, 25, 36]])

    def test_broadcast_is_symmetric(self) -> None:
        np.testing.assert_allclose((self.row * self.a).to_numpy(), (self.a * self.row).to_numpy())

    def test_scalar_operands(self) -> None:
        np.testing.assert_allclose((self.a * 2).to_numpy(), self.a.to_numpy() * 2)
        np.testing.assert_allclose((1.0 - self.a).to_numpy(), 1.0 - self.a.to_numpy())
        np.testing.assert_allclose((6.0 / self.a).to_numpy(), 6.0 / self.a.to_numpy(), rtol=1e-6)

    def test_incompatible_shapes_raise(self) -> None:
        with self.assertRaises(ShapeMismatchError) as cm:
            self.a.add(NdArray([1.0, 2.0]))
        self.assertEqual(cm.exception.op, "add")

    def test_division_by_zero(self) -> None:
        with self.assertRaises(DivisionByZeroError):
            self.a.div(NdArray([1.0, 0.0, 1.0]))
        with self.assertRaises(DivisionByZeroError):
            self.a / 1e-13

    def test_operands_are_not_mutated(self) -> None:
        before = self.a.to_numpy()
        _ = self.a + self.row
        _ = -self.a
        np.testing.assert_array_equal(self.a.to_numpy(), before)

    def test_comparisons(self) -> None:
        x = NdArray([1.0, 2.0, 3.0])
        np.testing.assert_array_equal(x.gt(2.0).to_numpy(), [0, 0, 1])
        np.testing.assert_array_equal(x.lt(2.0).to_numpy(), [1, 0, 0])
        np.testing.assert_array_equal(x.eq(2.0).to_numpy(), [0, 1, 0])


class TestUnaryKernels(unittest.TestCase):
    def test_basic_math(self) -> None:
        v = np.array([0.5, 1.0, 2.0], dtype=np.float32)
        x = NdArray(v)
        np.testing.assert_allclose(x.exp().to_numpy(), np.exp(v), rtol=1e-6)
        np.testing.assert_allclose(x.log().to_numpy(), np.log(v), rtol=1e-6)
        np.testing.assert_allclose(x.sqrt().to_numpy(), np.sqrt(v), rtol=1e-6)
        np.testing.assert_allclose(x.square().to_numpy(), v**2, rtol=1e-6)
        np.testing.assert_allclose(x.sin().to_numpy(), np.sin(v), rtol=1e-6)
        np.testing.assert_allclose(x.cos().to_numpy(), np.cos(v), rtol=1e-6)
        np.testing.assert_allclose(x.tanh().to_numpy(), np.tanh(v), rtol=1e-6)
        np.testing.assert_allclose(x.neg().to_numpy(), -v)
        np.testing.assert_allclose(x.pow(3).to_numpy(), v**3, rtol=1e-6)
        np.testing.assert_allclose((x**2).to_numpy(), v**2, rtol=1e-6)

    def test_sigmoid_matches_logistic_and_is_stable(self) -> None:
        v = np.array([-3.0, 0.0, 3.0], dtype=np.float32)
        np.testing.assert_allclose(
            NdArray(v).sigmoid().to_numpy(), 1.0 / (1.0 + np.exp(-v)), rtol=1e-5
        )
        big = NdArray([-1000.0, 1000.0]).sigmoid().to_numpy()
        np.testing.assert_allclose(big, [0.0, 1.0])
        self.assertTrue(np.all(np.isfinite(big)))

    def test_domain_errors(self) -> None:
        with self.assertRaises(DomainError):
            NdArray([1.0, 0.0]).log()
        with self.assertRaises(DomainError):
            NdArray([-1.0]).sqrt()
        with self.assertRaises(DomainError):
            NdArray([-2.0]).pow(0.5)
        np.testing.assert_allclose(NdArray([-2.0]).pow(2).to_numpy(), [4.0])

    def test_negative_power_near_zero(self) -> None:
        with self.assertRaises(DivisionByZeroError):
            NdArray([0.0, 1.0]).pow(-1)
        with self.assertRaises(DivisionByZeroError):
            NdArray([1e-13, 4.0]).pow(-0.5)
        np.testing.assert_allclose(NdArray([2.0, -4.0]).pow(-1).to_numpy(), [0.5, -0.25])
        np.testing.assert_allclose(NdArray([0.0, 4.0]).pow(0.5).to_numpy(), [0.0, 2.0])

    def test_abs_clip_mask_maximum(self) -> None:
        x = NdArray([-2.0, -0.5, 0.5, 2.0])
        np.testing.assert_array_equal(x.abs().to_numpy(), [2.0, 0.5, 0.5, 2.0])
        np.testing.assert_array_equal(x.clip(-1.0, 1.0).to_numpy(), [-1.0, -0.5, 0.5, 1.0])
        np.testing.assert_array_equal(x.mask(0.0).to_numpy(), [0, 0, 1, 1])
        np.testing.assert_array_equal(x.maximum(0.0).to_numpy(), [0, 0, 0.5, 2.0])
        np.testing.assert_array_equal(
            x.maximum(NdArray([0.0, -1.0, 1.0, 0.0])).to_numpy(), [0.0, -0.5, 1.0, 2.0]
        )
        with self.assertRaises(ValueError):
            x.clip(1.0, -1.0)


if __name__ == "__main__":
    unittest.main()
