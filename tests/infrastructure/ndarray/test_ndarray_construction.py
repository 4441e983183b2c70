import unittest

import numpy as np

from keygrad import NdArray, ShapeMismatchError, IndexOutOfRangeError, using_config


class TestNdArrayFactories(unittest.TestCase):
    def test_from_flat_buffer_and_shape(self) -> None:
        a = NdArray.of([1, 2, 3, 4, 5, 6], (2, 3))
        self.assertEqual(a.shape, (2, 3))
        self.assertEqual(a.dtype, np.float32)
        np.testing.assert_allclose(a.to_numpy(), [[1, 2, 3], [4, 5, 6]])

    def test_buffer_shape_mismatch_raises(self) -> None:
        with self.assertRaises(ShapeMismatchError):
            NdArray.of([1, 2, 3], (2, 2))

    def test_nested_lists_and_scalars(self) -> None:
        a = NdArray([[1.0, 2.0], [3.0, 4.0]])
        self.assertEqual(a.shape, (2, 2))
        s = NdArray(3.5)
        self.assertEqual(s.shape, ())
        self.assertEqual(s.item(), 3.5)

    def test_zero_dim_arrays_stay_zero_dim(self) -> None:
        s = NdArray(3.5)
        self.assertEqual(s.to_numpy().shape, ())
        self.assertEqual(s.mul(2.0).to_numpy().shape, ())
        total = NdArray([1.0, 2.0]).sum()
        self.assertEqual(total.shape, ())
        self.assertEqual(total.to_numpy().shape, ())
        np.testing.assert_allclose(total.mul(2.0).to_numpy(), 6.0)
        self.assertEqual(total.sum_to(()).to_numpy().shape, ())

    def test_data_is_copied(self) -> None:
        src = np.ones((2, 2), dtype=np.float32)
        a = NdArray(src)
        src[0, 0] = 5.0
        self.assertEqual(a.get(0, 0), 1.0)
        out = a.to_numpy()
        out[0, 0] = 7.0
        self.assertEqual(a.get(0, 0), 1.0)

    def test_zeros_ones_full(self) -> None:
        np.testing.assert_array_equal(NdArray.zeros((2, 3)).to_numpy(), np.zeros((2, 3)))
        np.testing.assert_array_equal(NdArray.ones(4).to_numpy(), np.ones(4))
        np.testing.assert_array_equal(NdArray.full((2,), 7).to_numpy(), [7, 7])
        np.testing.assert_array_equal(NdArray.like((2,), 3).to_numpy(), [3, 3])

    def test_like_factories(self) -> None:
        a = NdArray.rand((3, 2), seed=0)
        self.assertEqual(NdArray.zeros_like(a).shape, (3, 2))
        self.assertEqual(NdArray.ones_like(a).shape, (3, 2))

    def test_eye(self) -> None:
        np.testing.assert_array_equal(NdArray.eye(3).to_numpy(), np.eye(3))
        np.testing.assert_array_equal(NdArray.eye((2, 3)).to_numpy(), np.eye(2, 3))

    def test_random_factories_are_seeded(self) -> None:
        a = NdArray.rand((4, 4), low=-1.0, high=1.0, seed=123)
        b = NdArray.rand((4, 4), low=-1.0, high=1.0, seed=123)
        np.testing.assert_array_equal(a.to_numpy(), b.to_numpy())
        self.assertTrue(np.all(a.to_numpy() >= -1.0))
        self.assertTrue(np.all(a.to_numpy() < 1.0))

        n = NdArray.randn((1000,), seed=1).to_numpy()
        self.assertLess(abs(float(n.mean())), 0.2)

    def test_linspace(self) -> None:
        np.testing.assert_allclose(NdArray.linspace(0, 1, 5).to_numpy(), [0, 0.25, 0.5, 0.75, 1])

    def test_empty_shapes_are_rejected(self) -> None:
        with self.assertRaises(ShapeMismatchError):
            NdArray.zeros((2, 0))

    def test_dtype_follows_config(self) -> None:
        with using_config("dtype", "float64"):
            self.assertEqual(NdArray.zeros((2,)).dtype, np.float64)
        self.assertEqual(NdArray.zeros((2,)).dtype, np.float32)


class TestNdArrayAccessors(unittest.TestCase):
    def test_get_and_flat(self) -> None:
        a = NdArray.of(range(6), (2, 3))
        self.assertEqual(a.get(1, 2), 5.0)
        np.testing.assert_array_equal(a.flat(), np.arange(6))
        with self.assertRaises(IndexOutOfRangeError):
            a.get(2, 0)

    def test_item_requires_single_element(self) -> None:
        self.assertEqual(NdArray([[4.0]]).item(), 4.0)
        with self.assertRaises(ValueError):
            NdArray([1.0, 2.0]).item()

    def test_eq_is_not_overloaded_to_elementwise(self) -> None:
        a = NdArray([1.0, 2.0])
        b = NdArray([1.0, 2.0])
        self.assertIsNot(a, b)
        self.assertTrue(a.allclose(b))
        np.testing.assert_array_equal(a.eq(b).to_numpy(), [1.0, 1.0])

    def test_repr_mentions_shape(self) -> None:
        self.assertIn("shape=(2,)", repr(NdArray([1.0, 2.0])))

    def test_iadd_accumulates_in_place(self) -> None:
        g = NdArray.zeros((2,))
        g._iadd_(NdArray([1.0, 2.0]))
        g._iadd_(NdArray([1.0, 2.0]))
        np.testing.assert_array_equal(g.to_numpy(), [2.0, 4.0])
        with self.assertRaises(ShapeMismatchError):
            g._iadd_(NdArray([1.0]))


if __name__ == "__main__":
    unittest.main()
