import gc
import unittest
import warnings

import numpy as np

from keygrad import (
    ArityError,
    Function,
    FunctionReuseError,
    GradientShapeError,
    NdArray,
    Variable,
    no_grad,
)
from keygrad import functions as F


class _WrongArityBackward(Function):
    def forward(self, x: NdArray) -> NdArray:
        return x.mul(2.0)

    def backward(self, gy: NdArray):
        return (gy, gy)


class _WrongShapeBackward(Function):
    def forward(self, x: NdArray) -> NdArray:
        return x.sum()

    def backward(self, gy: NdArray):
        return (gy,)


class _Double(Function):
    def forward(self, x: NdArray) -> NdArray:
        return x.mul(2.0)

    def backward(self, gy: NdArray):
        return (gy.mul(2.0),)


class TestFunctionCall(unittest.TestCase):
    def test_records_inputs_output_and_generation(self) -> None:
        x = Variable([1.0, 2.0])
        f = F.Exp()
        y = f(x)
        self.assertIs(y.creator, f)
        self.assertEqual(f.inputs, (x,))
        self.assertIs(f.output, y)
        self.assertEqual(f.generation, 0)
        self.assertEqual(y.generation, 1)

        z = F.add(y, x)
        self.assertEqual(z.generation, 2)

    def test_output_reference_is_weak(self) -> None:
        f = F.Exp()
        f(Variable([1.0]))
        gc.collect()
        self.assertIsNone(f.output)

    def test_raw_inputs_are_lifted_to_constants(self) -> None:
        y = F.add(NdArray([1.0]), np.array([2.0]))
        self.assertIsInstance(y, Variable)
        self.assertFalse(y.requires_grad)
        self.assertIsNone(y.creator)
        np.testing.assert_allclose(y.to_numpy(), [3.0])

    def test_requires_grad_is_contagious(self) -> None:
        a = Variable([1.0], requires_grad=False)
        b = Variable([2.0])
        self.assertTrue(F.mul(a, b).requires_grad)
        self.assertFalse(F.mul(a, a).requires_grad)

    def test_no_grad_produces_leaves(self) -> None:
        x = Variable([1.0, 2.0])
        with no_grad():
            y = F.exp(x) * 2
        self.assertIsNone(y.creator)
        self.assertFalse(y.requires_grad)
        self.assertEqual(y.generation, 0)

    def test_wrong_input_count(self) -> None:
        with self.assertRaises(ArityError):
            F.Add()(Variable([1.0]))
        with self.assertRaises(ArityError):
            F.Exp()(Variable([1.0]), Variable([1.0]))
        with self.assertRaises(ArityError):
            F.Concat()()

    def test_reusing_an_instance_warns(self) -> None:
        f = _Double()
        f(Variable([1.0]))
        with self.assertWarns(RuntimeWarning):
            f(Variable([2.0]))

    def test_reusing_an_instance_with_a_live_output_raises(self) -> None:
        a, b = Variable([2.0]), Variable([3.0])
        f = F.Mul()
        y1 = f(a, b)
        with self.assertRaises(FunctionReuseError):
            f(b, b)
        self.assertIs(f.output, y1)
        self.assertEqual(f.inputs, (a, b))

        F.sum(y1).backward()
        np.testing.assert_allclose(a.grad.to_numpy(), [3.0])
        np.testing.assert_allclose(b.grad.to_numpy(), [2.0])

    def test_fresh_instances_do_not_warn(self) -> None:
        x = Variable([1.0])
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            F.exp(x)
            F.exp(x)

    def test_call_helper_matches_direct_call(self) -> None:
        x = Variable([3.0])
        y = Variable.call(_Double(), x)
        np.testing.assert_allclose(y.to_numpy(), [6.0])
        self.assertIsInstance(y.creator, _Double)


class TestBackwardContract(unittest.TestCase):
    def test_backward_arity_mismatch_raises(self) -> None:
        y = _WrongArityBackward()(Variable([1.0]))
        with self.assertRaises(ArityError):
            y.backward()

    def test_backward_shape_mismatch_raises(self) -> None:
        y = _WrongShapeBackward()(Variable([1.0, 2.0]))
        with self.assertRaises(GradientShapeError):
            y.backward()

    def test_custom_function_participates_in_graph(self) -> None:
        x = Variable([1.0, -2.0])
        y = F.sum(_Double()(_Double()(x)))
        y.backward()
        np.testing.assert_allclose(x.grad.to_numpy(), [4.0, 4.0])


if __name__ == "__main__":
    unittest.main()
