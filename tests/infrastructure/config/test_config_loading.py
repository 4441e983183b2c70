import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import numpy as np

from keygrad import (
    Config,
    NdArray,
    Variable,
    config,
    get_dtype,
    is_grad_enabled,
    load_config,
    no_grad,
    no_grad_fn,
    using_config,
)


class TestLoadConfig(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        self._env = mock.patch.dict(os.environ, {}, clear=False)
        self._env.start()
        for key in list(os.environ):
            if key.startswith("KEYGRAD_"):
                del os.environ[key]

    def tearDown(self) -> None:
        self._env.stop()
        self._tmp.cleanup()

    def _write(self, text: str) -> Path:
        path = self.dir / "keygrad.yaml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_defaults(self) -> None:
        cfg = load_config()
        self.assertEqual(cfg, Config())
        self.assertTrue(cfg.enable_backprop)
        self.assertEqual(cfg.dtype, "float32")

    def test_yaml_file(self) -> None:
        path = self._write("dtype: float64\nepsilon: 1.0e-8\nlog_level: debug\n")
        cfg = load_config(path)
        self.assertEqual(cfg.dtype, "float64")
        self.assertAlmostEqual(cfg.epsilon, 1e-8)
        self.assertEqual(cfg.log_level, "DEBUG")

    def test_config_path_from_environment(self) -> None:
        path = self._write("enable_backprop: false\n")
        os.environ["KEYGRAD_CONFIG"] = str(path)
        self.assertFalse(load_config().enable_backprop)

    def test_environment_overrides_file(self) -> None:
        path = self._write("dtype: float64\n")
        os.environ["KEYGRAD_DTYPE"] = "float32"
        os.environ["KEYGRAD_ENABLE_BACKPROP"] = "0"
        cfg = load_config(path)
        self.assertEqual(cfg.dtype, "float32")
        self.assertFalse(cfg.enable_backprop)

    def test_missing_default_file_is_ignored(self) -> None:
        os.environ["KEYGRAD_CONFIG"] = str(self.dir / "absent.yaml")
        self.assertEqual(load_config(), Config())

    def test_missing_explicit_file_raises(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_config(self.dir / "absent.yaml")

    def test_invalid_entries_raise(self) -> None:
        with self.assertRaises(ValueError):
            load_config(self._write("learning_rate: 0.1\n"))
        with self.assertRaises(ValueError):
            load_config(self._write("dtype: int32\n"))
        with self.assertRaises(ValueError):
            load_config(self._write("epsilon: 0\n"))
        with self.assertRaises(ValueError):
            load_config(self._write("- a\n- b\n"))
        os.environ["KEYGRAD_ENABLE_BACKPROP"] = "maybe"
        with self.assertRaises(ValueError):
            load_config()


class TestRuntimeOverrides(unittest.TestCase):
    def test_using_config_restores_value(self) -> None:
        before = config.dtype
        with using_config("dtype", np.float64) as value:
            self.assertEqual(value, "float64")
            self.assertEqual(get_dtype(), np.float64)
            self.assertEqual(NdArray([1.0]).dtype, np.float64)
        self.assertEqual(config.dtype, before)

    def test_using_config_restores_after_error(self) -> None:
        before = config.epsilon
        with self.assertRaises(RuntimeError):
            with using_config("epsilon", 0.5):
                raise RuntimeError("boom")
        self.assertEqual(config.epsilon, before)

    def test_unknown_key_rejected(self) -> None:
        with self.assertRaises(ValueError):
            with using_config("momentum", 0.9):
                pass

    def test_no_grad_nests(self) -> None:
        self.assertTrue(is_grad_enabled())
        with no_grad():
            self.assertFalse(is_grad_enabled())
            with no_grad():
                self.assertFalse(is_grad_enabled())
            self.assertFalse(is_grad_enabled())
        self.assertTrue(is_grad_enabled())

    def test_no_grad_fn_decorator(self) -> None:
        @no_grad_fn
        def predict(v: Variable) -> Variable:
            return v * 2

        x = Variable([1.0, 2.0])
        y = predict(x)
        self.assertIsNone(y.creator)
        self.assertEqual(predict.__name__, "predict")
        self.assertTrue(is_grad_enabled())


if __name__ == "__main__":
    unittest.main()
