"""
Runtime configuration for KeyGrad.

This module owns the process-global settings that influence kernels and graph
recording:

- ``enable_backprop``: whether Function calls record creator edges.
- ``dtype``: floating point precision of newly created arrays.
- ``epsilon``: threshold used by division and softmax normalization.
- ``log_level``: level applied to the ``keygrad`` logger.

Settings are loaded once at import time from an optional YAML file (path taken
from ``KEYGRAD_CONFIG``) and then overlaid with ``KEYGRAD_<NAME>`` environment
variables. They can be changed temporarily with `using_config` and
`no_grad`.

Notes
-----
Configuration is global state. Toggling it from several threads at once is not
supported; graphs are single-threaded by design.
"""

from __future__ import annotations

import contextlib
import logging
import os
from dataclasses import dataclass, fields
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Iterator, Optional, Union

import numpy as np
import yaml
from typing_extensions import ParamSpec, TypeVar

P = ParamSpec("P")
R = TypeVar("R")

CONFIG_ENV_VAR = "KEYGRAD_CONFIG"
ENV_PREFIX = "KEYGRAD_"

_SUPPORTED_DTYPES = ("float32", "float64")

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """
    Mutable container of runtime settings.

    Attributes
    ----------
    enable_backprop : bool
        When False, Function calls produce leaf outputs with no creator edge.
    dtype : str
        Name of the floating point dtype used for new arrays
        ("float32" or "float64").
    epsilon : float
        Divisors with magnitude below this value raise `DivisionByZeroError`;
        softmax normalizers are floored to it.
    log_level : str
        Logging level name applied to the package logger.
    """

    enable_backprop: bool = True
    dtype: str = "float32"
    epsilon: float = 1e-12
    log_level: str = "WARNING"

    def update(self, **values: Any) -> None:
        """
        Validate and apply a set of overrides.

        Raises
        ------
        ValueError
            If a key is unknown or a value is invalid.
        """
        known = {f.name for f in fields(self)}
        for key, raw in values.items():
            if key not in known:
                raise ValueError(f"Unknown config key: {key!r}")
            setattr(self, key, _coerce(key, raw))

    def numpy_dtype(self) -> np.dtype:
        return np.dtype(self.dtype)


def _coerce(key: str, raw: Any) -> Any:
    if key == "enable_backprop":
        if isinstance(raw, str):
            lowered = raw.strip().lower()
            if lowered not in ("true", "false", "1", "0"):
                raise ValueError(f"enable_backprop must be a boolean, got {raw!r}")
            return lowered in ("true", "1")
        return bool(raw)
    if key == "dtype":
        name = np.dtype(raw).name
        if name not in _SUPPORTED_DTYPES:
            raise ValueError(f"dtype must be one of {_SUPPORTED_DTYPES}, got {raw!r}")
        return name
    if key == "epsilon":
        eps = float(raw)
        if eps <= 0:
            raise ValueError(f"epsilon must be positive, got {raw!r}")
        return eps
    if key == "log_level":
        level = str(raw).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {raw!r}")
        return level
    return raw


def _read_yaml(path: Path) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping at top level")
    return data


def _read_env() -> dict:
    out = {}
    for f in fields(Config):
        raw = os.getenv(ENV_PREFIX + f.name.upper())
        if raw is not None:
            out[f.name] = raw
    return out


def load_config(path: Optional[Union[str, Path]] = None) -> Config:
    """
    Build a `Config` from YAML (optional) overlaid with environment variables.

    Parameters
    ----------
    path : str or Path, optional
        YAML file to read. Defaults to ``$KEYGRAD_CONFIG`` when set. A missing
        default file is ignored; a missing explicit file raises.

    Returns
    -------
    Config
        A fresh configuration object (the global `config` is not modified).

    Raises
    ------
    FileNotFoundError
        If `path` is given explicitly and does not exist.
    ValueError
        If the file or environment contains unknown keys or invalid values.
    """
    cfg = Config()

    explicit = path is not None
    cfg_path = Path(path) if explicit else None
    if cfg_path is None and os.getenv(CONFIG_ENV_VAR):
        cfg_path = Path(os.environ[CONFIG_ENV_VAR])

    if cfg_path is not None:
        if cfg_path.exists():
            cfg.update(**_read_yaml(cfg_path))
            logger.debug("Loaded config from %s", cfg_path)
        elif explicit:
            raise FileNotFoundError(f"Config file not found: {cfg_path}")
        else:
            logger.debug("No config found at %s, using defaults", cfg_path)

    cfg.update(**_read_env())
    return cfg


def apply_log_level(cfg: Config) -> None:
    """
    Apply `cfg.log_level` to the package root logger.
    """
    logging.getLogger("keygrad").setLevel(cfg.log_level)


config = load_config()
apply_log_level(config)


@contextlib.contextmanager
def using_config(name: str, value: Any) -> Iterator[Any]:
    """
    Temporarily override one configuration value inside a ``with`` block.

    Parameters
    ----------
    name : str
        Attribute of `Config` to override.
    value : Any
        Temporary value (validated like any other override).

    Yields
    ------
    Any
        The effective (validated) value.
    """
    if name not in {f.name for f in fields(Config)}:
        raise ValueError(f"Unknown config key: {name!r}")
    old = getattr(config, name)
    config.update(**{name: value})
    if name == "log_level":
        apply_log_level(config)
    try:
        yield getattr(config, name)
    finally:
        setattr(config, name, old)
        if name == "log_level":
            apply_log_level(config)


def no_grad() -> contextlib.AbstractContextManager:
    """
    Disable graph recording inside a ``with`` block.

    Function calls made inside the block return leaf variables with
    ``requires_grad=False`` and keep no reference to their inputs.
    """
    return using_config("enable_backprop", False)


def no_grad_fn(fn: Callable[P, R]) -> Callable[P, R]:
    """
    Decorator form of `no_grad` for inference-only helpers.
    """

    @wraps(fn)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        with no_grad():
            return fn(*args, **kwargs)

    return wrapper


def is_grad_enabled() -> bool:
    """
    Return whether Function calls currently record graph edges.
    """
    return bool(config.enable_backprop)


def get_dtype() -> np.dtype:
    """
    Return the NumPy dtype used for newly created arrays.
    """
    return config.numpy_dtype()
