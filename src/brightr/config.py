from __future__ import annotations

import math
from pathlib import Path
from typing import Any

import yaml

from brightr.paths import default_config_path

KNOWN_KEYS = {"name", "raw", "exponent", "min", "picky", "sysfs_root"}


class ConfigError(ValueError):
    pass


def load(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"can't read config file {p}") from e
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"can't parse config file {p}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Top-level config must be a mapping")
    normalize(data)
    validate(data)
    return data


def load_default() -> dict[str, Any]:
    """Load the per-user config if there is one; a missing file is not an error."""

    p = default_config_path()
    if not p.is_file():
        return {}
    return load(p)


def _is_int(value: Any) -> bool:
    # YAML booleans are ints in Python.
    return isinstance(value, int) and not isinstance(value, bool)


def _positive_finite(value: Any) -> bool:
    try:
        f = float(value)
    except OverflowError:
        return False
    return math.isfinite(f) and f > 0


def validate(cfg: dict[str, Any]) -> None:
    unknown = sorted(set(cfg) - KNOWN_KEYS)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

    if "name" in cfg and not isinstance(cfg["name"], str):
        raise ConfigError("name must be a string")

    for key in ("raw", "picky"):
        if key in cfg and not isinstance(cfg[key], bool):
            raise ConfigError(f"{key} must be true or false")

    if "exponent" in cfg:
        e = cfg["exponent"]
        if not (_is_int(e) or isinstance(e, float)) or not _positive_finite(e):
            raise ConfigError(f"exponent must be a number > 0: {e!r}")

    if "min" in cfg and (not _is_int(cfg["min"]) or cfg["min"] < 0):
        raise ConfigError(f"min must be an integer >= 0: {cfg['min']!r}")

    if "sysfs_root" in cfg and not isinstance(cfg["sysfs_root"], str):
        raise ConfigError("sysfs_root must be a path")


def normalize(cfg: dict[str, Any]) -> None:
    """Strip stray whitespace from string values, in place."""

    for key in ("name", "sysfs_root"):
        if isinstance(cfg.get(key), str):
            cfg[key] = cfg[key].strip()

    if cfg.get("name") == "":
        del cfg["name"]
