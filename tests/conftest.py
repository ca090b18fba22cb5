from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest


@pytest.fixture
def sysfs(tmp_path: Path) -> Path:
    root = tmp_path / "backlight"
    root.mkdir()
    return root


@pytest.fixture
def make_backlight(sysfs: Path) -> Callable[..., Path]:
    def make(name: str, current: object, maximum: object) -> Path:
        d = sysfs / name
        d.mkdir()
        (d / "brightness").write_text(f"{current}\n", encoding="utf-8")
        (d / "max_brightness").write_text(f"{maximum}\n", encoding="utf-8")
        return d

    return make


@pytest.fixture(autouse=True)
def no_user_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))


@pytest.fixture
def list_in_order(sysfs: Path, monkeypatch: pytest.MonkeyPatch) -> Callable[..., None]:
    """Pin the order ``sysfs.iterdir()`` yields entries in; other dirs are untouched."""

    real_iterdir = Path.iterdir

    def pin(*names: str) -> None:
        def iterdir(self: Path):
            if self == sysfs:
                return iter([sysfs / n for n in names])
            return real_iterdir(self)

        monkeypatch.setattr(Path, "iterdir", iterdir)

    return pin
