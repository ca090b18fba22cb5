from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from brightr.units import U32_MAX

_logger = logging.getLogger(__name__)

BACKLIGHT_ROOT = Path("/sys/class/backlight")


class BacklightError(RuntimeError):
    pass


class NoDeviceFound(BacklightError):
    pass


class DeviceReadError(BacklightError):
    pass


class InvalidDeviceName(BacklightError):
    pass


@dataclass(frozen=True)
class BacklightDevice:
    """A backlight found under the sysfs backlight class.

    ``name`` is both the directory name under the backlight root and the
    device name logind expects. ``max`` is the raw value meaning "fully on";
    its scale is driver specific.
    """

    name: str
    max: int


def is_representable(name: str) -> bool:
    """Return True if ``name`` can be sent over D-Bus as UTF-8.

    Names read from the filesystem carry undecodable bytes as surrogate escapes.
    """

    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _read_number(path: Path) -> int:
    try:
        contents = path.read_text(encoding="utf-8", errors="surrogateescape")
    except OSError as e:
        raise DeviceReadError(f"reading backlight file {path}") from e

    text = contents.strip()
    # int() would also accept "+5" and "5_0".
    if not text.isascii() or not text.isdigit() or int(text) > U32_MAX:
        raise DeviceReadError(f"parsing brightness value from file {path}: {contents!r}")
    return int(text)


def read_raw_pair(path: Path) -> tuple[int, int]:
    """Return ``(current, max)`` for the device directory at ``path``.

    ``current`` is not checked against ``max``.
    """

    current = _read_number(path / "brightness")
    maximum = _read_number(path / "max_brightness")
    return current, maximum


def discover_first(root: Path = BACKLIGHT_ROOT) -> tuple[BacklightDevice, int]:
    """Return the first usable backlight under ``root`` and its current raw value.

    logind will set a backlight for us if we know its name, but offers no way
    to discover one, so we scan sysfs ourselves. Broken entries are skipped.
    """

    try:
        entries = list(root.iterdir())
    except OSError as e:
        raise NoDeviceFound(f"can't access directory {root}") from e

    for path in entries:
        if not is_representable(path.name):
            _logger.warning(
                "skipping backlight-like device at %r: name is not valid UTF-8", str(path)
            )
            continue
        try:
            current, maximum = read_raw_pair(path)
        except DeviceReadError as e:
            _logger.warning("skipping backlight-like device at %s: %s", path, _describe(e))
            continue

        _logger.debug("using backlight %s", path)
        return BacklightDevice(name=path.name, max=maximum), current

    raise NoDeviceFound(f"cannot find any valid backlight devices in {root}")


def use_named(name: str, root: Path = BACKLIGHT_ROOT) -> tuple[BacklightDevice, int]:
    """Read the backlight called ``name`` under ``root``; no fallback."""

    path = root / name
    try:
        current, maximum = read_raw_pair(path)
    except DeviceReadError as e:
        raise DeviceReadError(f"can't use explicitly requested backlight device {name!r}") from e
    return BacklightDevice(name=name, max=maximum), current


def _describe(e: BaseException) -> str:
    if e.__cause__ is not None:
        return f"{e}: {e.__cause__}"
    return str(e)
