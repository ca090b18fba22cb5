from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from brightr.backlight import BacklightDevice

# logind takes brightness as a D-Bus "u".
U32_MAX = 2**32 - 1


def saturating_add(a: int, b: int) -> int:
    return min(a + b, U32_MAX)


def saturating_sub(a: int, b: int) -> int:
    return max(a - b, 0)


def check_exponent(e: float) -> float:
    e = float(e)
    if not math.isfinite(e) or e <= 0:
        raise ValueError(f"gamma exponent must be a finite number > 0, got {e}")
    return e


def _round_saturating(x: float) -> int:
    # Half away from zero, like a C cast after round(); not Python's banker's rounding.
    if math.isnan(x) or x <= 0:
        return 0
    if x >= U32_MAX:
        return U32_MAX
    return math.floor(x + 0.5)


def to_percent(device: BacklightDevice, raw: int, e: float = 1.0) -> int:
    """Convert a raw setting into a percentage of the device's max.

    With ``e != 1`` the curve is ``(raw / max) ** (1 / e)``, so percentages
    step evenly in perceived brightness rather than in driver units.
    """

    e = check_exponent(e)
    if device.max == 0:
        return 0
    try:
        pct = (raw / device.max) ** (1.0 / e) * 100.0
    except OverflowError:
        return U32_MAX
    return _round_saturating(pct)


def from_percent(device: BacklightDevice, pct: int, e: float = 1.0) -> int:
    """Convert a percentage into a raw setting; inverse of :func:`to_percent`.

    Percentages above 100 are allowed and map above ``device.max``; the caller
    clamps.
    """

    e = check_exponent(e)
    try:
        raw = (pct / 100.0) ** e * device.max
    except OverflowError:
        return U32_MAX
    return _round_saturating(raw)


@dataclass(frozen=True)
class UnitConverter:
    """Maps between raw device units and the units the user works in."""

    device: BacklightDevice
    exponent: float = 1.0
    raw_mode: bool = False

    @property
    def user_max(self) -> int:
        return self.device.max if self.raw_mode else 100

    def to_user(self, raw: int) -> int:
        if self.raw_mode:
            return raw
        return to_percent(self.device, raw, self.exponent)

    def to_raw(self, value: int) -> int:
        if self.raw_mode:
            return value
        return from_percent(self.device, value, self.exponent)
