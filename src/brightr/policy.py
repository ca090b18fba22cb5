from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from brightr.backlight import BacklightDevice
from brightr.units import UnitConverter, check_exponent, saturating_add, saturating_sub

_logger = logging.getLogger(__name__)


class PolicyError(ValueError):
    pass


class BoundaryError(RuntimeError):
    pass


class AtUpperBound(BoundaryError):
    pass


class AtLowerBound(BoundaryError):
    pass


@dataclass(frozen=True)
class Policy:
    raw_mode: bool = False
    exponent: float = 1.0
    floor: int = 0
    strict: bool = False

    def __post_init__(self) -> None:
        try:
            check_exponent(self.exponent)
        except ValueError as e:
            raise PolicyError(str(e)) from e
        if self.floor < 0:
            raise PolicyError(f"minimum brightness must be >= 0, got {self.floor}")


@dataclass(frozen=True)
class Get:
    pass


@dataclass(frozen=True)
class SetTo:
    value: int


@dataclass(frozen=True)
class IncreaseBy:
    amount: int


@dataclass(frozen=True)
class DecreaseBy:
    amount: int


Operation = Union[Get, SetTo, IncreaseBy, DecreaseBy]


@dataclass(frozen=True)
class Resolution:
    target: int | None
    output: str | None
    why: str


def resolve(device: BacklightDevice, current: int, op: Operation, policy: Policy) -> Resolution:
    """Work out what one invocation should do to the backlight.

    ``Get`` produces the ``"x/y"`` line to print and no target. Every other
    operation produces a raw target in ``[policy.floor, device.max]``.

    In strict mode an increase with the device already at max, or a decrease
    with it at or below the floor, raises a ``BoundaryError`` before anything
    is computed. That check looks at the raw reading only; the clamp at the
    end runs regardless.
    """

    conv = UnitConverter(device, exponent=policy.exponent, raw_mode=policy.raw_mode)
    current_user = conv.to_user(current)
    _logger.debug("in requested units: %d / %d", current_user, conv.user_max)

    if isinstance(op, Get):
        return Resolution(target=None, output=f"{current_user}/{conv.user_max}", why="get")

    if isinstance(op, SetTo):
        target_user = op.value
        why = "set"
    elif isinstance(op, IncreaseBy):
        if policy.strict and current == device.max:
            raise AtUpperBound("cannot increase brightness past range for device")
        # Saturate at the integer width, not the device max.
        target_user = saturating_add(current_user, op.amount)
        why = "up"
    elif isinstance(op, DecreaseBy):
        if policy.strict and current <= policy.floor:
            raise AtLowerBound(f"cannot decrease brightness past {policy.floor}")
        target_user = saturating_sub(current_user, op.amount)
        why = "down"
    else:
        raise TypeError(f"unknown operation: {op!r}")

    _logger.debug("target value = %d", target_user)
    target = clamp(conv.to_raw(target_user), policy.floor, device.max)
    _logger.debug("target in raw units = %d", target)
    return Resolution(target=target, output=None, why=why)


def clamp(value: int, low: int, high: int) -> int:
    if low > high:
        raise PolicyError(f"minimum brightness {low} is above the device maximum {high}")
    return max(low, min(value, high))
