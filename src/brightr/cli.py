from __future__ import annotations

import argparse
import logging
import math
import sys
from pathlib import Path
from typing import Any

from brightr import __version__
from brightr.backlight import BACKLIGHT_ROOT, BacklightError, discover_first, use_named
from brightr.config import ConfigError, load, load_default
from brightr.logind import BrokerError, connect_and_set_brightness
from brightr.policy import (
    BoundaryError,
    DecreaseBy,
    Get,
    IncreaseBy,
    Operation,
    Policy,
    PolicyError,
    SetTo,
    resolve,
)
from brightr.units import U32_MAX

_logger = logging.getLogger(__name__)


def _unsigned(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {text!r}") from None
    if not 0 <= value <= U32_MAX:
        raise argparse.ArgumentTypeError(f"must be between 0 and {U32_MAX}: {value}")
    return value


def _exponent(text: str) -> float:
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {text!r}") from None
    if not math.isfinite(value) or value <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0: {text}")
    return value


def _add_device_options(p: argparse.ArgumentParser, default: Any) -> None:
    # Added to the top-level parser and to every subcommand so the flags work in
    # either position. Subcommands use SUPPRESS so they don't clobber the top level.
    group = p.add_argument_group("device options")
    group.add_argument(
        "-n",
        "--name",
        default=default,
        help="Backlight device to adjust, overriding automatic detection",
    )
    group.add_argument(
        "-r",
        "--raw",
        action=argparse.BooleanOptionalAction,
        default=default,
        help="Use the driver's raw brightness values instead of percentages",
    )
    group.add_argument(
        "-e",
        "--exponent",
        type=_exponent,
        metavar="N",
        default=default,
        help="Map percentages to raw values with this gamma exponent (default: 1, linear)",
    )
    group.add_argument(
        "-m",
        "--min",
        type=_unsigned,
        metavar="RAW",
        default=default,
        help="Saturate the bottom of the range at this raw value instead of 0",
    )
    p.add_argument(
        "-p",
        "--picky",
        action=argparse.BooleanOptionalAction,
        default=default,
        help="Exit non-zero if the device is already at the edge of its range",
    )
    p.add_argument("-c", "--config", default=default, help="Path to a YAML config file")


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="brightr",
        description="Adjust display backlight. Values are percentages unless -r/--raw is given.",
    )
    ap.add_argument("--version", action="version", version=__version__)
    # Top level only; a per-subcommand count would replace this one, not add to it.
    ap.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log more (repeat for debug output)",
    )
    _add_device_options(ap, default=None)

    sub = ap.add_subparsers(dest="cmd", required=True)

    def add(name: str, text: str) -> argparse.ArgumentParser:
        sp = sub.add_parser(name, help=text)
        _add_device_options(sp, default=argparse.SUPPRESS)
        return sp

    add("get", 'Print the current setting as "x/y", where y is the max')
    set_cmd = add("set", "Set the backlight to a specific value")
    set_cmd.add_argument("value", type=_unsigned)
    up = add("up", "Increase brightness, saturating at the top of the range")
    up.add_argument("by", type=_unsigned)
    down = add("down", "Decrease brightness, saturating at --min")
    down.add_argument("by", type=_unsigned)

    return ap


def _operation(args: argparse.Namespace) -> Operation:
    if args.cmd == "get":
        return Get()
    if args.cmd == "set":
        return SetTo(args.value)
    if args.cmd == "up":
        return IncreaseBy(args.by)
    return DecreaseBy(args.by)


def _settings(args: argparse.Namespace, cfg: dict[str, Any]) -> dict[str, Any]:
    """Merge config file values under command-line flags."""

    def pick(flag: str, key: str, default: Any) -> Any:
        value = getattr(args, flag)
        if value is not None:
            return value
        return cfg.get(key, default)

    return {
        "name": pick("name", "name", None),
        "raw": bool(pick("raw", "raw", False)),
        "exponent": float(pick("exponent", "exponent", 1.0)),
        "min": int(pick("min", "min", 0)),
        "picky": bool(pick("picky", "picky", False)),
        "sysfs_root": Path(cfg.get("sysfs_root", BACKLIGHT_ROOT)),
    }


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(name)s: %(levelname)s: %(message)s")


def format_error(e: BaseException) -> str:
    """Render an exception and its chained causes on one line."""

    parts = []
    cur: BaseException | None = e
    while cur is not None:
        parts.append(str(cur) or type(cur).__name__)
        cur = cur.__cause__
    return ": ".join(parts)


def run(args: argparse.Namespace) -> None:
    cfg = load(args.config) if args.config else load_default()
    settings = _settings(args, cfg)
    policy = Policy(
        raw_mode=settings["raw"],
        exponent=settings["exponent"],
        floor=settings["min"],
        strict=settings["picky"],
    )

    # Find the device before talking to D-Bus so an unsupported system gets a
    # clear error instead of a confusing logind one.
    root = settings["sysfs_root"]
    if settings["name"]:
        device, current = use_named(settings["name"], root)
    else:
        device, current = discover_first(root)
    _logger.debug("backlight %s raw setting = %d / %d", device.name, current, device.max)

    res = resolve(device, current, _operation(args), policy)
    if res.output is not None:
        print(res.output)
        return

    assert res.target is not None
    _logger.info("setting backlight %s to %d (%s)", device.name, res.target, res.why)
    connect_and_set_brightness(device, res.target)


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    _setup_logging(args.verbose)
    try:
        run(args)
    except (BacklightError, BoundaryError, BrokerError, ConfigError, PolicyError) as e:
        print(f"brightr: error: {format_error(e)}", file=sys.stderr)
        return 1
    return 0
