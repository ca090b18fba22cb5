from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from dbus_next import BusType
from dbus_next.aio import MessageBus
from dbus_next.errors import AuthError, DBusError

from brightr.backlight import BacklightDevice, InvalidDeviceName, is_representable

_logger = logging.getLogger(__name__)

LOGIND_BUS = "org.freedesktop.login1"
# logind lives on the SYSTEM bus, not the session bus.
SESSION_PATH = "/org/freedesktop/login1/session/auto"
SESSION_IFACE = "org.freedesktop.login1.Session"
SUBSYSTEM = "backlight"


class BrokerError(RuntimeError):
    pass


@dataclass
class LogindSession:
    bus: MessageBus
    iface: object

    @classmethod
    async def connect(cls) -> LogindSession:
        try:
            bus = await MessageBus(bus_type=BusType.SYSTEM).connect()
        except (OSError, AuthError, DBusError) as e:
            raise BrokerError("can't connect to the system bus") from e
        try:
            introspection = await bus.introspect(LOGIND_BUS, SESSION_PATH)
        except DBusError as e:
            bus.disconnect()
            raise BrokerError(f"can't reach logind session at {SESSION_PATH}") from e
        obj = bus.get_proxy_object(LOGIND_BUS, SESSION_PATH, introspection)
        iface = obj.get_interface(SESSION_IFACE)
        return cls(bus=bus, iface=iface)

    async def set_brightness(self, device: BacklightDevice, value: int) -> None:
        if not is_representable(device.name):
            raise InvalidDeviceName(f"backlight name not valid UTF-8: {device.name!r}")

        _logger.debug("SetBrightness(%r, %r, %d)", SUBSYSTEM, device.name, value)
        try:
            await self.iface.call_set_brightness(SUBSYSTEM, device.name, value)
        except DBusError as e:
            raise BrokerError(f"can't set backlight {device.name}") from e

    async def close(self) -> None:
        self.bus.disconnect()


async def _set_once(device: BacklightDevice, value: int) -> None:
    session = await LogindSession.connect()
    try:
        await session.set_brightness(device, value)
    finally:
        await session.close()


def connect_and_set_brightness(device: BacklightDevice, value: int) -> None:
    """Ask logind to set ``device`` to the raw ``value``.

    Blocks until logind has answered. ``value`` must already be within the
    device's range.
    """

    assert 0 <= value <= device.max, f"brightness {value} out of range for {device}"
    if not is_representable(device.name):
        raise InvalidDeviceName(f"backlight name not valid UTF-8: {device.name!r}")
    asyncio.run(_set_once(device, value))
