from __future__ import annotations

import asyncio

import pytest
from dbus_next.errors import DBusError

from brightr import logind
from brightr.backlight import BacklightDevice, InvalidDeviceName
from brightr.logind import BrokerError, LogindSession, connect_and_set_brightness


class FakeBus:
    def __init__(self) -> None:
        self.disconnected = False

    def disconnect(self) -> None:
        self.disconnected = True


class FakeSessionIface:
    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[tuple[str, str, int]] = []
        self._error = error

    async def call_set_brightness(self, subsystem: str, name: str, value: int) -> None:
        self.calls.append((subsystem, name, value))
        if self._error:
            raise self._error


def test_set_brightness_calls_logind() -> None:
    iface = FakeSessionIface()
    session = LogindSession(bus=FakeBus(), iface=iface)
    asyncio.run(session.set_brightness(BacklightDevice("intel_backlight", 100), 42))
    assert iface.calls == [("backlight", "intel_backlight", 42)]


def test_set_brightness_wraps_dbus_error() -> None:
    err = DBusError("org.freedesktop.DBus.Error.AccessDenied", "not at seat")
    session = LogindSession(bus=FakeBus(), iface=FakeSessionIface(error=err))
    with pytest.raises(BrokerError, match="can't set backlight intel_backlight") as exc:
        asyncio.run(session.set_brightness(BacklightDevice("intel_backlight", 100), 42))
    assert exc.value.__cause__ is err


def test_set_brightness_rejects_unencodable_name() -> None:
    iface = FakeSessionIface()
    session = LogindSession(bus=FakeBus(), iface=iface)
    with pytest.raises(InvalidDeviceName):
        asyncio.run(session.set_brightness(BacklightDevice("bad\udcff", 100), 1))
    assert iface.calls == []


def test_close_disconnects() -> None:
    bus = FakeBus()
    asyncio.run(LogindSession(bus=bus, iface=FakeSessionIface()).close())
    assert bus.disconnected


def test_connect_and_set_brightness(monkeypatch: pytest.MonkeyPatch) -> None:
    seen = []

    async def fake_set_once(device: BacklightDevice, value: int) -> None:
        seen.append((device.name, value))

    monkeypatch.setattr(logind, "_set_once", fake_set_once)
    connect_and_set_brightness(BacklightDevice("intel_backlight", 100), 100)
    assert seen == [("intel_backlight", 100)]


def test_connect_and_set_brightness_requires_in_range() -> None:
    with pytest.raises(AssertionError):
        connect_and_set_brightness(BacklightDevice("intel_backlight", 100), 101)


def test_connect_and_set_brightness_checks_name_before_connecting(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def boom(device: BacklightDevice, value: int) -> None:
        raise AssertionError("should not connect")

    monkeypatch.setattr(logind, "_set_once", boom)
    with pytest.raises(InvalidDeviceName):
        connect_and_set_brightness(BacklightDevice("bad\udcff", 100), 1)
