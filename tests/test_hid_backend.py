"""Tests for HID backend device enumeration, filtering and axis decoding."""

from __future__ import annotations

import struct
from types import SimpleNamespace

import pytest

import lsm_app.input.hid_backend as hid_backend
from lsm_app.errors import DeviceOpenError, ReadError
from lsm_app.input.hid_backend import (
    HidDeviceId,
    HidDeviceInfo,
    HidSession,
    decode_axes,
    enumerate_devices,
    _FILTERED_DEVICE_NAMES,
)


class FakeHandle:
    """Stand-in for hid.device() replaying queued reports."""

    def __init__(self, reports=None, *, fail_open: bool = False) -> None:
        self.reports = list(reports or [])
        self.fail_open = fail_open
        self.opened_path = None
        self.closed = False
        self.nonblocking = False

    def open_path(self, path) -> None:
        if self.fail_open:
            raise OSError("open failed")
        self.opened_path = path

    def open(self, vendor_id, product_id) -> None:
        self.opened_path = (vendor_id, product_id)

    def set_nonblocking(self, value) -> None:
        self.nonblocking = bool(value)

    def read(self, length, timeout_ms=0):
        if not self.reports:
            return []
        item = self.reports.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


def _fake_hid(monkeypatch, devices, handle: FakeHandle | None = None) -> FakeHandle:
    handle = handle or FakeHandle()
    monkeypatch.setattr(
        hid_backend,
        "hid",
        SimpleNamespace(enumerate=lambda: devices, device=lambda: handle),
    )
    return handle


def _words(*values: int) -> list[int]:
    return list(struct.pack(f"<{len(values)}h", *values))


class TestEnumerateDevicesFiltering:
    """Tests for device filtering in enumerate_devices."""

    def test_filters_usb_receiver(self, monkeypatch) -> None:
        """Test that 'USB Receiver' devices are filtered out."""
        fake_devices = [
            {"product_string": "USB Receiver", "vendor_id": 0x046d, "product_id": 0xc52b, "path": b"path1"},
            {"product_string": "Saitek X52", "vendor_id": 0x06a3, "product_id": 0x0255, "path": b"path2"},
        ]
        _fake_hid(monkeypatch, fake_devices)

        devices = enumerate_devices()

        assert len(devices) == 1
        assert devices[0].product_string == "Saitek X52"
        assert devices[0].device_id == HidDeviceId(vendor_id=0x06a3, product_id=0x0255)

    def test_filter_is_case_insensitive(self, monkeypatch) -> None:
        """Test that filtering works regardless of case."""
        fake_devices = [
            {"product_string": "USB RECEIVER", "vendor_id": 0x046d, "product_id": 0xc52b, "path": b"path1"},
            {"product_string": "wireless receiver", "vendor_id": 0x046d, "product_id": 0xc534, "path": b"path2"},
            {"product_string": "Valid Device", "vendor_id": 0x0eb7, "product_id": 0x0001, "path": b"path3"},
        ]
        _fake_hid(monkeypatch, fake_devices)

        devices = enumerate_devices()

        assert [d.product_string for d in devices] == ["Valid Device"]

    def test_does_not_filter_partial_match(self, monkeypatch) -> None:
        """Test that devices containing 'Receiver' but not exact match are kept."""
        fake_devices = [
            {"product_string": "Logitech USB Receiver Pro", "vendor_id": 0x046d, "product_id": 0xc52b, "path": b"path1"},
        ]
        _fake_hid(monkeypatch, fake_devices)

        assert len(enumerate_devices()) == 1

    def test_filters_empty_product_string(self, monkeypatch) -> None:
        """Test that devices with empty product string are filtered out."""
        fake_devices = [
            {"product_string": "", "vendor_id": 0x046d, "product_id": 0xc52b, "path": b"path1"},
            {"product_string": "   ", "vendor_id": 0x046d, "product_id": 0xc52c, "path": b"path2"},
            {"product_string": None, "vendor_id": 0x046d, "product_id": 0xc52d, "path": b"path3"},
            {"product_string": "Valid Device", "vendor_id": 0x0eb7, "product_id": 0x0001, "path": b"path4"},
        ]
        _fake_hid(monkeypatch, fake_devices)

        devices = enumerate_devices()

        assert len(devices) == 1
        assert devices[0].product_string == "Valid Device"

    def test_no_hidapi_returns_empty(self, monkeypatch) -> None:
        monkeypatch.setattr(hid_backend, "hid", None)
        assert enumerate_devices() == []
        assert hid_backend.hid_available() is False


class TestFilteredDeviceNames:
    """Tests for the filtered device names constant."""

    def test_filtered_names_are_lowercase(self) -> None:
        for name in _FILTERED_DEVICE_NAMES:
            assert name == name.lower(), f"'{name}' should be lowercase"

    def test_contains_expected_receivers(self) -> None:
        expected = {"usb receiver", "wireless receiver", "nano receiver", "unifying receiver"}
        assert expected.issubset(_FILTERED_DEVICE_NAMES)


class TestDecodeAxes:
    """Tests for decode_axes."""

    def test_signed_little_endian_words(self) -> None:
        assert decode_axes(_words(0, -1, 32767, -32768)) == [0, -1, 32767, -32768]

    def test_trailing_odd_byte_ignored(self) -> None:
        assert decode_axes(_words(258) + [7]) == [258]

    def test_short_report(self) -> None:
        assert decode_axes([1]) == []


class TestHidSession:
    """Tests for HidSession opening and reading."""

    DEVICES = [{"product_string": "Light Box", "vendor_id": 0x1234, "product_id": 0x0001, "path": b"p0"}]

    def test_open_by_index(self, monkeypatch) -> None:
        handle = _fake_hid(monkeypatch, self.DEVICES)
        session = HidSession(report_len=12)
        session.open(0)
        assert session.is_open
        assert handle.opened_path == b"p0"
        assert handle.nonblocking is True
        assert session.name == "Light Box"
        assert session.axis_count == 6
        assert session.button_count == 0

    def test_open_missing_index_raises(self, monkeypatch) -> None:
        _fake_hid(monkeypatch, self.DEVICES)
        with pytest.raises(DeviceOpenError, match="not found"):
            HidSession().open(3)

    def test_open_failure_raises_device_open_error(self, monkeypatch) -> None:
        _fake_hid(monkeypatch, self.DEVICES, FakeHandle(fail_open=True))
        with pytest.raises(DeviceOpenError):
            HidSession().open(0)

    def test_open_without_hidapi(self, monkeypatch) -> None:
        monkeypatch.setattr(hid_backend, "hid", None)
        with pytest.raises(DeviceOpenError, match="not installed"):
            HidSession().open(0)

    def test_read_returns_newest_report(self, monkeypatch) -> None:
        handle = FakeHandle([_words(1, 2), _words(3, 4)])
        _fake_hid(monkeypatch, self.DEVICES, handle)
        session = HidSession(report_len=4)
        session.open(0)
        assert session.read() == [3, 4]

    def test_read_keeps_last_report_when_idle(self, monkeypatch) -> None:
        handle = FakeHandle([_words(5, 6)])
        _fake_hid(monkeypatch, self.DEVICES, handle)
        session = HidSession(report_len=4)
        session.open(0)
        assert session.read() == [5, 6]
        assert session.read() == [5, 6]

    def test_read_without_any_report_raises(self, monkeypatch) -> None:
        _fake_hid(monkeypatch, self.DEVICES)
        session = HidSession(report_len=4)
        session.open(0)
        with pytest.raises(ReadError, match="No report"):
            session.read()

    def test_read_io_failure_raises_read_error(self, monkeypatch) -> None:
        _fake_hid(monkeypatch, self.DEVICES, FakeHandle([OSError("unplugged")]))
        session = HidSession(report_len=4)
        session.open(0)
        with pytest.raises(ReadError, match="unplugged"):
            session.read()

    def test_read_when_closed_raises(self) -> None:
        with pytest.raises(ReadError):
            HidSession().read()

    def test_close_releases_handle(self, monkeypatch) -> None:
        handle = _fake_hid(monkeypatch, self.DEVICES)
        session = HidSession()
        session.open_device(
            HidDeviceInfo(device_id=HidDeviceId(0x1234, 0x0001), product_string="Light Box", path=b"p0")
        )
        session.close()
        assert handle.closed is True
        assert session.is_open is False
        session.close()
