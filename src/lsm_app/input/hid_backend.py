from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Any, Optional

from lsm_app.errors import DeviceOpenError, ReadError

try:
    import hid
except ImportError:
    hid = None

# Dongles that enumerate as HID devices but never carry axis data.
_FILTERED_DEVICE_NAMES = frozenset(
    {
        "usb receiver",
        "wireless receiver",
        "nano receiver",
        "unifying receiver",
    }
)


@dataclass(frozen=True, slots=True)
class HidDeviceId:
    vendor_id: int
    product_id: int


@dataclass(frozen=True, slots=True)
class HidDeviceInfo:
    """Minimal HID device info needed for selection/opening."""

    device_id: HidDeviceId
    product_string: str
    path: Any  # hidapi uses an opaque bytes-ish path on Windows


def hid_available() -> bool:
    return hid is not None


def enumerate_devices() -> list[HidDeviceInfo]:
    """Return a filtered list of HID devices with a product name."""
    if hid is None:
        return []
    devices = []
    for d in hid.enumerate():
        product = (d.get("product_string") or "").strip()
        if not product or product.lower() in _FILTERED_DEVICE_NAMES:
            continue
        vendor_id = int(d.get("vendor_id") or 0)
        product_id = int(d.get("product_id") or 0)
        path = d.get("path")
        devices.append(
            HidDeviceInfo(
                device_id=HidDeviceId(vendor_id=vendor_id, product_id=product_id),
                product_string=product,
                path=path,
            )
        )
    return devices


def decode_axes(report: list[int]) -> list[int]:
    """Split a raw report into little-endian signed 16-bit axis words.

    A trailing odd byte is ignored.
    """
    count = len(report) // 2
    if count == 0:
        return []
    return list(struct.unpack(f"<{count}h", bytes(report[: count * 2])))


class HidSession:
    """Manage a single opened HID device exposing raw axis words."""

    def __init__(self, *, report_len: int = 64) -> None:
        self._handle = None
        self._device: HidDeviceInfo | None = None
        self._report_len = int(report_len)
        self._last_report: Optional[list[int]] = None

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    def open(self, index: int) -> None:
        """Open the `index`-th device from `enumerate_devices`."""
        if hid is None:
            raise DeviceOpenError("hidapi is not installed")
        devices = enumerate_devices()
        if not 0 <= index < len(devices):
            raise DeviceOpenError(f"HID device {index} not found ({len(devices)} available)")
        self.open_device(devices[index])

    def open_device(self, device: HidDeviceInfo) -> None:
        if hid is None:
            raise DeviceOpenError("hidapi is not installed")
        self.close()
        handle = hid.device()
        try:
            if device.path:
                handle.open_path(device.path)
            else:
                handle.open(device.device_id.vendor_id, device.device_id.product_id)
        except OSError as exc:
            raise DeviceOpenError(f"Cannot open {device.product_string}: {exc}") from exc
        handle.set_nonblocking(True)
        self._handle = handle
        self._device = device

    def close(self) -> None:
        if self._handle is None:
            return
        try:
            self._handle.close()
        finally:
            self._handle = None
            self._device = None
            self._last_report = None

    @property
    def name(self) -> str:
        return self._device.product_string if self._device else ""

    @property
    def axis_count(self) -> int:
        return self._report_len // 2

    @property
    def button_count(self) -> int:
        # Buttons are not decoded from raw reports.
        return 0

    def read_latest_report(self, *, max_reads: int = 50) -> Optional[list[int]]:
        """Drain the read queue and return the most recent report (or None)."""
        if self._handle is None:
            return None
        latest: Optional[list[int]] = None
        for _ in range(max_reads):
            data = self._handle.read(self._report_len, timeout_ms=0)
            if not data:
                break
            latest = data
        return latest

    def read_report(self, *, timeout_ms: int = 50) -> Optional[list[int]]:
        """Read a single report, blocking up to `timeout_ms`.

        Use this for devices that only send reports on input change.
        """
        if self._handle is None:
            return None
        data = self._handle.read(self._report_len, timeout_ms=timeout_ms)
        return data if data else None

    def read(self) -> list[int]:
        """Return the axis words of the newest report.

        Devices that only report on change keep their last report.
        """
        if self._handle is None:
            raise ReadError("HID device is not open")
        try:
            report = self.read_latest_report()
            if report is None and self._last_report is None:
                report = self.read_report()
        except (OSError, ValueError) as exc:
            raise ReadError(f"HID read failed: {exc}") from exc
        if report is not None:
            self._last_report = report
        if self._last_report is None:
            raise ReadError("No report received from HID device")
        return decode_axes(self._last_report)
