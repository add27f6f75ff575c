"""Device management for the axis input device.

Opens the configured backend, validates that it exposes enough axes and
reads sample vectors, retrying transient read failures with backoff.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Protocol

from lsm_app.config import BACKEND_HID, InputConfig
from lsm_app.errors import ConfigError, ReadError

logger = logging.getLogger(__name__)


class AxisSource(Protocol):
    """What the poll loop needs from an input device."""

    @property
    def is_open(self) -> bool: ...

    @property
    def name(self) -> str: ...

    @property
    def axis_count(self) -> int: ...

    @property
    def button_count(self) -> int: ...

    def open(self, index: int) -> None: ...

    def read(self) -> list[int]: ...

    def close(self) -> None: ...


def create_source(cfg: InputConfig) -> AxisSource:
    """Build an unopened source for the configured backend."""
    if cfg.backend == BACKEND_HID:
        from lsm_app.input.hid_backend import HidSession

        return HidSession(report_len=cfg.hid_report_len)

    from lsm_app.input.joystick_backend import JoystickSession

    return JoystickSession()


def list_devices(cfg: InputConfig) -> list[str]:
    """Return display labels of the devices the configured backend can open."""
    if cfg.backend == BACKEND_HID:
        from lsm_app.input.hid_backend import enumerate_devices

        return [format_device_label(d) for d in enumerate_devices()]

    from lsm_app.input.joystick_backend import list_joysticks

    return list_joysticks()


def format_device_label(device) -> str:
    """Format a HID device for display."""
    vid = device.device_id.vendor_id
    pid = device.device_id.product_id
    return f"{device.product_string} ({vid:04X}:{pid:04X})"


# ---------------------------------------------------------------------------
# Device Manager
# ---------------------------------------------------------------------------

class DeviceManager:
    """Owns the single input device for the lifetime of a run.

    Usable as a context manager so the device is closed on every exit path.
    """

    def __init__(
        self,
        source: AxisSource,
        *,
        required_axes: int,
        read_retries: int = 3,
        read_backoff: float = 0.05,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the device manager.

        Args:
            source: Unopened input collaborator.
            required_axes: Minimum axis count the device must report.
            read_retries: Extra attempts after a failed read.
            read_backoff: Delay before the first retry; doubles per attempt.
            sleep: Sleep function, replaceable in tests.
        """
        self._source = source
        self._required_axes = int(required_axes)
        self._read_retries = max(0, int(read_retries))
        self._read_backoff = max(0.0, float(read_backoff))
        self._sleep = sleep

    @property
    def source(self) -> AxisSource:
        return self._source

    @property
    def is_connected(self) -> bool:
        return self._source.is_open

    def connect(self, index: int) -> None:
        """Open device `index` and check its axis count.

        Raises:
            DeviceOpenError: The device is missing or busy.
            ConfigError: The device has fewer axes than required.
        """
        self._source.open(index)
        axis_count = self._source.axis_count
        if axis_count < self._required_axes:
            self._source.close()
            raise ConfigError(
                f"Joystick axis count {axis_count} < {self._required_axes}"
            )
        logger.info("Joystick Name: %s", self._source.name)
        logger.info("Axis count: %d", axis_count)
        logger.info("Button count: %d", self._source.button_count)

    def disconnect(self) -> None:
        self._source.close()

    def read_sample(self) -> list[int]:
        """Read one sample vector, retrying transient failures.

        Raises:
            ReadError: Every attempt failed.
        """
        attempt = 0
        while True:
            try:
                values = self._source.read()
                if len(values) < self._required_axes:
                    raise ReadError(
                        f"Short sample: {len(values)} axes, expected {self._required_axes}"
                    )
                return values
            except ReadError as exc:
                if attempt >= self._read_retries:
                    raise
                delay = self._read_backoff * (2 ** attempt)
                attempt += 1
                logger.warning(
                    "Read failed (%s), retry %d/%d in %.3fs",
                    exc, attempt, self._read_retries, delay,
                )
                self._sleep(delay)

    def __enter__(self) -> DeviceManager:
        return self

    def __exit__(self, *exc_info) -> None:
        self.disconnect()
