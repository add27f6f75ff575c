"""Error types raised by the input/output collaborators and configuration.

Calibration and normalization never raise; every failure originates at a
device or configuration boundary.
"""

from __future__ import annotations


class LsmError(Exception):
    """Base class for all application errors."""


class DeviceOpenError(LsmError):
    """The input device or MIDI port is missing, busy or unusable."""


class ReadError(LsmError):
    """An I/O failure while polling the input device.

    Treated as transient by the device manager, which retries with backoff
    before letting it escape.
    """


class ConfigError(LsmError):
    """The device or config.ini does not satisfy the required layout."""
