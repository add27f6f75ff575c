from __future__ import annotations

from dataclasses import dataclass

from lsm_app.input.calibration import AxisRange


@dataclass(frozen=True, slots=True)
class AxisReading:
    """One tracked axis after calibration and normalization.

    - `raw` is the sample as read from the device.
    - `percentage` is the normalized value, 0..100 once the range is known.
    """

    axis: int
    raw: int
    range: AxisRange
    percentage: int
    calibrated: bool


@dataclass(frozen=True, slots=True)
class CycleReport:
    """Everything a single poll cycle produced."""

    cycle: int
    left: AxisReading
    right: AxisReading
    stick: AxisReading

    def format_line(self) -> str:
        return f"[l] {self.left.percentage}\t[r] {self.right.percentage}\t[s] {self.stick.percentage}"
