"""Online range calibration and normalization for analog axes.

The calibrator learns each axis's raw range from the samples it sees, and
`normalize` maps a raw sample through that range into an integer percentage.
Neither raises: every integer sample is accepted, and a zero-width range
yields an inert 0%.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

CALIBRATION_SPAN_THRESHOLD: int = 10000
"""Observed span (max - min) an axis must exceed before it counts as calibrated."""

PERCENT_SCALE: int = 100


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class AxisRange:
    """Observed raw bounds of one axis. `min <= max` always holds."""

    min: int
    max: int

    def __post_init__(self) -> None:
        if self.min > self.max:
            raise ValueError("AxisRange.min must not exceed AxisRange.max")

    @property
    def span(self) -> int:
        return self.max - self.min

    def widen(self, sample: int) -> AxisRange:
        """Return a range that also covers `sample` (self when already covered)."""
        if self.min <= sample <= self.max:
            return self
        return AxisRange(min=min(self.min, sample), max=max(self.max, sample))


class Calibrator:
    """Tracks running min/max bounds per axis.

    Bounds start at the first sample seen for an axis and are only ever
    widened, so calibration can only improve within a run.
    """

    def __init__(self, *, span_threshold: int = CALIBRATION_SPAN_THRESHOLD) -> None:
        self._span_threshold = int(span_threshold)
        self._ranges: dict[int, AxisRange] = {}

    @property
    def span_threshold(self) -> int:
        return self._span_threshold

    def update(self, axis_id: int, sample: int) -> AxisRange:
        """Fold a raw sample into the axis's range and return the new range."""
        sample = int(sample)
        current = self._ranges.get(axis_id)
        if current is None:
            current = AxisRange(min=sample, max=sample)
        else:
            current = current.widen(sample)
        self._ranges[axis_id] = current
        return current

    def range(self, axis_id: int) -> AxisRange | None:
        return self._ranges.get(axis_id)

    def is_calibrated(self, axis_id: int) -> bool:
        """True once the observed span strictly exceeds the threshold."""
        current = self._ranges.get(axis_id)
        if current is None:
            return False
        return current.span > self._span_threshold

    def reset(self) -> None:
        """Forget all observed ranges (e.g. after reopening the device)."""
        self._ranges.clear()


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero.

    Python's built-in `round` ties to even, which would turn 25.5 into 26
    but 24.5 into 24; percentages must round consistently.
    """
    magnitude = abs(value)
    whole = math.floor(magnitude)
    if magnitude - whole >= 0.5:
        whole += 1
    return int(math.copysign(whole, value))


def fraction_of(sample: int, axis_range: AxisRange) -> float:
    """Position of `sample` within `axis_range`, 0.0 for a zero-width range."""
    span = axis_range.span
    if span == 0:
        return 0.0
    return (sample - axis_range.min) / float(span)


def to_percentage(fraction: float, *, invert: bool = False) -> int:
    if invert:
        return round_half_away(PERCENT_SCALE - PERCENT_SCALE * fraction)
    return round_half_away(PERCENT_SCALE * fraction)


def normalize(sample: int, axis_range: AxisRange, invert: bool = False) -> int:
    """Map a raw sample to an integer percentage of its axis range.

    A zero-width range means nothing has been learned yet and returns 0
    regardless of `invert`, so an uncalibrated axis never looks "pressed".
    The result is not clamped: update the range with `sample` first to keep
    it within 0..100.

    Args:
        sample: Raw axis value.
        axis_range: Current observed range of the axis.
        invert: Map `min` to 100 and `max` to 0 instead.

    Returns:
        The rounded percentage.
    """
    if axis_range.span == 0:
        return 0
    return to_percentage(fraction_of(sample, axis_range), invert=invert)
