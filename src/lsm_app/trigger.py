"""Poll loop: calibrate, normalize and fire edge-triggered outputs.

Each cycle reads one sample vector, widens the per-axis ranges, converts
the tracked axes to percentages and checks the left/right triggers. A
trigger fires while `percentage > threshold` on a calibrated axis. Without
a latch it re-fires every cycle the sensor stays covered; with `latch` it
fires once and re-arms when the percentage falls back to the threshold.
"""

from __future__ import annotations

import enum
import logging
import threading
from collections.abc import Sequence
from typing import Protocol

from lsm_app.config import LoopConfig
from lsm_app.input.calibration import Calibrator, normalize
from lsm_app.telemetry import AxisReading, CycleReport

logger = logging.getLogger(__name__)

LEFT = "left"
RIGHT = "right"


class SampleReader(Protocol):
    def read_sample(self) -> list[int]: ...


class Output(Protocol):
    def notify(self, message: str) -> None: ...

    def report(self, line: str) -> None: ...

    def play_chord(self) -> None: ...

    def stop(self) -> None: ...


class StopReason(enum.Enum):
    RIGHT_TRIGGER = "right_trigger"
    CYCLE_LIMIT = "cycle_limit"
    CANCELLED = "cancelled"


def trigger_condition(reading: AxisReading, threshold: int) -> bool:
    return reading.calibrated and reading.percentage > threshold


class TriggerLoop:
    """Owns the calibration state for one run and drives the outputs."""

    def __init__(
        self,
        reader: SampleReader,
        output: Output,
        cfg: LoopConfig,
        *,
        stop_event: threading.Event | None = None,
    ) -> None:
        self._reader = reader
        self._output = output
        self._cfg = cfg
        self._stop_event = stop_event or threading.Event()
        self._calibrator = Calibrator(span_threshold=cfg.calibration_span_threshold)
        self._armed = {LEFT: True, RIGHT: True}
        self._cycles = 0

    @property
    def calibrator(self) -> Calibrator:
        return self._calibrator

    @property
    def cycles(self) -> int:
        return self._cycles

    @property
    def stop_event(self) -> threading.Event:
        return self._stop_event

    def _reading(self, axis: int, raw: int, invert: bool) -> AxisReading:
        # Range first, so the sample is always inside it.
        axis_range = self._calibrator.update(axis, raw)
        return AxisReading(
            axis=axis,
            raw=int(raw),
            range=axis_range,
            percentage=normalize(raw, axis_range, invert),
            calibrated=self._calibrator.is_calibrated(axis),
        )

    def step(self, sample: Sequence[int]) -> CycleReport:
        """Fold one sample vector into calibration and normalize it."""
        cfg = self._cfg
        report = CycleReport(
            cycle=self._cycles,
            left=self._reading(cfg.left_axis, sample[cfg.left_axis], cfg.invert_left),
            right=self._reading(cfg.right_axis, sample[cfg.right_axis], cfg.invert_right),
            stick=self._reading(cfg.stick_axis, sample[cfg.stick_axis], cfg.invert_stick),
        )
        self._cycles += 1
        return report

    def _should_fire(self, side: str, reading: AxisReading) -> bool:
        active = trigger_condition(reading, self._cfg.trigger_threshold_pct)
        if not self._cfg.latch:
            return active
        if not active:
            self._armed[side] = True
            return False
        if self._armed[side]:
            self._armed[side] = False
            return True
        return False

    def evaluate(self, report: CycleReport) -> bool:
        """Run the triggers for one cycle. Returns False when the run should end."""
        if self._should_fire(LEFT, report.left):
            logger.debug("Left trigger at %d%%", report.left.percentage)
            self._output.notify("Touched the left light sensor")
            self._output.play_chord()

        if self._should_fire(RIGHT, report.right):
            logger.debug("Right trigger at %d%%", report.right.percentage)
            self._output.notify("Touched the right light sensor")
            self._output.stop()
            if self._cfg.stop_on_right:
                return False

        self._output.report(report.format_line())
        return True

    def run(self) -> StopReason:
        """Poll until the right trigger, the cycle limit or cancellation."""
        max_cycles = self._cfg.max_cycles
        while True:
            if self._stop_event.is_set():
                return StopReason.CANCELLED
            if max_cycles is not None and self._cycles >= max_cycles:
                return StopReason.CYCLE_LIMIT

            report = self.step(self._reader.read_sample())
            if not self.evaluate(report):
                return StopReason.RIGHT_TRIGGER

            if self._stop_event.wait(self._cfg.poll_interval):
                return StopReason.CANCELLED
