"""Shared fakes for the input and output collaborators."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

import pytest

from lsm_app.config import LoopConfig, default_loop_config


class FakeSource:
    """Input collaborator replaying scripted sample vectors.

    Each entry is either a list of axis values or an exception to raise.
    """

    def __init__(self, samples: Iterable, *, axis_count: int = 6, log: list | None = None) -> None:
        self._samples = list(samples)
        self._axis_count = axis_count
        self.log = log if log is not None else []
        self.opened_index: int | None = None
        self.closed = False

    @property
    def is_open(self) -> bool:
        return self.opened_index is not None

    @property
    def name(self) -> str:
        return "Fake Joystick"

    @property
    def axis_count(self) -> int:
        return self._axis_count

    @property
    def button_count(self) -> int:
        return 2

    def open(self, index: int) -> None:
        self.opened_index = index

    def read(self) -> list[int]:
        self.log.append("read")
        item = self._samples.pop(0)
        if isinstance(item, Exception):
            raise item
        return list(item)

    def close(self) -> None:
        self.opened_index = None
        self.closed = True


class ListReader:
    """SampleReader over a fixed list; records reads into `log`."""

    def __init__(self, samples: Iterable[list[int]], log: list | None = None) -> None:
        self._samples = list(samples)
        self.log = log if log is not None else []

    def read_sample(self) -> list[int]:
        self.log.append("read")
        return self._samples.pop(0)


class RecordingOutput:
    """Output collaborator that records every call."""

    def __init__(self, log: list | None = None) -> None:
        self.log = log if log is not None else []
        self.messages: list[str] = []
        self.lines: list[str] = []
        self.chords = 0
        self.stops = 0

    def notify(self, message: str) -> None:
        self.messages.append(message)

    def report(self, line: str) -> None:
        self.lines.append(line)

    def play_chord(self) -> None:
        self.chords += 1
        self.log.append("chord")

    def stop(self) -> None:
        self.stops += 1


def sample(left: int = 0, right: int = 0, stick: int = 0) -> list[int]:
    """Build a six-axis vector with the tracked axes at indices 3, 4, 5."""
    return [0, 0, 0, left, right, stick]


@pytest.fixture
def loop_cfg() -> LoopConfig:
    return replace(default_loop_config(), poll_interval=0.0, hold_duration=0.0)
