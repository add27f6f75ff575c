"""MIDI output through mido (python-rtmidi backend).

Provides a thin port wrapper that sends raw 3-byte channel-voice messages
and the chord-playing output collaborator built on it.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

import mido
import rtmidi

from lsm_app.config import MidiConfig
from lsm_app.errors import DeviceOpenError
from lsm_app.output.console_output import ConsoleOutput

logger = logging.getLogger(__name__)

NOTE_ON: int = 0x90
NOTE_OFF: int = 0x80


def list_output_ports() -> list[str]:
    return list(mido.get_output_names())


class MidiOutput:
    """Manage a single opened MIDI output port."""

    def __init__(self) -> None:
        self._port = None

    @property
    def is_open(self) -> bool:
        return self._port is not None

    def open_output(self, port_name: str | None = None) -> None:
        """Open `port_name`, or the backend's default output when None."""
        self.close()
        try:
            self._port = mido.open_output(port_name)
        except (OSError, ValueError, rtmidi.RtMidiError) as exc:
            label = port_name or "default MIDI output"
            raise DeviceOpenError(f"Cannot open {label}: {exc}") from exc
        logger.info("Opened MIDI output %s", self._port.name)

    def write_short(self, status: int, data1: int, data2: int) -> None:
        if self._port is None:
            raise DeviceOpenError("MIDI output is not open")
        self._port.send(mido.Message.from_bytes([status, data1, data2]))

    def close(self) -> None:
        if self._port is None:
            return
        try:
            self._port.close()
        finally:
            self._port = None


class MidiChordOutput(ConsoleOutput):
    """Output collaborator for the MIDI variant.

    `play_chord` sends note-on for every chord note, holds, then sends the
    matching note-off events. The hold blocks the caller; `wait` may return
    early when a shutdown is requested, note-off is still sent.
    """

    def __init__(
        self,
        midi: MidiOutput,
        cfg: MidiConfig,
        *,
        hold_duration: float,
        wait: Callable[[float], object] = time.sleep,
        write: Callable[[str], None] = print,
    ) -> None:
        super().__init__(write)
        self._midi = midi
        self._cfg = cfg
        self._hold_duration = hold_duration
        self._wait = wait

    def play_chord(self) -> None:
        self.notify("Outputting MIDI data")
        channel = self._cfg.channel & 0x0F
        for note in self._cfg.notes:
            self._midi.write_short(NOTE_ON | channel, note, self._cfg.velocity)
        try:
            self._wait(self._hold_duration)
        finally:
            for note in self._cfg.notes:
                self._midi.write_short(NOTE_OFF | channel, note, self._cfg.velocity)

    def close(self) -> None:
        self._midi.close()
