"""Console-only output: every event becomes a printed line."""

from __future__ import annotations

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class ConsoleOutput:
    """Output collaborator for the console variant.

    `play_chord` has nothing to play here and only logs; subclasses that
    drive real instruments override it.
    """

    def __init__(self, write: Callable[[str], None] = print) -> None:
        self._write = write

    def notify(self, message: str) -> None:
        self._write(message)

    def report(self, line: str) -> None:
        """Emit the per-cycle percentage line."""
        self._write(line)

    def play_chord(self) -> None:
        logger.debug("No MIDI output configured, chord skipped")

    def stop(self) -> None:
        """Announce the end of the session."""
        self.notify("Bye!")

    def close(self) -> None:
        pass

    def __enter__(self) -> ConsoleOutput:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
