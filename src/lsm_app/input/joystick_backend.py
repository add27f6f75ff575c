"""Joystick input through pygame's SDL joystick subsystem."""

from __future__ import annotations

import logging
import os

import pygame

from lsm_app.errors import DeviceOpenError, ReadError

logger = logging.getLogger(__name__)

AXIS_SCALE: int = 32767
"""pygame reports axes in -1.0..1.0; scale back to the raw signed 16-bit range."""


def init_joystick_subsystem() -> None:
    """Initialize pygame headless so the event queue can be pumped."""
    os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
    if not pygame.display.get_init():
        pygame.display.init()
    if not pygame.joystick.get_init():
        pygame.joystick.init()


def scale_axis(value: float) -> int:
    return int(round(value * AXIS_SCALE))


def list_joysticks() -> list[str]:
    """Return the names of all connected joysticks, by index."""
    init_joystick_subsystem()
    return [pygame.joystick.Joystick(i).get_name() for i in range(pygame.joystick.get_count())]


class JoystickSession:
    """Manage a single opened joystick."""

    def __init__(self) -> None:
        self._joystick = None

    @property
    def is_open(self) -> bool:
        return self._joystick is not None

    def open(self, index: int) -> None:
        self.close()
        init_joystick_subsystem()
        count = pygame.joystick.get_count()
        if not 0 <= index < count:
            raise DeviceOpenError(f"Joystick {index} not found ({count} connected)")
        try:
            joystick = pygame.joystick.Joystick(index)
            joystick.init()
        except pygame.error as exc:
            raise DeviceOpenError(f"Cannot open joystick {index}: {exc}") from exc
        self._joystick = joystick

    def close(self) -> None:
        if self._joystick is None:
            return
        try:
            self._joystick.quit()
        finally:
            self._joystick = None

    @property
    def name(self) -> str:
        return self._require().get_name()

    @property
    def axis_count(self) -> int:
        return self._require().get_numaxes()

    @property
    def button_count(self) -> int:
        return self._require().get_numbuttons()

    def read(self) -> list[int]:
        """Return the current raw value of every axis."""
        joystick = self._require()
        try:
            pygame.event.pump()
            return [scale_axis(joystick.get_axis(i)) for i in range(joystick.get_numaxes())]
        except pygame.error as exc:
            raise ReadError(f"Joystick read failed: {exc}") from exc

    def _require(self):
        if self._joystick is None:
            raise ReadError("Joystick is not open")
        return self._joystick
