"""Tests for the pygame joystick backend, with pygame's joystick API faked."""

from __future__ import annotations

import pygame
import pytest

import lsm_app.input.joystick_backend as joystick_backend
from lsm_app.errors import DeviceOpenError, ReadError
from lsm_app.input.joystick_backend import JoystickSession, list_joysticks, scale_axis


class FakeJoystick:
    axes = [0.0, 0.0, 0.0, -1.0, 0.5, 1.0]
    fail_read = False

    def __init__(self, index: int) -> None:
        self.index = index
        self.quit_called = False

    def init(self) -> None:
        pass

    def quit(self) -> None:
        self.quit_called = True

    def get_name(self) -> str:
        return f"Fake Stick {self.index}"

    def get_numaxes(self) -> int:
        return len(self.axes)

    def get_numbuttons(self) -> int:
        return 12

    def get_axis(self, i: int) -> float:
        if self.fail_read:
            raise pygame.error("Joystick not initialized")
        return self.axes[i]


@pytest.fixture
def fake_pygame(monkeypatch):
    monkeypatch.setattr(joystick_backend, "init_joystick_subsystem", lambda: None)
    monkeypatch.setattr(pygame.joystick, "get_count", lambda: 2)
    monkeypatch.setattr(pygame.joystick, "Joystick", FakeJoystick)
    monkeypatch.setattr(pygame.event, "pump", lambda: None)
    monkeypatch.setattr(FakeJoystick, "fail_read", False)


class TestScaleAxis:
    """Tests for scale_axis."""

    @pytest.mark.parametrize("value, expected", [(0.0, 0), (1.0, 32767), (-1.0, -32767), (0.5, 16384)])
    def test_scales_to_signed_16_bit(self, value: float, expected: int) -> None:
        assert scale_axis(value) == expected


class TestJoystickSession:
    """Tests for JoystickSession."""

    def test_list_joysticks(self, fake_pygame) -> None:
        assert list_joysticks() == ["Fake Stick 0", "Fake Stick 1"]

    def test_open_and_describe(self, fake_pygame) -> None:
        session = JoystickSession()
        session.open(1)
        assert session.is_open
        assert session.name == "Fake Stick 1"
        assert session.axis_count == 6
        assert session.button_count == 12

    @pytest.mark.parametrize("index", [-1, 2, 10])
    def test_open_missing_index_raises(self, fake_pygame, index: int) -> None:
        with pytest.raises(DeviceOpenError, match="not found"):
            JoystickSession().open(index)

    def test_read_scales_axes(self, fake_pygame) -> None:
        session = JoystickSession()
        session.open(0)
        assert session.read() == [0, 0, 0, -32767, 16384, 32767]

    def test_read_failure_raises_read_error(self, fake_pygame, monkeypatch) -> None:
        session = JoystickSession()
        session.open(0)
        monkeypatch.setattr(FakeJoystick, "fail_read", True)
        with pytest.raises(ReadError):
            session.read()

    def test_read_when_closed_raises(self) -> None:
        with pytest.raises(ReadError):
            JoystickSession().read()

    def test_close_quits_joystick(self, fake_pygame) -> None:
        session = JoystickSession()
        session.open(0)
        joystick = session._joystick
        session.close()
        assert joystick.quit_called is True
        assert session.is_open is False
