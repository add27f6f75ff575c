from __future__ import annotations

import configparser
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from PySide6.QtCore import QStandardPaths

from lsm_app.errors import ConfigError

MODE_MIDI = "midi"
MODE_CONSOLE = "console"
MODES = (MODE_MIDI, MODE_CONSOLE)

BACKEND_JOYSTICK = "joystick"
BACKEND_HID = "hid"
BACKENDS = (BACKEND_JOYSTICK, BACKEND_HID)


@dataclass(frozen=True)
class InputConfig:
    backend: str
    device_index: int
    hid_report_len: int = 64


@dataclass(frozen=True)
class LoopConfig:
    """Axis mapping, thresholds and timing for the poll loop."""

    left_axis: int
    right_axis: int
    stick_axis: int
    calibration_span_threshold: int
    trigger_threshold_pct: int
    hold_duration: float  # seconds the chord is held
    poll_interval: float  # seconds between cycles
    invert_left: bool = True
    invert_right: bool = True
    invert_stick: bool = False
    latch: bool = False
    stop_on_right: bool = True
    max_cycles: Optional[int] = None
    read_retries: int = 3
    read_backoff: float = 0.05

    @property
    def required_axes(self) -> int:
        return max(self.left_axis, self.right_axis, self.stick_axis) + 1


@dataclass(frozen=True)
class MidiConfig:
    port_name: str | None
    notes: tuple[int, ...]
    velocity: int
    channel: int = 0


@dataclass(frozen=True)
class AppProfile:
    """Everything config.ini holds."""

    mode: str
    input: InputConfig
    loop: LoopConfig
    midi: MidiConfig


# -------------------------------------------------------------------------
# Default values for all settings
# -------------------------------------------------------------------------

DEFAULT_MODE: str = MODE_MIDI

# Input defaults
DEFAULT_BACKEND: str = BACKEND_JOYSTICK
DEFAULT_DEVICE_INDEX: int = 0
DEFAULT_HID_REPORT_LEN: int = 64

# Loop defaults
DEFAULT_LEFT_AXIS: int = 3
DEFAULT_RIGHT_AXIS: int = 4
DEFAULT_STICK_AXIS: int = 5
DEFAULT_CALIBRATION_SPAN: int = 10000
DEFAULT_TRIGGER_THRESHOLD: int = 25
DEFAULT_HOLD_DURATION: float = 2.0
DEFAULT_POLL_INTERVAL: float = 0.1
DEFAULT_CONSOLE_CYCLES: int = 100
DEFAULT_READ_RETRIES: int = 3
DEFAULT_READ_BACKOFF: float = 0.05

# MIDI defaults (C major triad around middle C)
DEFAULT_CHORD_NOTES: tuple[int, ...] = (60, 64, 67)
DEFAULT_VELOCITY: int = 100
DEFAULT_CHANNEL: int = 0


def default_input_config() -> InputConfig:
    return InputConfig(
        backend=DEFAULT_BACKEND,
        device_index=DEFAULT_DEVICE_INDEX,
        hid_report_len=DEFAULT_HID_REPORT_LEN,
    )


def default_loop_config() -> LoopConfig:
    return LoopConfig(
        left_axis=DEFAULT_LEFT_AXIS,
        right_axis=DEFAULT_RIGHT_AXIS,
        stick_axis=DEFAULT_STICK_AXIS,
        calibration_span_threshold=DEFAULT_CALIBRATION_SPAN,
        trigger_threshold_pct=DEFAULT_TRIGGER_THRESHOLD,
        hold_duration=DEFAULT_HOLD_DURATION,
        poll_interval=DEFAULT_POLL_INTERVAL,
        read_retries=DEFAULT_READ_RETRIES,
        read_backoff=DEFAULT_READ_BACKOFF,
    )


def default_midi_config() -> MidiConfig:
    return MidiConfig(
        port_name=None,
        notes=DEFAULT_CHORD_NOTES,
        velocity=DEFAULT_VELOCITY,
        channel=DEFAULT_CHANNEL,
    )


def default_profile() -> AppProfile:
    return AppProfile(
        mode=DEFAULT_MODE,
        input=default_input_config(),
        loop=default_loop_config(),
        midi=default_midi_config(),
    )


def loop_config_for_mode(mode: str, cfg: LoopConfig) -> LoopConfig:
    """Apply the per-variant stop behaviour.

    The MIDI variant stops on the right trigger and runs until then; the
    console variant only reports the right trigger and stops after a fixed
    number of cycles.
    """
    if mode == MODE_CONSOLE:
        cycles = cfg.max_cycles if cfg.max_cycles is not None else DEFAULT_CONSOLE_CYCLES
        return replace(cfg, stop_on_right=False, max_cycles=cycles)
    return replace(cfg, stop_on_right=True)


def config_path() -> Path:
    # e.g., ~/.config/Light Sensor MIDI on Linux
    config_dir = Path(QStandardPaths.writableLocation(QStandardPaths.AppConfigLocation))
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir / "config.ini"


def _bool_str(value: bool) -> str:
    return "true" if value else "false"


def _profile_sections(profile: AppProfile) -> dict[str, dict[str, str]]:
    loop = profile.loop
    midi = profile.midi
    return {
        "app": {"mode": profile.mode},
        "input": {
            "backend": profile.input.backend,
            "device_index": str(profile.input.device_index),
            "hid_report_len": str(profile.input.hid_report_len),
        },
        "loop": {
            "left_axis": str(loop.left_axis),
            "right_axis": str(loop.right_axis),
            "stick_axis": str(loop.stick_axis),
            "calibration_span_threshold": str(loop.calibration_span_threshold),
            "trigger_threshold_pct": str(loop.trigger_threshold_pct),
            "hold_duration": str(loop.hold_duration),
            "poll_interval": str(loop.poll_interval),
            "invert_left": _bool_str(loop.invert_left),
            "invert_right": _bool_str(loop.invert_right),
            "invert_stick": _bool_str(loop.invert_stick),
            "latch": _bool_str(loop.latch),
            "max_cycles": "" if loop.max_cycles is None else str(loop.max_cycles),
            "read_retries": str(loop.read_retries),
            "read_backoff": str(loop.read_backoff),
        },
        "midi": {
            "port_name": midi.port_name or "",
            "notes": ",".join(str(n) for n in midi.notes),
            "velocity": str(midi.velocity),
            "channel": str(midi.channel),
        },
    }


def ensure_config_exists() -> None:
    """Create config.ini with all default values if it doesn't exist."""
    path = config_path()
    if path.exists():
        return
    save_profile(default_profile())


def _read_parser() -> configparser.ConfigParser:
    # No interpolation: MIDI port names may contain "%".
    parser = configparser.ConfigParser(interpolation=None)
    parser.read(config_path(), encoding="utf-8")
    return parser


def save_profile(profile: AppProfile) -> None:
    try:
        parser = _read_parser()
    except configparser.Error as exc:
        raise ConfigError(f"Cannot update {config_path()}: {exc}") from exc
    for name, values in _profile_sections(profile).items():
        parser[name] = values
    path = config_path()
    with path.open("w", encoding="utf-8") as f:
        parser.write(f)


def _section(parser: configparser.ConfigParser, name: str) -> configparser.SectionProxy | dict:
    return parser[name] if name in parser else {}


def _load_input(section) -> InputConfig:
    backend = section.get("backend", DEFAULT_BACKEND).strip() or DEFAULT_BACKEND
    if backend not in BACKENDS:
        raise ConfigError(f"Unknown input backend {backend!r}")
    return InputConfig(
        backend=backend,
        device_index=int(section.get("device_index", str(DEFAULT_DEVICE_INDEX))),
        hid_report_len=int(section.get("hid_report_len", str(DEFAULT_HID_REPORT_LEN))),
    )


def _get_bool(section, key: str, fallback: bool) -> bool:
    raw = str(section.get(key, "")).strip().lower()
    if not raw:
        return fallback
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{key} is not a boolean: {raw!r}")


def _load_loop(section) -> LoopConfig:
    max_cycles = str(section.get("max_cycles", "")).strip()
    cfg = LoopConfig(
        left_axis=int(section.get("left_axis", str(DEFAULT_LEFT_AXIS))),
        right_axis=int(section.get("right_axis", str(DEFAULT_RIGHT_AXIS))),
        stick_axis=int(section.get("stick_axis", str(DEFAULT_STICK_AXIS))),
        calibration_span_threshold=int(
            section.get("calibration_span_threshold", str(DEFAULT_CALIBRATION_SPAN))
        ),
        trigger_threshold_pct=int(section.get("trigger_threshold_pct", str(DEFAULT_TRIGGER_THRESHOLD))),
        hold_duration=float(section.get("hold_duration", str(DEFAULT_HOLD_DURATION))),
        poll_interval=float(section.get("poll_interval", str(DEFAULT_POLL_INTERVAL))),
        invert_left=_get_bool(section, "invert_left", True),
        invert_right=_get_bool(section, "invert_right", True),
        invert_stick=_get_bool(section, "invert_stick", False),
        latch=_get_bool(section, "latch", False),
        max_cycles=int(max_cycles) if max_cycles else None,
        read_retries=int(section.get("read_retries", str(DEFAULT_READ_RETRIES))),
        read_backoff=float(section.get("read_backoff", str(DEFAULT_READ_BACKOFF))),
    )
    if min(cfg.left_axis, cfg.right_axis, cfg.stick_axis) < 0:
        raise ConfigError("Axis indices must not be negative")
    if cfg.hold_duration < 0 or cfg.poll_interval < 0:
        raise ConfigError("Durations must not be negative")
    return cfg


def _load_midi(section) -> MidiConfig:
    notes_raw = str(section.get("notes", "")).strip()
    notes = tuple(int(n) for n in notes_raw.split(",") if n.strip()) if notes_raw else DEFAULT_CHORD_NOTES
    cfg = MidiConfig(
        port_name=str(section.get("port_name", "")).strip() or None,
        notes=notes,
        velocity=int(section.get("velocity", str(DEFAULT_VELOCITY))),
        channel=int(section.get("channel", str(DEFAULT_CHANNEL))),
    )
    if not all(0 <= n <= 127 for n in cfg.notes) or not 0 <= cfg.velocity <= 127:
        raise ConfigError("MIDI notes and velocity must be within 0..127")
    if not 0 <= cfg.channel <= 15:
        raise ConfigError("MIDI channel must be within 0..15")
    return cfg


def load_profile() -> AppProfile:
    """Load config.ini, creating it with defaults if needed.

    Missing keys fall back to defaults; malformed files or values raise ConfigError.
    """
    ensure_config_exists()
    try:
        parser = _read_parser()
        mode = str(_section(parser, "app").get("mode", DEFAULT_MODE)).strip() or DEFAULT_MODE
        if mode not in MODES:
            raise ConfigError(f"Unknown mode {mode!r}")
        return AppProfile(
            mode=mode,
            input=_load_input(_section(parser, "input")),
            loop=_load_loop(_section(parser, "loop")),
            midi=_load_midi(_section(parser, "midi")),
        )
    except (configparser.Error, ValueError) as exc:
        raise ConfigError(f"Invalid value in {config_path()}: {exc}") from exc
