import logging
import signal
import sys
import threading
from pathlib import Path

from PySide6.QtCore import QCoreApplication, QStandardPaths

from lsm_app.config import MODE_MIDI, AppProfile, loop_config_for_mode
from lsm_app.input.device_mgr import DeviceManager, create_source
from lsm_app.output.console_output import ConsoleOutput
from lsm_app.trigger import StopReason, TriggerLoop

APP_NAME = "Light Sensor MIDI"
APP_VERSION = "0.1.0"

logger = logging.getLogger(__name__)


def ensure_user_config_dir() -> Path:
    """Ensure a writable config directory exists and return it."""
    config_dir = Path(QStandardPaths.writableLocation(QStandardPaths.AppConfigLocation))
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def create_application(*, verbose: bool = False) -> QCoreApplication:
    """Configure logging and the Qt core app that names the config location."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s - %(message)s",
    )
    app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setApplicationVersion(APP_VERSION)
    ensure_user_config_dir()
    return app


def install_signal_handlers(stop_event: threading.Event) -> None:
    """Turn SIGINT/SIGTERM into a cooperative stop request."""

    def _request_stop(signum, _frame) -> None:
        logger.info("Received signal %d, stopping", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)


def create_output(profile: AppProfile, stop_event: threading.Event) -> ConsoleOutput:
    """Open the output collaborator for the configured mode."""
    if profile.mode != MODE_MIDI:
        return ConsoleOutput()

    from lsm_app.output.midi_output import MidiChordOutput, MidiOutput

    midi = MidiOutput()
    midi.open_output(profile.midi.port_name)
    return MidiChordOutput(
        midi,
        profile.midi,
        hold_duration=profile.loop.hold_duration,
        wait=stop_event.wait,
    )


def run_session(profile: AppProfile, stop_event: threading.Event) -> StopReason:
    """Open the devices, poll until done and tear everything down.

    Raises:
        DeviceOpenError, ConfigError: Startup failed.
        ReadError: Reads kept failing after the configured retries.
    """
    loop_cfg = loop_config_for_mode(profile.mode, profile.loop)
    devices = DeviceManager(
        create_source(profile.input),
        required_axes=loop_cfg.required_axes,
        read_retries=loop_cfg.read_retries,
        read_backoff=loop_cfg.read_backoff,
    )
    with devices:
        devices.connect(profile.input.device_index)
        with create_output(profile, stop_event) as output:
            loop = TriggerLoop(devices, output, loop_cfg, stop_event=stop_event)
            reason = loop.run()
            logger.info("Stopped after %d cycles (%s)", loop.cycles, reason.value)
            return reason
