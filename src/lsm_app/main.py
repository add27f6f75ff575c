import argparse
import logging
import threading
from dataclasses import replace

# Use absolute import so it works when frozen as a script entrypoint.
from lsm_app.app import create_application, install_signal_handlers, run_session
from lsm_app.config import BACKENDS, MODE_MIDI, MODES, AppProfile, load_profile
from lsm_app.errors import LsmError
from lsm_app.trigger import StopReason

logger = logging.getLogger("lsm_app")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lsm-app",
        description="Play MIDI chords from joystick-mounted light sensors.",
    )
    parser.add_argument("--mode", choices=MODES, help="midi plays chords, console only prints")
    parser.add_argument("--backend", choices=BACKENDS, help="input device backend")
    parser.add_argument("--device", type=int, metavar="INDEX", help="input device index")
    parser.add_argument("--midi-port", metavar="NAME", help="MIDI output port (default port if omitted)")
    parser.add_argument("--cycles", type=int, metavar="N", help="stop after N poll cycles")
    parser.add_argument("--latch", action="store_true", help="fire each trigger once per touch")
    parser.add_argument("--list-devices", action="store_true", help="list input devices and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def apply_overrides(profile: AppProfile, args: argparse.Namespace) -> AppProfile:
    """Layer command line options over the loaded config.ini profile."""
    if args.mode:
        profile = replace(profile, mode=args.mode)
    if args.backend:
        profile = replace(profile, input=replace(profile.input, backend=args.backend))
    if args.device is not None:
        profile = replace(profile, input=replace(profile.input, device_index=args.device))
    if args.midi_port:
        profile = replace(profile, midi=replace(profile.midi, port_name=args.midi_port))
    if args.cycles is not None:
        profile = replace(profile, loop=replace(profile.loop, max_cycles=args.cycles))
    if args.latch:
        profile = replace(profile, loop=replace(profile.loop, latch=True))
    return profile


def list_input_devices(profile: AppProfile) -> int:
    from lsm_app.input.device_mgr import list_devices

    labels = list_devices(profile.input)
    if not labels:
        print("No input devices found.")
    for index, label in enumerate(labels):
        print(f"{index}: {label}")

    if profile.mode == MODE_MIDI:
        from lsm_app.output.midi_output import list_output_ports

        print("MIDI outputs:")
        for name in list_output_ports():
            print(f"  {name}")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    create_application(verbose=args.verbose)

    try:
        profile = apply_overrides(load_profile(), args)
        if args.list_devices:
            return list_input_devices(profile)
        stop_event = threading.Event()
        install_signal_handlers(stop_event)
        reason = run_session(profile, stop_event)
    except LsmError as exc:
        logger.error("%s", exc)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED

    return EXIT_INTERRUPTED if reason is StopReason.CANCELLED else EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
