from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import List, Optional, Sequence

from .commands import Command
from .controller import RobotArm
from .settings import LinkSettings
from .transport import ArmSerialError, ResponseTimeoutError, discover_ports, first_available_port


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="6-axis Robot Arm G-code CLI")
    parser.add_argument("--port", help="Serial port (e.g., COM3 or /dev/ttyUSB0); first found if omitted")
    parser.add_argument("--config", type=Path, help="Path to link settings JSON")
    parser.add_argument("--timeout", type=float, help="Response timeout in seconds")
    parser.add_argument("--list-ports", action="store_true", help="Print available serial ports and exit")
    parser.add_argument("--demo", action="store_true", help="Init position, then open and close the gripper")
    parser.add_argument("--init", action="store_true", help="Send the init position")
    parser.add_argument("--zero", action="store_true", help="Send the zero position")
    parser.add_argument("--reset", action="store_true", help="Send a soft reset")
    parser.add_argument("--single-axis-home", action="store_true", help="Send single-axis homing")
    parser.add_argument("--speed", type=float, help="Feed speed for --move")
    parser.add_argument("--prefix", help='Command prefix for --move (default "G90 G01")')
    parser.add_argument(
        "--move",
        type=str,
        help='Comma-separated X,Y,Z,A,B,C, e.g. "105,25,-55,170,30,0"',
    )
    parser.add_argument("--gripper", type=int, default=0, help="Toggle the gripper N times")
    parser.add_argument("--raw", help="Send a raw G-code line (CRLF is appended)")
    parser.add_argument("--pause", type=float, default=5.0, help="Seconds between demo steps")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    return parser.parse_args(argv)


def _parse_axes(text: str) -> List[float]:
    parts = [p.strip() for p in text.split(",") if p.strip()]
    axes = [float(p) for p in parts]
    if len(axes) != 6:
        raise ValueError("Move must contain 6 comma-separated values.")
    return axes


def _run_demo(arm: RobotArm, pause_s: float) -> None:
    arm.send_command(Command.INIT_POSITION)
    time.sleep(pause_s)
    arm.switch_gripper()
    time.sleep(pause_s)
    arm.switch_gripper()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )
    logger = logging.getLogger("arm_control.cli")

    if args.list_ports:
        for name in discover_ports():
            print(name)
        return 0

    try:
        settings = LinkSettings.load(args.config) if args.config else LinkSettings()
        if args.timeout is not None:
            settings.response_timeout_s = args.timeout
        port = args.port or first_available_port()
        axes = _parse_axes(args.move) if args.move else None
    except (ArmSerialError, ValueError) as exc:
        logger.error("Error: %s", exc)
        return 1

    arm = RobotArm(port=port, settings=settings, logger=logger)
    if args.speed is not None:
        arm.speed = args.speed
    if args.prefix:
        arm.commands = args.prefix

    try:
        if not arm.connect():
            logger.error("Cannot open port %s", port)
            return 3
        if args.reset:
            arm.send_command(Command.RESET)
        if args.single_axis_home:
            arm.send_command(Command.SINGLE_AXIS_HOMING)
        if args.zero:
            arm.send_command(Command.ZERO_POSITION)
        if args.init:
            arm.send_command(Command.INIT_POSITION)
        if args.demo:
            _run_demo(arm, args.pause)
        if axes is not None:
            elapsed = arm.move_to(*axes)
            logger.info("Move acknowledged in %.2fs", elapsed)
        for _ in range(args.gripper):
            arm.switch_gripper()
            logger.info("Gripper %s", "open" if arm.gripper_open else "closed")
        if args.raw:
            arm.send_command(args.raw.rstrip("\r\n") + "\r\n")
    except ResponseTimeoutError as exc:
        logger.error("Timeout: %s", exc)
        return 2
    except ArmSerialError as exc:
        logger.error("Error: %s", exc)
        return 1
    finally:
        arm.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
