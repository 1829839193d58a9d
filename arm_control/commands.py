"""Fixed firmware opcodes and the G-code move line formatter."""
from __future__ import annotations

from enum import Enum
from typing import Dict, Union

DEFAULT_PREFIX = "G90 G01"
DEFAULT_SPEED = 2000.0
LINE_END = "\r\n"

MOVE_TEMPLATE = "%s X%.2f Y%.2f Z%.2f A%.2f B%.2f C%.2f F%.2f"


class Command(Enum):
    HOMING = "homing"
    SINGLE_AXIS_HOMING = "single_axis_homing"
    RESET = "reset"
    INIT_POSITION = "init_position"
    ZERO_POSITION = "zero_position"
    GRIPPER_CLOSE = "gripper_close"
    GRIPPER_OPEN = "gripper_open"


WIRE_COMMANDS: Dict[Command, str] = {
    Command.HOMING: "$h\r\n",
    Command.SINGLE_AXIS_HOMING: "$HH\r\n",
    Command.RESET: "!\r\n",
    Command.INIT_POSITION: "G90 G01 X105.00 Y25.00 Z-55.00 A170.00 B30.00 C0.00 F2000.00\r\n",
    Command.ZERO_POSITION: "M21G90G01X0Y0Z0A0B0C0\r\n",
    Command.GRIPPER_CLOSE: "M3S1000M4E65\r\n",
    Command.GRIPPER_OPEN: "M3S0M4E40\r\n",
}


def wire_line(command: Union[Command, str]) -> str:
    """Return the text sent on the wire for a named command or a raw line."""
    if isinstance(command, Command):
        return WIRE_COMMANDS[command]
    return command


def format_move(
    prefix: str,
    axis_x: float,
    axis_y: float,
    axis_z: float,
    axis_a: float,
    axis_b: float,
    axis_c: float,
    speed: float = DEFAULT_SPEED,
) -> str:
    """Build a CRLF-terminated move line with two decimals on every value.

    %-formatting ignores the process locale, so the decimal separator is
    always a dot.
    """
    values = (prefix, axis_x, axis_y, axis_z, axis_a, axis_b, axis_c, speed)
    return (MOVE_TEMPLATE % values) + LINE_END
