"""Serial G-code control for a 6-axis Robotic Arm."""

from .commands import Command, WIRE_COMMANDS, format_move
from .controller import RobotArm
from .settings import LinkSettings
from .transport import (
    ArmNotConnectedError,
    ArmSerialError,
    PortUnavailableError,
    ResponseTimeoutError,
    SerialTransport,
    TransportClosedError,
    WriteFailedError,
    discover_ports,
    first_available_port,
)

__all__ = [
    "ArmNotConnectedError",
    "ArmSerialError",
    "Command",
    "LinkSettings",
    "PortUnavailableError",
    "ResponseTimeoutError",
    "RobotArm",
    "SerialTransport",
    "TransportClosedError",
    "WIRE_COMMANDS",
    "WriteFailedError",
    "discover_ports",
    "first_available_port",
    "format_move",
]
