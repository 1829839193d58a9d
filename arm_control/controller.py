from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple, Union

from .commands import DEFAULT_PREFIX, DEFAULT_SPEED, Command, format_move, wire_line
from .settings import LinkSettings
from .transport import (
    ArmNotConnectedError,
    PortUnavailableError,
    SerialTransport,
    WriteFailedError,
    first_available_port,
)


@dataclass(eq=True, unsafe_hash=False)
class RobotArm:
    """High-level interface for a 6-axis arm speaking G-code over serial.

    Axis values, speed and the command prefix are plain attributes and are
    sent as given; nothing here checks ranges. Instances compare by value
    and are unhashable because every field is mutable.
    """

    port: str
    settings: LinkSettings = field(default_factory=LinkSettings, compare=False)
    axis_x: float = 0.0
    axis_y: float = 0.0
    axis_z: float = 0.0
    axis_a: float = 0.0
    axis_b: float = 0.0
    axis_c: float = 0.0
    speed: float = DEFAULT_SPEED
    commands: str = DEFAULT_PREFIX
    logger: logging.Logger = field(
        default_factory=lambda: logging.getLogger(__name__), compare=False, repr=False
    )
    _gripper_open: bool = field(default=False, init=False)
    _transport: Optional[SerialTransport] = field(default=None, init=False, repr=False, compare=False)

    @classmethod
    def autodetect(cls, **kwargs: Any) -> "RobotArm":
        """Bind to the first serial port found on this host."""
        return cls(port=first_available_port(), **kwargs)

    @property
    def gripper_open(self) -> bool:
        return self._gripper_open

    @property
    def position(self) -> Tuple[float, float, float, float, float, float]:
        return (self.axis_x, self.axis_y, self.axis_z, self.axis_a, self.axis_b, self.axis_c)

    @position.setter
    def position(self, axes: Tuple[float, float, float, float, float, float]) -> None:
        self.axis_x, self.axis_y, self.axis_z, self.axis_a, self.axis_b, self.axis_c = axes

    @property
    def is_open(self) -> bool:
        return self._transport is not None and self._transport.is_open

    def connect(self, timeout_s: Optional[float] = None) -> bool:
        """Open the port, wait for the firmware greeting and send HOMING.

        Returns False without writing anything when the port cannot be
        opened. The stored axis values are left as they are.
        """
        if self._transport is not None:
            self.close()
        try:
            transport = SerialTransport.open(self.port, self.settings, logger=self.logger)
        except PortUnavailableError as exc:
            self.logger.warning("Connect failed: %s", exc)
            return False
        transport.add_write_listener(self._log_write_complete)
        self._transport = transport
        transport.await_response_ready(timeout_s)
        self.send_command(Command.HOMING, timeout_s=timeout_s)
        self.logger.info("Connected to %s", self.port)
        return True

    def close(self) -> bool:
        """Close the serial connection. Returns False if nothing was open."""
        if self._transport is None:
            return False
        transport, self._transport = self._transport, None
        return transport.close()

    def send_command(self, command: Union[Command, str], timeout_s: Optional[float] = None) -> float:
        """Write one command and block until the arm has answered.

        Returns the seconds spent waiting for the answer.
        """
        transport = self._ensure_connected()
        line = wire_line(command)
        try:
            payload = line.encode("ascii")
        except UnicodeEncodeError as exc:
            raise WriteFailedError(f"Command is not ASCII: {line!r}") from exc
        self.logger.debug("Sending: %r", line)
        transport.write(payload)
        return transport.await_response_ready(timeout_s)

    def switch_gripper(self) -> None:
        if self._gripper_open:
            self.send_command(Command.GRIPPER_CLOSE)
        else:
            self.send_command(Command.GRIPPER_OPEN)
        self._gripper_open = not self._gripper_open

    def formatter(self, command: Optional[str] = None, *axes: float) -> str:
        """Format a move line.

        ``formatter()`` uses the stored prefix and axes, ``formatter(cmd)``
        overrides the prefix and ``formatter(cmd, x, y, z, a, b, c)`` uses
        explicit axes. The stored speed is always used.
        """
        if command is None:
            if axes:
                raise ValueError("Explicit axes need a command prefix.")
            command = self.commands
        if not axes:
            axes = self.position
        if len(axes) != 6:
            raise ValueError("Expected six axis values (X, Y, Z, A, B, C).")
        return format_move(command, *axes, speed=self.speed)

    def move_to(
        self,
        axis_x: float,
        axis_y: float,
        axis_z: float,
        axis_a: float,
        axis_b: float,
        axis_c: float,
        command: Optional[str] = None,
    ) -> float:
        """Store the target axes and send them as one move line."""
        self.position = (axis_x, axis_y, axis_z, axis_a, axis_b, axis_c)
        return self.send_command(self.formatter(command))

    def __enter__(self) -> "RobotArm":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _log_write_complete(self, count: int) -> None:
        self.logger.debug("All bytes were successfully transmitted (%d)", count)

    def _ensure_connected(self) -> SerialTransport:
        if self._transport is None or not self._transport.is_open:
            raise ArmNotConnectedError("Serial connection is not open.")
        return self._transport
