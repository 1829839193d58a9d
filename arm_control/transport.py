from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import serial
from serial.tools import list_ports

from .settings import LinkSettings

WriteListener = Callable[[int], None]


class ArmSerialError(RuntimeError):
    """Base error for serial communication issues."""


class PortUnavailableError(ArmSerialError):
    """Raised when the serial port cannot be opened or none is found."""


class ArmNotConnectedError(ArmSerialError):
    """Raised when a command is sent before connect() or after close()."""


class TransportClosedError(ArmSerialError):
    """Raised when the serial handle is used after it was closed."""


class WriteFailedError(ArmSerialError):
    """Raised when the serial driver rejects a write."""


class ResponseTimeoutError(ArmSerialError):
    """Raised when the arm does not respond in time."""


def discover_ports() -> List[str]:
    """Return the device names of the serial ports present on this host."""
    return sorted(port.device for port in list_ports.comports())


def first_available_port() -> str:
    ports = discover_ports()
    if not ports:
        raise PortUnavailableError("No serial ports found.")
    return ports[0]


@dataclass
class SerialTransport:
    """An open serial link to the arm firmware."""

    port: str
    settings: LinkSettings = field(default_factory=LinkSettings)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))
    _serial: Optional[serial.Serial] = field(default=None, init=False, repr=False)
    _listeners: List[WriteListener] = field(default_factory=list, init=False, repr=False)

    @classmethod
    def open(
        cls,
        port: str,
        settings: Optional[LinkSettings] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "SerialTransport":
        """Open ``port`` with the configured 8-N-1 parameters and raise DTR/RTS."""
        transport = cls(port=port, settings=settings or LinkSettings(), logger=logger or logging.getLogger(__name__))
        cfg = transport.settings
        transport.logger.info("Opening %s at %s baud", port, cfg.baud)
        try:
            handle = serial.Serial(
                port=port,
                baudrate=cfg.baud,
                bytesize=cfg.bytesize,
                parity=cfg.parity,
                stopbits=cfg.stopbits,
                timeout=cfg.read_timeout_s,
                write_timeout=cfg.write_timeout_s,
            )
        except (serial.SerialException, OSError, ValueError) as exc:
            raise PortUnavailableError(f"Cannot open serial port {port}: {exc}") from exc
        try:
            handle.dtr = cfg.dtr
            handle.rts = cfg.rts
        except (serial.SerialException, OSError, ValueError) as exc:
            handle.close()
            raise PortUnavailableError(f"Cannot configure control lines on {port}: {exc}") from exc
        if not handle.is_open:
            raise PortUnavailableError(f"Serial port {port} did not open.")
        transport._serial = handle
        return transport

    @property
    def is_open(self) -> bool:
        return self._serial is not None and self._serial.is_open

    def close(self) -> bool:
        """Release the handle. Returns False when it was already closed."""
        if not self.is_open:
            self._serial = None
            return False
        self.logger.info("Closing %s", self.port)
        try:
            self._serial.close()
        finally:
            self._serial = None
        return True

    def add_write_listener(self, listener: WriteListener) -> None:
        self._listeners.append(listener)

    def remove_write_listener(self, listener: WriteListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def write(self, data: bytes) -> int:
        """Push ``data`` onto the link once and wait for the driver to drain it."""
        self._ensure_open()
        try:
            written = self._serial.write(data)
            self._serial.flush()
        except serial.SerialException as exc:
            raise WriteFailedError(f"Failed to write {len(data)} bytes to {self.port}") from exc
        count = len(data) if written is None else written
        if count != len(data):
            self.logger.warning("Short write on %s: %d of %d bytes", self.port, count, len(data))
        else:
            self._notify_written(count)
        return count

    def bytes_available(self) -> int:
        self._ensure_open()
        try:
            return self._serial.in_waiting
        except serial.SerialException as exc:
            raise TransportClosedError(f"Failed to poll {self.port}") from exc

    def await_response_ready(
        self,
        timeout_s: Optional[float] = None,
        poll_interval_s: Optional[float] = None,
    ) -> float:
        """Block until the device has bytes waiting. Returns elapsed seconds.

        ``timeout_s`` defaults to the settings value; a settings value of
        None waits without bound. The response itself is left unread.
        """
        if timeout_s is None:
            timeout_s = self.settings.response_timeout_s
        interval = self.settings.poll_interval_s if poll_interval_s is None else poll_interval_s
        start = time.monotonic()
        while self.bytes_available() == 0:
            elapsed = time.monotonic() - start
            if timeout_s is not None and elapsed > timeout_s:
                raise ResponseTimeoutError(f"No response from {self.port} within {timeout_s:.2f}s.")
            time.sleep(interval)
        return time.monotonic() - start

    def _notify_written(self, count: int) -> None:
        for listener in list(self._listeners):
            try:
                listener(count)
            except Exception:  # listeners never gate the protocol
                self.logger.exception("Write listener %r failed", listener)

    def _ensure_open(self) -> None:
        if not self.is_open:
            raise TransportClosedError(f"Serial port {self.port} is not open.")
