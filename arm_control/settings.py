from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import serial


@dataclass
class LinkSettings:
    """Serial link parameters and response wait policy for one arm."""

    baud: int = 115200
    bytesize: int = serial.EIGHTBITS
    parity: str = serial.PARITY_NONE
    stopbits: float = serial.STOPBITS_ONE
    read_timeout_s: float = 3.0
    write_timeout_s: float = 3.0
    dtr: bool = True
    rts: bool = True
    # None waits forever for the device to answer.
    response_timeout_s: Optional[float] = 10.0
    poll_interval_s: float = 0.02

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LinkSettings":
        if not isinstance(data, dict):
            raise ValueError("Link settings must be a JSON object.")
        known = {item.name for item in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown link settings: {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def load(cls, path: Path) -> "LinkSettings":
        if not path.exists():
            return cls()
        raw = json.loads(path.read_text(encoding="utf-8"))
        return cls.from_dict(raw)

    def save(self, path: Path) -> None:
        path.write_text(json.dumps(self.to_dict(), indent=2, sort_keys=True), encoding="utf-8")
