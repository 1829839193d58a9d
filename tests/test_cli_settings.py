import sys
from pathlib import Path

import pytest
import serial

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from arm_control import cli
from arm_control.settings import LinkSettings


class MockSerial:
    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.written = []
        self.is_open = True
        self.in_waiting = 1

    def write(self, data):
        self.written.append(data)
        return len(data)

    def flush(self):
        pass

    def close(self):
        self.is_open = False


@pytest.fixture
def mock_serial(monkeypatch):
    opened = []

    def fake_serial(*args, **kwargs):
        opened.append(MockSerial(**kwargs))
        return opened[-1]

    monkeypatch.setattr("arm_control.transport.serial.Serial", fake_serial)
    return opened


def test_settings_defaults_when_missing(tmp_path):
    settings = LinkSettings.load(tmp_path / "missing.json")
    assert settings == LinkSettings()
    assert settings.baud == 115200
    assert settings.poll_interval_s == 0.02


def test_settings_save_and_load(tmp_path):
    path = tmp_path / "link.json"
    LinkSettings(baud=57600, response_timeout_s=None).save(path)

    loaded = LinkSettings.load(path)

    assert loaded.baud == 57600
    assert loaded.response_timeout_s is None


def test_settings_reject_unknown_keys():
    with pytest.raises(ValueError):
        LinkSettings.from_dict({"baud": 9600, "flow": "xonxoff"})


def test_cli_gripper_and_move(mock_serial):
    code = cli.main(["--port", "COM3", "--move", "1,2,3,4,5,6", "--speed", "100", "--gripper", "2"])

    assert code == 0
    assert mock_serial[0].written == [
        b"$h\r\n",
        b"G90 G01 X1.00 Y2.00 Z3.00 A4.00 B5.00 C6.00 F100.00\r\n",
        b"M3S0M4E40\r\n",
        b"M3S1000M4E65\r\n",
    ]
    assert mock_serial[0].is_open is False


def test_cli_demo(mock_serial):
    code = cli.main(["--port", "COM3", "--demo", "--pause", "0"])

    assert code == 0
    assert mock_serial[0].written == [
        b"$h\r\n",
        b"G90 G01 X105.00 Y25.00 Z-55.00 A170.00 B30.00 C0.00 F2000.00\r\n",
        b"M3S0M4E40\r\n",
        b"M3S1000M4E65\r\n",
    ]


def test_cli_connect_failure(monkeypatch):
    def failing_serial(*args, **kwargs):
        raise serial.SerialException("busy")

    monkeypatch.setattr("arm_control.transport.serial.Serial", failing_serial)

    assert cli.main(["--port", "COM3"]) == 3


def test_cli_rejects_bad_move(mock_serial):
    assert cli.main(["--port", "COM3", "--move", "1,2,3"]) == 1
    assert mock_serial == []


def test_cli_reads_config(tmp_path, mock_serial):
    path = tmp_path / "link.json"
    LinkSettings(baud=250000).save(path)

    assert cli.main(["--port", "COM3", "--config", str(path), "--raw", "M114"]) == 0
    assert mock_serial[0].kwargs["baudrate"] == 250000
    assert mock_serial[0].written[-1] == b"M114\r\n"


def test_cli_non_ascii_raw_line(mock_serial):
    assert cli.main(["--port", "COM3", "--raw", "M117 café"]) == 1
    assert mock_serial[0].written == [b"$h\r\n"]
    assert mock_serial[0].is_open is False
