import pytest

from hlflash.debugflash import debug_flash_sector, progress_marks
from hlflash.drive import (
    RAM_BASE,
    DriveError,
    PacketCommand,
    Transport,
    enable_ram_exec_command,
    jump_to_ram_command,
    mode_b_command,
    poke_ram_command,
)


class FakeTransport(Transport):
    def __init__(self, fail=None):
        self.sent = []
        self._fail = fail or (lambda command, index: False)

    def send(self, command: PacketCommand) -> bytes:
        index = len(self.sent)
        self.sent.append(command)
        if self._fail(command, index):
            raise DriveError("boom", 0x05, 0x24, 0x00)
        return b""


def _fail_on(target):
    return lambda command, index: command == target


def test_progress_marks_percent_labels_for_100_bytes():
    marks = list(progress_marks(100))
    labels = [mark for _, mark in marks if mark.endswith("%")]
    assert labels == [f"{n}%" for n in range(10, 100, 10)]
    assert dict(marks)[10] == "10%"


def test_progress_marks_indices_increase_and_stay_in_range():
    for length in (7, 100, 333, 5000):
        indices = [index for index, _ in progress_marks(length)]
        assert indices == sorted(set(indices))
        assert all(0 <= index < length for index in indices)


def test_progress_marks_short_buffer_only_dots():
    marks = list(progress_marks(10))
    assert marks
    assert all(mark == "." for _, mark in marks)


def test_progress_marks_empty():
    assert list(progress_marks(0)) == []


def test_debug_flash_sector_command_sequence():
    payload = bytes([0xCF, 0xF8, 0x00, 0xFC])
    transport = FakeTransport(_fail_on(jump_to_ram_command()))
    assert debug_flash_sector(transport, payload) is True
    expected = [mode_b_command()]
    expected += [poke_ram_command(RAM_BASE + i, b) for i, b in enumerate(payload)]
    expected += [enable_ram_exec_command(), jump_to_ram_command()]
    assert transport.sent == expected


def test_debug_flash_sector_jump_answered_returns_false(capsys):
    transport = FakeTransport()
    assert debug_flash_sector(transport, b"\x01\x02") is False
    assert "this shouldn't happen" in capsys.readouterr().out


def test_debug_flash_sector_prints_progress(capsys):
    transport = FakeTransport(_fail_on(jump_to_ram_command()))
    debug_flash_sector(transport, bytes(100))
    out = capsys.readouterr().out
    assert out.startswith("uploading code 0%")
    assert "50%" in out
    assert "100% done." in out
    assert out.rstrip().endswith("done.")


def test_debug_flash_sector_poke_failure_names_byte():
    payload = b"\x10\x20\x30\x40"
    transport = FakeTransport(_fail_on(poke_ram_command(RAM_BASE + 2, 0x30)))
    with pytest.raises(DriveError) as info:
        debug_flash_sector(transport, payload)
    assert info.value.message == "Hitachi poke RAM command failed on byte 2"
    assert (info.value.sense_key, info.value.asc) == (0x05, 0x24)
    assert enable_ram_exec_command() not in transport.sent


def test_debug_flash_sector_mode_b_failure():
    transport = FakeTransport(_fail_on(mode_b_command()))
    with pytest.raises(DriveError) as info:
        debug_flash_sector(transport, b"\xAA")
    assert info.value.message == "failed to initiate modeB"
    assert len(transport.sent) == 1


def test_debug_flash_sector_exec_bit_failure():
    transport = FakeTransport(_fail_on(enable_ram_exec_command()))
    with pytest.raises(DriveError) as info:
        debug_flash_sector(transport, b"\xAA\xBB")
    assert info.value.message == "set (59E) bit 3 via Mode Select(10) failed"
    assert jump_to_ram_command() not in transport.sent