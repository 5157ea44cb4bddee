import pytest

from hlflash.drive import (
    DriveError,
    Transport,
    clear_exec_bit_command,
    configure_upload_command,
    execute_upload_command,
    mode_b_command,
    stop_disc_command,
    upload_block_commands,
)
from hlflash.flashing import flash_sector
from hlflash.payload import build_flash_payload

IMAGE = bytes(range(256)) * 0x400
PAYLOAD = build_flash_payload(IMAGE, 0x9003F000, 0x1000)


class FakeTransport(Transport):
    def __init__(self, failures=None):
        self.sent = []
        self.failures = failures or {}

    def send(self, command):
        self.sent.append(command)
        error = self.failures.get(command.cdb)
        if error is not None:
            raise error
        return b""


def _expected_sequence(payload):
    return [
        mode_b_command(),
        stop_disc_command(),
        clear_exec_bit_command(),
        configure_upload_command(len(payload)),
        *upload_block_commands(payload),
        execute_upload_command(),
    ]


def test_flash_sector_sends_full_sequence():
    transport = FakeTransport()
    flash_sector(transport, PAYLOAD)
    assert transport.sent == _expected_sequence(PAYLOAD)


def test_uploaded_blocks_carry_payload():
    transport = FakeTransport()
    flash_sector(transport, PAYLOAD)
    blocks = transport.sent[4:-1]
    assert b"".join(block.data[8:] for block in blocks) == PAYLOAD
    assert all(block.data[4:6] == b"HL" for block in blocks)


def test_no_medium_on_stop_is_tolerated():
    transport = FakeTransport({stop_disc_command().cdb: DriveError("stop", 0x02, 0x3A, 0x00)})
    flash_sector(transport, PAYLOAD)
    assert transport.sent == _expected_sequence(PAYLOAD)


def test_stop_failure_raises():
    transport = FakeTransport({stop_disc_command().cdb: DriveError("stop", 0x05, 0x24, 0x00)})
    with pytest.raises(DriveError) as info:
        flash_sector(transport, PAYLOAD)
    assert info.value.message == "failed to stop the disc"
    assert info.value.sense_key == 0x05
    assert len(transport.sent) == 2


def test_clear_exec_failure_is_ignored():
    transport = FakeTransport({clear_exec_bit_command().cdb: DriveError("clear", 0x05, 0x20, 0x00)})
    flash_sector(transport, PAYLOAD)
    assert transport.sent[-1] == execute_upload_command()


def test_mode_b_failure_raises():
    transport = FakeTransport({mode_b_command().cdb: DriveError("modeb", 0x05, 0x20, 0x00)})
    with pytest.raises(DriveError) as info:
        flash_sector(transport, PAYLOAD)
    assert info.value.message == "failed to initiate modeB"
    assert transport.sent == [mode_b_command()]


def test_configure_failure_raises():
    command = configure_upload_command(len(PAYLOAD))
    transport = FakeTransport({command.cdb: DriveError("cfg", 0x05, 0x26, 0x00)})
    with pytest.raises(DriveError) as info:
        flash_sector(transport, PAYLOAD)
    assert info.value.message == "failed to configure upload"
    assert transport.sent[-1] == command


def test_last_block_failure_names_block():
    blocks = list(upload_block_commands(PAYLOAD))
    transport = FakeTransport({blocks[-1].cdb: DriveError("blk", 0x05, 0x26, 0x00)})
    with pytest.raises(DriveError) as info:
        flash_sector(transport, PAYLOAD)
    assert info.value.message == f"failed to upload buffer block {len(blocks) - 1}"


def test_execute_failure_raises():
    transport = FakeTransport({execute_upload_command().cdb: DriveError("exec", 0x04, 0x00, 0x00)})
    with pytest.raises(DriveError) as info:
        flash_sector(transport, PAYLOAD)
    assert info.value.message == "failed to execute flasher"
    assert transport.sent == _expected_sequence(PAYLOAD)