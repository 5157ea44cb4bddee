"""Vendor packet commands for the drive and the routines built on them."""

from __future__ import annotations

import abc
import enum
from collections.abc import Iterator
from dataclasses import dataclass

TIMEOUT_MS = 15000
RAM_BASE = 0x80000000
BLOCK_PAYLOAD = 0x7F8
BLOCK_HEADER = 8

_CDB_LENGTH = 12
_VENDOR_PREFIX = (0xE7, 0x48, 0x49, 0x54)  # 0xE7 'H' 'I' 'T'
_MODE_SELECT = 0x55
_NO_MEDIUM = (0x02, 0x3A)


class Direction(enum.Enum):
    """Direction of the data phase of a packet command."""

    NONE = "none"
    READ = "read"
    WRITE = "write"


@dataclass(frozen=True)
class PacketCommand:
    """A 12-byte command block with its data phase."""

    cdb: bytes
    direction: Direction = Direction.NONE
    data: bytes = b""
    read_length: int = 0
    timeout: int = TIMEOUT_MS

    def __post_init__(self) -> None:
        if len(self.cdb) != _CDB_LENGTH:
            raise ValueError(f"command block must be {_CDB_LENGTH} bytes")


class DriveError(Exception):
    """A packet command failed; carries the drive's sense data."""

    def __init__(self, message: str, sense_key: int = 0, asc: int = 0, ascq: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.sense_key = sense_key
        self.asc = asc
        self.ascq = ascq

    def __str__(self) -> str:
        return f"{self.message} (sense: {self.sense_key:02X}/{self.asc:02X}/{self.ascq:02X})"

    def reworded(self, message: str) -> DriveError:
        """Return a copy of this error with a new message and the same sense data."""
        return DriveError(message, self.sense_key, self.asc, self.ascq)


class Transport(abc.ABC):
    """Channel that delivers packet commands to a drive."""

    @abc.abstractmethod
    def send(self, command: PacketCommand) -> bytes:
        """Send ``command``; return the data read, or ``b""``. Raise ``DriveError`` on failure."""


def _cdb(*fields: tuple) -> bytes:
    block = bytearray(_CDB_LENGTH)
    for index, value in fields:
        block[index] = value & 0xFF
    return bytes(block)


def _vendor(*fields: tuple) -> bytes:
    return _cdb(*enumerate(_VENDOR_PREFIX), *fields)


def _exec_param_list() -> bytes:
    params = bytearray(8)
    params[1] = 6
    return bytes(params)


def mode_b_command() -> PacketCommand:
    """Command that puts the drive into mode B."""
    return PacketCommand(_vendor((4, 0x30), (5, 0x90), (6, 0x90), (7, 0xD0), (8, 0x01)))


def poke_ram_command(address: int, value: int) -> PacketCommand:
    """Command that writes one byte ``value`` at ``address``."""
    if not 0 <= value <= 0xFF:
        raise ValueError("poke value must fit in one byte")
    addr = (address & 0xFFFFFFFF).to_bytes(4, "big")
    return PacketCommand(_vendor((4, 0xCC), (5, value), *zip(range(8, 12), addr)))


def read_memory_command(address: int, length: int) -> PacketCommand:
    """Command that reads ``length`` bytes of controller memory from ``address``."""
    if not 1 <= length <= 0xFFFF:
        raise ValueError("read length must be 1 - 65535")
    addr = (address & 0xFFFFFFFF).to_bytes(4, "big")
    size = length.to_bytes(2, "big")
    return PacketCommand(
        _vendor((4, 0x01), *zip(range(6, 10), addr), *zip(range(10, 12), size)),
        Direction.READ,
        read_length=length,
    )


def enable_ram_exec_command() -> PacketCommand:
    """Mode Select(10) that sets bit 3 of (59E), allowing code in RAM to run."""
    return PacketCommand(
        _cdb((0, _MODE_SELECT), (1, 0x10), (8, 0x08)), Direction.WRITE, _exec_param_list()
    )


def jump_to_ram_command() -> PacketCommand:
    """Mode Select(10) that jumps to the routine in RAM."""
    return PacketCommand(
        _cdb((0, _MODE_SELECT), (1, 0x10), (3, 0x48), (4, 0x4C), (8, 0x08)),
        Direction.WRITE,
        _exec_param_list(),
    )


def stop_disc_command() -> PacketCommand:
    """Start Stop Unit command that stops the disc."""
    return PacketCommand(_cdb((0, 0x1B)))


def clear_exec_bit_command() -> PacketCommand:
    """Bare Mode Select that clears bit 3 of (59E)."""
    return PacketCommand(_cdb((0, _MODE_SELECT)))


def configure_upload_command(length: int) -> PacketCommand:
    """Mode Select(10) announcing an upload of ``length`` bytes."""
    params = bytearray(16)
    params[9] = 0x06
    params[10] = 0x48
    params[11] = 0x4C
    params[12:16] = (length & 0xFFFFFFFF).to_bytes(4, "big")
    return PacketCommand(
        _cdb((0, _MODE_SELECT), (1, 0x10), (8, 0x10), (11, 0x01)),
        Direction.WRITE,
        bytes(params),
    )


def upload_block_commands(buffer: bytes) -> Iterator[PacketCommand]:
    """Yield the Mode Select(10) commands that carry ``buffer`` in 0x7F8-byte blocks."""
    buffer = bytes(buffer)
    blocks = -(-len(buffer) // BLOCK_PAYLOAD)
    for index in range(blocks):
        if index != blocks - 1:
            length = BLOCK_PAYLOAD + BLOCK_HEADER
        else:
            length = len(buffer) % BLOCK_PAYLOAD + BLOCK_HEADER
        start = index * BLOCK_PAYLOAD
        block = bytearray(length)
        block[4] = 0x48
        block[5] = 0x4C
        block[BLOCK_HEADER:] = buffer[start:start + length - BLOCK_HEADER]
        yield PacketCommand(
            _cdb((0, _MODE_SELECT), (1, 0x10), (7, length >> 8), (8, length), (11, 0x01)),
            Direction.WRITE,
            bytes(block),
        )


def execute_upload_command() -> PacketCommand:
    """Mode Select(10) that runs the uploaded buffer."""
    return PacketCommand(
        _cdb((0, _MODE_SELECT), (1, 0x10), (3, 0x48), (4, 0x4C), (6, 0x01), (11, 0x01))
    )


def append_checksum(data: bytes) -> bytes:
    """Pad ``data`` to a 4-byte boundary with room for a 16-bit checksum in the last two bytes.

    The checksum, little endian, makes the 16-bit sum of the data bytes and
    the checksum value zero.
    """
    data = bytes(data)
    length = len(data) + 2
    length += -length % 4
    total = 0x10000 - (sum(data) & 0xFFFF)
    padding = bytes(length - len(data) - 2)
    return data + padding + (total & 0xFFFF).to_bytes(2, "little")


def enter_mode_b(transport: Transport) -> None:
    """Put the drive into mode B."""
    try:
        transport.send(mode_b_command())
    except DriveError as exc:
        raise exc.reworded("failed to initiate modeB") from exc


def poke_code(transport: Transport, code: bytes) -> None:
    """Write ``code`` into RAM at the start of the RAM window, one byte at a time."""
    for index, byte in enumerate(code):
        try:
            transport.send(poke_ram_command(RAM_BASE + index, byte))
        except DriveError as exc:
            raise exc.reworded(f"Hitachi poke RAM command failed on byte {index}") from exc


def execute_poked_code(transport: Transport, code: bytes) -> bool:
    """Enter mode B, poke ``code`` into RAM and jump to it.

    Returns True when the jump command fails, which is what happens when the
    code has taken over; False when the drive answered the jump normally.
    """
    enter_mode_b(transport)
    poke_code(transport, code)
    try:
        transport.send(enable_ram_exec_command())
    except DriveError as exc:
        raise exc.reworded("set (59E) bit 3 via Mode Select(10) failed") from exc
    try:
        transport.send(jump_to_ram_command())
    except DriveError:
        return True
    return False


def peek(transport: Transport, address: int) -> int:
    """Read one byte of controller memory."""
    try:
        data = transport.send(read_memory_command(address, 1))
    except DriveError as exc:
        raise exc.reworded("Hitachi read memory command failed") from exc
    if not data:
        raise DriveError("Hitachi read memory command returned no data")
    return data[0]


def _poke_routine(address: int, value: int) -> bytes:
    # mov value,D1 ; movbu D1,(address) ; rets
    return (
        b"\xFC\xCD" + value.to_bytes(4, "little")
        + b"\xFC\x86" + (address & 0xFFFFFFFF).to_bytes(4, "little")
        + b"\xF0\xFC"
    )


def poke(transport: Transport, address: int, value: int) -> bool:
    """Write one byte anywhere in the controller's address space by running a tiny routine."""
    if not 0 <= value <= 0xFF:
        raise ValueError("poke value must fit in one byte")
    return execute_poked_code(transport, _poke_routine(address, value))


def dump_memory(
    transport: Transport, offset_blocks: int, length_blocks: int, block_size: int
) -> Iterator[tuple]:
    """Yield ``(address, data)`` for each block read; ``data`` is None where the read failed."""
    if not 1 <= block_size <= 0xFFFF:
        raise ValueError("invalid block_size (valid: 1 - 65535)")
    for block in range(offset_blocks, offset_blocks + length_blocks):
        address = (block * block_size) & 0xFFFFFFFF
        try:
            data = transport.send(read_memory_command(address, block_size))
        except DriveError:
            yield address, None
        else:
            yield address, bytes(data)


def upload_and_execute(transport: Transport, code: bytes) -> None:
    """Upload ``code`` with a checksum through the upload channel and run it."""
    buffer = append_checksum(code)
    enter_mode_b(transport)
    try:
        transport.send(stop_disc_command())
    except DriveError as exc:
        if (exc.sense_key, exc.asc) != _NO_MEDIUM:
            raise exc.reworded("failed to stop the disc") from exc
    try:
        transport.send(clear_exec_bit_command())
    except DriveError:
        pass
    try:
        transport.send(configure_upload_command(len(buffer)))
    except DriveError as exc:
        raise exc.reworded("failed to configure upload") from exc
    for index, command in enumerate(upload_block_commands(buffer)):
        try:
            transport.send(command)
        except DriveError as exc:
            raise exc.reworded(f"failed to upload buffer block {index}") from exc
    try:
        transport.send(execute_upload_command())
    except DriveError as exc:
        raise exc.reworded("failed to execute flasher") from exc