"""Flashing a sector on drives running the 0047 firmware."""

from __future__ import annotations

from hlflash.drive import (
    DriveError,
    Transport,
    clear_exec_bit_command,
    configure_upload_command,
    enable_ram_exec_command,
    enter_mode_b,
    execute_upload_command,
    jump_to_ram_command,
    poke_code,
    stop_disc_command,
    upload_block_commands,
)

_NO_MEDIUM = (0x02, 0x3A)

# bset 0x10,(5A5) ; rets
# Sets bit 4 of (5A5), which the 0047 firmware needs before it accepts an upload.
CLR_CODE = bytes((0xFE, 0x80, 0xA5, 0x05, 0x10, 0xF0, 0xFC))


def _send_ignoring_errors(transport: Transport, command) -> None:
    try:
        transport.send(command)
    except DriveError:
        pass


def flash_sector_047(transport: Transport, payload: bytes) -> None:
    """Unlock uploads on the 0047 firmware, then upload a checksummed flash payload and run it.

    The payload is what ``build_flash_payload`` returns with its checksum.
    Raises ``DriveError`` naming the step that failed.
    """
    payload = bytes(payload)
    enter_mode_b(transport)
    try:
        transport.send(stop_disc_command())
    except DriveError as exc:
        if (exc.sense_key, exc.asc) != _NO_MEDIUM:
            raise exc.reworded("failed to stop the disc") from exc

    poke_code(transport, CLR_CODE)
    # The drive's answers to these are not checked: the exec bit may already
    # be set, and the jump is expected to fail once the routine has run.
    _send_ignoring_errors(transport, enable_ram_exec_command())
    _send_ignoring_errors(transport, jump_to_ram_command())
    _send_ignoring_errors(transport, clear_exec_bit_command())

    try:
        # Only the low 16 bits of the length are announced.
        transport.send(configure_upload_command(len(payload) & 0xFFFF))
    except DriveError as exc:
        raise exc.reworded("failed to configure upload") from exc
    for index, command in enumerate(upload_block_commands(payload)):
        try:
            transport.send(command)
        except DriveError as exc:
            raise exc.reworded(f"failed to upload buffer block {index}") from exc
    try:
        transport.send(execute_upload_command())
    except DriveError as exc:
        raise exc.reworded("failed to execute flasher") from exc