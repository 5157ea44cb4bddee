"""Flashing a sector by uploading the flasher payload through the upload channel."""

from __future__ import annotations

from hlflash.drive import (
    DriveError,
    Transport,
    clear_exec_bit_command,
    configure_upload_command,
    enter_mode_b,
    execute_upload_command,
    stop_disc_command,
    upload_block_commands,
)

_NO_MEDIUM = (0x02, 0x3A)


def flash_sector(transport: Transport, payload: bytes) -> None:
    """Upload a checksummed flash payload and run it.

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
    try:
        transport.send(clear_exec_bit_command())
    except DriveError:
        pass
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