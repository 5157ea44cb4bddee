"""Flashing a sector by poking the flasher into RAM with debug commands only."""

from __future__ import annotations

from collections.abc import Iterator

from hlflash.drive import (
    RAM_BASE,
    DriveError,
    Transport,
    enable_ram_exec_command,
    enter_mode_b,
    jump_to_ram_command,
    poke_ram_command,
)


def progress_marks(length: int) -> Iterator[tuple]:
    """Yield ``(index, mark)`` for each progress mark shown while poking ``length`` bytes.

    A mark is due after the byte at ``index`` has been written. Every tenth
    percent shows as ``"<n>%"``, every other even percent as ``"."``. The
    percentage advances by at most one step per byte.
    """
    if length <= 0:
        return
    one_percent = length / 100.0
    percent = 0
    for index in range(length):
        if int(index / one_percent) >= percent + 1:
            percent += 1
            if percent % 10 == 0:
                yield index, f"{percent}%"
            elif percent % 2 == 0:
                yield index, "."


def debug_flash_sector(transport: Transport, payload: bytes) -> bool:
    """Poke a flash payload into RAM byte by byte and jump to it.

    The payload is what ``build_flash_payload`` returns without a checksum.
    Progress is written to standard output. Returns True when the jump
    command fails, which is what happens once the flasher has taken over;
    False when the drive answered the jump normally. Raises ``DriveError``
    naming the step that failed.
    """
    payload = bytes(payload)
    enter_mode_b(transport)

    marks = dict(progress_marks(len(payload)))
    print("uploading code 0%", end="", flush=True)
    for index, byte in enumerate(payload):
        try:
            transport.send(poke_ram_command(RAM_BASE + index, byte))
        except DriveError as exc:
            print()
            raise exc.reworded(f"Hitachi poke RAM command failed on byte {index}") from exc
        mark = marks.get(index)
        if mark is not None:
            print(mark, end="", flush=True)
    print("100% done.")
    print("executing code ", end="", flush=True)

    try:
        transport.send(enable_ram_exec_command())
    except DriveError as exc:
        print()
        raise exc.reworded("set (59E) bit 3 via Mode Select(10) failed") from exc
    try:
        transport.send(jump_to_ram_command())
    except DriveError:
        print("done.")
        return True
    print("this shouldn't happen")
    return False