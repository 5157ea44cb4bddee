"""Command that patches bytes inside an encrypted 256K firmware image."""

from __future__ import annotations

import re
import sys
from collections.abc import Sequence

from hlflash.firmware import FirmwareError, parse_hex_bytes, patch_firmware

USAGE = "Usage: FirmPatch <offset> <hex bytes> <input file> <output file>"

_OFFSET = re.compile(r"\s*(?:0[xX])?([0-9a-fA-F]+)")


def _parse_offset(text: str) -> int:
    match = _OFFSET.match(text)
    if not match:
        raise FirmwareError("Invalid patch offset")
    return int(match.group(1), 16) & 0xFFFFFFFF


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command; returns the process exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 4:
        print(USAGE)
        return 1

    offset_text, patch_text, input_path, output_path = args
    try:
        offset = _parse_offset(offset_text)
    except FirmwareError as exc:
        print(exc)
        return 1

    try:
        patch = parse_hex_bytes(patch_text)
    except FirmwareError as exc:
        print(exc)
        print("Invalid patch data")
        return 1

    try:
        with open(input_path, "rb") as source:
            data = source.read()
    except OSError:
        print(f"Error opening input file {input_path}")
        return 2

    try:
        patched = patch_firmware(data, offset, patch)
    except FirmwareError as exc:
        print(exc)
        return 1

    try:
        with open(output_path, "wb") as target:
            target.write(patched)
    except OSError:
        print(f"Error creating output file {output_path}")
        return 2

    print("done")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())