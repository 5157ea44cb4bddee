"""Command that encrypts or decrypts a drive firmware file."""

from __future__ import annotations

import sys
from collections.abc import Sequence

from hlflash.firmware import decrypt_firmware, encrypt_firmware

TITLE = "FirmCrypt v0.1"
USAGE = (
    "Usage: FirmCrypt <option> <input filename> <output filename>\n"
    "       option: d = decrypt file\n"
    "               e = encrypt file"
)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command; returns the process exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    print(TITLE)
    if len(args) != 3:
        print(USAGE)
        return 1

    option, input_path, output_path = args
    mode = option[:1].lower()
    if mode == "d":
        transform = decrypt_firmware
    elif mode == "e":
        transform = encrypt_firmware
    else:
        print(USAGE)
        return 1

    try:
        with open(input_path, "rb") as source:
            data = source.read()
    except OSError:
        print(f"Error opening input file {input_path}")
        return 2

    try:
        with open(output_path, "wb") as target:
            target.write(transform(data))
    except OSError:
        print(f"Error creating output file {output_path}")
        return 2

    print("done")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())