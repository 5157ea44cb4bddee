# hlflash

Tools for working with the firmware of Hitachi-LG Xbox 360 DVD drives:

- encrypt and decrypt raw firmware images,
- patch bytes in an encrypted 256K image, with the checksum recalculated,
- build the vendor packet commands that put a drive into mode B, read and
  write its microcontroller memory, and upload and run code on it,
- build sector-flashing payloads and run the flashing sequence through a
  transport you supply.

It also has small RC4 and SHA-1 implementations (`hlflash.rc4.RC4`,
`hlflash.sha1.SHA1` and `hlflash.sha1.sha1`).

## Installation

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Command line

### firmcrypt

Encrypts or decrypts a whole firmware file:

```
firmcrypt d firmware.bin firmware.dec
firmcrypt e firmware.dec firmware.bin
```

The first argument selects the mode by its first letter: `d` to decrypt or
`e` to encrypt, in either case. A wrong argument count or mode prints the
usage and exits with status 1; a file that cannot be read or written exits
with status 2.

### firmpatch

Decrypts a raw 256K (0x40000 byte) firmware image, writes the given bytes at
a hexadecimal offset (an optional `0x` prefix is accepted), recalculates the
checksum and encrypts the result:

```
firmpatch 1F00 DEADBEEF firmware.bin patched.bin
```

The patch bytes are given as a hex string with an even number of digits.
Images of any other size, or patches that run past the end of the file, are
refused with exit status 1.

## Library use

### Firmware images

`hlflash.firmware` holds the image handling:

```python
from hlflash.firmware import decrypt_firmware, encrypt_firmware, patch_firmware

with open("firmware.bin", "rb") as f:
    image = f.read()

plain = decrypt_firmware(image)
assert encrypt_firmware(plain) == image

patched = patch_firmware(image, 0x1F00, bytes.fromhex("DEADBEEF"))
```

Also there: `swap_bits` (the 32-bit permutation used by the cipher),
`parse_hex_bytes` and `firmware_checksum`. Problems with input, such as a bad
hex string or an image of the wrong size, raise
`hlflash.firmware.FirmwareError`.

### Talking to a drive

`hlflash.drive` builds packet commands (`PacketCommand`, with a `Direction`
for the data phase) and runs command sequences through a `Transport`. A
transport is a subclass you write whose `send(command)` delivers one command
to the drive, returns any data read, and raises `DriveError` (with the sense
key, ASC and ASCQ) when the command fails.

High-level helpers:

- `enter_mode_b(transport)`
- `peek(transport, address)` returns one byte of controller memory
- `poke(transport, address, value)` writes one byte by running a small
  routine in RAM
- `dump_memory(transport, offset_blocks, length_blocks, block_size)` yields
  `(address, data)` per block, with `data` set to `None` where a read failed
- `poke_code(transport, code)` and `execute_poked_code(transport, code)`
- `upload_and_execute(transport, code)` uploads code with a checksum and runs it

`poke` and `execute_poked_code` return `True` when the final jump command
fails, which is what happens once the uploaded code has taken over.

The single-command builders (`mode_b_command`, `poke_ram_command`,
`read_memory_command`, `enable_ram_exec_command`, `jump_to_ram_command`,
`stop_disc_command`, `clear_exec_bit_command`, `configure_upload_command`,
`upload_block_commands`, `execute_upload_command`) and `append_checksum` are
available for building other sequences. Hexadecimal arguments can be read with
`hlflash.hexarg.parse_hex(text, width)`.

### Flashing a sector

`hlflash.payload` checks the target address and sector size
(`parse_sector_args`, both given as hex text; the address must be at or above
0x90000000 and a multiple of the size) and assembles the flasher payload from
a firmware image (`build_flash_payload`). The payload is then sent with one of:

- `hlflash.flashing.flash_sector(transport, payload)`
- `hlflash.flashing47.flash_sector_047(transport, payload)` for drives running
  firmware revision 0047
- `hlflash.debugflash.debug_flash_sector(transport, payload)`, which uses the
  debug RAM-poke commands only and prints progress to standard output

The first two expect a payload built with `checksum=True` (the default);
`debug_flash_sector` expects one built with `checksum=False`.

Flashing writes to the drive's firmware chip; a wrong image or sector can
leave the drive unusable.

## What the package does not do

There is no transport for any operating system's device pass-through
interface: to reach a real drive you must write a `Transport` yourself. For
the same reason the drive operations (mode B, peek and poke, memory dumps,
code execution and sector flashing) are library functions only and have no
commands; `firmcrypt` and `firmpatch` are the only commands installed.