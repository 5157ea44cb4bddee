"""Encryption, decryption and patching of raw drive firmware images."""

from __future__ import annotations

import struct
from collections.abc import Iterable, Sequence

FLASH_SIZE = 0x40000
CHECKSUM_START = 0x6000
CHECKSUM_OFFSET = 0x3E7FC
XOR_KEY = 0x8B8B8B8B

_MASK = 0xFFFFFFFF
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

ENCRYPT_BITS = (
    22, 27, 3, 10, 14, 16, 1, 28,
    26, 7, 15, 21, 5, 19, 29, 12,
    2, 11, 24, 20, 13, 18, 4, 30,
    9, 17, 23, 0, 6, 31, 8, 25,
)

DECRYPT_BITS = (
    2, 8, 17, 24, 30, 23, 0, 13,
    5, 31, 20, 12, 18, 10, 6, 26,
    21, 27, 11, 16, 14, 28, 7, 1,
    22, 3, 19, 9, 29, 15, 25, 4,
)


class FirmwareError(ValueError):
    """Raised when a firmware image or patch cannot be processed."""


def swap_bits(chunk: int, bits: Sequence[int]) -> int:
    """Build a 32-bit word whose bits, MSB first, are ``chunk``'s bits at ``bits``."""
    bits = tuple(bits)
    if len(bits) != 32:
        raise ValueError("bit permutation must name exactly 32 positions")
    result = 0
    for bit in bits:
        result = (result << 1) | ((chunk >> bit) & 1)
    return result & _MASK


def _byte_tables(bits: Sequence[int]) -> tuple:
    """Per input byte, a lookup from byte value to its permuted contribution."""
    target = {source: 31 - index for index, source in enumerate(bits)}
    return tuple(
        tuple(
            sum(1 << target[8 * lane + n] for n in range(8) if (value >> n) & 1)
            for value in range(256)
        )
        for lane in range(4)
    )


_ENCRYPT_TABLES = _byte_tables(ENCRYPT_BITS)
_DECRYPT_TABLES = _byte_tables(DECRYPT_BITS)


def _permute(words: Iterable[int], tables: tuple) -> list:
    t0, t1, t2, t3 = tables
    return [
        t0[w & 0xFF] | t1[(w >> 8) & 0xFF] | t2[(w >> 16) & 0xFF] | t3[w >> 24]
        for w in words
    ]


def _words(data: bytes) -> tuple:
    padded = bytes(data) + b"\x00" * (-len(data) % 4)
    return struct.unpack(f">{len(padded) // 4}I", padded)


def _pack(words: Sequence[int], length: int) -> bytes:
    return struct.pack(f">{len(words)}I", *words)[:length]


def encrypt_firmware(data: bytes) -> bytes:
    """Encrypt a plain firmware image, one big-endian 32-bit word at a time."""
    words = _permute((w ^ XOR_KEY for w in _words(data)), _ENCRYPT_TABLES)
    return _pack(words, len(data))


def decrypt_firmware(data: bytes) -> bytes:
    """Decrypt an encrypted firmware image."""
    words = [w ^ XOR_KEY for w in _permute(_words(data), _DECRYPT_TABLES)]
    return _pack(words, len(data))


def parse_hex_bytes(text: str) -> bytes:
    """Parse a string of hex digit pairs such as ``"DEADBEEF"`` into bytes."""
    if len(text) % 2:
        raise FirmwareError("Length of hex array must be even")
    result = bytearray()
    for start in range(0, len(text), 2):
        pair = text[start:start + 2]
        digits = pair if pair[1] in _HEX_DIGITS else pair[0]
        if digits[0] not in _HEX_DIGITS:
            raise FirmwareError(f"invalid hex byte {pair!r}")
        result.append(int(digits, 16))
    return bytes(result)


def firmware_checksum(data: bytes) -> int:
    """Return the word that makes the checksummed region of a plain image sum to zero."""
    if len(data) < CHECKSUM_OFFSET:
        raise FirmwareError("image too short to hold a checksum")
    count = (CHECKSUM_OFFSET - CHECKSUM_START) // 4
    total = sum(struct.unpack_from(f"<{count}I", data, CHECKSUM_START))
    return -total & _MASK


def patch_firmware(data: bytes, offset: int, patch: bytes) -> bytes:
    """Decrypt a 256K image, write ``patch`` at ``offset``, fix the checksum and re-encrypt."""
    data = bytes(data)
    patch = bytes(patch)
    if offset < 0 or len(data) < offset + len(patch):
        raise FirmwareError("Illegal offset (beyond file size)")
    if len(data) != FLASH_SIZE:
        raise FirmwareError("Invalid flash size (expected 256K)")
    plain = bytearray(decrypt_firmware(data))
    plain[offset:offset + len(patch)] = patch
    struct.pack_into("<I", plain, CHECKSUM_OFFSET, firmware_checksum(plain))
    return encrypt_firmware(bytes(plain))