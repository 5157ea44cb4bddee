"""SHA-1 message digest."""

from __future__ import annotations

import struct

_MASK = 0xFFFFFFFF
_LENGTH_MASK = 0xFFFFFFFFFFFFFFFF
_INITIAL_STATE = (0x67452301, 0xEFCDAB89, 0x98BADCFE, 0x10325476, 0xC3D2E1F0)


def _rol(value: int, bits: int) -> int:
    return ((value << bits) | (value >> (32 - bits))) & _MASK


def _transform(state: tuple, block: bytes) -> tuple:
    """Hash one 64-byte block into ``state``."""
    words = list(struct.unpack(">16I", block))
    for t in range(16, 80):
        words.append(_rol(words[t - 3] ^ words[t - 8] ^ words[t - 14] ^ words[t - 16], 1))

    a, b, c, d, e = state
    for t, word in enumerate(words):
        if t < 20:
            f, k = d ^ (b & (c ^ d)), 0x5A827999
        elif t < 40:
            f, k = b ^ c ^ d, 0x6ED9EBA1
        elif t < 60:
            f, k = ((b | c) & d) | (b & c), 0x8F1BBCDC
        else:
            f, k = b ^ c ^ d, 0xCA62C1D6
        temp = (_rol(a, 5) + f + e + k + word) & _MASK
        a, b, c, d, e = temp, a, _rol(b, 30), c, d

    return tuple((s + v) & _MASK for s, v in zip(state, (a, b, c, d, e)))


class SHA1:
    """Incremental SHA-1 hasher."""

    digest_size = 20
    block_size = 64

    def __init__(self, data: bytes = b"") -> None:
        self._state = _INITIAL_STATE
        self._buffer = b""
        self._bit_length = 0
        if data:
            self.update(data)

    def update(self, data: bytes) -> None:
        """Feed more data into the hash."""
        data = bytes(data)
        self._bit_length = (self._bit_length + len(data) * 8) & _LENGTH_MASK
        buffered = self._buffer + data
        full = len(buffered) - len(buffered) % self.block_size
        state = self._state
        for start in range(0, full, self.block_size):
            state = _transform(state, buffered[start:start + self.block_size])
        self._state = state
        self._buffer = buffered[full:]

    def digest(self) -> bytes:
        """Return the 20-byte digest of everything fed so far."""
        padding = (
            b"\x80"
            + b"\x00" * ((55 - len(self._buffer)) % 64)
            + self._bit_length.to_bytes(8, "big")
        )
        tail = self._buffer + padding
        state = self._state
        for start in range(0, len(tail), self.block_size):
            state = _transform(state, tail[start:start + self.block_size])
        return b"".join(word.to_bytes(4, "big") for word in state)

    def hexdigest(self) -> str:
        """Return the digest as lower-case hexadecimal text."""
        return self.digest().hex()


def sha1(data: bytes) -> bytes:
    """Return the SHA-1 digest of ``data``."""
    return SHA1(data).digest()