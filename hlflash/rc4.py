"""RC4 stream cipher."""

from __future__ import annotations


class RC4:
    """RC4 keystream state; ``crypt`` both encrypts and decrypts.

    The state carries over between calls, so feeding data in pieces gives
    the same result as feeding it all at once.
    """

    def __init__(self, key: bytes) -> None:
        key = bytes(key)
        if not key:
            raise ValueError("RC4 key must not be empty")
        perm = list(range(256))
        j = 0
        for i in range(256):
            j = (j + perm[i] + key[i % len(key)]) & 0xFF
            perm[i], perm[j] = perm[j], perm[i]
        self._perm = perm
        self._index1 = 0
        self._index2 = 0

    def crypt(self, data: bytes) -> bytes:
        """Return ``data`` XORed with the next bytes of the keystream."""
        perm = self._perm
        i, j = self._index1, self._index2
        out = []
        for byte in data:
            i = (i + 1) & 0xFF
            j = (j + perm[i]) & 0xFF
            perm[i], perm[j] = perm[j], perm[i]
            out.append(byte ^ perm[(perm[i] + perm[j]) & 0xFF])
        self._index1, self._index2 = i, j
        return bytes(out)