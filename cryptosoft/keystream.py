"""Repeating 64-bit key stream and the vectorized XOR that applies it."""

from __future__ import annotations

import struct

import numpy as np

from .constants import KEY_SIZE, MAX_KEY


_KEY_STRUCT = struct.Struct("<Q")


def key_to_bytes(key: int) -> bytes:
    """Serialize a 64-bit key to its 8-byte little-endian form."""
    if not isinstance(key, int) or isinstance(key, bool):
        raise TypeError("key must be an int")
    if key < 0 or key > MAX_KEY:
        raise ValueError(f"key out of range for an unsigned 64-bit value: {key}")
    return _KEY_STRUCT.pack(key)


class KeyStream:
    """Infinite repetition of the key bytes, indexed by absolute offset.

    The byte at stream offset ``i`` is ``unit[i % 8]``. Nothing is stored
    besides the key, so one instance can serve any number of files.
    """

    def __init__(self, key: int):
        self.key = key
        self.unit = key_to_bytes(key)
        self._unit_arr = np.frombuffer(self.unit, dtype=np.uint8)

    def __repr__(self) -> str:
        return f"KeyStream(0x{self.key:016X})"

    def byte_at(self, offset: int) -> int:
        return self.unit[offset % KEY_SIZE]

    def apply(self, chunk: bytes, offset: int = 0) -> bytes:
        """XOR ``chunk`` with the stream starting at absolute ``offset``."""
        n = len(chunk)
        if n == 0:
            return b""
        phase = offset % KEY_SIZE
        reps = (phase + n + KEY_SIZE - 1) // KEY_SIZE
        pad = np.tile(self._unit_arr, reps)[phase:phase + n]
        arr = np.frombuffer(chunk, dtype=np.uint8)
        return np.bitwise_xor(arr, pad).tobytes()
