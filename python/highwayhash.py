"""
highwayhash - Keyed 64-bit HighwayHash in pure Python

Fast, key-dependent fingerprints for hash tables, checksums and dedup keys.
Not a cryptographic hash: it resists hash flooding by callers who do not
know the key, nothing more.

Usage:
    from highwayhash import highwayhash64, key_from_bytes

    key = (1, 2, 3, 4)
    h = highwayhash64(b"Hello, World!", key)

    key = key_from_bytes(bytes(range(32)))
    d = highwayhash64_digest(b"Hello", key)  # 8 little-endian bytes
"""

import struct

NUM_LANES = 4
PACKET_SIZE = 8 * NUM_LANES
KEY_SIZE = PACKET_SIZE

# Digits of pi, shared with the other members of the Highway family
INIT0 = (0xdbe6d5d5fe4cce2f, 0xa4093822299f31d0, 0x13198a2e03707344, 0x243f6a8885a308d3)
INIT1 = (0x3bd39e10cb0ef593, 0xc0acf169b5f18a8c, 0xbe5466cf34e90c6c, 0x452821e638d01377)

# Output byte k of each 16-byte half comes from input byte ZIPPER_MERGE[k]
ZIPPER_MERGE = (3, 12, 2, 5, 14, 1, 15, 0, 11, 4, 10, 13, 9, 6, 8, 7)
_ZIPPER_INDEX = ZIPPER_MERGE + tuple(i + 16 for i in ZIPPER_MERGE)

FINALIZE_ROUNDS = 4

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF
_LANES = struct.Struct('<4Q')

Lanes = tuple[int, int, int, int]


def _load(packet: bytes, offset: int = 0) -> Lanes:
    """Read four little-endian uint64 lanes"""
    return _LANES.unpack_from(packet, offset)


def _store(lanes) -> bytes:
    """Write four lanes as 32 little-endian bytes"""
    return _LANES.pack(*lanes)


def _rot32(x: int) -> int:
    return ((x >> 32) | (x << 32)) & _MASK64


def permute(v) -> Lanes:
    """Swap the two 128-bit halves and rotate every lane by 32 bits"""
    return (_rot32(v[2]), _rot32(v[3]), _rot32(v[0]), _rot32(v[1]))


def zipper_merge(v) -> Lanes:
    """Byte shuffle applied to each 16-byte half of the lanes' LE image"""
    raw = _store(v)
    return _load(bytes([raw[i] for i in _ZIPPER_INDEX]))


class _State:
    """Mixing state for one hash computation, never shared between calls."""

    __slots__ = ('v0', 'v1', 'mul0', 'mul1')

    def __init__(self, key: Lanes):
        permuted = permute(key)
        self.v0 = [INIT0[i] ^ key[i] for i in range(NUM_LANES)]
        self.v1 = [INIT1[i] ^ permuted[i] for i in range(NUM_LANES)]
        self.mul0 = list(INIT0)
        self.mul1 = list(INIT1)

    def update(self, packet: bytes, offset: int = 0) -> None:
        """Absorb the 32-byte packet starting at offset"""
        lanes = _load(packet, offset)
        v0, v1, mul0, mul1 = self.v0, self.v1, self.mul0, self.mul1

        for i in range(NUM_LANES):
            v1[i] = (v1[i] + lanes[i] + mul0[i]) & _MASK64
            lo0 = v0[i] & _MASK32
            lo1 = v1[i] & _MASK32
            mul0[i] ^= (lo0 * (v1[i] >> 32)) & _MASK64
            v0[i] = (v0[i] + mul1[i]) & _MASK64
            mul1[i] ^= (lo1 * (v0[i] >> 32)) & _MASK64

        # v0 takes v1's shuffle first; v1 then sees the updated v0
        merged = zipper_merge(v1)
        for i in range(NUM_LANES):
            v0[i] = (v0[i] + merged[i]) & _MASK64
        merged = zipper_merge(v0)
        for i in range(NUM_LANES):
            v1[i] = (v1[i] + merged[i]) & _MASK64

    def finalize(self) -> int:
        for _ in range(FINALIZE_ROUNDS):
            self.update(_store(permute(self.v0)))
        return (self.v0[0] + self.v1[0] + self.mul0[0] + self.mul1[0]) & _MASK64


def _final_packet(data: bytes, truncated: int) -> bytes:
    """Zero-padded tail with the length byte and last 0-3 bytes in its top word"""
    size = len(data)
    mod4 = (size - truncated) & 3

    packet4 = (size << 24) & _MASK32
    for i in range(mod4):
        packet4 |= data[size - mod4 + i] << (8 * i)

    packet = bytearray(PACKET_SIZE)
    body = data[truncated:size - mod4]
    packet[:len(body)] = body
    struct.pack_into('<I', packet, PACKET_SIZE - 4, packet4)
    return bytes(packet)


def key_from_bytes(raw: bytes) -> Lanes:
    """Split a 32-byte key into four little-endian lanes"""
    if len(raw) != KEY_SIZE:
        raise ValueError(f"key must be exactly {KEY_SIZE} bytes, got {len(raw)}")
    return _load(raw)


def _check_key(key) -> Lanes:
    if isinstance(key, (bytes, bytearray, memoryview)):
        return key_from_bytes(bytes(key))
    key = tuple(key)
    if len(key) != NUM_LANES:
        raise ValueError(f"key must have exactly {NUM_LANES} lanes, got {len(key)}")
    return tuple(k & _MASK64 for k in key)


def highwayhash64(data: bytes, key) -> int:
    """Compute the 64-bit HighwayHash of data under a 256-bit key.

    key is either four uint64 lanes or 32 raw bytes (little-endian lanes).
    """
    lanes = _check_key(key)
    data = bytes(data)
    state = _State(lanes)

    size = len(data)
    truncated = size - (size & (PACKET_SIZE - 1))
    for offset in range(0, truncated, PACKET_SIZE):
        state.update(data, offset)

    state.update(_final_packet(data, truncated))
    return state.finalize()


def highwayhash64_digest(data: bytes, key) -> bytes:
    """Same as highwayhash64, as 8 little-endian bytes"""
    return struct.pack('<Q', highwayhash64(data, key))


def highwayhash64_hex(data: bytes, key) -> str:
    return f"{highwayhash64(data, key):016x}"


if __name__ == "__main__":
    # Quick test
    key = key_from_bytes(bytes(range(32)))
    h = highwayhash64(b"", key)
    print(f"highwayhash64('', 00..1f) = 0x{h:016x}")
    assert h == 0xe59e60a55ba25cca, f"Expected 0xe59e60a55ba25cca, got 0x{h:016x}"

    h2 = highwayhash64(b"Hello, World!", key)
    print(f"highwayhash64('Hello, World!', 00..1f) = 0x{h2:016x}")
    assert h2 == 0x32906946a94664aa, f"Expected 0x32906946a94664aa, got 0x{h2:016x}"

    print("All tests passed!")
