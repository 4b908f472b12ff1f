"""
Utility functions for HybridChat.
"""

import hashlib
import os
import struct


U32_MAX = 0xFFFFFFFF

_U32 = struct.Struct(">I")


def sha256_hex(data: bytes) -> str:
    """
    Compute SHA-256 hash and return as hex string.

    Args:
        data: Data to hash

    Returns:
        Hex-encoded SHA-256 hash
    """
    return hashlib.sha256(data).hexdigest()


def short_fingerprint(hex_digest: str, groups: int = 8) -> str:
    """
    Format a hex digest as colon-separated byte pairs for display.

    Args:
        hex_digest: Hex string (e.g. from sha256_hex)
        groups: Number of leading byte pairs to show

    Returns:
        String like "ab:cd:ef:..."
    """
    pairs = [hex_digest[i:i + 2] for i in range(0, len(hex_digest), 2)]
    return ":".join(pairs[:groups])


def random_bytes(length: int) -> bytes:
    """
    Generate cryptographically secure random bytes.

    Args:
        length: Length in bytes

    Returns:
        Random bytes from the OS CSPRNG
    """
    return os.urandom(length)


def pack_u32(value: int) -> bytes:
    """
    Encode an unsigned 32-bit integer big-endian.

    Raises:
        ValueError: If value does not fit in 32 bits
    """
    if value < 0 or value > U32_MAX:
        raise ValueError(f"Value out of u32 range: {value}")
    return _U32.pack(value)


def unpack_u32(data: bytes) -> int:
    """Decode a 4-byte big-endian unsigned integer."""
    return _U32.unpack(data)[0]


# Test function
if __name__ == "__main__":
    print("[*] Testing utility functions")

    data = b"Hello, World!"
    hash_hex = sha256_hex(data)
    print(f"\n[1] SHA-256('{data.decode()}'): {hash_hex}")
    print(f"    Fingerprint: {short_fingerprint(hash_hex)}")

    packed = pack_u32(300)
    print(f"\n[2] pack_u32(300): {packed.hex()}")
    assert unpack_u32(packed) == 300, "u32 pack/unpack failed!"

    print(f"\n[3] Random bytes (16): {random_bytes(16).hex()}")

    print("\n[✓] Utility functions test passed!")
