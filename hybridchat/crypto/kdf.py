"""
Sub-key derivation for the session cipher.

The 32-byte session key is never used directly. HKDF-SHA256 expands it into
an AES-256 encryption key and an HMAC-SHA256 key:

    enc_key = HKDF(session_key, info="hybridchat enc")[:32]
    mac_key = HKDF(session_key, info="hybridchat mac")[:32]
"""

from typing import Tuple

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF


ENC_INFO = b"hybridchat enc"
MAC_INFO = b"hybridchat mac"
SUBKEY_SIZE = 32


def hkdf_sha256(key_material: bytes, info: bytes, length: int = SUBKEY_SIZE) -> bytes:
    """
    Derive `length` bytes from key_material with HKDF-SHA256 (no salt).

    Args:
        key_material: Input keying material
        info: Context label
        length: Output length in bytes

    Returns:
        Derived key bytes
    """
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=length,
        salt=None,
        info=info,
    )
    return hkdf.derive(key_material)


def derive_subkeys(session_key: bytes) -> Tuple[bytes, bytes]:
    """
    Split a session key into (enc_key, mac_key).

    Args:
        session_key: 32-byte session key

    Returns:
        Tuple of (AES-256 key, HMAC-SHA256 key)
    """
    return (
        hkdf_sha256(session_key, ENC_INFO),
        hkdf_sha256(session_key, MAC_INFO),
    )
