"""
Wire protocol definitions.

Handshake:
    public key   : u32 BE length || PEM bytes
    session key  : 256 bytes (RSA-2048 OAEP ciphertext of a 32-byte AES key)

Application message frame:
    IV (16 bytes) || length (u32 BE) || ciphertext (length bytes)

The ciphertext field holds the AES-256-CBC body followed by a 32-byte
HMAC-SHA256 tag, so its length is always a multiple of the AES block size.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .utils import pack_u32


IV_SIZE = 16
LENGTH_SIZE = 4
BLOCK_SIZE = 16
TAG_SIZE = 32

SESSION_KEY_SIZE = 32
RSA_KEY_BITS = 2048
RSA_PUBLIC_EXPONENT = 65537
SESSION_KEY_BLOB_SIZE = RSA_KEY_BITS // 8

MAX_PUBLIC_KEY_SIZE = 16 * 1024
DEFAULT_MAX_FRAME_SIZE = 1024 * 1024

# Smallest valid ciphertext field: one padded block plus the tag
MIN_CIPHERTEXT_SIZE = BLOCK_SIZE + TAG_SIZE


class MessageFrame(BaseModel):
    """One encrypted application message as it appears on the wire."""
    model_config = ConfigDict(frozen=True)

    iv: bytes = Field(..., min_length=IV_SIZE, max_length=IV_SIZE,
                      description="Per-frame random IV")
    ciphertext: bytes = Field(..., description="CBC body || HMAC tag")

    @field_validator("ciphertext")
    @classmethod
    def _block_aligned(cls, value: bytes) -> bytes:
        if len(value) % BLOCK_SIZE != 0:
            raise ValueError(
                f"Ciphertext length {len(value)} is not a multiple of {BLOCK_SIZE}"
            )
        return value

    @property
    def length(self) -> int:
        return len(self.ciphertext)

    def header(self) -> bytes:
        """IV followed by the big-endian length field."""
        return self.iv + pack_u32(self.length)

    def to_bytes(self) -> bytes:
        return self.header() + self.ciphertext
