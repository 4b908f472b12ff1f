"""
Common utilities and protocol definitions for HybridChat.
"""

from .exceptions import *
from .protocol import MessageFrame
from .utils import sha256_hex, short_fingerprint, random_bytes, pack_u32, unpack_u32

__all__ = [
    'MessageFrame',
    'sha256_hex',
    'short_fingerprint',
    'random_bytes',
    'pack_u32',
    'unpack_u32',
]
