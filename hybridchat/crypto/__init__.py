"""
Cryptographic primitives for HybridChat.

This package provides:
- RSA-2048 key pair management with OAEP key wrapping
- AES-256-CBC encryption with PKCS#7 padding and HMAC-SHA256 tags
- HKDF sub-key derivation
"""

from .aes import SymmetricCipher
from .kdf import derive_subkeys
from .rsa_agent import AsymmetricKeyAgent, public_key_fingerprint

__all__ = [
    'SymmetricCipher',
    'derive_subkeys',
    'AsymmetricKeyAgent',
    'public_key_fingerprint',
]
