"""
AES-256-CBC Encryption/Decryption with PKCS#7 Padding and HMAC-SHA256

Each message gets a fresh random IV. The ciphertext returned by encrypt() is
the CBC body followed by a 32-byte tag:

    tag = HMAC-SHA256(mac_key, iv || cbc_body)

The tag is checked before anything is decrypted, so a tampered frame never
yields plaintext.
"""

from typing import Optional, Tuple

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from hybridchat.common.exceptions import DecryptionFailure
from hybridchat.common.protocol import (
    BLOCK_SIZE, IV_SIZE, MIN_CIPHERTEXT_SIZE, SESSION_KEY_SIZE, TAG_SIZE,
)
from hybridchat.common.utils import random_bytes
from .kdf import derive_subkeys


def pkcs7_pad(data: bytes) -> bytes:
    """
    Apply PKCS#7 padding to data.

    Args:
        data: Data to pad

    Returns:
        Padded data (always at least one byte of padding)
    """
    padder = padding.PKCS7(BLOCK_SIZE * 8).padder()
    return padder.update(data) + padder.finalize()


def pkcs7_unpad(data: bytes) -> bytes:
    """
    Remove PKCS#7 padding from data.

    Raises:
        ValueError: If padding is invalid
    """
    unpadder = padding.PKCS7(BLOCK_SIZE * 8).unpadder()
    return unpadder.update(data) + unpadder.finalize()


class SymmetricCipher:
    """
    Session cipher holding one 256-bit key.

    encrypt() and decrypt() build a fresh cipher context on every call and
    never mutate the instance, so one object can serve the send and receive
    threads at the same time.
    """

    def __init__(self, key: Optional[bytes] = None):
        self._key = None
        self._enc_key = None
        self._mac_key = None
        if key is not None:
            self.set_key(key)

    @property
    def has_key(self) -> bool:
        return self._key is not None

    @property
    def key(self) -> Optional[bytes]:
        return self._key

    def set_key(self, key: bytes):
        """
        Install the session key, replacing any previous one.

        Args:
            key: 32-byte session key

        Raises:
            ValueError: If key length is not 32 bytes
        """
        if len(key) != SESSION_KEY_SIZE:
            raise ValueError(
                f"AES-256 requires {SESSION_KEY_SIZE}-byte key, got {len(key)} bytes"
            )
        enc_key, mac_key = derive_subkeys(bytes(key))
        self._key = bytes(key)
        self._enc_key = enc_key
        self._mac_key = mac_key

    def _require_key(self):
        if self._key is None:
            raise ValueError("No session key installed")

    def _tag(self, iv: bytes, body: bytes) -> hmac.HMAC:
        h = hmac.HMAC(self._mac_key, hashes.SHA256())
        h.update(iv)
        h.update(body)
        return h

    def encrypt(self, plaintext: bytes) -> Tuple[bytes, bytes]:
        """
        Encrypt plaintext under a fresh random IV.

        Args:
            plaintext: Bytes to encrypt (may be empty)

        Returns:
            Tuple of (iv, ciphertext) where ciphertext = cbc_body || tag

        Raises:
            ValueError: If no key is installed
        """
        self._require_key()

        iv = random_bytes(IV_SIZE)
        encryptor = Cipher(algorithms.AES(self._enc_key), modes.CBC(iv)).encryptor()
        body = encryptor.update(pkcs7_pad(plaintext)) + encryptor.finalize()

        return iv, body + self._tag(iv, body).finalize()

    def decrypt(self, ciphertext: bytes, iv: bytes) -> bytes:
        """
        Verify and decrypt a ciphertext produced by encrypt().

        Args:
            ciphertext: cbc_body || tag
            iv: The 16-byte IV sent with the ciphertext

        Returns:
            Plaintext bytes

        Raises:
            DecryptionFailure: On bad tag, bad padding, wrong key or IV,
                or malformed lengths
            ValueError: If no key is installed
        """
        self._require_key()

        if len(iv) != IV_SIZE:
            raise DecryptionFailure("Decryption failed")
        if len(ciphertext) < MIN_CIPHERTEXT_SIZE or len(ciphertext) % BLOCK_SIZE:
            raise DecryptionFailure("Decryption failed")

        body, tag = ciphertext[:-TAG_SIZE], ciphertext[-TAG_SIZE:]
        try:
            self._tag(iv, body).verify(tag)
        except InvalidSignature:
            raise DecryptionFailure("Decryption failed") from None

        decryptor = Cipher(algorithms.AES(self._enc_key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(body) + decryptor.finalize()
        try:
            return pkcs7_unpad(padded)
        except ValueError:
            raise DecryptionFailure("Decryption failed") from None


# Test function for development
if __name__ == "__main__":
    cipher = SymmetricCipher(random_bytes(SESSION_KEY_SIZE))
    test_message = "Hello, HybridChat!".encode("utf-8")

    print(f"Original: {test_message}")

    iv, encrypted = cipher.encrypt(test_message)
    print(f"IV: {iv.hex()}")
    print(f"Encrypted: {encrypted.hex()}")

    decrypted = cipher.decrypt(encrypted, iv)
    print(f"Decrypted: {decrypted}")

    assert decrypted == test_message, "Encryption/Decryption test failed!"
    print("\n[✓] AES encryption/decryption test passed!")
