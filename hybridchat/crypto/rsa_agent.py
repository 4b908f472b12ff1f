"""
RSA Key Agent

Generates the local RSA-2048 key pair, exports/imports PEM public keys and
wraps/unwraps the session key with RSA-OAEP (MGF1-SHA256, SHA-256).
"""

from typing import Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from hybridchat.common.exceptions import (
    DecryptionFailure, InvalidKeyFormat, KeyGenerationError,
    PayloadTooLarge, PeerKeyMissing,
)
from hybridchat.common.protocol import RSA_KEY_BITS, RSA_PUBLIC_EXPONENT
from hybridchat.common.utils import sha256_hex


OAEP_HASH_SIZE = hashes.SHA256.digest_size


def _oaep() -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None,
    )


def max_oaep_payload(public_key: rsa.RSAPublicKey) -> int:
    """
    Largest plaintext RSA-OAEP can carry for this key.

    Computed as key_size_bytes - 2 * hash_size - 2 (190 bytes for RSA-2048).
    """
    key_bytes = (public_key.key_size + 7) // 8
    return key_bytes - 2 * OAEP_HASH_SIZE - 2


def public_key_fingerprint(public_key: rsa.RSAPublicKey) -> str:
    """
    Compute SHA-256 fingerprint of a public key.

    Args:
        public_key: RSA public key object

    Returns:
        Hex-encoded SHA-256 over the DER SubjectPublicKeyInfo
    """
    der = public_key.public_bytes(
        serialization.Encoding.DER,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return sha256_hex(der)


class AsymmetricKeyAgent:
    """
    Holds one RSA key pair for the lifetime of a connection.

    Only the public half is ever exported.
    """

    def __init__(self, key_size: int = RSA_KEY_BITS):
        self.key_size = key_size
        self._private_key: Optional[rsa.RSAPrivateKey] = None

    @property
    def has_keypair(self) -> bool:
        return self._private_key is not None

    @property
    def public_key(self) -> rsa.RSAPublicKey:
        if self._private_key is None:
            raise KeyGenerationError("Key pair has not been generated")
        return self._private_key.public_key()

    def generate_keypair(self):
        """
        Generate a fresh RSA key pair with public exponent 65537.

        Raises:
            KeyGenerationError: If the backend cannot produce a key
        """
        try:
            self._private_key = rsa.generate_private_key(
                public_exponent=RSA_PUBLIC_EXPONENT,
                key_size=self.key_size,
            )
        except (ValueError, MemoryError) as e:
            raise KeyGenerationError(f"RSA key generation failed: {e}") from e

    def export_public_key(self) -> bytes:
        """
        Serialize the local public key.

        Returns:
            PEM bytes ("BEGIN RSA PUBLIC KEY", PKCS#1)

        Raises:
            KeyGenerationError: If no key pair exists
        """
        return self.public_key.public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.PKCS1,
        )

    def fingerprint(self) -> str:
        """SHA-256 fingerprint of the local public key."""
        return public_key_fingerprint(self.public_key)

    @staticmethod
    def import_peer_public_key(data: bytes) -> rsa.RSAPublicKey:
        """
        Parse a peer public key.

        Args:
            data: PEM bytes, PKCS#1 or SubjectPublicKeyInfo

        Returns:
            RSA public key object

        Raises:
            InvalidKeyFormat: If the bytes are not an RSA public key
        """
        try:
            key = serialization.load_pem_public_key(bytes(data))
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise InvalidKeyFormat(f"Cannot decode peer public key: {e}") from e

        if not isinstance(key, rsa.RSAPublicKey):
            raise InvalidKeyFormat(f"Peer key is not RSA: {type(key).__name__}")
        return key

    @staticmethod
    def encrypt_with(peer_key: Optional[rsa.RSAPublicKey], payload: bytes) -> bytes:
        """
        Encrypt a small payload for the peer with RSA-OAEP.

        Args:
            peer_key: Peer public key (from import_peer_public_key)
            payload: Bytes to encrypt

        Returns:
            Ciphertext of key_size / 8 bytes

        Raises:
            PeerKeyMissing: If peer_key is None
            PayloadTooLarge: If payload exceeds the OAEP ceiling
        """
        if peer_key is None:
            raise PeerKeyMissing("Peer public key is not loaded")

        limit = max_oaep_payload(peer_key)
        if len(payload) > limit:
            raise PayloadTooLarge(
                f"OAEP payload limit is {limit} bytes, got {len(payload)}"
            )

        return peer_key.encrypt(bytes(payload), _oaep())

    def decrypt(self, ciphertext: bytes) -> bytes:
        """
        Decrypt an RSA-OAEP ciphertext with the local private key.

        Raises:
            DecryptionFailure: On any padding/format mismatch or missing key pair
        """
        if self._private_key is None:
            raise DecryptionFailure("Decryption failed: no key pair")

        try:
            return self._private_key.decrypt(bytes(ciphertext), _oaep())
        except ValueError:
            raise DecryptionFailure("Decryption failed") from None


# Test function for development
if __name__ == "__main__":
    print("[*] Testing RSA key agent")

    alice = AsymmetricKeyAgent()
    alice.generate_keypair()
    pem = alice.export_public_key()
    print(f"\n[1] Alice public key:\n{pem.decode('ascii')}")

    peer_key = AsymmetricKeyAgent.import_peer_public_key(pem)
    secret = b"\x42" * 32
    blob = AsymmetricKeyAgent.encrypt_with(peer_key, secret)
    print(f"[2] Wrapped key: {len(blob)} bytes")

    assert alice.decrypt(blob) == secret, "OAEP round-trip failed!"
    print("\n[✓] RSA key agent test passed!")
