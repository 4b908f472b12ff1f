"""
Custom exceptions for HybridChat.
"""


class HybridChatError(Exception):
    """Base exception for HybridChat errors."""
    pass


class KeyGenerationError(HybridChatError):
    """RSA key pair could not be generated or is not available."""
    pass


class InvalidKeyFormat(HybridChatError):
    """Peer public key bytes do not decode to an RSA public key."""
    pass


class PeerKeyMissing(HybridChatError):
    """Encryption was requested before the peer public key was imported."""
    pass


class PayloadTooLarge(HybridChatError):
    """Payload exceeds the RSA-OAEP capacity of the key."""
    pass


class DecryptionFailure(HybridChatError):
    """
    Decryption failed.

    Covers bad padding, wrong key, wrong IV, bad tag and truncated ciphertext.
    The causes are deliberately not distinguished.
    """
    pass


DecryptionError = DecryptionFailure


class TransportError(HybridChatError):
    """Connect, accept, send or receive failed."""
    pass


class ProtocolError(HybridChatError):
    """Protocol violation detected."""
    pass


class TruncatedFrame(ProtocolError):
    """Stream ended in the middle of a frame."""
    pass


class FrameTooLarge(ProtocolError):
    """Declared frame length exceeds the configured ceiling."""
    pass


class MessageEncodingError(ProtocolError):
    """Outgoing text cannot be encoded as UTF-8."""
    pass


class HandshakeError(ProtocolError):
    """Handshake aborted."""
    pass


class EndOfStream(EOFError):
    """Peer closed the stream cleanly between frames."""
    pass
