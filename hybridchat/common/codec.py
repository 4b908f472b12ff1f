"""
Frame codec.

Reads and writes encrypted MessageFrames and length-prefixed handshake blobs
over a transport exposing send_exact(data) and recv_exact(n).
"""

from typing import Iterator

from hybridchat.crypto.aes import SymmetricCipher
from .exceptions import (
    DecryptionFailure, EndOfStream, FrameTooLarge, MessageEncodingError, TruncatedFrame,
)
from .protocol import DEFAULT_MAX_FRAME_SIZE, IV_SIZE, LENGTH_SIZE, MessageFrame
from .utils import pack_u32, unpack_u32


def write_blob(transport, data: bytes):
    """Send u32 length followed by data."""
    transport.send_exact(pack_u32(len(data)) + data)


def read_blob(transport, max_size: int) -> bytes:
    """
    Receive a u32-length-prefixed blob.

    Raises:
        EndOfStream: If the stream ends before the length field starts
        TruncatedFrame: If the stream ends inside the blob
        FrameTooLarge: If the declared length exceeds max_size
    """
    header = transport.recv_exact(LENGTH_SIZE)
    if not header:
        raise EndOfStream("Peer closed the connection")
    if len(header) < LENGTH_SIZE:
        raise TruncatedFrame("Incomplete length field")

    length = unpack_u32(header)
    if length > max_size:
        raise FrameTooLarge(f"Blob length {length} exceeds limit {max_size}")

    data = transport.recv_exact(length)
    if len(data) < length:
        raise TruncatedFrame(f"Expected {length} bytes, got {len(data)}")
    return data


class FrameCodec:
    """Encrypts messages into frames and back using one SymmetricCipher."""

    def __init__(self, cipher: SymmetricCipher, max_frame_size: int = DEFAULT_MAX_FRAME_SIZE):
        self.cipher = cipher
        self.max_frame_size = max_frame_size

    def encode(self, plaintext: str) -> MessageFrame:
        """
        Encrypt text into a frame.

        Raises:
            MessageEncodingError: If the text is not encodable as UTF-8
        """
        try:
            data = plaintext.encode("utf-8")
        except UnicodeEncodeError as e:
            raise MessageEncodingError(f"Message is not valid UTF-8 text: {e.reason}") from e
        iv, ciphertext = self.cipher.encrypt(data)
        return MessageFrame(iv=iv, ciphertext=ciphertext)

    def open(self, ciphertext: bytes, iv: bytes) -> str:
        """
        Decrypt one frame body to text.

        Raises:
            DecryptionFailure: On cipher rejection or invalid UTF-8
        """
        plaintext = self.cipher.decrypt(ciphertext, iv)
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError:
            raise DecryptionFailure("Decryption failed") from None

    def write_frame(self, transport, plaintext: str):
        """
        Encrypt plaintext and send IV, length and ciphertext in order.

        Raises:
            MessageEncodingError: If the text is not encodable as UTF-8
            TransportError: If the transport fails
        """
        frame = self.encode(plaintext)
        transport.send_exact(frame.to_bytes())

    def read_frame(self, transport) -> str:
        """
        Receive and decrypt one frame.

        Returns:
            Decrypted message (may be the empty string)

        Raises:
            EndOfStream: Peer closed cleanly before the IV or right after it
            TruncatedFrame: Stream ended anywhere else inside a frame
            FrameTooLarge: Declared length exceeds max_frame_size
            DecryptionFailure: Cipher rejected the frame
            TransportError: If the transport fails
        """
        iv = transport.recv_exact(IV_SIZE)
        if not iv:
            raise EndOfStream("Peer closed the connection")
        if len(iv) < IV_SIZE:
            raise TruncatedFrame(f"Incomplete IV ({len(iv)} of {IV_SIZE} bytes)")

        header = transport.recv_exact(LENGTH_SIZE)
        if not header:
            raise EndOfStream("Peer closed the connection after a frame header")
        if len(header) < LENGTH_SIZE:
            raise TruncatedFrame("Incomplete length field")

        length = unpack_u32(header)
        if length > self.max_frame_size:
            raise FrameTooLarge(
                f"Frame length {length} exceeds limit {self.max_frame_size}"
            )

        ciphertext = transport.recv_exact(length)
        if len(ciphertext) < length:
            raise TruncatedFrame(f"Expected {length} ciphertext bytes, got {len(ciphertext)}")

        # Block alignment is checked by the cipher, not the model
        return self.open(ciphertext, iv)

    def iter_frames(self, transport) -> Iterator[str]:
        """Yield decrypted messages until the peer closes the stream."""
        while True:
            try:
                yield self.read_frame(transport)
            except EndOfStream:
                return
