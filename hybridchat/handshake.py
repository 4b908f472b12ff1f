"""
Handshake protocol.

Brings two peers from a fresh TCP connection to a shared AES-256 session key.

Listening role:
    send own public key -> receive peer public key -> receive 256-byte
    OAEP blob -> decrypt and install the session key

Connecting role:
    receive peer public key -> send own public key -> generate session key ->
    send it OAEP-encrypted under the peer key

Every step is blocking. Any failure moves the connection to FAILED and raises
HandshakeError; there is no retry.
"""

from enum import Enum
from typing import Optional

from cryptography.hazmat.primitives.asymmetric import rsa

from hybridchat.common.codec import FrameCodec, read_blob, write_blob
from hybridchat.common.exceptions import HandshakeError, HybridChatError
from hybridchat.common.protocol import (
    DEFAULT_MAX_FRAME_SIZE, MAX_PUBLIC_KEY_SIZE, SESSION_KEY_BLOB_SIZE, SESSION_KEY_SIZE,
)
from hybridchat.common.utils import random_bytes
from hybridchat.crypto.aes import SymmetricCipher
from hybridchat.crypto.rsa_agent import AsymmetricKeyAgent, public_key_fingerprint


class HandshakeState(Enum):
    IDLE = "idle"
    TRANSPORT_READY = "transport_ready"
    KEYS_EXCHANGED = "keys_exchanged"
    SESSION_KEY_ESTABLISHED = "session_key_established"
    FAILED = "failed"


_NEXT_STATE = {
    HandshakeState.IDLE: HandshakeState.TRANSPORT_READY,
    HandshakeState.TRANSPORT_READY: HandshakeState.KEYS_EXCHANGED,
    HandshakeState.KEYS_EXCHANGED: HandshakeState.SESSION_KEY_ESTABLISHED,
}


class Connection:
    """
    State of one peer-to-peer session.

    Owns the transport, the local key agent, the peer public key and the
    session cipher. The handshake functions advance it; ChatSession consumes
    it once it reaches SESSION_KEY_ESTABLISHED.
    """

    def __init__(
        self,
        transport,
        agent: Optional[AsymmetricKeyAgent] = None,
        cipher: Optional[SymmetricCipher] = None,
        max_frame_size: int = DEFAULT_MAX_FRAME_SIZE,
    ):
        self.transport = transport
        if agent is None:
            agent = AsymmetricKeyAgent()
            agent.generate_keypair()
        self.agent = agent
        self.cipher = cipher or SymmetricCipher()
        self.codec = FrameCodec(self.cipher, max_frame_size)
        self.peer_public_key: Optional[rsa.RSAPublicKey] = None
        self.state = HandshakeState.IDLE
        self.failure_reason: Optional[str] = None

    @property
    def established(self) -> bool:
        return self.state is HandshakeState.SESSION_KEY_ESTABLISHED

    @property
    def peer_fingerprint(self) -> Optional[str]:
        if self.peer_public_key is None:
            return None
        return public_key_fingerprint(self.peer_public_key)

    def transition(self, state: HandshakeState):
        """
        Move to the next handshake state.

        Raises:
            HandshakeError: If state is not the successor of the current one
        """
        if _NEXT_STATE.get(self.state) is not state:
            raise HandshakeError(
                f"Illegal handshake transition {self.state.value} -> {state.value}"
            )
        self.state = state

    def fail(self, reason: str):
        self.state = HandshakeState.FAILED
        self.failure_reason = reason

    def set_peer_public_key(self, pem: bytes):
        if self.peer_public_key is not None:
            raise HandshakeError("Peer public key already set")
        self.peer_public_key = self.agent.import_peer_public_key(pem)

    def close(self):
        self.transport.close()


def _run(connection: Connection, steps):
    if connection.state is not HandshakeState.IDLE:
        raise HandshakeError(f"Handshake already started ({connection.state.value})")
    try:
        steps()
    except (HybridChatError, EOFError) as e:
        connection.fail(str(e) or type(e).__name__)
        if isinstance(e, HandshakeError):
            raise
        raise HandshakeError(f"Handshake failed: {connection.failure_reason}") from e


def accept_handshake(connection: Connection):
    """
    Run the listening side of the handshake.

    Raises:
        HandshakeError: On any transport, framing or crypto failure
    """
    def steps():
        connection.transition(HandshakeState.TRANSPORT_READY)

        write_blob(connection.transport, connection.agent.export_public_key())
        connection.set_peer_public_key(
            read_blob(connection.transport, MAX_PUBLIC_KEY_SIZE)
        )
        connection.transition(HandshakeState.KEYS_EXCHANGED)

        blob = connection.transport.recv_exact(SESSION_KEY_BLOB_SIZE)
        if len(blob) != SESSION_KEY_BLOB_SIZE:
            raise HandshakeError(
                f"Session key blob is {len(blob)} bytes, expected {SESSION_KEY_BLOB_SIZE}"
            )
        session_key = connection.agent.decrypt(blob)
        if len(session_key) != SESSION_KEY_SIZE:
            raise HandshakeError(f"Session key is {len(session_key)} bytes")
        connection.cipher.set_key(session_key)
        connection.transition(HandshakeState.SESSION_KEY_ESTABLISHED)

    _run(connection, steps)


def connect_handshake(connection: Connection, session_key: Optional[bytes] = None):
    """
    Run the connecting side of the handshake.

    Args:
        connection: Fresh connection in IDLE state
        session_key: Key to send (default: 32 random bytes)

    Raises:
        HandshakeError: On any transport, framing or crypto failure
    """
    def steps():
        connection.transition(HandshakeState.TRANSPORT_READY)

        connection.set_peer_public_key(
            read_blob(connection.transport, MAX_PUBLIC_KEY_SIZE)
        )
        write_blob(connection.transport, connection.agent.export_public_key())
        connection.transition(HandshakeState.KEYS_EXCHANGED)

        key = session_key if session_key is not None else random_bytes(SESSION_KEY_SIZE)
        if len(key) != SESSION_KEY_SIZE:
            raise HandshakeError(f"Session key must be {SESSION_KEY_SIZE} bytes")
        connection.cipher.set_key(key)

        blob = connection.agent.encrypt_with(connection.peer_public_key, key)
        connection.transport.send_exact(blob)
        connection.transition(HandshakeState.SESSION_KEY_ESTABLISHED)

    _run(connection, steps)
