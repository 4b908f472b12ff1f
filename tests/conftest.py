"""Shared fixtures and test doubles."""

import base64
import socket
import threading

import pytest

from hybridchat.crypto.aes import SymmetricCipher
from hybridchat.crypto.rsa_agent import AsymmetricKeyAgent
from hybridchat.transport import SocketTransport


# SubjectPublicKeyInfo whose algorithm OID (1.2.3.4.5) no backend knows
UNKNOWN_ALGORITHM_DER = bytes.fromhex("300d" "3006" "06042a030405" "0303000000")
UNKNOWN_ALGORITHM_PEM = (
    b"-----BEGIN PUBLIC KEY-----\n"
    + base64.encodebytes(UNKNOWN_ALGORITHM_DER)
    + b"-----END PUBLIC KEY-----\n"
)


class MemoryTransport:
    """Serves a fixed byte string, then EOF. Records everything sent."""

    def __init__(self, incoming: bytes = b""):
        self.incoming = bytearray(incoming)
        self.sent = bytearray()
        self.closed = False

    def send_exact(self, data: bytes):
        self.sent += data

    def recv_exact(self, n: int) -> bytes:
        chunk = bytes(self.incoming[:n])
        del self.incoming[:n]
        return chunk

    def close(self):
        self.closed = True


class ScriptedConsole:
    """
    Console double.

    read_line() returns the scripted lines in order. When they run out it
    either returns None (EOF) or, with hold=True, waits until release().
    """

    def __init__(self, lines=(), hold: bool = False):
        self._lines = list(lines)
        self._hold = hold
        self._released = threading.Event()
        self._lock = threading.Lock()
        self.output = []

    def read_line(self):
        with self._lock:
            if self._lines:
                return self._lines.pop(0)
        if self._hold:
            self._released.wait(timeout=10)
        return None

    def write_line(self, text: str):
        with self._lock:
            self.output.append(text)

    def release(self):
        self._released.set()

    def text(self) -> str:
        with self._lock:
            return "\n".join(self.output)


@pytest.fixture(scope="session")
def agent_pair():
    """Two RSA agents, generated once for the whole run."""
    alice = AsymmetricKeyAgent()
    alice.generate_keypair()
    bob = AsymmetricKeyAgent()
    bob.generate_keypair()
    return alice, bob


@pytest.fixture
def session_key():
    return bytes(range(32))


@pytest.fixture
def cipher(session_key):
    return SymmetricCipher(session_key)


@pytest.fixture
def transport_pair():
    """Two connected SocketTransports over a local socket pair."""
    left, right = socket.socketpair()
    a, b = SocketTransport(left), SocketTransport(right)
    yield a, b
    a.close()
    b.close()


def run_in_thread(target, *args):
    """Run target(*args) on a thread; returns (thread, result dict)."""
    result = {}

    def wrapper():
        try:
            result["value"] = target(*args)
        except BaseException as e:  # re-raised by the test
            result["error"] = e

    thread = threading.Thread(target=wrapper, daemon=True)
    thread.start()
    return thread, result
