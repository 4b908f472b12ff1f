"""
TCP transport used by both chat roles.

SocketTransport wraps one connected socket and provides exact-length reads and
writes. Listener wraps the listening socket of the server role.
"""

import socket
from typing import Optional

from hybridchat.common.exceptions import TransportError


class SocketTransport:
    """Blocking byte stream over a connected socket."""

    def __init__(self, sock: socket.socket, peer: Optional[tuple] = None):
        self.sock = sock
        self.peer = peer
        self._closed = False

    @classmethod
    def connect(cls, host: str, port: int, timeout: Optional[float] = None) -> "SocketTransport":
        """
        Open a TCP connection.

        Args:
            host: Server address
            port: Server port
            timeout: Connect timeout in seconds (None blocks)

        Raises:
            TransportError: If the connection cannot be established
        """
        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except OSError as e:
            raise TransportError(f"Cannot connect to {host}:{port}: {e}") from e

        # Reads after the handshake block indefinitely
        sock.settimeout(None)
        return cls(sock, (host, port))

    @property
    def closed(self) -> bool:
        return self._closed

    def send_exact(self, data: bytes):
        """
        Send all of data.

        Raises:
            TransportError: On socket failure or if already closed
        """
        if self._closed:
            raise TransportError("Transport is closed")
        try:
            self.sock.sendall(data)
        except OSError as e:
            raise TransportError(f"Send failed: {e}") from e

    def recv_exact(self, n: int) -> bytes:
        """
        Receive exactly n bytes.

        Returns:
            n bytes, or fewer only if the peer closed the stream first

        Raises:
            TransportError: On socket failure
        """
        chunks = []
        remaining = n
        while remaining > 0:
            try:
                chunk = self.sock.recv(min(remaining, 65536))
            except OSError as e:
                if self._closed:
                    # Local close unblocked the read
                    break
                raise TransportError(f"Receive failed: {e}") from e
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def close(self):
        """Shut down and close the socket. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # Already disconnected
            pass
        self.sock.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class Listener:
    """Listening TCP socket for the server role."""

    def __init__(self, host: str, port: int, backlog: int = 1):
        self.host = host
        try:
            self.sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            self.sock.bind((host, port))
            self.sock.listen(backlog)
        except OSError as e:
            raise TransportError(f"Cannot listen on {host}:{port}: {e}") from e
        self.port = self.sock.getsockname()[1]

    def accept(self) -> SocketTransport:
        """
        Wait for one peer.

        Raises:
            TransportError: If accept fails
        """
        try:
            client_sock, address = self.sock.accept()
        except OSError as e:
            raise TransportError(f"Accept failed: {e}") from e
        return SocketTransport(client_sock, address)

    def close(self):
        self.sock.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
