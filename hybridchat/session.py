"""
Encrypted chat session.

Runs after the handshake. The inbound duty reads frames on its own thread and
prints them; the outbound duty runs on the caller's thread and sends console
lines. Whichever duty ends first closes the transport, which unblocks the
other one.
"""

import queue
import threading
from dataclasses import dataclass
from typing import Optional

from hybridchat.common.config import DEFAULT_EXIT_COMMAND
from hybridchat.common.exceptions import (
    EndOfStream, HandshakeError, HybridChatError, MessageEncodingError,
)
from hybridchat.handshake import Connection


# Close reasons reported in SessionResult
LOCAL_EXIT = "local_exit"
CONSOLE_EOF = "console_eof"
PEER_CLOSED = "peer_closed"
RECEIVE_ERROR = "receive_error"
SEND_ERROR = "send_error"


@dataclass
class SessionResult:
    reason: str
    sent: int = 0
    received: int = 0
    error: Optional[str] = None


class ChatSession:
    """Drives the two message duties over one established Connection."""

    POLL_INTERVAL = 0.1

    def __init__(
        self,
        connection: Connection,
        console,
        exit_command: str = DEFAULT_EXIT_COMMAND,
        peer_label: str = "Peer",
    ):
        self.connection = connection
        self.console = console
        self.exit_command = exit_command
        self.peer_label = peer_label

        self._closed = threading.Event()
        self._lines: "queue.Queue[Optional[str]]" = queue.Queue()
        self._reason: Optional[str] = None
        self._error: Optional[str] = None
        self._reason_lock = threading.Lock()
        self.sent = 0
        self.received = 0

    def _finish(self, reason: str, error: Optional[str] = None):
        # First duty to finish decides the reason
        with self._reason_lock:
            if self._reason is None:
                self._reason = reason
                self._error = error
        self._closed.set()

    def _read_console(self):
        while not self._closed.is_set():
            line = self.console.read_line()
            self._lines.put(line)
            if line is None:
                return

    def _receive_loop(self):
        codec = self.connection.codec
        transport = self.connection.transport
        while not self._closed.is_set():
            try:
                message = codec.read_frame(transport)
            except EndOfStream:
                if not self._closed.is_set():
                    self.console.write_line("\n[*] Connection closed by peer.")
                self._finish(PEER_CLOSED)
                return
            except HybridChatError as e:
                if not self._closed.is_set():
                    self.console.write_line(f"\n[!] Receive error: {e}")
                self._finish(RECEIVE_ERROR, str(e))
                return

            self.received += 1
            self.console.write_line(f"[{self.peer_label}] {message}")

    def _send_loop(self):
        codec = self.connection.codec
        transport = self.connection.transport
        while not self._closed.is_set():
            try:
                line = self._lines.get(timeout=self.POLL_INTERVAL)
            except queue.Empty:
                continue

            if line is None:
                self._finish(CONSOLE_EOF)
                return
            if line == self.exit_command:
                self._finish(LOCAL_EXIT)
                return
            if not line.strip():
                continue

            try:
                codec.write_frame(transport, line)
            except MessageEncodingError as e:
                # Nothing was written, the stream is still in sync
                self.console.write_line(f"[!] Message not sent: {e}")
                continue
            except HybridChatError as e:
                if not self._closed.is_set():
                    self.console.write_line(f"[!] Send error: {e}")
                self._finish(SEND_ERROR, str(e))
                return
            self.sent += 1

    def run(self) -> SessionResult:
        """
        Run until either duty ends, then tear the connection down.

        Raises:
            HandshakeError: If the connection has no session key yet
        """
        if not self.connection.established:
            raise HandshakeError(
                f"Session requires an established key (state: {self.connection.state.value})"
            )

        receiver = threading.Thread(target=self._receive_loop, name="chat-recv", daemon=True)
        reader = threading.Thread(target=self._read_console, name="chat-console", daemon=True)
        receiver.start()
        reader.start()

        try:
            self._send_loop()
        finally:
            self._finish(LOCAL_EXIT)
            self.connection.close()
            receiver.join()

        return SessionResult(
            reason=self._reason,
            sent=self.sent,
            received=self.received,
            error=self._error,
        )
