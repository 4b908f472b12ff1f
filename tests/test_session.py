"""Tests for the chat session loop."""

import pytest

from conftest import ScriptedConsole, run_in_thread
from hybridchat.common.exceptions import HandshakeError
from hybridchat.handshake import Connection, HandshakeState
from hybridchat.session import (
    CONSOLE_EOF, LOCAL_EXIT, PEER_CLOSED, RECEIVE_ERROR, ChatSession,
)


def established_pair(transport_pair, agent_pair, session_key):
    left = Connection(transport_pair[0], agent=agent_pair[0])
    right = Connection(transport_pair[1], agent=agent_pair[1])
    for conn in (left, right):
        for state in (HandshakeState.TRANSPORT_READY, HandshakeState.KEYS_EXCHANGED,
                      HandshakeState.SESSION_KEY_ESTABLISHED):
            conn.transition(state)
        conn.cipher.set_key(session_key)
    return left, right


class TestChatSession:
    def test_requires_established_connection(self, transport_pair, agent_pair):
        conn = Connection(transport_pair[0], agent=agent_pair[0])
        with pytest.raises(HandshakeError):
            ChatSession(conn, ScriptedConsole()).run()

    def test_messages_delivered_then_exit(self, transport_pair, agent_pair, session_key):
        left, right = established_pair(transport_pair, agent_pair, session_key)

        receiver_console = ScriptedConsole(hold=True)
        receiver = ChatSession(right, receiver_console, peer_label="Server")
        thread, result = run_in_thread(receiver.run)

        sender_console = ScriptedConsole(["hello", "", "ünïcödé ✓", "/exit", "never sent"])
        sender_result = ChatSession(left, sender_console).run()

        thread.join(timeout=10)
        receiver_console.release()
        assert not thread.is_alive()

        assert sender_result.reason == LOCAL_EXIT
        assert sender_result.sent == 2

        received = result["value"]
        assert received.reason == PEER_CLOSED
        assert received.received == 2
        assert "[Server] hello" in receiver_console.output
        assert "[Server] ünïcödé ✓" in receiver_console.output
        assert "never sent" not in receiver_console.text()

    def test_console_eof_ends_session(self, transport_pair, agent_pair, session_key):
        left, right = established_pair(transport_pair, agent_pair, session_key)
        result = ChatSession(left, ScriptedConsole(["only line"])).run()
        assert result.reason == CONSOLE_EOF
        assert result.sent == 1
        assert right.codec.read_frame(right.transport) == "only line"

    def test_unencodable_line_is_reported_and_skipped(self, transport_pair, agent_pair, session_key):
        left, right = established_pair(transport_pair, agent_pair, session_key)
        console = ScriptedConsole(["caf\udce9", "after"])
        result = ChatSession(left, console).run()
        assert result.reason == CONSOLE_EOF
        assert result.sent == 1
        assert any(line.startswith("[!] Message not sent") for line in console.output)
        assert right.codec.read_frame(right.transport) == "after"

    def test_custom_exit_command(self, transport_pair, agent_pair, session_key):
        left, _ = established_pair(transport_pair, agent_pair, session_key)
        console = ScriptedConsole(["bye!", "/exit"], hold=True)
        result = ChatSession(left, console, exit_command="bye!").run()
        console.release()
        assert result.reason == LOCAL_EXIT
        assert result.sent == 0

    def test_peer_close_ends_idle_sender(self, transport_pair, agent_pair, session_key):
        left, right = established_pair(transport_pair, agent_pair, session_key)
        console = ScriptedConsole(hold=True)
        thread, result = run_in_thread(ChatSession(left, console).run)

        right.codec.write_frame(right.transport, "last words")
        right.close()

        thread.join(timeout=10)
        console.release()
        assert result["value"].reason == PEER_CLOSED
        assert "[Peer] last words" in console.output
        assert left.transport.closed

    def test_corrupted_frame_drops_connection(self, transport_pair, agent_pair, session_key):
        left, right = established_pair(transport_pair, agent_pair, session_key)
        console = ScriptedConsole(hold=True)
        thread, result = run_in_thread(ChatSession(left, console).run)

        frame = right.codec.encode("tampered")
        body = bytearray(frame.ciphertext)
        body[0] ^= 0x01
        good = right.codec.encode("after the bad frame")
        right.transport.send_exact(frame.header() + bytes(body) + good.to_bytes())

        thread.join(timeout=10)
        console.release()
        session_result = result["value"]
        assert session_result.reason == RECEIVE_ERROR
        assert session_result.received == 0
        assert "tampered" not in console.text()
        assert "after the bad frame" not in console.text()
        assert any(line.startswith("\n[!] Receive error") for line in console.output)
