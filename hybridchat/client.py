#!/usr/bin/env python3
"""
HybridChat Client

Implements the connecting side of the protocol.
"""

import argparse
import traceback
from typing import Optional

from hybridchat.common.config import ChatSettings
from hybridchat.common.console import Console
from hybridchat.common.exceptions import HybridChatError
from hybridchat.common.utils import short_fingerprint
from hybridchat.crypto.rsa_agent import AsymmetricKeyAgent
from hybridchat.handshake import Connection, connect_handshake
from hybridchat.session import ChatSession, SessionResult
from hybridchat.transport import SocketTransport


class HybridChatClient:
    def __init__(self, settings: ChatSettings, console: Optional[Console] = None):
        self.settings = settings
        self.console = console or Console()
        self.connection = None

        self.agent = AsymmetricKeyAgent()
        self.agent.generate_keypair()

        self.console.write_line("[*] HybridChat Client initialized")
        self.console.write_line(f"    Key fingerprint: {short_fingerprint(self.agent.fingerprint())}")

    def connect(self):
        """Open the TCP connection to the server."""
        host, port = self.settings.host, self.settings.port
        self.console.write_line(f"\n[*] Connecting to {host}:{port}...")

        transport = SocketTransport.connect(host, port, timeout=self.settings.connect_timeout)
        self.connection = Connection(
            transport,
            agent=self.agent,
            max_frame_size=self.settings.max_frame_size,
        )
        self.console.write_line("[✓] Connected to server\n")

    def exchange_keys(self, session_key: Optional[bytes] = None):
        """Exchange public keys and send the wrapped session key."""
        self.console.write_line("[Handshake] Key Exchange")
        connect_handshake(self.connection, session_key)

        self.console.write_line(
            f"  [<] Received server public key ({short_fingerprint(self.connection.peer_fingerprint)})"
        )
        self.console.write_line("  [>] Sent client public key")
        self.console.write_line("  [>] Sent encrypted session key")
        self.console.write_line("  [✓] Session key established\n")

    def chat(self) -> SessionResult:
        """Run the encrypted chat session."""
        self.console.write_line("=" * 70)
        self.console.write_line("  SECURE CHAT SESSION")
        self.console.write_line(f"  Type your messages below. Type '{self.settings.exit_command}' to leave.")
        self.console.write_line("=" * 70 + "\n")

        session = ChatSession(
            self.connection,
            self.console,
            exit_command=self.settings.exit_command,
            peer_label="Server",
        )
        result = session.run()
        self.console.write_line(
            f"[*] Session ended ({result.reason}): {result.sent} sent, {result.received} received"
        )
        return result

    def disconnect(self):
        """Disconnect from server."""
        if self.connection:
            self.connection.close()
            self.console.write_line("[*] Disconnected from server")


def run_client(settings: ChatSettings):
    client = HybridChatClient(settings)
    try:
        client.connect()
        client.exchange_keys()
        client.chat()
    except KeyboardInterrupt:
        print("\n[*] Interrupted")
    except HybridChatError as e:
        print(f"\n[!] Error: {e}")
        if settings.debug:
            traceback.print_exc()
    finally:
        client.disconnect()


def main(argv=None):
    parser = argparse.ArgumentParser(description="HybridChat client (connecting side)")
    parser.add_argument("host", nargs="?", help="Server address")
    parser.add_argument("port", nargs="?", type=int, help="Server port")
    parser.add_argument("--timeout", dest="connect_timeout", type=float, help="Connect timeout (s)")
    parser.add_argument("--debug", action="store_true", default=None, help="Print tracebacks")
    args = parser.parse_args(argv)

    settings = ChatSettings.from_env(
        host=args.host, port=args.port,
        connect_timeout=args.connect_timeout, debug=args.debug,
    )
    run_client(settings)


if __name__ == "__main__":
    main()
