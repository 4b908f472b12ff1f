#!/usr/bin/env python3
"""
HybridChat Server

Implements the listening side of the protocol:
1. Accept one client
2. Public key exchange
3. Receive and unwrap the client's AES session key
4. Encrypted chat until either side leaves
"""

import argparse
import traceback
from typing import Optional

from hybridchat.common.config import ChatSettings
from hybridchat.common.console import Console
from hybridchat.common.exceptions import HybridChatError
from hybridchat.common.utils import short_fingerprint
from hybridchat.crypto.rsa_agent import AsymmetricKeyAgent
from hybridchat.handshake import Connection, accept_handshake
from hybridchat.session import ChatSession, SessionResult
from hybridchat.transport import Listener


class HybridChatServer:
    def __init__(self, settings: ChatSettings, console: Optional[Console] = None):
        self.settings = settings
        self.console = console or Console()
        self.listener = None
        self.connection = None

        # Key pair lives as long as this server object
        self.agent = AsymmetricKeyAgent()
        self.agent.generate_keypair()

        self.console.write_line("[*] HybridChat Server initialized")
        self.console.write_line(f"    Key fingerprint: {short_fingerprint(self.agent.fingerprint())}")

    @property
    def port(self) -> Optional[int]:
        return self.listener.port if self.listener else None

    def start(self):
        """Bind and listen."""
        self.listener = Listener(self.settings.bind_host, self.settings.port)
        self.console.write_line(
            f"[✓] Server listening on {self.settings.bind_host}:{self.listener.port}"
        )

    def wait_for_client(self) -> Connection:
        """Accept one client and run the listening handshake."""
        self.console.write_line("[*] Waiting for a client...")
        transport = self.listener.accept()
        self.console.write_line(f"[+] New connection from {transport.peer}")

        self.connection = Connection(
            transport,
            agent=self.agent,
            max_frame_size=self.settings.max_frame_size,
        )

        self.console.write_line("\n[Handshake] Key Exchange")
        try:
            accept_handshake(self.connection)
        except HybridChatError:
            self.connection.close()
            raise

        self.console.write_line("  [>] Sent server public key")
        self.console.write_line(
            f"  [<] Received client public key ({short_fingerprint(self.connection.peer_fingerprint)})"
        )
        self.console.write_line("  [✓] Session key established\n")
        return self.connection

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
            peer_label="Client",
        )
        result = session.run()
        self.console.write_line(
            f"[*] Session ended ({result.reason}): {result.sent} sent, {result.received} received"
        )
        return result

    def close(self):
        if self.connection:
            self.connection.close()
        if self.listener:
            self.listener.close()
            self.console.write_line("[*] Server stopped")


def run_server(settings: ChatSettings):
    server = HybridChatServer(settings)
    try:
        server.start()
        server.wait_for_client()
        server.chat()
    except KeyboardInterrupt:
        print("\n[*] Server shutting down...")
    except HybridChatError as e:
        print(f"\n[!] Error: {e}")
        if settings.debug:
            traceback.print_exc()
    finally:
        server.close()


def main(argv=None):
    parser = argparse.ArgumentParser(description="HybridChat server (listening side)")
    parser.add_argument("port", nargs="?", type=int, help="TCP port to listen on")
    parser.add_argument("--bind", dest="bind_host", help="Address to bind")
    parser.add_argument("--debug", action="store_true", default=None, help="Print tracebacks")
    args = parser.parse_args(argv)

    settings = ChatSettings.from_env(
        port=args.port, bind_host=args.bind_host, debug=args.debug,
    )
    run_server(settings)


if __name__ == "__main__":
    main()
