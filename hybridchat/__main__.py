"""
Command-line entry point.

    python -m hybridchat server [port]
    python -m hybridchat client <host> <port>

With no arguments the mode, host and port are asked for interactively.
"""

import sys

from pydantic import ValidationError

from hybridchat import client, server


USAGE = "Usage: hybridchat server [port] | hybridchat client <host> <port>"


def prompt_args() -> list:
    """Ask for mode/host/port on the terminal."""
    mode = input("Mode (server/client): ").strip().lower()
    if mode == "server":
        return [mode, input("Port: ").strip()]
    if mode == "client":
        host = input("Host: ").strip()
        port = input("Port: ").strip()
        return [mode, host, port]
    return [mode]


def main(argv=None):
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv:
        try:
            argv = prompt_args()
        except EOFError:
            print(USAGE)
            return 1

    mode, rest = argv[0], argv[1:]
    try:
        if mode == "server":
            server.main(rest)
        elif mode == "client":
            if len(rest) < 2:
                print(USAGE)
                return 1
            client.main(rest)
        else:
            print(f"[!] Unknown mode '{mode}'. Use: server | client")
            return 1
    except ValidationError as e:
        print(f"[!] Invalid settings:\n{e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
