"""
Console I/O collaborator.
"""

import sys
import threading
from typing import Optional


class Console:
    """Line-oriented terminal input and output."""

    def __init__(self, prompt: str = ""):
        self.prompt = prompt
        self._lock = threading.Lock()

    def read_line(self) -> Optional[str]:
        """
        Read one line from stdin.

        Returns:
            The line without its trailing newline, or None on EOF
        """
        try:
            return input(self.prompt)
        except EOFError:
            return None

    def write_line(self, text: str):
        """Print one line; safe to call from the receive thread."""
        with self._lock:
            print(text)
            sys.stdout.flush()
