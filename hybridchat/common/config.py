"""
Runtime settings for HybridChat.

Values come from the process environment, optionally seeded from a .env file
via python-dotenv. Command-line arguments override them in __main__.
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .protocol import DEFAULT_MAX_FRAME_SIZE, MIN_CIPHERTEXT_SIZE


ENV_PREFIX = "HYBRIDCHAT_"
DEFAULT_PORT = 12345
DEFAULT_EXIT_COMMAND = "/exit"


class ChatSettings(BaseModel):
    """Settings shared by the client and server roles."""
    host: str = Field("127.0.0.1", description="Server address the client connects to")
    bind_host: str = Field("0.0.0.0", description="Address the server listens on")
    port: int = Field(DEFAULT_PORT, ge=0, le=65535, description="0 lets the server pick a free port")
    max_frame_size: int = Field(DEFAULT_MAX_FRAME_SIZE, ge=MIN_CIPHERTEXT_SIZE,
                                description="Largest accepted ciphertext length")
    exit_command: str = Field(DEFAULT_EXIT_COMMAND, min_length=1)
    connect_timeout: Optional[float] = Field(None, gt=0)
    debug: bool = False

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None, **overrides) -> "ChatSettings":
        """
        Build settings from HYBRIDCHAT_* environment variables.

        Args:
            dotenv_path: Optional .env file to load first (default: search cwd)
            **overrides: Explicit values that win over the environment

        Returns:
            Validated ChatSettings

        Raises:
            pydantic.ValidationError: If a value is malformed
        """
        load_dotenv(dotenv_path)

        values = {}
        for name in cls.model_fields:
            raw = os.getenv(ENV_PREFIX + name.upper())
            if raw is not None and raw != "":
                values[name] = raw

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
