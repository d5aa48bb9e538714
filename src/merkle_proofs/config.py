"""
Configuration

Constants for digest handling and runtime settings read from the
environment (optionally through a .env file).
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# SHA-256 output size
DIGEST_SIZE = 32
DIGEST_HEX_LENGTH = DIGEST_SIZE * 2

DEFAULT_API_HOST = "127.0.0.1"
DEFAULT_API_PORT = 8000


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime settings for the tree service, CLI and API server."""
    allow_empty_build: bool = True
    api_host: str = DEFAULT_API_HOST
    api_port: int = DEFAULT_API_PORT
    log_level: str = "WARNING"


def get_settings() -> Settings:
    """
    Build settings from environment variables.

    Recognised variables:
        MERKLE_ALLOW_EMPTY_BUILD: accept `build` with zero leaves (default true)
        MERKLE_API_HOST: host the REST API binds to
        MERKLE_API_PORT: port the REST API binds to
        MERKLE_LOG_LEVEL: logging level when --verbose is not given

    Returns:
        A fresh Settings instance

    Raises:
        ValueError: If MERKLE_API_PORT is not an integer
    """
    port = os.getenv("MERKLE_API_PORT", str(DEFAULT_API_PORT))
    try:
        api_port = int(port)
    except ValueError:
        raise ValueError(f"MERKLE_API_PORT must be an integer, got {port!r}")

    return Settings(
        allow_empty_build=_env_flag("MERKLE_ALLOW_EMPTY_BUILD", True),
        api_host=os.getenv("MERKLE_API_HOST", DEFAULT_API_HOST),
        api_port=api_port,
        log_level=os.getenv("MERKLE_LOG_LEVEL", "WARNING").upper(),
    )
