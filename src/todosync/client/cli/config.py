"""Configuration utilities for the todosync CLI.

This module provides shared configuration functions used across CLI commands.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from todosync.client.credentials import get_token
from todosync.core.config import DEFAULT_ENDPOINT, ClientConfig


def get_config_dir() -> Path:
    """Get the configuration directory for todosync.

    Returns:
        Path to ~/.todosync. It also holds the saved state files.
    """
    return Path.home() / ".todosync"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def load_config() -> dict[str, Any]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def build_client_config() -> ClientConfig:
    """Assemble a ClientConfig from the config file and the API token.

    Raises:
        CredentialsError: If no API token is available.
    """
    config = load_config()
    wire_log = config.get("wire_log")
    return ClientConfig(
        token=get_token(get_config_dir()),
        endpoint=config.get("endpoint") or DEFAULT_ENDPOINT,
        timeout=float(config.get("timeout", 30.0)),
        wire_log_path=Path(wire_log).expanduser() if wire_log else None,
    )
