"""Shared configuration classes for todosync.

This module defines the settings used to build a SyncClient and its
underlying HTTP transport.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_ENDPOINT = "https://api.todoist.com/sync/v8/sync"

# Minimum interval between two network pulls, absent an intervening push.
DEFAULT_PULL_COOLDOWN = 60.0


@dataclass
class ClientConfig:
    """Configuration for connecting to the sync API.

    Attributes:
        token: API token authenticating every request.
        endpoint: URL of the sync endpoint (used for both pull and push).
        timeout: Request timeout in seconds.
        verify_ssl: Whether to verify SSL certificates (default True).
        pull_cooldown: Seconds during which a repeated pull is skipped.
        wire_log_path: If set, every payload sent or received is appended
            to this file, one JSON object per line.
    """

    token: str
    endpoint: str = DEFAULT_ENDPOINT
    timeout: float = 30.0
    verify_ssl: bool = True
    pull_cooldown: float = DEFAULT_PULL_COOLDOWN
    wire_log_path: Path | None = None

    def __post_init__(self) -> None:
        """Validate token and normalize endpoint URL."""
        if not self.token:
            raise ValueError("API token must not be empty")
        self.endpoint = self.endpoint.rstrip("/")
        if self.wire_log_path is not None:
            self.wire_log_path = Path(self.wire_log_path)
