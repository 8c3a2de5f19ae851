"""API token lookup.

The token is taken from, in order:
- the TODOSYNC_TOKEN environment variable
- the OS keyring (service "todosync")
- a token file in the configuration directory, which must only be
  readable by its owner
"""

from __future__ import annotations

import contextlib
import os
import stat
from pathlib import Path

import keyring
from keyring.errors import KeyringError

KEYRING_SERVICE = "todosync"
KEYRING_USERNAME = "api-token"
TOKEN_ENV_VAR = "TODOSYNC_TOKEN"
TOKEN_FILE_NAME = "token"


class CredentialsError(Exception):
    """Exception raised when no usable API token can be found."""


def read_token_file(path: Path) -> str:
    """Read a token file, refusing group- or world-accessible files.

    Raises:
        CredentialsError: If the file is missing, too permissive, or empty.
    """
    try:
        mode = path.stat().st_mode
    except FileNotFoundError as e:
        raise CredentialsError(f"API token not found: {path}") from e
    if stat.S_IMODE(mode) & 0o077:
        raise CredentialsError(
            f"{path}: stricter permissions required "
            f"(got {stat.S_IMODE(mode):#o}, want {stat.S_IMODE(mode) & 0o700:#o})"
        )
    token = path.read_text().strip()
    if not token:
        raise CredentialsError(f"{path}: empty token")
    return token


def get_token(config_dir: Path) -> str:
    """Find the API token.

    Raises:
        CredentialsError: If no source provides a token.
    """
    token = os.environ.get(TOKEN_ENV_VAR, "").strip()
    if token:
        return token

    # Keyring may be unavailable (headless machines); fall through to the file
    with contextlib.suppress(KeyringError):
        token = keyring.get_password(KEYRING_SERVICE, KEYRING_USERNAME) or ""
        if token:
            return token

    return read_token_file(config_dir / TOKEN_FILE_NAME)


def store_token(token: str) -> None:
    """Save the API token in the OS keyring.

    Raises:
        CredentialsError: If the token is empty or the keyring refuses it.
    """
    token = token.strip()
    if not token:
        raise CredentialsError("API token must not be empty")
    try:
        keyring.set_password(KEYRING_SERVICE, KEYRING_USERNAME, token)
    except KeyringError as e:
        raise CredentialsError(f"could not store token in keyring: {e}") from e
