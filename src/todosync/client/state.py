"""Persistence of the entity cache between runs.

This module provides:
- StateStore: Saves and loads an EntityCache as a pair of files
- CorruptedStateError, StateDecodeError: Load failures

Layout:
    state.data  JSON serialization of the cache (entity maps + sync token)
    state.sum   SHA-256 digest (32 raw bytes) of state.data

Keeping the cache lets the next pull be incremental instead of a full sync.
The command queue and the temporary id mapping are never persisted: after a
restart, state is rebuilt from a pull, never by replaying commands.

Writes are not atomic. A torn write is detected on the next load because
the digest no longer matches the data; the caller then falls back to an
empty cache and a full sync.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
from pathlib import Path

from todosync.client.cache import EntityCache

logger = logging.getLogger(__name__)

DATA_FILE_NAME = "state.data"
SUM_FILE_NAME = "state.sum"
DIGEST_SIZE = hashlib.sha256().digest_size


class CorruptedStateError(Exception):
    """The saved digest is missing, has the wrong length, or doesn't match."""


class StateDecodeError(Exception):
    """The data file matches its digest but can't be decoded into a cache."""


def _write_private(path: Path, data: bytes) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as f:
        f.write(data)


class StateStore:
    """Pair of state files in one directory."""

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)

    @property
    def data_path(self) -> Path:
        return self._directory / DATA_FILE_NAME

    @property
    def sum_path(self) -> Path:
        return self._directory / SUM_FILE_NAME

    def save(self, cache: EntityCache) -> None:
        """Write the cache and its digest.

        Both writes must succeed for the save to succeed; OSError is
        propagated otherwise.
        """
        data = json.dumps(cache.to_dict(), separators=(",", ":")).encode()
        digest = hashlib.sha256(data).digest()
        self._directory.mkdir(parents=True, exist_ok=True)
        _write_private(self.data_path, data)
        _write_private(self.sum_path, digest)
        logger.debug("Saved %d entities to %s", len(cache), self.data_path)

    def load(self) -> EntityCache:
        """Read the cache back, verifying the digest first.

        Raises:
            FileNotFoundError: If either file is missing.
            CorruptedStateError: If the digest doesn't match the data.
            StateDecodeError: If the data can't be decoded.
        """
        data = self.data_path.read_bytes()
        saved_sum = self.sum_path.read_bytes()
        digest = hashlib.sha256(data).digest()
        if len(saved_sum) != len(digest):
            raise CorruptedStateError(
                f"length mismatch: digest has {len(saved_sum)} bytes, want {len(digest)}"
            )
        for i, (saved, computed) in enumerate(zip(saved_sum, digest, strict=True)):
            if saved != computed:
                raise CorruptedStateError(f"checksum difference at byte {i}")
        try:
            cache = EntityCache.from_dict(json.loads(data))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise StateDecodeError(f"could not decode {self.data_path}: {e}") from e
        logger.debug("Loaded %d entities from %s", len(cache), self.data_path)
        return cache
