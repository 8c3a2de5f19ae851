"""Identifiers that are either permanent (server) or temporary (client).

Object references in commands may point at entities that already exist on
the server (an integer id) or at entities created earlier in the same batch
of commands (a temporary id string). An item's label list, for example, can
mix both, so the wire form of an ID is a JSON number or a JSON string
depending on which variant is populated.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class ZeroIDError(ValueError):
    """Both the permanent and the temporary part of an ID are zero."""

    def __init__(self, message: str = "both permanent and temporary id are zero") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class ID:
    """Either a permanent integer id or a temporary string id.

    Use ID.permanent() and ID.temporary() to build values; exactly one
    variant is populated.
    """

    pid: int = 0
    tid: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.pid, bool) or not isinstance(self.pid, int):
            raise TypeError(f"permanent id must be an int, got {type(self.pid).__name__}")
        if not isinstance(self.tid, str):
            raise TypeError(f"temporary id must be a str, got {type(self.tid).__name__}")
        if self.pid == 0 and self.tid == "":
            raise ZeroIDError()
        if self.pid != 0 and self.tid != "":
            raise ValueError("an id is either permanent or temporary, not both")
        if not INT64_MIN <= self.pid <= INT64_MAX:
            raise ValueError(f"permanent id {self.pid} does not fit in 64 bits")

    @classmethod
    def permanent(cls, value: int) -> ID:
        return cls(pid=value)

    @classmethod
    def temporary(cls, value: str) -> ID:
        return cls(tid=value)

    @property
    def is_temporary(self) -> bool:
        return self.tid != ""

    def encode(self) -> int | str:
        """Return the JSON-ready form: an int if permanent, a str if temporary."""
        if self.pid == 0 and self.tid == "":
            raise ZeroIDError()
        if self.pid != 0:
            return self.pid
        return self.tid

    def dumps(self) -> str:
        """Return the JSON text of this ID."""
        return json.dumps(self.encode())

    @classmethod
    def decode(cls, value: Any) -> ID:
        """Build an ID from an already parsed JSON value.

        Raises:
            ZeroIDError: If value is 0 or the empty string.
            TypeError: If value is neither a number nor a string.
        """
        if isinstance(value, str):
            if value == "":
                raise ZeroIDError("temporary id is empty")
            return cls(tid=value)
        if isinstance(value, int) and not isinstance(value, bool):
            if value == 0:
                raise ZeroIDError("permanent id is zero")
            return cls(pid=value)
        raise TypeError(f"cannot decode id from {type(value).__name__}")

    @classmethod
    def loads(cls, text: str | bytes) -> ID:
        """Build an ID from raw JSON text.

        The first token decides the variant: a quoted value is a temporary
        id, anything else must be an integer and is a permanent id.
        """
        if isinstance(text, bytes):
            text = text.decode()
        stripped = text.lstrip()
        if stripped.startswith('"'):
            value = json.loads(stripped)
            if not isinstance(value, str):
                raise ValueError(f"invalid temporary id: {text!r}")
            if value == "":
                raise ZeroIDError("temporary id is empty")
            return cls(tid=value)
        value = json.loads(stripped)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"invalid permanent id: {text!r}")
        if value == 0:
            raise ZeroIDError("permanent id is zero")
        return cls(pid=value)

    def __str__(self) -> str:
        return self.tid if self.tid else str(self.pid)
