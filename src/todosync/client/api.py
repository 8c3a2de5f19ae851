"""HTTP transport for the Todoist sync API.

This module provides:
- HTTPClient: Form-encoded POSTs to the sync endpoint
- WireLog: Optional append-only copy of every payload, for debugging
- APIError, UnhandledStatusError: Errors raised for bad responses

Network failures (httpx.RequestError and subclasses) are not wrapped; they
reach the caller unchanged.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import IO, Any

import httpx

from todosync.core.config import ClientConfig

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UnhandledStatusError(APIError):
    """The server answered with a status code the client can't handle.

    Attributes:
        status_code: HTTP status code of the response.
        body: Response text, kept for diagnostics only.
    """

    def __init__(self, status_code: int, body: str = "") -> None:
        super().__init__(f"{status_code}: unhandled status code", status_code)
        self.body = body


class WireLog:
    """Write-only sink receiving every payload sent to or read from the API.

    One JSON object per line. The API token is never written.
    """

    def __init__(self, stream: IO[str]) -> None:
        self._stream = stream

    @classmethod
    def open(cls, path: Path) -> WireLog:
        """Open (append mode, owner-only permissions) a wire log file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        return cls(os.fdopen(fd, "a", encoding="utf-8"))

    def write(self, kind: str, op: str, payload: Any) -> None:
        self._stream.write(json.dumps({"type": kind, "op": op, kind: payload}) + "\n")
        self._stream.flush()

    def close(self) -> None:
        self._stream.close()


class HTTPClient:
    """HTTP client for the sync endpoint.

    Pull and push are both POSTs of form-encoded fields to the same URL;
    the API token is sent as the ``token`` field of every request.
    """

    def __init__(self, config: ClientConfig, wire_log: WireLog | None = None) -> None:
        """Initialize the HTTP client.

        Args:
            config: Client configuration (endpoint, token, timeout, SSL).
            wire_log: Diagnostic sink, left open on close(). If not given
                and config.wire_log_path is set, a log is opened there and
                closed with this client.
        """
        self._config = config
        self._client = httpx.Client(
            timeout=config.timeout,
            verify=config.verify_ssl,
        )
        self._owns_wire_log = False
        if wire_log is None and config.wire_log_path is not None:
            wire_log = WireLog.open(config.wire_log_path)
            self._owns_wire_log = True
        self._wire_log = wire_log

    def close(self) -> None:
        """Close the HTTP client, and the wire log if it was opened here."""
        self._client.close()
        if self._owns_wire_log and self._wire_log is not None:
            self._wire_log.close()

    def __enter__(self) -> HTTPClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()

    def log_payload(self, kind: str, op: str, payload: Any) -> None:
        if self._wire_log is not None:
            self._wire_log.write(kind, op, payload)

    def _handle_response(self, op: str, response: httpx.Response) -> Any:
        """Return the decoded JSON body of a successful response."""
        if not response.is_success:
            logger.error(
                "Unhandled response status code: op=%s code=%d text=%s",
                op,
                response.status_code,
                response.text,
            )
            raise UnhandledStatusError(response.status_code, response.text)
        try:
            data = response.json()
        except ValueError as e:
            self.log_payload("response", op, response.text)
            raise APIError(f"{op}: response is not valid JSON: {e}", response.status_code) from e
        self.log_payload("response", op, data)
        return data

    def post(self, op: str, fields: dict[str, str]) -> Any:
        """POST form fields to the sync endpoint and return the JSON body.

        Args:
            op: Operation name, used in logs ("pull" or "push").
            fields: Form fields, not including the API token.

        Raises:
            UnhandledStatusError: If the response status is not 2xx.
            APIError: If a 2xx response body is not JSON.
            httpx.RequestError: On network failure.
        """
        self.log_payload("request", op, fields)
        logger.debug("POST %s op=%s", self._config.endpoint, op)
        response = self._client.post(
            self._config.endpoint,
            data={"token": self._config.token, **fields},
        )
        return self._handle_response(op, response)
