"""Errors raised when an upstream service rejects a call."""

from __future__ import annotations


class UpstreamError(RuntimeError):
    """Non-success status from the completion, search or spreadsheet service.

    ``str(error)`` is the upstream response body so it can be surfaced as-is.
    """

    def __init__(self, service: str, status_code: int, body: str):
        super().__init__(body or f"{service} returned HTTP {status_code}")
        self.service = service
        self.status_code = status_code
        self.body = body
