"""
Error types - Failures surfaced by parsing, reconstruction and GitHub calls
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Mapping


class PatchPushError(Exception):
    """Base error carrying a machine-readable code and an HTTP status"""

    code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = 500,
        details: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details: dict[str, Any] = dict(details or {})

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "status_code": self.status_code,
            "details": self.details,
        }


class InvalidInputError(PatchPushError):
    """Raised for empty or malformed input. Never retried."""

    code = "INVALID_INPUT"

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message, status_code=400, details=details)


class PatchConflictError(PatchPushError):
    """Raised in strict mode when a hunk does not match the original content"""

    code = "PATCH_CONFLICT"

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        line: int | None = None,
        expected: str | None = None,
        actual: str | None = None,
    ) -> None:
        super().__init__(
            message,
            status_code=409,
            details={"path": path, "line": line, "expected": expected, "actual": actual},
        )
        self.path = path
        self.line = line


class UndecodableContentError(PatchPushError):
    """Current file content on the branch is not UTF-8 text"""

    code = "UNDECODABLE_CONTENT"

    def __init__(self, path: str, reason: str = "") -> None:
        super().__init__(
            f"{path} is not UTF-8 text" + (f": {reason}" if reason else ""),
            status_code=422,
            details={"path": path},
        )
        self.path = path


class GitHubAPIError(PatchPushError):
    """Non-success response from the GitHub API.

    ``status_code`` is ``None`` when the request never produced a response
    (connection failure or timeout).
    """

    code = "GITHUB_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int | None,
        *,
        body: str = "",
        details: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, details=details)
        self.body = body

    @property
    def is_server_error(self) -> bool:
        return self.status_code is not None and self.status_code >= 500

    @property
    def is_client_error(self) -> bool:
        return self.status_code is not None and 400 <= self.status_code < 500

    @classmethod
    def from_response(cls, status: int, body: str, reason: str = "") -> "GitHubAPIError":
        """Build a client error, preferring the JSON body's ``message`` field"""
        message = f"GitHub API error: {reason or status}"
        try:
            payload = json.loads(body)
        except (TypeError, ValueError):
            payload = None
        if isinstance(payload, dict) and payload.get("message"):
            message = str(payload["message"])
        elif body:
            message = body
        return cls(message, status, body=body, details={"errorText": body})


class RateLimitError(GitHubAPIError):
    """Request quota exhausted after all retries"""

    code = "RATE_LIMIT"

    def __init__(self, reset_time: int | None) -> None:
        if reset_time is not None:
            when = datetime.fromtimestamp(reset_time, tz=timezone.utc).isoformat()
            message = f"GitHub API rate limit exceeded. Resets at {when}"
        else:
            message = "GitHub API rate limit exceeded"
        super().__init__(message, 429, details={"resetTime": reset_time})
        self.reset_time = reset_time
