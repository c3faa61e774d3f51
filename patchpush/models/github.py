"""GitHub REST payload models"""

from __future__ import annotations

import base64
import json
from typing import Any, Literal

from pydantic import BaseModel


def decode_text(content: str, encoding: str) -> str:
    """Decode a contents or blob payload as UTF-8 text.

    Raises UnicodeDecodeError for non-text files.
    """
    if encoding != "base64":
        return content
    # GitHub wraps base64 payloads at 60 columns
    raw = base64.b64decode("".join(content.split()))
    return raw.decode("utf-8")


class GitHubResponse(BaseModel):
    """Snapshot of a GitHub HTTP response, body already read"""

    status: int
    headers: dict[str, str] = {}
    body: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup"""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    def json_body(self) -> Any:
        if not self.body.strip():
            return None
        return json.loads(self.body)


class RateLimitState(BaseModel):
    """Rate limit headers of a single response"""

    limit: int | None = None
    remaining: int | None = None
    reset: int | None = None  # epoch seconds


class GitObject(BaseModel):
    sha: str
    type: str = "commit"
    url: str = ""


class GitRef(BaseModel):
    """A named pointer to a commit"""

    ref: str
    url: str = ""
    object: GitObject


class GitTreeEntry(BaseModel):
    """Entry of a tree creation request"""

    path: str
    mode: Literal["100644", "100755", "040000", "160000", "120000"] = "100644"
    type: Literal["blob", "tree", "commit"] = "blob"
    sha: str | None = None
    content: str | None = None


class GitTreeItem(BaseModel):
    path: str
    mode: str
    type: str
    sha: str


class GitTree(BaseModel):
    sha: str
    url: str = ""
    tree: list[GitTreeItem] = []


class GitCommitTree(BaseModel):
    sha: str
    url: str = ""


class GitCommit(BaseModel):
    sha: str
    url: str = ""
    message: str = ""
    tree: GitCommitTree | None = None


class GitBlob(BaseModel):
    sha: str
    url: str = ""
    size: int | None = None
    encoding: str | None = None
    content: str | None = None

    def decoded_text(self) -> str:
        return decode_text(self.content or "", self.encoding or "base64")


class FileContent(BaseModel):
    """File returned by the contents endpoint"""

    path: str
    sha: str
    size: int = 0
    encoding: str = "base64"
    content: str = ""

    def decoded_text(self) -> str:
        return decode_text(self.content, self.encoding)

    @property
    def is_inline(self) -> bool:
        """False when GitHub omitted the body (files over 1 MB report encoding "none")"""
        return self.encoding == "base64"


class PullRequest(BaseModel):
    number: int
    html_url: str
    title: str
    body: str | None = None
    state: Literal["open", "closed"] = "open"
    draft: bool = False


class CommitResult(BaseModel):
    """Per-file outcome of a sequential patch apply"""

    path: str
    success: bool
    error: str | None = None
    status_code: int | None = None
    is_new: bool = False
    is_truncated: bool = False
