"""Patch API request/response models"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from .diff import FileChangeResult, FileDiff
from .github import CommitResult, GitRef, PullRequest


class CommitStrategy(str, Enum):
    """How reconstructed files are written to the branch"""

    SEQUENTIAL = "sequential"  # one commit per file, partial success possible
    ATOMIC = "atomic"  # one tree + one commit, all or nothing


class ParseDiffRequest(BaseModel):
    diff: str
    originals: dict[str, str] = {}
    max_file_size: int | None = None
    strict: bool = False


class ParseDiffResponse(BaseModel):
    files: list[FileDiff]
    changes: list[FileChangeResult]
    skipped: list[str] = []


class GenerateDiffRequest(BaseModel):
    file_path: str
    original_content: str | None = None  # None for a new file
    new_content: str


class PullRequestOptions(BaseModel):
    """Draft pull request opened after the commit"""

    title: str
    body: str = ""
    base: str | None = None  # repository default branch when omitted
    labels: list[str] = []


class ApplyPatchRequest(BaseModel):
    owner: str = Field(min_length=1)
    repo: str = Field(min_length=1)
    branch: str = Field(min_length=1)
    diff: str
    strategy: CommitStrategy | None = None
    commit_message: str | None = None
    base_branch: str | None = None  # create `branch` from this first
    pull_request: PullRequestOptions | None = None
    strict: bool | None = None
    timeout_seconds: float | None = None
    token: str | None = None


class PatchSummary(BaseModel):
    total: int
    successful: int
    failed: int
    failures: list[CommitResult] = []


class ApplyPatchResponse(BaseModel):
    strategy: CommitStrategy
    branch: str
    changes: list[FileChangeResult]
    skipped: list[str] = []
    results: list[CommitResult] = []
    summary: PatchSummary | None = None
    ref: GitRef | None = None
    pull_request: PullRequest | None = None
