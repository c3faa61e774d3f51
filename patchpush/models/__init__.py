"""Models module - Pydantic data models"""

from .diff import Change, ChangeKind, FileChangeResult, FileDiff, GeneratedDiff, Hunk
from .github import (
    CommitResult,
    FileContent,
    GitBlob,
    GitCommit,
    GitHubResponse,
    GitRef,
    GitTree,
    GitTreeEntry,
    PullRequest,
    RateLimitState,
)
from .patch import (
    ApplyPatchRequest,
    ApplyPatchResponse,
    CommitStrategy,
    GenerateDiffRequest,
    ParseDiffRequest,
    ParseDiffResponse,
    PatchSummary,
    PullRequestOptions,
)

__all__ = [
    # Diff models
    "Change",
    "ChangeKind",
    "FileChangeResult",
    "FileDiff",
    "GeneratedDiff",
    "Hunk",
    # GitHub models
    "CommitResult",
    "FileContent",
    "GitBlob",
    "GitCommit",
    "GitHubResponse",
    "GitRef",
    "GitTree",
    "GitTreeEntry",
    "PullRequest",
    "RateLimitState",
    # Patch API models
    "ApplyPatchRequest",
    "ApplyPatchResponse",
    "CommitStrategy",
    "GenerateDiffRequest",
    "ParseDiffRequest",
    "ParseDiffResponse",
    "PatchSummary",
    "PullRequestOptions",
]
