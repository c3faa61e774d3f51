"""Services module - Business logic layer"""

from .commit_service import (
    PatchService,
    apply_patch,
    commit_files,
    create_branch,
    create_draft_pull_request,
    summarize_results,
)
from .config_manager import ConfigManager
from .diff_generator import DiffGenerator
from .diff_parser import DiffParser, parse_unified_diff
from .errors import (
    GitHubAPIError,
    InvalidInputError,
    PatchConflictError,
    PatchPushError,
    RateLimitError,
    UndecodableContentError,
)
from .github_client import GitHubClient, safe_github_call
from .patch_reconstructor import apply_unified_diff, reconstruct_file_content, truncate_content

__all__ = [
    "PatchService",
    "apply_patch",
    "commit_files",
    "create_branch",
    "create_draft_pull_request",
    "summarize_results",
    "ConfigManager",
    "DiffGenerator",
    "DiffParser",
    "parse_unified_diff",
    "GitHubAPIError",
    "InvalidInputError",
    "PatchConflictError",
    "PatchPushError",
    "RateLimitError",
    "UndecodableContentError",
    "GitHubClient",
    "safe_github_call",
    "apply_unified_diff",
    "reconstruct_file_content",
    "truncate_content",
]
