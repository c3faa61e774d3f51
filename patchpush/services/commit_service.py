"""
Commit Service - Write reconstructed files to a GitHub branch

Two strategies:
- sequential: one contents-API commit per file. Files succeed or fail
  independently, so a run can end half applied; inspect the results.
- atomic: one tree and one commit for all files, published by a non-force
  ref update. Either the branch moves to the new commit or nothing changes.
"""

from __future__ import annotations

import asyncio
import binascii
import logging
from typing import Any

from patchpush.models.diff import FileChangeResult
from patchpush.models.github import CommitResult, GitRef, GitTreeEntry, PullRequest
from patchpush.models.patch import (
    ApplyPatchRequest,
    ApplyPatchResponse,
    CommitStrategy,
    PatchSummary,
)
from patchpush.services.diff_parser import DiffParser
from patchpush.services.errors import GitHubAPIError, UndecodableContentError
from patchpush.services.github_client import GitHubClient
from patchpush.services.patch_reconstructor import MAX_FILE_SIZE, build_file_changes, skipped_paths

logger = logging.getLogger(__name__)

DEFAULT_COMMIT_MESSAGE = "Apply patch"
DEFAULT_FILE_MODE = "100644"


# ═══════════════════════════════════════════════════════════════════════════
# Sequential strategy
# ═══════════════════════════════════════════════════════════════════════════


async def apply_patch(
    client: GitHubClient,
    owner: str,
    repo: str,
    branch: str,
    file_changes: list[FileChangeResult],
    commit_message_prefix: str = DEFAULT_COMMIT_MESSAGE,
) -> list[CommitResult]:
    """Commit each file separately, in order.

    Errors are recorded per file and never abort the remaining files.
    """
    results: list[CommitResult] = []
    total = len(file_changes)

    for position, change in enumerate(file_changes, start=1):
        logger.info("[CommitService] [%d/%d] Committing %s...", position, total, change.path)
        try:
            sha = await client.get_file_sha(owner, repo, change.path, branch)
            await client.put_file(
                owner,
                repo,
                change.path,
                change.new_content,
                branch,
                f"{commit_message_prefix}: {change.path}",
                sha=sha,
            )
        except GitHubAPIError as e:
            logger.error("[CommitService] Failed to commit %s: %s", change.path, e.message)
            results.append(
                CommitResult(
                    path=change.path,
                    success=False,
                    error=e.message,
                    status_code=e.status_code,
                    is_new=change.is_new,
                    is_truncated=change.is_truncated,
                )
            )
            continue

        results.append(
            CommitResult(
                path=change.path,
                success=True,
                is_new=change.is_new,
                is_truncated=change.is_truncated,
            )
        )

    return results


def summarize_results(results: list[CommitResult]) -> PatchSummary:
    failures = [r for r in results if not r.success]
    return PatchSummary(
        total=len(results),
        successful=len(results) - len(failures),
        failed=len(failures),
        failures=failures,
    )


def log_summary(summary: PatchSummary) -> None:
    logger.info(
        "[CommitService] Patch summary: %d successful, %d failed, %d total",
        summary.successful,
        summary.failed,
        summary.total,
    )
    for failure in summary.failures:
        logger.info(
            "[CommitService]   %s: %s (status %s)",
            failure.path,
            failure.error,
            failure.status_code,
        )


def failure_report(summary: PatchSummary) -> str:
    """Markdown list of files the sequential strategy could not commit"""
    lines = [f"{summary.failed} of {summary.total} file(s) were not committed:", ""]
    for failure in summary.failures:
        lines.append(f"- `{failure.path}`: {failure.error} (status {failure.status_code})")
    return "\n".join(lines)


# ═══════════════════════════════════════════════════════════════════════════
# Atomic strategy
# ═══════════════════════════════════════════════════════════════════════════


async def commit_files(
    client: GitHubClient,
    owner: str,
    repo: str,
    branch: str,
    files: list[FileChangeResult],
    message: str = DEFAULT_COMMIT_MESSAGE,
) -> GitRef:
    """Commit all files as a single commit on top of the branch head.

    Any failure propagates. Blobs, trees and commits created before the
    failure stay unreferenced; the branch itself is only touched by the
    final, non-force ref update.
    """
    parent_sha = await client.get_branch_sha(owner, repo, branch)
    parent = await client.get_commit(owner, repo, parent_sha)
    base_tree = parent.tree.sha if parent.tree else parent_sha

    entries = []
    for change in files:
        blob = await client.create_blob(owner, repo, change.new_content)
        entries.append(GitTreeEntry(path=change.path, mode=DEFAULT_FILE_MODE, type="blob", sha=blob.sha))

    tree = await client.create_tree(owner, repo, base_tree, entries)
    commit = await client.create_commit(owner, repo, message, tree.sha, [parent_sha])
    ref = await client.update_ref(owner, repo, branch, commit.sha, force=False)

    logger.info("[CommitService] Committed %d file(s) to %s as %s", len(files), branch, commit.sha[:7])
    return ref


# ═══════════════════════════════════════════════════════════════════════════
# Branches and pull requests
# ═══════════════════════════════════════════════════════════════════════════


async def create_branch(client: GitHubClient, owner: str, repo: str, new_branch: str, base_branch: str) -> GitRef:
    """Create ``new_branch`` at the current head of ``base_branch``"""
    base_sha = await client.get_branch_sha(owner, repo, base_branch)
    ref = await client.create_ref(owner, repo, new_branch, base_sha)
    logger.info("[CommitService] Created branch %s from %s", new_branch, base_branch)
    return ref


async def create_draft_pull_request(
    client: GitHubClient,
    owner: str,
    repo: str,
    title: str,
    body: str,
    head: str,
    base: str,
    labels: list[str] | None = None,
) -> PullRequest:
    pr = await client.create_pull_request(owner, repo, title, body, head, base, draft=True)
    if labels:
        await client.add_labels(owner, repo, pr.number, labels)
    logger.info("[CommitService] Created draft PR: %s", pr.html_url)
    return pr


# ═══════════════════════════════════════════════════════════════════════════
# Facade
# ═══════════════════════════════════════════════════════════════════════════


class PatchService:
    """Apply a unified diff to a GitHub branch"""

    def __init__(self, client: GitHubClient, config: dict[str, Any] | None = None):
        self.client = client
        self.config = config or {}
        self.parser = DiffParser()

    def _patch_config(self) -> dict[str, Any]:
        return self.config.get("patch", {})

    async def fetch_original(self, owner: str, repo: str, path: str, ref: str) -> str:
        """Current text of a file on ``ref``, empty when it does not exist.

        Files the contents API does not inline are read through the blob API.
        Raises UndecodableContentError when the file is not UTF-8 text.
        """
        try:
            existing = await self.client.get_file_content(owner, repo, path, ref)
        except GitHubAPIError as e:
            if e.status_code == 404:
                return ""
            raise

        try:
            if existing.is_inline:
                return existing.decoded_text()
            logger.info("[CommitService] %s not inlined (%s), reading blob %s", path, existing.encoding, existing.sha)
            blob = await self.client.get_blob(owner, repo, existing.sha)
            return blob.decoded_text()
        except (UnicodeDecodeError, binascii.Error) as e:
            raise UndecodableContentError(path, str(e)) from e

    async def build_file_changes(
        self,
        owner: str,
        repo: str,
        branch: str,
        diff_text: str,
        strict: bool = False,
    ) -> tuple[list[FileChangeResult], list[str]]:
        """Parse the diff and reconstruct files against the branch contents"""
        file_diffs = self.parser.parse(diff_text)
        skipped = skipped_paths(file_diffs)

        originals: dict[str, str] = {}
        writable = []
        for file_diff in file_diffs:
            if file_diff.is_new or file_diff.is_deleted or file_diff.is_binary:
                writable.append(file_diff)
                continue
            source = file_diff.renamed_from or file_diff.path
            try:
                originals[file_diff.path] = await self.fetch_original(owner, repo, source, branch)
            except UndecodableContentError as e:
                logger.warning("[CommitService] Skipping %s: %s", file_diff.path, e.message)
                skipped.append(f"{file_diff.path}: not UTF-8 text")
                continue
            writable.append(file_diff)

        max_size = self._patch_config().get("maxFileSize", MAX_FILE_SIZE)
        changes = build_file_changes(writable, originals, max_size=max_size, strict=strict)
        return changes, skipped

    async def apply(self, request: ApplyPatchRequest) -> ApplyPatchResponse:
        """Apply a diff, optionally bounded by ``request.timeout_seconds``"""
        if request.timeout_seconds:
            return await asyncio.wait_for(self._apply(request), timeout=request.timeout_seconds)
        return await self._apply(request)

    async def _apply(self, request: ApplyPatchRequest) -> ApplyPatchResponse:
        cfg = self._patch_config()
        strategy = request.strategy or CommitStrategy(cfg.get("strategy", CommitStrategy.SEQUENTIAL.value))
        message = request.commit_message or cfg.get("commitMessagePrefix", DEFAULT_COMMIT_MESSAGE)
        strict = request.strict if request.strict is not None else cfg.get("strictContext", False)
        owner, repo, branch = request.owner, request.repo, request.branch

        logger.info("[CommitService] Applying patch to %s/%s on branch %s (%s)", owner, repo, branch, strategy.value)

        if request.base_branch:
            await create_branch(self.client, owner, repo, branch, request.base_branch)

        changes, skipped = await self.build_file_changes(owner, repo, branch, request.diff, strict=strict)
        response = ApplyPatchResponse(strategy=strategy, branch=branch, changes=changes, skipped=skipped)

        if not changes:
            logger.info("[CommitService] No file changes detected in diff")
            return response

        if strategy == CommitStrategy.ATOMIC:
            response.ref = await commit_files(self.client, owner, repo, branch, changes, message)
        else:
            response.results = await apply_patch(self.client, owner, repo, branch, changes, message)
            response.summary = summarize_results(response.results)
            log_summary(response.summary)

        pr_options = request.pull_request
        if pr_options:
            base = pr_options.base or await self.client.get_default_branch(owner, repo)
            response.pull_request = await create_draft_pull_request(
                self.client,
                owner,
                repo,
                pr_options.title,
                pr_options.body,
                branch,
                base,
                pr_options.labels,
            )
            if response.summary and response.summary.failed:
                await self.client.post_issue_comment(
                    owner, repo, response.pull_request.number, failure_report(response.summary)
                )

        return response
