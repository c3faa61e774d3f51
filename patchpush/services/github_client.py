"""
GitHub Client - Resilient GitHub REST API access
Every remote call goes through safe_github_call for rate-limit and 5xx retries.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import time
from typing import Any, Awaitable, Callable
from urllib.parse import quote

import aiohttp

from patchpush.models.github import (
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
from patchpush.services.errors import GitHubAPIError, RateLimitError

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
USER_AGENT = "patchpush/0.1"
RATE_LIMIT_BUFFER_SECONDS = 1.0
LOW_RATE_LIMIT_WATERMARK = 100

RequestFn = Callable[[], Awaitable[GitHubResponse]]
SleepFn = Callable[[float], Awaitable[Any]]


def _int_header(response: GitHubResponse, name: str) -> int | None:
    value = response.header(name)
    if value is None or value == "":
        return None
    try:
        return int(float(value))
    except ValueError:
        return None


def extract_rate_limit(response: GitHubResponse) -> RateLimitState:
    """Read X-RateLimit-* headers from a response"""
    return RateLimitState(
        limit=_int_header(response, "X-RateLimit-Limit"),
        remaining=_int_header(response, "X-RateLimit-Remaining"),
        reset=_int_header(response, "X-RateLimit-Reset"),
    )


def encode_content(content: str | bytes) -> str:
    """Base64-encode text (as UTF-8) or raw bytes"""
    if isinstance(content, str):
        content = content.encode("utf-8")
    return base64.b64encode(content).decode("ascii")


async def safe_github_call(
    request_fn: RequestFn,
    max_retries: int = 3,
    *,
    sleep: SleepFn = asyncio.sleep,
    clock: Callable[[], float] = time.time,
    low_watermark: int = LOW_RATE_LIMIT_WATERMARK,
) -> Any:
    """Execute a GitHub request with rate limit handling and retry logic.

    - 403/429 with no remaining quota: wait until the reset time (+1s), retry.
    - 5xx: exponential backoff (1s, 2s, 4s, ...), retry.
    - Other 4xx: raise immediately.
    - Connection errors and timeouts: same backoff as 5xx.

    Returns the parsed JSON body of the first successful response. Sleeping
    happens via ``sleep`` so cancelling the calling task stops a pending retry.
    """
    last_error: GitHubAPIError | None = None

    for attempt in range(max_retries):
        is_last = attempt == max_retries - 1

        try:
            response = await request_fn()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            last_error = GitHubAPIError(
                f"GitHub API request failed: {str(e) or type(e).__name__}",
                None,
                details={"attempt": attempt + 1},
            )
            if is_last:
                raise last_error from e
            backoff = 2**attempt
            logger.warning(
                "[GitHubClient] Network error: %s. Retrying in %ss... (attempt %d/%d)",
                e,
                backoff,
                attempt + 1,
                max_retries,
            )
            await sleep(backoff)
            continue

        rate_limit = extract_rate_limit(response)

        if response.status in (403, 429) and rate_limit.remaining == 0:
            reset = rate_limit.reset if rate_limit.reset is not None else int(clock())
            wait_seconds = max(0.0, reset - clock()) + RATE_LIMIT_BUFFER_SECONDS
            last_error = RateLimitError(rate_limit.reset)
            if is_last:
                raise last_error
            logger.warning(
                "[GitHubClient] Rate limit exceeded. Waiting %ds until reset... (attempt %d/%d)",
                round(wait_seconds),
                attempt + 1,
                max_retries,
            )
            await sleep(wait_seconds)
            continue

        if response.status >= 500:
            last_error = GitHubAPIError(
                f"GitHub API server error: {response.body}",
                response.status,
                body=response.body,
                details={"attempt": attempt + 1},
            )
            if is_last:
                raise last_error
            backoff = 2**attempt
            logger.warning(
                "[GitHubClient] Server error (%d). Retrying in %ss... (attempt %d/%d)",
                response.status,
                backoff,
                attempt + 1,
                max_retries,
            )
            await sleep(backoff)
            continue

        if not response.ok:
            raise GitHubAPIError.from_response(response.status, response.body)

        if rate_limit.remaining is not None and rate_limit.remaining < low_watermark:
            logger.warning("[GitHubClient] Rate limit low: %d remaining", rate_limit.remaining)

        try:
            return response.json_body()
        except ValueError as e:
            raise GitHubAPIError(
                f"GitHub returned a non-JSON body: {e}",
                response.status,
                body=response.body,
            ) from e

    raise last_error or GitHubAPIError("GitHub API call failed after retries", None)


class GitHubClient:
    """GitHub REST v3 client bound to one access token"""

    def __init__(
        self,
        token: str,
        api_base: str = GITHUB_API_BASE,
        api_version: str = GITHUB_API_VERSION,
        max_retries: int = 3,
        timeout_seconds: float = 30,
        low_watermark: int = LOW_RATE_LIMIT_WATERMARK,
        sleep: SleepFn = asyncio.sleep,
    ):
        if not token:
            raise ValueError("GitHub token not configured")
        self.token = token
        self.api_base = api_base.rstrip("/")
        self.api_version = api_version
        self.max_retries = max_retries
        self.timeout_seconds = timeout_seconds
        self.low_watermark = low_watermark
        self._sleep = sleep

    @classmethod
    def from_config(cls, config: dict[str, Any], token: str | None = None) -> "GitHubClient":
        """Build a client from the ``github`` config section"""
        cfg = config.get("github", {})
        return cls(
            token=token or cfg.get("token", ""),
            api_base=cfg.get("apiBase", GITHUB_API_BASE),
            api_version=cfg.get("apiVersion", GITHUB_API_VERSION),
            max_retries=cfg.get("maxRetries", 3),
            timeout_seconds=cfg.get("timeoutSeconds", 30),
            low_watermark=cfg.get("rateLimitWarnThreshold", LOW_RATE_LIMIT_WATERMARK),
        )

    # ========== Transport ==========

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": self.api_version,
            "User-Agent": USER_AGENT,
        }

    def _repo_path(self, owner: str, repo: str, suffix: str = "") -> str:
        return f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}{suffix}"

    async def _send(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> GitHubResponse:
        """Perform one HTTP request and read the whole body"""
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.request(
                method,
                f"{self.api_base}{path}",
                json=payload,
                params=params,
                headers=self._headers(),
            ) as response:
                body = await response.text()
                return GitHubResponse(status=response.status, headers=dict(response.headers), body=body)

    async def _call(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> Any:
        return await safe_github_call(
            lambda: self._send(method, path, payload, params),
            self.max_retries,
            sleep=self._sleep,
            low_watermark=self.low_watermark,
        )

    # ========== Repository ==========

    async def get_repository(self, owner: str, repo: str) -> dict[str, Any]:
        return await self._call("GET", self._repo_path(owner, repo))

    async def get_default_branch(self, owner: str, repo: str) -> str:
        data = await self.get_repository(owner, repo)
        return data["default_branch"]

    async def get_rate_limit(self) -> RateLimitState:
        data = await self._call("GET", "/rate_limit")
        return RateLimitState.model_validate(data.get("rate", {}))

    # ========== Refs, trees, commits ==========

    async def get_ref(self, owner: str, repo: str, branch: str) -> GitRef:
        path = self._repo_path(owner, repo, f"/git/ref/heads/{quote(branch)}")
        return GitRef.model_validate(await self._call("GET", path))

    async def get_branch_sha(self, owner: str, repo: str, branch: str) -> str:
        ref = await self.get_ref(owner, repo, branch)
        return ref.object.sha

    async def create_ref(self, owner: str, repo: str, branch: str, sha: str) -> GitRef:
        data = await self._call(
            "POST",
            self._repo_path(owner, repo, "/git/refs"),
            {"ref": f"refs/heads/{branch}", "sha": sha},
        )
        return GitRef.model_validate(data)

    async def update_ref(self, owner: str, repo: str, branch: str, sha: str, force: bool = False) -> GitRef:
        """Move a branch. Without force, GitHub rejects non-fast-forward moves."""
        data = await self._call(
            "PATCH",
            self._repo_path(owner, repo, f"/git/refs/heads/{quote(branch)}"),
            {"sha": sha, "force": force},
        )
        return GitRef.model_validate(data)

    async def get_commit(self, owner: str, repo: str, sha: str) -> GitCommit:
        data = await self._call("GET", self._repo_path(owner, repo, f"/git/commits/{sha}"))
        return GitCommit.model_validate(data)

    async def create_blob(self, owner: str, repo: str, content: str | bytes) -> GitBlob:
        data = await self._call(
            "POST",
            self._repo_path(owner, repo, "/git/blobs"),
            {"content": encode_content(content), "encoding": "base64"},
        )
        return GitBlob.model_validate(data)

    async def get_blob(self, owner: str, repo: str, sha: str) -> GitBlob:
        """Blob by SHA; serves files up to 100 MB, unlike the contents API"""
        data = await self._call("GET", self._repo_path(owner, repo, f"/git/blobs/{sha}"))
        return GitBlob.model_validate(data)

    async def create_tree(self, owner: str, repo: str, base_tree: str, entries: list[GitTreeEntry]) -> GitTree:
        data = await self._call(
            "POST",
            self._repo_path(owner, repo, "/git/trees"),
            {
                "base_tree": base_tree,
                "tree": [entry.model_dump(exclude_none=True) for entry in entries],
            },
        )
        return GitTree.model_validate(data)

    async def create_commit(
        self,
        owner: str,
        repo: str,
        message: str,
        tree_sha: str,
        parents: list[str],
    ) -> GitCommit:
        data = await self._call(
            "POST",
            self._repo_path(owner, repo, "/git/commits"),
            {"message": message, "tree": tree_sha, "parents": parents},
        )
        return GitCommit.model_validate(data)

    # ========== Contents ==========

    def _contents_path(self, owner: str, repo: str, path: str) -> str:
        return self._repo_path(owner, repo, f"/contents/{quote(path.lstrip('/'))}")

    async def get_file_content(self, owner: str, repo: str, path: str, ref: str | None = None) -> FileContent:
        params = {"ref": ref} if ref else None
        data = await self._call("GET", self._contents_path(owner, repo, path), params=params)
        if not isinstance(data, dict):
            raise GitHubAPIError(f"{path} is not a file", 422, details={"path": path})
        return FileContent.model_validate(data)

    async def get_file_sha(self, owner: str, repo: str, path: str, ref: str) -> str | None:
        """Blob SHA of an existing file, None when the file does not exist"""
        try:
            existing = await self.get_file_content(owner, repo, path, ref)
        except GitHubAPIError as e:
            if e.status_code == 404:
                return None
            raise
        return existing.sha

    async def put_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: str | bytes,
        branch: str,
        message: str,
        sha: str | None = None,
    ) -> dict[str, Any]:
        """Create or update a file; ``sha`` is required to update"""
        payload = {"message": message, "content": encode_content(content), "branch": branch}
        if sha:
            payload["sha"] = sha
        return await self._call("PUT", self._contents_path(owner, repo, path), payload)

    # ========== Pull requests and issues ==========

    async def create_pull_request(
        self,
        owner: str,
        repo: str,
        title: str,
        body: str,
        head: str,
        base: str,
        draft: bool = True,
    ) -> PullRequest:
        data = await self._call(
            "POST",
            self._repo_path(owner, repo, "/pulls"),
            {"title": title, "body": body, "head": head, "base": base, "draft": draft},
        )
        return PullRequest.model_validate(data)

    async def add_labels(self, owner: str, repo: str, number: int, labels: list[str]) -> list[dict[str, Any]]:
        return await self._call(
            "POST",
            self._repo_path(owner, repo, f"/issues/{number}/labels"),
            {"labels": labels},
        )

    async def post_issue_comment(self, owner: str, repo: str, number: int, body: str) -> dict[str, Any]:
        return await self._call(
            "POST",
            self._repo_path(owner, repo, f"/issues/{number}/comments"),
            {"body": body},
        )
