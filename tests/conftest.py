"""Shared fixtures: an in-memory GitHub behind GitHubClient's transport."""

import base64
import json

import pytest

from patchpush.models.github import GitHubResponse
from patchpush.services.config_manager import ConfigManager
from patchpush.services.github_client import GitHubClient


def make_response(status, body=None, headers=None):
    text = "" if body is None else (body if isinstance(body, str) else json.dumps(body))
    return GitHubResponse(status=status, headers=headers or {}, body=text)


class RecordingSleep:
    """Async sleep stand-in that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


class FakeGitHubClient(GitHubClient):
    """GitHubClient whose HTTP layer is a dict-backed repository."""

    def __init__(self, files=None, **kwargs):
        self.sleep = RecordingSleep()
        super().__init__("test-token", sleep=self.sleep, **kwargs)
        self.files = dict(files or {})
        self.branches = {"main": "c0"}
        self.blobs = {}
        self.trees = []
        self.commits = []
        self.calls = []
        # (method, route) -> list of canned responses consumed before routing
        self.overrides = {}
        self.reject_ref_update = False
        # paths served like files over 1 MB: contents API without a body
        self.uninlined = set()
        self.comments = []

    def fail(self, method, route, *responses):
        self.overrides.setdefault((method, route), []).extend(responses)

    async def _send(self, method, path, payload=None, params=None):
        if path.startswith("/repos/"):
            parts = path.split("/", 4)
            route = parts[4] if len(parts) > 4 else ""
        else:
            route = path.lstrip("/")
        self.calls.append((method, route, payload))
        queued = self.overrides.get((method, route))
        if queued:
            return queued.pop(0)
        return self._route(method, route, payload or {})

    def _route(self, method, route, payload):
        if route.startswith("contents/"):
            file_path = route[len("contents/"):]
            if method == "GET":
                if file_path not in self.files:
                    return make_response(404, {"message": "Not Found"})
                raw = self._raw(file_path)
                inline = file_path not in self.uninlined
                return make_response(200, {
                    "path": file_path,
                    "sha": f"sha-{file_path}",
                    "size": len(raw),
                    "encoding": "base64" if inline else "none",
                    "content": base64.b64encode(raw).decode() if inline else "",
                })
            if method == "PUT":
                if file_path in self.files and payload.get("sha") != f"sha-{file_path}":
                    return make_response(409, {"message": f"{file_path} does not match"})
                self.files[file_path] = base64.b64decode(payload["content"]).decode()
                return make_response(201, {
                    "content": {"path": file_path, "sha": f"sha-{file_path}"},
                    "commit": {"sha": "c-put", "message": payload["message"]},
                })

        if route.startswith("git/ref/heads/") and method == "GET":
            branch = route[len("git/ref/heads/"):]
            if branch not in self.branches:
                return make_response(404, {"message": "Not Found"})
            return make_response(200, self._ref(branch))

        if route == "git/refs" and method == "POST":
            branch = payload["ref"][len("refs/heads/"):]
            if branch in self.branches:
                return make_response(422, {"message": "Reference already exists"})
            self.branches[branch] = payload["sha"]
            return make_response(201, self._ref(branch))

        if route.startswith("git/refs/heads/") and method == "PATCH":
            branch = route[len("git/refs/heads/"):]
            if self.reject_ref_update:
                return make_response(422, {"message": "Update is not a fast forward"})
            self.branches[branch] = payload["sha"]
            return make_response(200, self._ref(branch))

        if route.startswith("git/commits/") and method == "GET":
            sha = route[len("git/commits/"):]
            return make_response(200, {"sha": sha, "message": "base", "tree": {"sha": f"tree-{sha}"}})

        if route.startswith("git/blobs/") and method == "GET":
            sha = route[len("git/blobs/"):]
            file_path = sha[len("sha-"):]
            if file_path not in self.files:
                return make_response(404, {"message": "Not Found"})
            raw = self._raw(file_path)
            return make_response(200, {
                "sha": sha,
                "size": len(raw),
                "encoding": "base64",
                "content": base64.b64encode(raw).decode(),
            })

        if route == "git/blobs" and method == "POST":
            sha = f"blob-{len(self.blobs) + 1}"
            self.blobs[sha] = base64.b64decode(payload["content"]).decode()
            return make_response(201, {"sha": sha})

        if route == "git/trees" and method == "POST":
            self.trees.append(payload)
            return make_response(201, {"sha": f"tree-new-{len(self.trees)}", "tree": []})

        if route == "git/commits" and method == "POST":
            self.commits.append(payload)
            return make_response(201, {"sha": f"commit-new-{len(self.commits)}", "message": payload["message"]})

        if route == "pulls" and method == "POST":
            return make_response(201, {
                "number": 7,
                "html_url": "https://github.com/acme/widgets/pull/7",
                "title": payload["title"],
                "body": payload["body"],
                "state": "open",
                "draft": payload["draft"],
            })

        if route.startswith("issues/") and route.endswith("/labels") and method == "POST":
            return make_response(200, [{"name": name} for name in payload["labels"]])

        if route.startswith("issues/") and route.endswith("/comments") and method == "POST":
            self.comments.append((int(route.split("/")[1]), payload["body"]))
            return make_response(201, {"id": len(self.comments), "body": payload["body"]})

        if route == "" and method == "GET":
            return make_response(200, {"full_name": "acme/widgets", "default_branch": "main"})

        if route == "rate_limit" and method == "GET":
            return make_response(200, {"rate": {"limit": 5000, "remaining": 4999, "reset": 0}})

        return make_response(404, {"message": f"No route for {method} {route}"})

    def _raw(self, file_path):
        content = self.files[file_path]
        return content if isinstance(content, bytes) else content.encode()

    def _ref(self, branch):
        return {
            "ref": f"refs/heads/{branch}",
            "url": "",
            "object": {"sha": self.branches[branch], "type": "commit", "url": ""},
        }


@pytest.fixture
def fake_github():
    return FakeGitHubClient(files={"src/app.py": "import os\n\nprint('hi')"})


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    """Isolated ConfigManager singleton backed by a temp directory."""
    monkeypatch.setenv("PATCHPUSH_CONFIG_DIR", str(tmp_path))
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    ConfigManager.reset_instance()
    yield tmp_path
    ConfigManager.reset_instance()
