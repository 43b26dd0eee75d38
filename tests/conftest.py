from __future__ import annotations

import json
import shutil
import subprocess
from collections.abc import Generator
from pathlib import Path

import httpx
import pytest

from commitcraft.config import ProviderConfig
from commitcraft.exceptions import GitError

PAYLOAD = {
    "title": "feat: add parser",
    "description": "Adds a new diff parser.\nHandles edge cases.",
}


@pytest.fixture(autouse=True)
def isolated_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Generator[None, None, None]:
    # Keep the user's real config and keys out of every test.
    monkeypatch.setenv("COMMITCRAFT_CONFIG_HOME", str(tmp_path / "config"))
    for name in (
        "OPENAI_API_KEY",
        "ANTHROPIC_API_KEY",
        "GOOGLE_API_KEY",
        "COMMITCRAFT_REQUEST_TIMEOUT",
        "COMMITCRAFT_OPENAI_ENDPOINT",
        "COMMITCRAFT_GEMINI_ENDPOINT",
        "COMMITCRAFT_ANTHROPIC_ENDPOINT",
        "OPENAI_BASE_URL",
        "NO_COLOR",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GEMINI_API_KEY", "test-gemini-key")
    yield


@pytest.fixture
def payload() -> dict:
    return dict(PAYLOAD)


@pytest.fixture
def provider_config() -> ProviderConfig:
    return ProviderConfig(api_key="sk-secret-123", model="test-model")


class MockBackend:
    """httpx mock transport returning one canned response per request."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.body: object = {}
        self.error: Exception | None = None

    def respond(self, body: object, status_code: int = 200) -> "MockBackend":
        self.body = body
        self.status_code = status_code
        return self

    def fail(self, error: Exception) -> "MockBackend":
        self.error = error
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if isinstance(self.body, str):
            return httpx.Response(self.status_code, text=self.body)
        return httpx.Response(self.status_code, json=self.body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    @property
    def last_json(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def backend() -> MockBackend:
    return MockBackend()


class FakeGit:
    """In-memory git gateway recording commit calls."""

    def __init__(self) -> None:
        self.diff = "diff --git a/parser.py b/parser.py\n+def parse(): ..."
        self.fail_commit: str | None = None
        self.commits: list[tuple[str, bool]] = []

    def get_staged_diff(self) -> str:
        if not self.diff:
            raise GitError(
                "There are no staged files to commit. Try running 'git add'."
            )
        return self.diff

    def get_staged_files(self) -> list[str]:
        return ["src/parser.py", "README.md"]

    def get_repo_info(self) -> tuple[str, str]:
        return ("demo", "main")

    def commit(self, message: str, review: bool = False) -> str:
        self.commits.append((message, review))
        if self.fail_commit:
            raise GitError(self.fail_commit)
        return "[main abc1234] feat: add parser\n 1 file changed"


@pytest.fixture
def fake_git() -> FakeGit:
    return FakeGit()


@pytest.fixture
def git_repo(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Real repository with one staged file; cwd is moved into it."""
    if shutil.which("git") is None:
        pytest.skip("git executable not available")
    repo = tmp_path / "repo"
    repo.mkdir()
    # Isolate from the user's global and system git config.
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(tmp_path / "gitconfig"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    for var in ("GIT_AUTHOR_NAME", "GIT_COMMITTER_NAME"):
        monkeypatch.setenv(var, "Test User")
    for var in ("GIT_AUTHOR_EMAIL", "GIT_COMMITTER_EMAIL"):
        monkeypatch.setenv(var, "test@example.com")
    subprocess.run(["git", "init", "-q"], cwd=repo, check=True)
    (repo / "parser.py").write_text("def parse():\n    return []\n")
    subprocess.run(["git", "add", "parser.py"], cwd=repo, check=True)
    monkeypatch.chdir(repo)
    return repo


@pytest.fixture
def last_commit_message(git_repo: Path):
    """Reader for the message of the repository's latest commit."""

    def read() -> str:
        result = subprocess.run(
            ["git", "log", "-1", "--format=%B"],
            cwd=git_repo,
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.rstrip("\n")

    return read
