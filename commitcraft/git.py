"""Git operations for commitcraft."""

import logging
import subprocess
import threading
from pathlib import Path
from typing import Optional, Protocol

from .exceptions import GitError

logger = logging.getLogger(__name__)


class GitGateway(Protocol):
    """The git queries and commit call the workflow depends on."""

    def get_staged_diff(self) -> str: ...

    def get_staged_files(self) -> list[str]: ...

    def get_repo_info(self) -> tuple[str, str]: ...

    def commit(self, message: str, review: bool = False) -> str: ...


def is_git_repository(path: Optional[Path] = None) -> bool:
    """Return True when ``path`` (default: cwd) is inside a work tree."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--is-inside-work-tree"],
            cwd=path,
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError:
        return False
    return result.returncode == 0


class GitRepo:
    """Handles Git repository operations."""

    def __init__(self, repo_path: Optional[str] = None) -> None:
        self.repo_path = Path(repo_path or ".")
        if not self._is_git_repo():
            raise GitError("Not inside a git repository.")

    def _is_git_repo(self) -> bool:
        return is_git_repository(self.repo_path)

    def _run_git_command(self, args: list[str], strip: bool = True) -> str:
        """Run a Git command and return its output."""
        try:
            result = subprocess.run(
                ["git"] + args,
                cwd=self.repo_path,
                capture_output=True,
                text=True,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            cmd = " ".join(args)
            raise GitError(f"'git {cmd}' failed: {e.stderr}") from e
        except FileNotFoundError as exc:
            raise GitError("Git command not found. Please install Git.") from exc
        return result.stdout.strip() if strip else result.stdout

    def get_staged_diff(self) -> str:
        """Get the diff of staged changes.

        Raises:
            GitError: if nothing is staged.
        """
        diff = self._run_git_command(["diff", "--staged"])
        if not diff:
            raise GitError(
                "There are no staged files to commit. Try running 'git add'."
            )
        return diff

    def get_staged_files(self) -> list[str]:
        output = self._run_git_command(["diff", "--staged", "--name-only"])
        return [line for line in output.splitlines() if line.strip()]

    def get_repo_info(self) -> tuple[str, str]:
        """Return ``(repository directory name, current branch)``."""
        branch = self._run_git_command(["rev-parse", "--abbrev-ref", "HEAD"])
        root = self._run_git_command(["rev-parse", "--show-toplevel"])
        repo_name = Path(root).name if root else "unknown"
        return repo_name or "unknown", branch

    def commit(self, message: str, review: bool = False) -> str:
        """Create a commit, piping ``message`` through ``git commit -F -``.

        With ``review`` the commit editor is opened before finalising and
        output goes straight to the terminal. The message is written from a
        separate thread while this one collects output and waits, so large
        messages cannot deadlock on the pipes.

        Returns:
            Captured stdout of ``git commit``.

        Raises:
            GitError: if git cannot be spawned or the commit fails.
        """
        args = ["git", "commit"]
        if review:
            args.append("-e")
        args += ["-F", "-"]
        capture = None if review else subprocess.PIPE
        try:
            proc = subprocess.Popen(
                args,
                cwd=self.repo_path,
                stdin=subprocess.PIPE,
                stdout=capture,
                stderr=capture,
                text=True,
            )
        except OSError as exc:
            raise GitError(f"Failed to spawn git commit process: {exc}") from exc

        stdin = proc.stdin
        # communicate() must not touch stdin; the writer thread owns it.
        proc.stdin = None
        writer = threading.Thread(
            target=_write_and_close, args=(stdin, message), daemon=True
        )
        writer.start()
        stdout, stderr = proc.communicate()
        writer.join()
        logger.debug("git commit exited with %s", proc.returncode)

        if proc.returncode != 0:
            raise GitError(f"Git commit failed:\n{stderr or ''}")
        return stdout or ""


def _write_and_close(stream, message: str) -> None:
    try:
        with stream:
            stream.write(message)
    except BrokenPipeError:
        # git exited before reading everything; its exit status reports why.
        logger.debug("git commit closed stdin early")
