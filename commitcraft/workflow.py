"""Commit workflow: turn a generated draft into a commit."""

from __future__ import annotations

import logging
import subprocess
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, TextIO

from . import ui
from .draft import Draft
from .exceptions import ExecutionError, GitError
from .git import GitGateway

logger = logging.getLogger(__name__)

PROMPT = "$ "


class ExecutionMode(Enum):
    DRY_RUN = "dry_run"
    SHOW_COMMAND = "show_command"
    LEGACY = "legacy"
    AUTO_YES = "auto_yes"
    INTERACTIVE = "interactive"


def select_mode(
    dry_run: bool = False,
    show_command: bool = False,
    legacy: bool = False,
    yes: bool = False,
) -> ExecutionMode:
    """Pick the single active mode; earlier flags win over later ones."""
    if dry_run:
        return ExecutionMode.DRY_RUN
    if show_command:
        return ExecutionMode.SHOW_COMMAND
    if legacy:
        return ExecutionMode.LEGACY
    if yes:
        return ExecutionMode.AUTO_YES
    return ExecutionMode.INTERACTIVE


# Characters still special inside a double-quoted POSIX shell word.
_DOUBLE_QUOTE_SPECIALS = ("\\", '"', "$", "`")


def escape_double_quoted(text: str) -> str:
    """Escape ``text`` so ``"text"`` reaches the shell's argv unchanged."""
    for char in _DOUBLE_QUOTE_SPECIALS:
        text = text.replace(char, "\\" + char)
    return text


def _message_flag(text: str, review: bool) -> str:
    review_flag = " -e" if review else ""
    return f'git commit{review_flag} -m "{escape_double_quoted(text)}"'


def render_command(message: str, review: bool = False) -> str:
    """Shell command that commits ``message``.

    Multi-line messages use a quoted heredoc so nothing is expanded;
    single-line messages use ``-m`` with the double-quoted word escaped.
    """
    if "\n" in message:
        review_flag = " -e" if review else ""
        return f"git commit{review_flag} -F- <<'EOF'\n{message}\nEOF"
    return _message_flag(message, review)


def seed_command(message: str, review: bool = False) -> str:
    """Single editable line pre-filled in interactive mode.

    A multi-line message is reduced to its first line so the command fits on
    one editable line.
    """
    return _message_flag(message.splitlines()[0] if message else "", review)


class ReadlineEditor:
    """Line editor pre-filled with text, backed by GNU readline.

    Reads the process stdin, which must be a terminal.
    """

    def __init__(self) -> None:
        if not sys.stdin.isatty():
            raise ExecutionError("Interactive editing requires a terminal")
        try:
            import readline
        except ImportError as exc:
            raise ExecutionError(f"readline is unavailable: {exc}") from exc
        self._readline = readline

    def edit(self, initial: str, prompt: str = PROMPT) -> str:
        """Show ``initial`` for editing and return the submitted line.

        Raises ``KeyboardInterrupt`` / ``EOFError`` like ``input()``.
        """

        def _prefill() -> None:
            self._readline.insert_text(initial)
            self._readline.redisplay()

        self._readline.set_startup_hook(_prefill)
        try:
            return input(prompt)
        finally:
            self._readline.set_startup_hook(None)


def run_shell_command(command: str) -> str:
    """Run ``command`` through ``sh -c`` and return stdout.

    Raises:
        ExecutionError: with stderr when the command fails or cannot start.
    """
    try:
        completed = subprocess.run(
            ["sh", "-c", command],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise ExecutionError(f"Failed to execute command: {exc}") from exc
    if completed.returncode != 0:
        raise ExecutionError(completed.stderr or f"exit status {completed.returncode}")
    return completed.stdout


def ask_yes_no(question: str, default: bool = True) -> bool:
    suffix = "(Y/n)" if default else "(y/N)"
    while True:
        answer = input(f"{question} {suffix} ").strip().lower()
        if not answer:
            return default
        if answer in {"y", "yes"}:
            return True
        if answer in {"n", "no"}:
            return False


@dataclass
class WorkflowOptions:
    mode: ExecutionMode = ExecutionMode.INTERACTIVE
    force: bool = False
    review: bool = False


class CommitWorkflow:
    """Drive one draft through the selected execution mode.

    ``run`` returns the process exit code. A commit is attempted at most
    once and only after the mode's gate (confirmation, edit or ``--yes``).
    """

    def __init__(
        self,
        git: GitGateway,
        options: WorkflowOptions,
        *,
        confirm: Callable[[str], bool] = ask_yes_no,
        editor_factory: Callable[[], ReadlineEditor] = ReadlineEditor,
        shell: Callable[[str], str] = run_shell_command,
        out: Optional[TextIO] = None,
        err: Optional[TextIO] = None,
    ) -> None:
        self.git = git
        self.options = options
        self._confirm = confirm
        self._editor_factory = editor_factory
        self._shell = shell
        self._out = out or sys.stdout
        self._err = err or sys.stderr

    def _print(self, text: str = "", *codes: str) -> None:
        print(ui.paint(text, *codes, stream=self._out), file=self._out)

    def _error(self, label: str, detail: str) -> None:
        tag = ui.paint(label, ui.RED, ui.BOLD, stream=self._err)
        print(f"{tag} {detail}", file=self._err)

    def run(self, draft: Draft) -> int:
        mode = self.options.mode
        logger.debug("workflow mode=%s", mode.value)
        if mode is ExecutionMode.DRY_RUN:
            return self._dry_run(draft)
        if mode is ExecutionMode.SHOW_COMMAND:
            return self._show_command(draft)
        if mode is ExecutionMode.LEGACY:
            return self._legacy(draft, self.options.force)
        if mode is ExecutionMode.AUTO_YES:
            return self._commit(draft)
        return self._interactive(draft)

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------
    def _dry_run(self, draft: Draft) -> int:
        self._print()
        self._print("Generated Commit Message:", ui.BOLD)
        self._print("---")
        self._print(draft.message, ui.GREEN)
        self._print("---")
        return 0

    def _show_command(self, draft: Draft) -> int:
        self._print()
        self._print("Generated git command:", ui.BOLD)
        self._print(render_command(draft.message, self.options.review), ui.CYAN)
        return 0

    def _legacy(self, draft: Draft, force: bool) -> int:
        self._print()
        self._print("Proposed Commit:", ui.BOLD)
        self._print("---")
        self._print(draft.message, ui.GREEN)
        self._print("---")
        if not force:
            try:
                accepted = self._confirm("Do you want to commit with this message?")
            except (KeyboardInterrupt, EOFError):
                accepted = False
            if not accepted:
                self._print("Commit aborted by user.", ui.YELLOW)
                return 0
        return self._commit(draft)

    def _commit(self, draft: Draft) -> int:
        try:
            output = self.git.commit(draft.message, self.options.review)
        except GitError as exc:
            self._error("Error during commit:", str(exc))
            return 1
        self._print("Commit successful!", ui.GREEN)
        if output.strip():
            self._print(output.rstrip("\n"))
        return 0

    def _interactive(self, draft: Draft) -> int:
        message = draft.message
        self._print()
        self._print("📝 Generated commit message:", ui.BOLD)
        self._print(ui.RULE)
        self._print(message, ui.GREEN)
        self._print(ui.RULE)

        try:
            editor = self._editor_factory()
        except ExecutionError as exc:
            self._error("Error:", f"Failed to create interactive editor: {exc}")
            self._print("Falling back to legacy mode...")
            return self._legacy(draft, force=False)

        self._print()
        self._print("Edit the command below (or press Enter to execute):", ui.BOLD)
        try:
            edited = editor.edit(seed_command(message, self.options.review))
        except (KeyboardInterrupt, EOFError):
            self._print()
            self._print("Commit cancelled.", ui.YELLOW)
            return 0

        command = edited.strip()
        if not command:
            self._print("Commit cancelled.", ui.YELLOW)
            return 0

        self._print()
        self._print(f"Executing: {command}", ui.BOLD)
        try:
            output = self._shell(command)
        except ExecutionError as exc:
            self._error("Error:", str(exc).rstrip("\n"))
            return 1
        self._print("✓ Commit successful!", ui.GREEN, ui.BOLD)
        if output.strip():
            self._print(output.rstrip("\n"))
        return 0
