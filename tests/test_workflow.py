import io
import subprocess
import sys

import pytest

from commitcraft.draft import Draft
from commitcraft.exceptions import ExecutionError
from commitcraft.workflow import (
    CommitWorkflow,
    ExecutionMode,
    ReadlineEditor,
    WorkflowOptions,
    escape_double_quoted,
    render_command,
    run_shell_command,
    seed_command,
    select_mode,
)

DRAFT = Draft("feat: add parser", "Adds a new diff parser.\nHandles edge cases.")


class ScriptedEditor:
    """Editor double returning a fixed answer (or raising it)."""

    def __init__(self, answer):
        self.answer = answer
        self.seeded = None

    def edit(self, initial, prompt="$ "):
        self.seeded = initial
        if isinstance(self.answer, BaseException):
            raise self.answer
        return self.answer


def make_workflow(git, mode, *, force=False, review=False, **kwargs):
    out, err = io.StringIO(), io.StringIO()
    workflow = CommitWorkflow(
        git,
        WorkflowOptions(mode=mode, force=force, review=review),
        out=out,
        err=err,
        **kwargs,
    )
    return workflow, out, err


@pytest.mark.parametrize(
    "flags, expected",
    [
        ({}, ExecutionMode.INTERACTIVE),
        ({"yes": True}, ExecutionMode.AUTO_YES),
        ({"legacy": True, "yes": True}, ExecutionMode.LEGACY),
        ({"show_command": True, "legacy": True}, ExecutionMode.SHOW_COMMAND),
        (
            {"dry_run": True, "show_command": True, "legacy": True, "yes": True},
            ExecutionMode.DRY_RUN,
        ),
    ],
)
def test_select_mode_precedence(flags, expected):
    assert select_mode(**flags) is expected


def test_render_command_multiline_uses_quoted_heredoc():
    command = render_command(DRAFT.message)
    assert command == (
        "git commit -F- <<'EOF'\n"
        "feat: add parser\n\nAdds a new diff parser.\nHandles edge cases.\n"
        "EOF"
    )


def test_render_command_single_line_escapes_quotes():
    assert render_command('fix: handle "quoted" names') == (
        'git commit -m "fix: handle \\"quoted\\" names"'
    )


def test_render_command_review_flag():
    assert render_command("fix: x", review=True) == 'git commit -e -m "fix: x"'
    assert render_command("fix: x\n\nbody", review=True).startswith(
        "git commit -e -F- <<'EOF'\n"
    )


def test_seed_command_keeps_only_title_for_multiline():
    assert seed_command(DRAFT.message) == 'git commit -m "feat: add parser"'
    assert seed_command("fix: x", review=True) == 'git commit -e -m "fix: x"'


def test_escape_double_quoted_neutralises_shell_specials():
    assert escape_double_quoted('a "b" `c` $(d) \\e') == (
        'a \\"b\\" \\`c\\` \\$(d) \\\\e'
    )


def test_seed_command_escapes_title_of_multiline_draft():
    message = 'fix: handle "quoted" names in `echo hi` path\n\nBody.'
    assert seed_command(message) == (
        'git commit -m "fix: handle \\"quoted\\" names in \\`echo hi\\` path"'
    )


def test_render_command_single_line_escapes_substitutions():
    assert render_command("fix: keep $HOME and `pwd` literal") == (
        'git commit -m "fix: keep \\$HOME and \\`pwd\\` literal"'
    )


def test_untouched_seed_commits_title_verbatim(git_repo, last_commit_message):
    title = 'fix: handle "quoted" names in `echo PWNED` path $(id) \\n'
    command = seed_command(title + "\n\nBody line.")

    run_shell_command(command)

    assert last_commit_message() == title


def test_dry_run_prints_full_message_without_committing(fake_git):
    workflow, out, _ = make_workflow(fake_git, ExecutionMode.DRY_RUN)
    assert workflow.run(DRAFT) == 0
    text = out.getvalue()
    assert "Generated Commit Message:" in text
    assert "Adds a new diff parser." in text
    assert "Handles edge cases." in text
    assert fake_git.commits == []


def test_show_command_prints_without_committing(fake_git):
    workflow, out, _ = make_workflow(fake_git, ExecutionMode.SHOW_COMMAND)
    assert workflow.run(DRAFT) == 0
    assert "git commit -F- <<'EOF'" in out.getvalue()
    assert fake_git.commits == []


def test_output_is_uncoloured_off_tty(fake_git):
    workflow, out, _ = make_workflow(fake_git, ExecutionMode.DRY_RUN)
    workflow.run(DRAFT)
    assert "\033[" not in out.getvalue()


def test_legacy_confirmed_commits(fake_git):
    workflow, out, _ = make_workflow(
        fake_git, ExecutionMode.LEGACY, confirm=lambda q: True
    )
    assert workflow.run(DRAFT) == 0
    assert fake_git.commits == [(DRAFT.message, False)]
    assert "Commit successful!" in out.getvalue()
    assert "[main abc1234]" in out.getvalue()


def test_legacy_declined_aborts(fake_git):
    workflow, out, _ = make_workflow(
        fake_git, ExecutionMode.LEGACY, confirm=lambda q: False
    )
    assert workflow.run(DRAFT) == 0
    assert fake_git.commits == []
    assert "Commit aborted by user." in out.getvalue()


def test_legacy_interrupt_counts_as_decline(fake_git):
    def interrupted(question):
        raise KeyboardInterrupt

    workflow, out, _ = make_workflow(fake_git, ExecutionMode.LEGACY, confirm=interrupted)
    assert workflow.run(DRAFT) == 0
    assert fake_git.commits == []


def test_legacy_force_skips_confirmation(fake_git):
    def never(question):
        raise AssertionError("confirmation should be skipped")

    workflow, _, _ = make_workflow(
        fake_git, ExecutionMode.LEGACY, force=True, confirm=never
    )
    assert workflow.run(DRAFT) == 0
    assert len(fake_git.commits) == 1


def test_auto_yes_commits_with_review_flag(fake_git):
    workflow, _, _ = make_workflow(fake_git, ExecutionMode.AUTO_YES, review=True)
    assert workflow.run(DRAFT) == 0
    assert fake_git.commits == [(DRAFT.message, True)]


def test_commit_failure_reports_and_exits_nonzero(fake_git):
    fake_git.fail_commit = "Git commit failed:\nnothing to commit"
    workflow, _, err = make_workflow(fake_git, ExecutionMode.AUTO_YES)
    assert workflow.run(DRAFT) == 1
    assert "Error during commit:" in err.getvalue()
    assert "nothing to commit" in err.getvalue()


def test_interactive_runs_edited_command(fake_git):
    editor = ScriptedEditor('git commit -m "feat: add fast parser"')
    commands = []

    def shell(command):
        commands.append(command)
        return "[main abc1234] feat: add fast parser\n"

    workflow, out, _ = make_workflow(
        fake_git,
        ExecutionMode.INTERACTIVE,
        editor_factory=lambda: editor,
        shell=shell,
    )
    assert workflow.run(DRAFT) == 0
    assert editor.seeded == 'git commit -m "feat: add parser"'
    assert commands == ['git commit -m "feat: add fast parser"']
    assert "✓ Commit successful!" in out.getvalue()
    assert fake_git.commits == []


@pytest.mark.parametrize("answer", ["", "   ", KeyboardInterrupt(), EOFError()])
def test_interactive_cancel_runs_nothing(fake_git, answer):
    def shell(command):
        raise AssertionError("nothing should run")

    workflow, out, _ = make_workflow(
        fake_git,
        ExecutionMode.INTERACTIVE,
        editor_factory=lambda: ScriptedEditor(answer),
        shell=shell,
    )
    assert workflow.run(DRAFT) == 0
    assert "Commit cancelled." in out.getvalue()
    assert fake_git.commits == []


def test_interactive_shell_failure_exits_nonzero(fake_git):
    def shell(command):
        raise ExecutionError("fatal: bad revision\n")

    workflow, _, err = make_workflow(
        fake_git,
        ExecutionMode.INTERACTIVE,
        editor_factory=lambda: ScriptedEditor("git commit --bogus"),
        shell=shell,
    )
    assert workflow.run(DRAFT) == 1
    assert "fatal: bad revision" in err.getvalue()


def test_interactive_falls_back_to_legacy_without_editor(fake_git):
    def no_editor():
        raise ExecutionError("Interactive editing requires a terminal")

    questions = []

    def confirm(question):
        questions.append(question)
        return True

    workflow, out, err = make_workflow(
        fake_git,
        ExecutionMode.INTERACTIVE,
        editor_factory=no_editor,
        confirm=confirm,
    )
    assert workflow.run(DRAFT) == 0
    assert "Failed to create interactive editor" in err.getvalue()
    assert "Falling back to legacy mode..." in out.getvalue()
    assert questions == ["Do you want to commit with this message?"]
    assert fake_git.commits == [(DRAFT.message, False)]


def test_readline_editor_requires_terminal(monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO())
    with pytest.raises(ExecutionError, match="terminal"):
        ReadlineEditor()


def test_run_shell_command_success(monkeypatch):
    seen = {}

    def fake_run(cmd, capture_output=True, text=True, check=False):
        seen["cmd"] = cmd
        return subprocess.CompletedProcess(cmd, 0, stdout="done\n", stderr="")

    monkeypatch.setattr(subprocess, "run", fake_run)
    assert run_shell_command("git commit -m x") == "done\n"
    assert seen["cmd"] == ["sh", "-c", "git commit -m x"]


def test_run_shell_command_failure_carries_stderr(monkeypatch):
    def fake_run(cmd, **kwargs):
        return subprocess.CompletedProcess(cmd, 128, stdout="", stderr="fatal: nope\n")

    monkeypatch.setattr(subprocess, "run", fake_run)
    with pytest.raises(ExecutionError, match="fatal: nope"):
        run_shell_command("git commit")
