"""Command-line interface for commitcraft."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Callable, Optional, TextIO

from . import __version__, ui
from .config import (
    DEFAULT_ALIASES,
    SUPPORTED_PROVIDERS,
    StoredConfig,
    build_provider_config,
    config_file_path,
    load_config,
    mask_key,
    resolve_provider,
    save_config,
)
from .draft import Draft
from .exceptions import (
    ConfigError,
    GitError,
    ProviderError,
    ValidationWarning,
)
from .git import GitRepo
from .providers import PROVIDERS, create_provider
from .workflow import CommitWorkflow, WorkflowOptions, select_mode

logger = logging.getLogger(__name__)

KNOWN_MODELS = {
    "openai": [
        ("gpt-4o", "latest, most capable"),
        ("gpt-4o-mini", "fast and efficient, default"),
        ("gpt-4-turbo", ""),
        ("gpt-3.5-turbo", ""),
    ],
    "gemini": [
        ("gemini-1.5-pro-latest", "most capable"),
        ("gemini-1.5-flash-latest", "fast, default"),
        ("gemini-1.0-pro", ""),
    ],
    "anthropic": [
        ("claude-3-5-sonnet-20241022", "latest, most capable"),
        ("claude-3-haiku-20240307", "fast, default"),
        ("claude-3-opus-20240229", "most powerful"),
    ],
}

PROVIDER_DISPLAY_NAMES = {
    "openai": "OpenAI",
    "gemini": "Google Gemini",
    "anthropic": "Anthropic Claude",
}


def build_context(
    diff: str,
    repo_info: Optional[tuple[str, str]] = None,
    files: Optional[list[str]] = None,
) -> str:
    """Prepend repository and file context lines above ``diff``."""
    lines = []
    if repo_info is not None:
        repo_name, branch = repo_info
        lines.append(f"Repository: {repo_name} (branch: {branch})")
    if files is not None:
        lines.append(f"Files modified: {', '.join(files)}")
    if not lines:
        return diff
    return "\n".join(lines) + "\n\n" + diff


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="commitcraft",
        description=(
            "Generate conventional commit messages for staged changes using AI."
        ),
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-p",
        "--provider",
        help="AI provider to use (gemini, openai, anthropic). Overrides config default.",
    )
    parser.add_argument(
        "-m",
        "--model",
        help="Model or alias to use (e.g. 'fast', 'gpt-4o'). Overrides config default.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Generate and print the commit message without committing.",
    )
    parser.add_argument(
        "-r",
        "--review",
        action="store_true",
        help="Review the generated message in your editor before committing.",
    )
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Commit without asking for confirmation (legacy mode).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show the diff being analyzed.",
    )
    parser.add_argument(
        "--include-files",
        action="store_true",
        help="Include staged file names in the context sent to the model.",
    )
    parser.add_argument(
        "-s",
        "--show-command",
        action="store_true",
        help="Print the git command instead of running it.",
    )
    parser.add_argument(
        "--legacy",
        action="store_true",
        help="Use the confirmation-based commit flow.",
    )
    parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Skip interactive editing and commit immediately.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging on stderr.",
    )

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("setup", help="Run the interactive first-time setup.")
    subparsers.add_parser("list", help="List providers and known models.")
    subparsers.add_parser("config", help="Show the current configuration.")
    return parser


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    if not debug:
        # httpx logs every request at INFO.
        logging.getLogger("httpx").setLevel(logging.WARNING)


class CLI:
    """Entry point object; collaborators are injectable for tests."""

    def __init__(
        self,
        git_factory: Callable[[], GitRepo] = GitRepo,
        workflow_factory: Callable[..., CommitWorkflow] = CommitWorkflow,
        out: Optional[TextIO] = None,
        err: Optional[TextIO] = None,
    ) -> None:
        self.parser = build_parser()
        self._git_factory = git_factory
        self._workflow_factory = workflow_factory
        self._out = out or sys.stdout
        self._err = err or sys.stderr

    def _print(self, text: str = "", *codes: str) -> None:
        print(ui.paint(text, *codes, stream=self._out), file=self._out)

    def _error(self, label: str, detail: str) -> None:
        tag = ui.paint(label, ui.RED, ui.BOLD, stream=self._err)
        print(f"{tag} {detail}", file=self._err)

    def run(self, args: Optional[list[str]] = None) -> int:
        try:
            parsed = self.parser.parse_args(args)
        except SystemExit as exc:
            return int(exc.code or 0)
        configure_logging(parsed.debug)

        if parsed.command == "setup":
            return self._run_setup()
        if parsed.command == "list":
            return self._list_providers()
        if parsed.command == "config":
            return self._show_config()
        return self._generate(parsed)

    # ------------------------------------------------------------------
    # Commit generation
    # ------------------------------------------------------------------
    def _generate(self, parsed: argparse.Namespace) -> int:
        try:
            stored = load_config()
        except ConfigError as exc:
            self._error("Configuration Error:", str(exc))
            return 1

        try:
            git = self._git_factory()
            diff = git.get_staged_diff()
        except GitError as exc:
            self._error("Error:", str(exc))
            return 1

        if parsed.verbose:
            self._print("Analyzing the following diff:", ui.BOLD)
            self._print(ui.RULE)
            self._print(diff, ui.DIM)
            self._print(ui.RULE)

        files = None
        if parsed.include_files:
            try:
                files = git.get_staged_files()
            except GitError as exc:
                logger.debug("staged file list unavailable: %s", exc)
        try:
            repo_info = git.get_repo_info()
        except GitError as exc:
            logger.debug("repository info unavailable: %s", exc)
            repo_info = None
        enhanced_diff = build_context(diff, repo_info, files)

        provider_name = resolve_provider(parsed.provider, stored)
        try:
            if provider_name not in PROVIDERS:
                raise ConfigError(
                    f"Unknown provider '{provider_name}'. "
                    f"Supported: {', '.join(PROVIDERS)}"
                )
            provider_config = build_provider_config(
                provider_name, parsed.model, stored
            )
            provider = create_provider(provider_name, provider_config)
        except ConfigError as exc:
            self._error("Configuration Error:", str(exc))
            return 1

        self._print(
            "Using provider: {} ({})".format(
                ui.paint(provider_name, ui.CYAN, stream=self._out),
                ui.paint(provider_config.model, ui.CYAN, stream=self._out),
            )
        )
        spinner = ui.Spinner("Generating commit message...", self._out)
        try:
            draft = asyncio.run(spinner.run(provider.generate(enhanced_diff)))
        except ProviderError as exc:
            self._print("✗ Error generating message.", ui.RED)
            self._error("API Error:", str(exc))
            return 1
        self._print("✓ Message generated successfully!", ui.GREEN)
        self._warn_if_invalid(draft)

        options = WorkflowOptions(
            mode=select_mode(
                dry_run=parsed.dry_run,
                show_command=parsed.show_command,
                legacy=parsed.legacy,
                yes=parsed.yes,
            ),
            force=parsed.force,
            review=parsed.review,
        )
        workflow = self._workflow_factory(git, options, out=self._out, err=self._err)
        return workflow.run(draft)

    def _warn_if_invalid(self, draft: Draft) -> None:
        try:
            draft.validate().raise_for_rule()
        except ValidationWarning as warning:
            tag = ui.paint("Warning:", ui.YELLOW, ui.BOLD, stream=self._err)
            print(f"{tag} {warning}", file=self._err)
            print(
                "The generated message may not follow conventional commits "
                "format exactly.",
                file=self._err,
            )

    # ------------------------------------------------------------------
    # Subcommands
    # ------------------------------------------------------------------
    def _run_setup(self) -> int:
        self._print("Welcome to CommitCraft setup!", ui.BOLD, ui.GREEN)
        self._print("Let's configure your AI providers.")
        try:
            config = load_config()
        except ConfigError as exc:
            logger.debug("starting setup from defaults: %s", exc)
            config = StoredConfig()

        try:
            choice = input(
                "Which AI provider do you want to use by default? "
                f"({', '.join(SUPPORTED_PROVIDERS)}) "
            ).strip().lower()
            if choice:
                if choice not in SUPPORTED_PROVIDERS:
                    self._error("Error:", f"Unknown provider '{choice}'")
                    return 1
                config.default_provider = choice

            self._print()
            self._print("Now, let's add API keys. Leave blank to keep the current value.")
            for provider in SUPPORTED_PROVIDERS:
                label = PROVIDER_DISPLAY_NAMES[provider]
                key = input(f"Enter your {label} API key: ").strip()
                if key:
                    config.api_keys[provider] = key

            answer = input(
                "Do you want to set up model aliases? "
                "(e.g., 'fast' -> 'gemini-1.5-flash-latest') (Y/n) "
            ).strip().lower()
        except (KeyboardInterrupt, EOFError):
            self._print()
            self._print("Setup cancelled.", ui.YELLOW)
            return 1

        if answer in {"", "y", "yes"}:
            config.aliases.update(DEFAULT_ALIASES)
            self._print("Default aliases 'fast' and 'smart' have been added.")

        try:
            path = save_config(config)
        except ConfigError as exc:
            self._error("Error during setup:", str(exc))
            return 1
        self._print()
        self._print(f"Setup complete! Configuration saved to {path}", ui.BOLD, ui.GREEN)
        return 0

    def _show_config(self) -> int:
        try:
            config = load_config()
        except ConfigError as exc:
            self._error("Error loading config:", str(exc))
            self._print("Run 'commitcraft setup' to set up configuration.")
            return 1

        self._print("📋 Current Configuration", ui.BOLD, ui.CYAN)
        self._print(ui.RULE)
        self._print(f"Config file: {config_file_path()}")
        self._print(f"🤖 Default Provider: {config.default_provider or 'Not set'}")
        self._print()
        self._print("🔑 API Keys:")
        for provider in SUPPORTED_PROVIDERS:
            label = f"{PROVIDER_DISPLAY_NAMES[provider]}:"
            self._print(f"  {label:<18} {mask_key(config.api_keys.get(provider))}")
        self._print()
        self._print("🎯 Default Models:")
        for provider in SUPPORTED_PROVIDERS:
            model = config.models.get(provider)
            if model:
                label = f"{PROVIDER_DISPLAY_NAMES[provider]}:"
                self._print(f"  {label:<18} {model}")
        if config.aliases:
            self._print()
            self._print("🏷️  Model Aliases:")
            for alias, model in sorted(config.aliases.items()):
                self._print(f"  {alias} → {model}")
        self._print()
        self._print("💡 Run 'commitcraft setup' to reconfigure")
        return 0

    def _list_providers(self) -> int:
        self._print("🤖 Available Providers & Models", ui.BOLD, ui.CYAN)
        self._print(ui.RULE)
        for provider in SUPPORTED_PROVIDERS:
            self._print()
            self._print(f"{PROVIDER_DISPLAY_NAMES[provider]}:", ui.BOLD)
            for model, note in KNOWN_MODELS[provider]:
                suffix = f" ({note})" if note else ""
                self._print(f"  • {model}{suffix}")
        self._print()
        self._print("Usage Examples:", ui.BOLD, ui.YELLOW)
        for provider in SUPPORTED_PROVIDERS:
            model = KNOWN_MODELS[provider][0][0]
            self._print(f"  commitcraft --provider {provider} --model {model}")
        self._print()
        self._print("💡 Set up aliases with 'commitcraft setup'")
        return 0


def main(argv: Optional[list[str]] = None) -> int:
    return CLI().run(argv)


if __name__ == "__main__":
    sys.exit(main())
