from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..draft import COMMIT_TYPES, Draft

TOOL_NAME = "generate_commit"
TOOL_DESCRIPTION = (
    "Generate a conventional commit message with title and description"
)

_TYPE_HINTS = {
    "feat": "new feature",
    "fix": "bug fix",
    "docs": "documentation",
    "style": "formatting",
    "refactor": "code restructuring",
    "test": "adding tests",
    "chore": "maintenance",
    "perf": "performance",
    "ci": "continuous integration",
    "build": "build system or dependencies",
    "revert": "revert a previous commit",
}


@runtime_checkable
class Provider(Protocol):
    """Capability shared by every backend adapter.

    Adapters are independent classes; they share this contract and the
    helpers in this package, not an implementation.
    """

    name: str

    async def generate(self, diff: str) -> Draft:
        """Return a fully populated draft or raise ``ProviderError``."""
        ...


def build_system_prompt(closing: str) -> str:
    """System instruction common to all backends.

    ``closing`` tells the model how to hand back the result (tool call or
    bare JSON) for the specific backend.
    """
    types = ", ".join(f"{name} ({_TYPE_HINTS[name]})" for name in COMMIT_TYPES)
    lines = [
        "You are an expert programmer who writes git commit messages "
        "following the Conventional Commits specification "
        "(https://www.conventionalcommits.org/en/v1.0.0/).",
        "",
        "For the title field:",
        "- MUST follow this exact format: <type>[optional scope]: <description>",
        f"- Allowed types (no others): {types}",
        "- CRITICAL: Keep title under 50 characters total "
        "(including type and colon)",
        "- Use lowercase for type",
        "- Be specific but concise",
        '- Examples: "feat(auth): add OAuth2 login", '
        '"fix: resolve memory leak"',
        "",
        "For the description field:",
        "- Provide detailed explanation of what changed and why",
        '- Use imperative mood ("add" not "added")',
        "- Explain the impact and context",
        "- Include breaking changes if any (mark the type with '!')",
        "",
        closing,
    ]
    return "\n".join(lines)


JSON_SHAPE_INSTRUCTION = (
    'If you answer in text, respond with only this JSON shape and nothing '
    'else: {"title": "<type>(<scope>): <description>", '
    '"description": "<body>"}'
)


def build_user_prompt(diff: str) -> str:
    return f"Here is the git diff to analyze:\n```diff\n{diff}\n```"
