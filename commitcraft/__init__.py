"""commitcraft - AI-generated conventional commits for staged changes."""

from importlib import import_module
from typing import TYPE_CHECKING

__version__ = "1.1.0"

# Public API (lazy-exported so `import commitcraft` does not pull in httpx/openai)
__all__ = [
    # Draft
    "Draft", "ValidationResult", "ValidationRule", "validate",
    # Providers
    "Provider", "create_provider",
    # Git
    "GitRepo",
    # Workflow
    "CommitWorkflow", "ExecutionMode", "render_command", "select_mode",
    # Exceptions
    "CommitCraftError", "ConfigError", "GitError", "ProviderError",
    "ProviderTransportError", "ProviderResponseError", "DraftExtractionError",
    "ValidationWarning", "ExecutionError",
]

_EXCEPTIONS = {
    "CommitCraftError",
    "ConfigError",
    "GitError",
    "ProviderError",
    "ProviderTransportError",
    "ProviderResponseError",
    "DraftExtractionError",
    "ValidationWarning",
    "ExecutionError",
}


def __getattr__(name: str):
    """Lazy attribute loader; provider SDKs are only imported on demand."""
    mapping = {
        # Draft
        "Draft": ("commitcraft.draft", "Draft"),
        "ValidationResult": ("commitcraft.draft", "ValidationResult"),
        "ValidationRule": ("commitcraft.draft", "ValidationRule"),
        "validate": ("commitcraft.draft", "validate"),
        # Providers
        "Provider": ("commitcraft.providers", "Provider"),
        "create_provider": ("commitcraft.providers", "create_provider"),
        # Git
        "GitRepo": ("commitcraft.git", "GitRepo"),
        # Workflow
        "CommitWorkflow": ("commitcraft.workflow", "CommitWorkflow"),
        "ExecutionMode": ("commitcraft.workflow", "ExecutionMode"),
        "render_command": ("commitcraft.workflow", "render_command"),
        "select_mode": ("commitcraft.workflow", "select_mode"),
    }
    if name in _EXCEPTIONS:
        mapping[name] = ("commitcraft.exceptions", name)
    if name in mapping:
        mod_name, attr = mapping[name]
        mod = import_module(mod_name)
        value = getattr(mod, attr)
        globals()[name] = value  # cache for future access
        return value
    raise AttributeError(f"module 'commitcraft' has no attribute {name!r}")


if TYPE_CHECKING:
    # For type checkers and IDEs, provide direct imports
    from .draft import Draft, ValidationResult, ValidationRule, validate
    from .providers import Provider, create_provider
    from .git import GitRepo
    from .workflow import CommitWorkflow, ExecutionMode, render_command, select_mode
    from .exceptions import (
        CommitCraftError,
        ConfigError,
        DraftExtractionError,
        ExecutionError,
        GitError,
        ProviderError,
        ProviderResponseError,
        ProviderTransportError,
        ValidationWarning,
    )
