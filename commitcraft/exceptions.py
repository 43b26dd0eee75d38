"""Exception types for commitcraft."""


class CommitCraftError(Exception):
    """Base exception for commitcraft."""


class ConfigError(CommitCraftError):
    """Configuration could not be read, parsed or resolved."""


class GitError(CommitCraftError):
    """A git command failed or the repository is in an unusable state."""


class ProviderError(CommitCraftError):
    """A provider adapter could not produce a draft."""


class ProviderTransportError(ProviderError):
    """The request never reached the provider or the connection failed."""


class ProviderResponseError(ProviderError):
    """The provider answered with an error status or an unexpected body."""


class DraftExtractionError(ProviderError):
    """No structured title/description payload could be recovered."""


class ValidationWarning(CommitCraftError):
    """A draft does not follow the conventional commit format.

    Never fatal: the draft is still used as-is.
    """


class ExecutionError(CommitCraftError):
    """The interactive editor or a shell command could not be run."""
