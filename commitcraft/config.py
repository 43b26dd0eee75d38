"""Configuration management for commitcraft."""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, Optional

from .exceptions import ConfigError

CONFIG_DIR_NAME = "commitcraft"
CONFIG_FILE_NAME = "config.json"

FALLBACK_PROVIDER = "gemini"
FALLBACK_MODEL = "default"

SUPPORTED_PROVIDERS = ("openai", "gemini", "anthropic")

DEFAULT_MODELS = {
    "openai": {
        "model": "gpt-4o-mini",
        "endpoint": "https://api.openai.com/v1",
        "api_key_env": ["OPENAI_API_KEY"],
    },
    "gemini": {
        "model": "gemini-1.5-flash-latest",
        "endpoint": "https://generativelanguage.googleapis.com/v1beta",
        "api_key_env": ["GEMINI_API_KEY", "GOOGLE_API_KEY"],
    },
    "anthropic": {
        "model": "claude-3-haiku-20240307",
        "endpoint": "https://api.anthropic.com",
        "api_key_env": ["ANTHROPIC_API_KEY"],
    },
}

DEFAULT_ALIASES = {
    "fast": "gemini-1.5-flash-latest",
    "smart": "gpt-4o",
}

DEFAULT_REQUEST_TIMEOUT = 60.0


def _default_models() -> Dict[str, Optional[str]]:
    return {name: meta["model"] for name, meta in DEFAULT_MODELS.items()}


@dataclass
class StoredConfig:
    """Persisted user configuration."""

    default_provider: Optional[str] = None
    api_keys: Dict[str, Optional[str]] = field(default_factory=dict)
    models: Dict[str, Optional[str]] = field(default_factory=_default_models)
    aliases: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        """Serialise configuration to a dict for persistence."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "StoredConfig":
        config = cls()
        provider = data.get("default_provider")
        if provider is not None and not isinstance(provider, str):
            raise ConfigError("'default_provider' must be a string")
        config.default_provider = provider
        for name in ("api_keys", "models", "aliases"):
            value = data.get(name)
            if value is None:
                continue
            if not isinstance(value, dict):
                raise ConfigError(f"'{name}' must be a table of strings")
            current = getattr(config, name)
            current.update({str(k): v for k, v in value.items()})
        return config


@dataclass(frozen=True)
class ProviderConfig:
    """Everything a provider adapter needs to issue its request."""

    api_key: str
    model: str
    endpoint: Optional[str] = None
    timeout: float = DEFAULT_REQUEST_TIMEOUT

    def __repr__(self) -> str:
        # Keep the key out of tracebacks and debug output.
        return (
            f"ProviderConfig(api_key='***', model={self.model!r}, "
            f"endpoint={self.endpoint!r}, timeout={self.timeout!r})"
        )


def config_dir() -> Path:
    """Directory holding ``config.json``."""
    override = os.environ.get("COMMITCRAFT_CONFIG_HOME")
    if override:
        return Path(override).expanduser()
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg).expanduser() if xdg else Path.home() / ".config"
    return base / CONFIG_DIR_NAME


def config_file_path() -> Path:
    return config_dir() / CONFIG_FILE_NAME


def load_config(path: Optional[Path] = None) -> StoredConfig:
    """Load the persisted configuration.

    A missing file yields defaults so keys can come from the environment.

    Raises:
        ConfigError: if the file cannot be read or is not valid JSON.
    """
    cfg_path = path or config_file_path()
    if not cfg_path.exists():
        return StoredConfig()
    try:
        raw = cfg_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read config file {cfg_path}: {exc}") from exc
    try:
        data = json.loads(raw) if raw.strip() else {}
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Failed to parse config file {cfg_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Failed to parse config file {cfg_path}: expected an object")
    return StoredConfig.from_dict(data)


def save_config(config: StoredConfig, path: Optional[Path] = None) -> Path:
    """Persist configuration JSON, creating the directory if needed."""
    cfg_path = path or config_file_path()
    try:
        cfg_path.parent.mkdir(parents=True, exist_ok=True)
        cfg_path.write_text(json.dumps(config.to_dict(), indent=2) + "\n")
    except OSError as exc:
        raise ConfigError(f"Failed to write config file {cfg_path}: {exc}") from exc
    return cfg_path


def resolve_provider(flag: Optional[str], config: StoredConfig) -> str:
    """Explicit flag, then stored default, then ``"gemini"``."""
    return (flag or config.default_provider or FALLBACK_PROVIDER).lower()


def resolve_model(provider: str, flag: Optional[str], config: StoredConfig) -> str:
    """Pick the model name or alias, then expand the alias if one matches."""
    name_or_alias = flag or config.models.get(provider) or FALLBACK_MODEL
    return config.aliases.get(name_or_alias, name_or_alias)


def resolve_api_key(
    provider: str,
    config: StoredConfig,
    env: Optional[Dict[str, str]] = None,
) -> str:
    """Return the stored API key, falling back to the provider's env vars.

    Raises:
        ConfigError: if no key is available for ``provider``.
    """
    stored = config.api_keys.get(provider)
    if stored:
        return stored
    env_dict = os.environ if env is None else env
    for name in DEFAULT_MODELS.get(provider, {}).get("api_key_env", []):
        value = env_dict.get(name)
        if value:
            return value
    raise ConfigError(
        f"API key for provider '{provider}' not found. "
        "Please run 'commitcraft setup'."
    )


def request_timeout(env: Optional[Dict[str, str]] = None) -> float:
    env_dict = os.environ if env is None else env
    timeout_env = env_dict.get("COMMITCRAFT_REQUEST_TIMEOUT")
    try:
        return float(timeout_env) if timeout_env else DEFAULT_REQUEST_TIMEOUT
    except ValueError:
        return DEFAULT_REQUEST_TIMEOUT


def build_provider_config(
    provider: str,
    model_flag: Optional[str],
    config: StoredConfig,
    env: Optional[Dict[str, str]] = None,
) -> ProviderConfig:
    """Resolve model, key, endpoint and timeout for ``provider``."""
    env_dict = os.environ if env is None else env
    endpoint = env_dict.get(f"COMMITCRAFT_{provider.upper()}_ENDPOINT") or None
    return ProviderConfig(
        api_key=resolve_api_key(provider, config, env_dict),
        model=resolve_model(provider, model_flag, config),
        endpoint=endpoint,
        timeout=request_timeout(env_dict),
    )


def mask_key(key: Optional[str]) -> str:
    return "✓ Configured" if key else "✗ Not set"
