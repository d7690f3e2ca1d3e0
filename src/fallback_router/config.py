"""Configuration management for the fallback router.

Holds the static backend catalog, resolves credentials and endpoint
overrides, and exposes user-configurable defaults. Configuration is
loaded from a TOML file (~/.fallback-router/config.toml) with
environment variable overrides.

Credentials are resolved once, here, into a list of ``BackendCandidate``
records. Routing code only ever sees that resolved catalog.

Typical usage::

    from fallback_router.config import load_config

    config = load_config()
    catalog = config.resolve_catalog()
    key = config.get_provider_key("groq")
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from fallback_router.types import AdapterKind, BackendCandidate

APP_DIR = Path.home() / ".fallback-router"
CONFIG_PATH = APP_DIR / "config.toml"

DEFAULT_TIMEOUT = 30.0  # seconds, per attempt
DEFAULT_MAX_TOKENS = 500
DEFAULT_TEMPERATURE = 0.7
DEFAULT_SITE_URL = "https://github.com/fallback-router/fallback-router"
DEFAULT_APP_NAME = "fallback-router"


@dataclass(frozen=True)
class BackendSpec:
    """Static description of a known backend.

    Attributes:
        backend_id: Stable identifier used in config and routing.
        model: Default model name.
        base_url: Default endpoint root.
        adapter: Wire-format family.
        env_vars: Environment variables checked for the API key, in order.
    """

    backend_id: str
    model: str
    base_url: str
    adapter: AdapterKind
    env_vars: tuple[str, ...]


# Priority order: fast free tiers first, most expensive last.
DEFAULT_BACKENDS: tuple[BackendSpec, ...] = (
    BackendSpec(
        "groq",
        "llama-3.1-8b-instant",
        "https://api.groq.com/openai/v1",
        AdapterKind.OPENAI_COMPAT,
        ("GROQ_API_KEY",),
    ),
    BackendSpec(
        "google",
        "gemini-2.0-flash",
        "https://generativelanguage.googleapis.com",
        AdapterKind.GEMINI,
        ("GOOGLE_GEMINI_API_KEY", "GEMINI_API_KEY"),
    ),
    BackendSpec(
        "deepseek",
        "deepseek-chat",
        "https://api.deepseek.com/v1",
        AdapterKind.OPENAI_COMPAT,
        ("DEEPSEEK_API_KEY",),
    ),
    BackendSpec(
        "moonshot",
        "kimi-k2-instruct",
        "https://api.moonshot.cn/v1",
        AdapterKind.OPENAI_COMPAT,
        ("MOONSHOT_API_KEY", "KIMI_API_KEY"),
    ),
    BackendSpec(
        "together",
        "meta-llama/Llama-3.3-70B-Instruct-Turbo",
        "https://api.together.xyz/v1",
        AdapterKind.OPENAI_COMPAT,
        ("TOGETHER_API_KEY",),
    ),
    BackendSpec(
        "openrouter",
        "meta-llama/llama-3.3-70b-instruct:free",
        "https://openrouter.ai/api/v1",
        AdapterKind.OPENAI_COMPAT,
        ("OPENROUTER_API_KEY",),
    ),
    BackendSpec(
        "openai",
        "gpt-4o-mini",
        "https://api.openai.com/v1",
        AdapterKind.OPENAI_COMPAT,
        ("OPENAI_API_KEY",),
    ),
    BackendSpec(
        "anthropic",
        "claude-haiku-4-5-20251001",
        "https://api.anthropic.com",
        AdapterKind.ANTHROPIC,
        ("ANTHROPIC_API_KEY",),
    ),
)

BACKEND_IDS: tuple[str, ...] = tuple(spec.backend_id for spec in DEFAULT_BACKENDS)

# Values that ship in .env templates and must count as "not configured".
PLACEHOLDER_KEYS: frozenset[str] = frozenset(
    {
        "your_anthropic_key",
        "your_api_key",
        "changeme",
        "placeholder",
        "xxx",
        "none",
        "null",
    }
)


def is_usable_key(key: str | None) -> bool:
    """Check whether a credential looks like a real key.

    Blank strings, the known placeholder sentinels, ``your_...`` style
    template values, and ``<...>`` templates are all treated as absent.

    Args:
        key: Credential string, or None.

    Returns:
        True if the key should be used for requests.
    """
    if key is None:
        return False
    stripped = key.strip()
    if not stripped:
        return False
    lowered = stripped.lower()
    if lowered in PLACEHOLDER_KEYS:
        return False
    if lowered.startswith(("your_", "your-")):
        return False
    if stripped.startswith("<") and stripped.endswith(">"):
        return False
    return True


def _env_key(spec: BackendSpec) -> str:
    """First non-empty env var value for a backend, or empty string."""
    for env_var in spec.env_vars:
        value = os.environ.get(env_var, "")
        if value:
            return value
    return ""


def _env_base_url(backend_id: str) -> str:
    return os.environ.get(f"{backend_id.upper()}_BASE_URL", "")


@dataclass
class Config:
    """Application configuration.

    Attributes:
        providers: Mapping of backend id to API key
            (e.g. {"groq": "gsk_...", "anthropic": "sk-ant-..."}).
        endpoints: Mapping of backend id to base URL override.
        models: Mapping of backend id to default model override.
        timeout: Per-attempt timeout in seconds.
        max_tokens: Default max output tokens for ``route()``.
        temperature: Default sampling temperature for ``route()``.
        site_url: Attribution URL sent to OpenRouter.
        app_name: Attribution title sent to OpenRouter.
    """

    providers: dict[str, str] = field(default_factory=dict)
    endpoints: dict[str, str] = field(default_factory=dict)
    models: dict[str, str] = field(default_factory=dict)
    timeout: float = DEFAULT_TIMEOUT
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    site_url: str = DEFAULT_SITE_URL
    app_name: str = DEFAULT_APP_NAME

    def get_provider_key(self, backend_id: str) -> str | None:
        """Get the API key for a backend.

        Checks the ``providers`` dict first, then the backend's
        environment variables. Placeholder values count as missing.

        Note:
            ``load_config()`` already folds env vars into ``providers``.
            The env fallback here covers manually constructed ``Config()``
            instances that bypass ``load_config()``.

        Args:
            backend_id: Backend name (e.g. "groq", "google").

        Returns:
            The API key string, or None if not configured.
        """
        key = self.providers.get(backend_id, "")
        if is_usable_key(key):
            return key
        spec = _SPECS_BY_ID.get(backend_id)
        if spec is not None:
            env_val = _env_key(spec)
            if is_usable_key(env_val):
                return env_val
        return None

    def resolve_catalog(self) -> list[BackendCandidate]:
        """Resolve the static catalog against this configuration.

        Every known backend is returned in priority order, with
        ``api_key`` set to None where no usable key exists. Filtering is
        left to the chain builder.

        Returns:
            List of BackendCandidate records.
        """
        catalog: list[BackendCandidate] = []
        for spec in DEFAULT_BACKENDS:
            base_url = self.endpoints.get(spec.backend_id) or _env_base_url(spec.backend_id)
            catalog.append(
                BackendCandidate(
                    backend_id=spec.backend_id,
                    model=self.models.get(spec.backend_id, spec.model),
                    base_url=(base_url or spec.base_url).rstrip("/"),
                    api_key=self.get_provider_key(spec.backend_id),
                    adapter=spec.adapter,
                )
            )
        return catalog


_SPECS_BY_ID: dict[str, BackendSpec] = {spec.backend_id: spec for spec in DEFAULT_BACKENDS}


def configured_backends(config: Config) -> dict[str, bool]:
    """Report which backends have a usable key.

    Only booleans are returned; key values never leave the config.

    Args:
        config: Configuration to inspect.

    Returns:
        Ordered mapping of backend id to configured flag.
    """
    return {
        backend_id: config.get_provider_key(backend_id) is not None for backend_id in BACKEND_IDS
    }


def _apply_toml(config: Config, data: dict[str, Any]) -> None:
    """Apply parsed TOML data to a Config instance.

    Args:
        config: Config instance to populate.
        data: Parsed TOML dictionary.
    """
    # --- Providers ---
    if "providers" in data:
        for toml_key, value in data["providers"].items():
            # Keys are like "groq_api_key" → strip "_api_key" suffix.
            if toml_key.endswith("_api_key") and value:
                config.providers[toml_key[: -len("_api_key")]] = value

    # --- Endpoints and models ---
    if "endpoints" in data:
        config.endpoints.update({k: str(v) for k, v in data["endpoints"].items() if v})
    if "models" in data:
        config.models.update({k: str(v) for k, v in data["models"].items() if v})

    # --- Defaults ---
    if "defaults" in data:
        defaults: dict[str, Any] = data["defaults"]
        if "timeout" in defaults:
            config.timeout = float(defaults["timeout"])
        if "max_tokens" in defaults:
            config.max_tokens = int(defaults["max_tokens"])
        if "temperature" in defaults:
            config.temperature = float(defaults["temperature"])

    # --- Attribution ---
    if "app" in data:
        app: dict[str, Any] = data["app"]
        config.site_url = app.get("site_url", config.site_url)
        config.app_name = app.get("name", config.app_name)


def _apply_env_overrides(config: Config) -> None:
    """Apply environment variable overrides to keys and endpoints.

    Args:
        config: Config instance to update.
    """
    for spec in DEFAULT_BACKENDS:
        env_val = _env_key(spec)
        if env_val:
            config.providers[spec.backend_id] = env_val
        base_url = _env_base_url(spec.backend_id)
        if base_url:
            config.endpoints[spec.backend_id] = base_url


def env_sourced_providers() -> set[str]:
    """Backend ids whose key currently comes from the environment."""
    return {spec.backend_id for spec in DEFAULT_BACKENDS if _env_key(spec)}


def env_sourced_endpoints() -> set[str]:
    """Backend ids whose endpoint currently comes from ``<ID>_BASE_URL``."""
    return {backend_id for backend_id in BACKEND_IDS if _env_base_url(backend_id)}


def load_config(path: Path | None = None) -> Config:
    """Load configuration from file and environment.

    Resolution order for each backend key:
        1. The backend's environment variable(s), first non-empty wins
        2. [providers].<backend>_api_key in config.toml
        3. Unset (backend is skipped by the chain builder)

    Args:
        path: Config file to read. Defaults to CONFIG_PATH.

    Returns:
        Populated Config instance.
    """
    config = Config()
    target = path or CONFIG_PATH

    if target.exists():
        with open(target, "rb") as f:
            _apply_toml(config, tomllib.load(f))

    _apply_env_overrides(config)

    return config


def write_config(
    config: Config,
    path: Path | None = None,
    *,
    env_providers: set[str] | None = None,
    env_endpoints: set[str] | None = None,
) -> None:
    """Serialize a Config to TOML and write to disk.

    Provider keys and endpoints sourced from environment variables are
    excluded -- only values the user explicitly set are persisted.

    If the file already exists, its permissions are preserved after write.

    Args:
        config: Config instance to serialize.
        path: File path to write. Defaults to CONFIG_PATH.
        env_providers: Set of backend ids whose keys came from env vars
            and should be excluded from the written file.
        env_endpoints: Set of backend ids whose endpoints came from env
            vars and should be excluded from the written file.
    """
    import tomlkit

    target = path or CONFIG_PATH
    env_provs = env_providers or set()
    env_urls = env_endpoints or set()

    existing_mode: int | None = None
    if target.exists():
        existing_mode = target.stat().st_mode & 0o777

    doc = tomlkit.document()

    providers_table = tomlkit.table()
    for backend_id, key_value in sorted(config.providers.items()):
        if backend_id in env_provs:
            continue
        if key_value:
            providers_table.add(f"{backend_id}_api_key", key_value)
    doc.add("providers", providers_table)

    endpoints = {b: u for b, u in config.endpoints.items() if b not in env_urls}
    if endpoints:
        endpoints_table = tomlkit.table()
        for backend_id, url in sorted(endpoints.items()):
            endpoints_table.add(backend_id, url)
        doc.add("endpoints", endpoints_table)

    if config.models:
        models_table = tomlkit.table()
        for backend_id, model in sorted(config.models.items()):
            models_table.add(backend_id, model)
        doc.add("models", models_table)

    defaults_table = tomlkit.table()
    defaults_table.add("timeout", config.timeout)
    defaults_table.add("max_tokens", config.max_tokens)
    defaults_table.add("temperature", config.temperature)
    doc.add("defaults", defaults_table)

    app_table = tomlkit.table()
    app_table.add("site_url", config.site_url)
    app_table.add("name", config.app_name)
    doc.add("app", app_table)

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(tomlkit.dumps(doc), encoding="utf-8")

    if existing_mode is not None:
        target.chmod(existing_mode)
