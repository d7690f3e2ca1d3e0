"""Tests for configuration loading and catalog resolution.

Covers: placeholder credential detection, TOML loading (providers,
endpoints, models, defaults, app attribution), env var overrides and
aliases, catalog order and endpoint overrides, configured_backends(),
and write_config() serialization.
"""

from __future__ import annotations

import os
import sys
import tomllib
from pathlib import Path

import pytest

from fallback_router.config import (
    BACKEND_IDS,
    DEFAULT_BACKENDS,
    Config,
    configured_backends,
    env_sourced_endpoints,
    env_sourced_providers,
    is_usable_key,
    load_config,
    write_config,
)
from fallback_router.types import AdapterKind

FULL_TOML = """\
[providers]
groq_api_key = "gsk-file"
anthropic_api_key = "sk-ant-file"

[endpoints]
openai = "https://proxy.internal/v1/"

[models]
groq = "llama-3.3-70b-versatile"

[defaults]
timeout = 12
max_tokens = 800
temperature = 0.3

[app]
site_url = "https://example.com"
name = "Example"
"""


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(content, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# is_usable_key
# ---------------------------------------------------------------------------


class TestIsUsableKey:
    """is_usable_key() rejects blanks and placeholder sentinels."""

    @pytest.mark.parametrize(
        "key",
        [
            None,
            "",
            "   ",
            "your_anthropic_key",
            "YOUR_API_KEY",
            "your-groq-key-here",
            "<paste key here>",
            "changeme",
            "null",
        ],
    )
    def test_rejected(self, key: str | None) -> None:
        assert is_usable_key(key) is False

    @pytest.mark.parametrize("key", ["gsk_abc123", "sk-ant-api03-xyz", "AIzaSyD-example"])
    def test_accepted(self, key: str) -> None:
        assert is_usable_key(key) is True


# ---------------------------------------------------------------------------
# TOML loading
# ---------------------------------------------------------------------------


class TestLoadConfig:
    """load_config() parses the TOML file."""

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path / "absent.toml")
        assert config.providers == {}
        assert config.timeout == 30.0
        assert config.max_tokens == 500
        assert config.temperature == 0.7

    def test_providers_loaded(self, tmp_path: Path) -> None:
        config = load_config(_write(tmp_path, FULL_TOML))
        assert config.providers["groq"] == "gsk-file"
        assert config.providers["anthropic"] == "sk-ant-file"

    def test_endpoints_and_models_loaded(self, tmp_path: Path) -> None:
        config = load_config(_write(tmp_path, FULL_TOML))
        assert config.endpoints["openai"] == "https://proxy.internal/v1/"
        assert config.models["groq"] == "llama-3.3-70b-versatile"

    def test_defaults_loaded(self, tmp_path: Path) -> None:
        config = load_config(_write(tmp_path, FULL_TOML))
        assert config.timeout == 12.0
        assert config.max_tokens == 800
        assert config.temperature == 0.3

    def test_app_attribution_loaded(self, tmp_path: Path) -> None:
        config = load_config(_write(tmp_path, FULL_TOML))
        assert config.site_url == "https://example.com"
        assert config.app_name == "Example"

    def test_default_path_used(self) -> None:
        """With no argument, the (patched) CONFIG_PATH is read."""
        from fallback_router import config as config_module

        config_module.CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        config_module.CONFIG_PATH.write_text('[providers]\ngroq_api_key = "gsk-default"\n')
        assert load_config().providers["groq"] == "gsk-default"


# ---------------------------------------------------------------------------
# Environment overrides
# ---------------------------------------------------------------------------


class TestEnvOverrides:
    """Environment variables win over the file."""

    def test_env_beats_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GROQ_API_KEY", "gsk-env")
        config = load_config(_write(tmp_path, FULL_TOML))
        assert config.providers["groq"] == "gsk-env"

    def test_gemini_alias(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GEMINI_API_KEY", "AIza-alias")
        assert Config().get_provider_key("google") == "AIza-alias"

    def test_primary_env_var_wins_over_alias(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MOONSHOT_API_KEY", "sk-moon")
        monkeypatch.setenv("KIMI_API_KEY", "sk-kimi")
        assert load_config().providers["moonshot"] == "sk-moon"

    def test_env_base_url(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_BASE_URL", "https://gateway.example/v1")
        config = load_config()
        assert config.endpoints["openai"] == "https://gateway.example/v1"

    def test_env_sourced_providers(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DEEPSEEK_API_KEY", "sk-ds")
        assert env_sourced_providers() == {"deepseek"}

    def test_env_sourced_endpoints(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TOGETHER_BASE_URL", "https://together-proxy/v1")
        assert env_sourced_endpoints() == {"together"}


# ---------------------------------------------------------------------------
# get_provider_key
# ---------------------------------------------------------------------------


class TestGetProviderKey:
    """Config.get_provider_key() lookup and placeholder handling."""

    def test_from_providers(self) -> None:
        assert Config(providers={"groq": "gsk-1"}).get_provider_key("groq") == "gsk-1"

    def test_missing(self) -> None:
        assert Config().get_provider_key("groq") is None

    def test_placeholder_is_missing(self) -> None:
        config = Config(providers={"anthropic": "your_anthropic_key"})
        assert config.get_provider_key("anthropic") is None

    def test_unknown_backend(self) -> None:
        assert Config().get_provider_key("nope") is None


# ---------------------------------------------------------------------------
# Catalog resolution
# ---------------------------------------------------------------------------


class TestResolveCatalog:
    """Config.resolve_catalog() builds the full, ordered catalog."""

    def test_priority_order(self) -> None:
        catalog = Config().resolve_catalog()
        assert [c.backend_id for c in catalog] == [
            "groq",
            "google",
            "deepseek",
            "moonshot",
            "together",
            "openrouter",
            "openai",
            "anthropic",
        ]

    def test_adapter_tags(self) -> None:
        catalog = {c.backend_id: c for c in Config().resolve_catalog()}
        assert catalog["google"].adapter is AdapterKind.GEMINI
        assert catalog["anthropic"].adapter is AdapterKind.ANTHROPIC
        assert catalog["groq"].adapter is AdapterKind.OPENAI_COMPAT

    def test_unconfigured_have_no_key(self) -> None:
        assert all(c.api_key is None for c in Config().resolve_catalog())

    def test_keys_resolved(self) -> None:
        catalog = Config(providers={"groq": "gsk-1"}).resolve_catalog()
        assert catalog[0].api_key == "gsk-1"

    def test_endpoint_override_strips_slash(self, tmp_path: Path) -> None:
        catalog = {c.backend_id: c for c in load_config(_write(tmp_path, FULL_TOML)).resolve_catalog()}
        assert catalog["openai"].base_url == "https://proxy.internal/v1"

    def test_model_override(self, tmp_path: Path) -> None:
        catalog = {c.backend_id: c for c in load_config(_write(tmp_path, FULL_TOML)).resolve_catalog()}
        assert catalog["groq"].model == "llama-3.3-70b-versatile"
        assert catalog["deepseek"].model == "deepseek-chat"

    def test_every_spec_has_env_var(self) -> None:
        assert all(spec.env_vars for spec in DEFAULT_BACKENDS)


class TestConfiguredBackends:
    """configured_backends() reports booleans only."""

    def test_booleans_in_catalog_order(self) -> None:
        status = configured_backends(Config(providers={"openai": "sk-1"}))
        assert list(status) == list(BACKEND_IDS)
        assert status["openai"] is True
        assert status["groq"] is False

    def test_no_key_values_exposed(self) -> None:
        status = configured_backends(Config(providers={"openai": "sk-secret"}))
        assert "sk-secret" not in repr(status)


# ---------------------------------------------------------------------------
# write_config() serialization
# ---------------------------------------------------------------------------


class TestWriteConfig:
    """write_config() writes TOML that load_config() reads back."""

    def test_roundtrip(self, tmp_path: Path) -> None:
        config = Config(
            providers={"groq": "gsk-1"},
            endpoints={"openai": "https://proxy/v1"},
            models={"groq": "llama-3.3-70b-versatile"},
            timeout=10.0,
            max_tokens=900,
            temperature=0.4,
        )
        path = tmp_path / "out" / "config.toml"
        write_config(config, path=path)

        loaded = load_config(path)
        assert loaded.providers == {"groq": "gsk-1"}
        assert loaded.endpoints == {"openai": "https://proxy/v1"}
        assert loaded.models == {"groq": "llama-3.3-70b-versatile"}
        assert loaded.timeout == 10.0
        assert loaded.max_tokens == 900
        assert loaded.temperature == 0.4

    def test_env_providers_excluded(self, tmp_path: Path) -> None:
        config = Config(providers={"groq": "gsk-env", "openai": "sk-file"})
        path = tmp_path / "config.toml"
        write_config(config, path=path, env_providers={"groq"})

        data = tomllib.loads(path.read_text(encoding="utf-8"))
        assert "groq_api_key" not in data["providers"]
        assert data["providers"]["openai_api_key"] == "sk-file"

    def test_env_endpoints_excluded(self, tmp_path: Path) -> None:
        config = Config(
            endpoints={"openai": "https://env-gateway/v1", "groq": "https://file-proxy/v1"}
        )
        path = tmp_path / "config.toml"
        write_config(config, path=path, env_endpoints={"openai"})

        data = tomllib.loads(path.read_text(encoding="utf-8"))
        assert data["endpoints"] == {"groq": "https://file-proxy/v1"}

    def test_only_env_endpoints_leaves_no_table(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        write_config(
            Config(endpoints={"openai": "https://env-gateway/v1"}),
            path=path,
            env_endpoints={"openai"},
        )
        assert "endpoints" not in tomllib.loads(path.read_text(encoding="utf-8"))

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions only")
    def test_permissions_preserved(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("")
        os.chmod(path, 0o600)
        write_config(Config(providers={"groq": "gsk-1"}), path=path)
        assert path.stat().st_mode & 0o777 == 0o600
