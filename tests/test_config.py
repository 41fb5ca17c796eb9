"""Tests for retryable.config -- XDG paths, atomic writes, profiles, precedence."""

from __future__ import annotations

import json
import os
import stat
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from retryable.config import (
    _atomic_write,
    delete_profile,
    get_config_dir,
    get_data_dir,
    get_profiles_dir,
    list_profiles,
    load_global_config,
    load_profile,
    profile_exists,
    resolve_credential,
    resolve_profile,
    save_global_config,
    save_profile,
)
from retryable.exceptions import ConfigError
from retryable.models import AuthConfig, GlobalConfig, Profile, RetryPolicy


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def _make_profile(name: str = "test", base_url: str = "https://api.example.com") -> Profile:
    return Profile(name=name, base_url=base_url)


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPaths:
    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("retryable.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "retryable"
        assert result.is_dir()

    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("retryable.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))

        assert get_config_dir() == tmp_path / "cfg" / "retryable"

    def test_data_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("retryable.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

        assert get_data_dir() == tmp_path / "data" / "retryable"

    def test_fallback_dirs(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("retryable.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".retryable"
        assert get_data_dir() == tmp_path / ".retryable" / "logs"

    def test_profiles_dir_is_inside_config_dir(self, isolated_config: Path) -> None:
        assert get_profiles_dir() == get_config_dir() / "profiles"
        assert get_profiles_dir().is_dir()


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_file_with_content(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        _atomic_write(target, "hello world")
        assert target.read_text(encoding="utf-8") == "hello world"

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        target.write_text("old content", encoding="utf-8")
        _atomic_write(target, "new content")
        assert target.read_text(encoding="utf-8") == "new content"

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "test.txt"
        _atomic_write(target, "deep write")
        assert target.read_text(encoding="utf-8") == "deep write"

    def test_no_temp_files_left_on_error(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        with patch("retryable.config.os.fsync", side_effect=OSError("disk error")):
            with pytest.raises(OSError, match="disk error"):
                _atomic_write(target, "will fail")
        assert list(tmp_path.iterdir()) == []


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


class TestGlobalConfig:
    def test_load_returns_defaults_when_missing(self, isolated_config: Path) -> None:
        cfg = load_global_config()
        assert cfg == GlobalConfig()
        assert cfg.default_profile is None
        assert cfg.auto_select_single_profile is True

    def test_save_and_load_roundtrip(self, isolated_config: Path) -> None:
        original = GlobalConfig(default_profile="shop", auto_select_single_profile=False)
        save_global_config(original)
        assert load_global_config() == original

    def test_load_invalid_json_raises_config_error(self, isolated_config: Path) -> None:
        (get_config_dir() / "config.json").write_text("{invalid json!!!", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()

    def test_load_invalid_schema_raises_config_error(self, isolated_config: Path) -> None:
        _write_json(get_config_dir() / "config.json", {"default_profile": ["not", "a", "name"]})
        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class TestProfiles:
    def test_list_empty(self, isolated_config: Path) -> None:
        assert list_profiles() == []

    def test_save_and_list(self, isolated_config: Path) -> None:
        save_profile(_make_profile("beta"))
        save_profile(_make_profile("alpha"))
        assert list_profiles() == ["alpha", "beta"]

    def test_save_and_load_roundtrip(self, isolated_config: Path) -> None:
        original = Profile(
            name="shop",
            base_url="https://shop.example.com",
            auth=AuthConfig(
                type="credential_exchange",
                authentication_uri="/auth",
                username_source="env:SHOP_USER",
                password_source="env:SHOP_PASSWORD",
                token_extractor="json",
                token_field="token",
            ),
            retry=RetryPolicy(max_attempts=3, retry_delay=0.05),
        )
        save_profile(original)
        loaded = load_profile("shop")
        assert loaded == original
        assert loaded.retry.max_attempts == 3

    def test_provider_specific_fields_survive_roundtrip(self, isolated_config: Path) -> None:
        save_profile(
            Profile(name="sso", auth=AuthConfig(type="my_sso", realm="corp"))
        )
        loaded = load_profile("sso")
        assert loaded.auth is not None
        assert loaded.auth.model_extra == {"realm": "corp"}

    def test_load_nonexistent_raises_config_error(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_profile("ghost")

    def test_load_invalid_retry_policy_raises_config_error(self, isolated_config: Path) -> None:
        _write_json(
            get_profiles_dir() / "bad.json",
            {"name": "bad", "retry": {"max_attempts": 0}},
        )
        with pytest.raises(ConfigError, match="Invalid profile 'bad'"):
            load_profile("bad")

    def test_delete_profile(self, isolated_config: Path) -> None:
        save_profile(_make_profile("doomed"))
        assert profile_exists("doomed")
        delete_profile("doomed")
        assert not profile_exists("doomed")

    def test_delete_nonexistent_raises_config_error(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            delete_profile("ghost")

    def test_list_profiles_ignores_non_json(self, isolated_config: Path) -> None:
        save_profile(_make_profile("valid"))
        (get_profiles_dir() / "readme.txt").write_text("not a profile", encoding="utf-8")
        assert list_profiles() == ["valid"]


# ---------------------------------------------------------------------------
# Retry policy validation
# ---------------------------------------------------------------------------


class TestRetryPolicy:
    def test_defaults(self) -> None:
        policy = RetryPolicy()
        assert policy.max_attempts == 5
        assert policy.retry_delay == 0.2

    @pytest.mark.parametrize("bad", [{"max_attempts": 0}, {"max_attempts": -1}, {"retry_delay": -0.1}])
    def test_rejects_invalid_values(self, bad: dict[str, Any]) -> None:
        with pytest.raises(ValidationError):
            RetryPolicy(**bad)

    def test_is_immutable(self) -> None:
        policy = RetryPolicy()
        with pytest.raises(ValidationError):
            policy.max_attempts = 10  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Profile resolution precedence
# ---------------------------------------------------------------------------


class TestResolveProfile:
    @pytest.fixture(autouse=True)
    def _profiles(self, isolated_config: Path) -> None:
        save_profile(_make_profile("alpha", "https://alpha.example.com"))
        save_profile(_make_profile("beta", "https://beta.example.com"))

    def test_none_when_nothing_selected(self) -> None:
        assert resolve_profile() is None

    def test_global_default_profile(self) -> None:
        save_global_config(GlobalConfig(default_profile="beta"))
        assert resolve_profile().name == "beta"

    def test_env_overrides_global(self, monkeypatch: pytest.MonkeyPatch) -> None:
        save_global_config(GlobalConfig(default_profile="beta"))
        monkeypatch.setenv("RETRYABLE_PROFILE", "alpha")
        assert resolve_profile().name == "alpha"

    def test_cli_overrides_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RETRYABLE_PROFILE", "alpha")
        assert resolve_profile("beta").name == "beta"

    def test_cli_base_url_overrides_profile(self) -> None:
        profile = resolve_profile("alpha", "http://localhost:8080")
        assert profile.base_url == "http://localhost:8080"

    def test_env_base_url_overrides_profile(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RETRYABLE_BASE_URL", "http://staging.example.com")
        assert resolve_profile("alpha").base_url == "http://staging.example.com"

    def test_cli_base_url_beats_env_base_url(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RETRYABLE_BASE_URL", "http://staging.example.com")
        assert resolve_profile("alpha", "http://cli.example.com").base_url == "http://cli.example.com"

    def test_auto_select_single_profile(self) -> None:
        delete_profile("beta")
        assert resolve_profile().name == "alpha"

    def test_auto_select_disabled(self) -> None:
        delete_profile("beta")
        save_global_config(GlobalConfig(auto_select_single_profile=False))
        assert resolve_profile() is None

    def test_nonexistent_profile_raises_config_error(self) -> None:
        with pytest.raises(ConfigError, match="not found"):
            resolve_profile("ghost")


# ---------------------------------------------------------------------------
# Credential resolution
# ---------------------------------------------------------------------------


class TestResolveCredential:
    def test_env_source(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_PASSWORD", "secret123")
        assert resolve_credential("env:MY_PASSWORD") == "secret123"

    def test_env_source_missing_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NONEXISTENT_VAR", raising=False)
        with pytest.raises(ConfigError, match="not set"):
            resolve_credential("env:NONEXISTENT_VAR")

    def test_file_source(self, tmp_path: Path) -> None:
        cred_file = tmp_path / "password.txt"
        cred_file.write_text("  my-secret  \n", encoding="utf-8")
        assert resolve_credential(f"file:{cred_file}") == "my-secret"

    def test_file_source_missing_raises(self) -> None:
        with pytest.raises(ConfigError, match="not found"):
            resolve_credential("file:/nonexistent/path/password.txt")

    def test_file_source_unreadable_raises(self, tmp_path: Path) -> None:
        cred_file = tmp_path / "unreadable.txt"
        cred_file.write_text("secret", encoding="utf-8")
        cred_file.chmod(0o000)
        try:
            if os.geteuid() == 0:
                pytest.skip("file permissions are not enforced for this user")
            with pytest.raises(ConfigError, match="Cannot read"):
                resolve_credential(f"file:{cred_file}")
        finally:
            # Restore permissions so pytest can clean up tmp_path
            cred_file.chmod(stat.S_IRUSR | stat.S_IWUSR)

    def test_prompt_source_with_tty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin.isatty", lambda: True)
        monkeypatch.setattr("getpass.getpass", lambda prompt: "user-typed-secret")
        assert resolve_credential("prompt") == "user-typed-secret"

    def test_prompt_source_non_tty_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin.isatty", lambda: False)
        with pytest.raises(ConfigError, match="not a TTY"):
            resolve_credential("prompt")

    def test_literal_source(self) -> None:
        assert resolve_credential("literal:p@ss:word") == "p@ss:word"

    def test_unknown_source_raises(self) -> None:
        with pytest.raises(ConfigError, match="Unknown credential source"):
            resolve_credential("magic:wand")
