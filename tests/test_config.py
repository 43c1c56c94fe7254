# DAVSync Config Tests
# Tests for configuration loading and validation

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from davsync.config.defaults import DEFAULT_CONFIG, generate_default_config
from davsync.config.loader import (
    ensure_config_exists,
    get_config_path,
    load_config,
    save_config,
    validate_config_file,
)
from davsync.config.schema import CacheConfig, DavSyncConfig, PluginsConfig, StorageConfig


class TestDavSyncConfig:
    """Tests for DavSyncConfig schema."""

    def test_defaults(self):
        config = DavSyncConfig()

        assert config.cache.retention_days is None
        assert config.plugins.transport is None
        assert config.sync.max_parallel_accounts == 1
        assert config.output.colored is True

    def test_paths_expanded(self, temp_home: Path):
        storage = StorageConfig(registry_path="~/dav/registry.yaml")
        assert storage.registry_path == str(temp_home / "dav" / "registry.yaml")

    def test_plugin_path_format(self):
        assert PluginsConfig(transport="pkg.mod:factory").transport == "pkg.mod:factory"
        with pytest.raises(ValidationError):
            PluginsConfig(transport="pkg.mod.factory")

    def test_negative_retention_rejected(self):
        with pytest.raises(ValidationError):
            CacheConfig(retention_days=-1)

    def test_parallel_accounts_at_least_one(self):
        with pytest.raises(ValidationError):
            DavSyncConfig.model_validate({"sync": {"max_parallel_accounts": 0}})

    def test_cache_policy(self):
        policy = CacheConfig(retention_days=30, max_cached_per_account=5).to_policy()
        assert policy.retention_days == 30
        assert policy.max_cached == 5


class TestConfigLoader:
    """Tests for loading and saving configuration files."""

    def test_config_path_env_override(self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("DAVSYNC_CONFIG", str(temp_dir / "custom.yaml"))
        assert get_config_path() == temp_dir / "custom.yaml"

    def test_default_config_path(self, temp_home: Path):
        assert get_config_path() == temp_home / ".config" / "davsync" / "config.yaml"

    def test_missing_file(self, temp_dir: Path):
        with pytest.raises(FileNotFoundError):
            load_config(temp_dir / "missing.yaml")

    def test_partial_file_merged_with_defaults(self, temp_dir: Path):
        path = temp_dir / "config.yaml"
        path.write_text(yaml.dump({"cache": {"retention_days": 7}}), encoding="utf-8")

        config = load_config(path)

        assert config.cache.retention_days == 7
        assert config.cache.max_cached_per_account is None
        assert config.output.verbose is False

    def test_empty_file_uses_defaults(self, temp_dir: Path):
        path = temp_dir / "config.yaml"
        path.write_text("", encoding="utf-8")

        assert load_config(path).sync.max_parallel_accounts == 1

    def test_save_and_load(self, temp_dir: Path):
        path = temp_dir / "sub" / "config.yaml"
        config = DavSyncConfig.model_validate({"sync": {"max_parallel_accounts": 4}})

        save_config(config, path)

        assert load_config(path).sync.max_parallel_accounts == 4

    def test_ensure_config_exists(self, temp_dir: Path):
        path = temp_dir / "config.yaml"

        assert ensure_config_exists(path) == (path, True)
        assert ensure_config_exists(path) == (path, False)
        assert load_config(path).storage.registry_path.endswith("registry.yaml")


class TestValidateConfigFile:
    """Tests for validate_config_file."""

    def test_valid(self, temp_dir: Path):
        path = temp_dir / "config.yaml"
        path.write_text(generate_default_config(), encoding="utf-8")
        assert validate_config_file(path) == (True, [])

    def test_invalid_values(self, temp_dir: Path):
        path = temp_dir / "config.yaml"
        path.write_text(yaml.dump({"plugins": {"transport": "no-colon"}}), encoding="utf-8")

        is_valid, errors = validate_config_file(path)

        assert is_valid is False
        assert any("plugins -> transport" in error for error in errors)

    def test_invalid_yaml(self, temp_dir: Path):
        path = temp_dir / "config.yaml"
        path.write_text("storage: [unclosed", encoding="utf-8")

        is_valid, errors = validate_config_file(path)

        assert is_valid is False
        assert "Invalid YAML" in errors[0]

    def test_missing(self, temp_dir: Path):
        is_valid, errors = validate_config_file(temp_dir / "nope.yaml")
        assert is_valid is False
        assert "not found" in errors[0]


class TestDefaults:
    """Tests for the default configuration."""

    def test_generated_yaml_matches_defaults(self):
        assert yaml.safe_load(generate_default_config()) == DEFAULT_CONFIG

    def test_defaults_validate(self):
        DavSyncConfig.model_validate(DEFAULT_CONFIG)
