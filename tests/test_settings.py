"""Kernel settings: defaults, YAML file, INVENTORY_* environment overrides."""

import pytest
import yaml

from inventory_kernel.config import DEFAULT_DATABASE_URL, KernelSettings, load_settings


def _write(tmp_path, data, name="inventory.yaml"):
    path = tmp_path / name
    path.write_text(yaml.safe_dump(data))
    return path


class TestLoadSettings:
    def test_defaults(self):
        settings = load_settings(environ={})
        assert settings == KernelSettings()
        assert settings.database_url == DEFAULT_DATABASE_URL
        assert settings.retry_attempts == 3

    def test_yaml_file(self, tmp_path):
        path = _write(tmp_path, {"lock_timeout_seconds": 2.5, "pool_size": 5})
        settings = load_settings(path, environ={})
        assert settings.lock_timeout_seconds == 2.5
        assert settings.pool_size == 5

    def test_nested_under_package_key(self, tmp_path):
        path = _write(tmp_path, {"inventory_kernel": {"log_level": "debug"}})
        assert load_settings(path, environ={}).log_level == "debug"

    def test_env_overrides_yaml(self, tmp_path):
        path = _write(tmp_path, {"retry_attempts": 7, "echo_sql": False})
        settings = load_settings(
            path, environ={"INVENTORY_RETRY_ATTEMPTS": "2", "INVENTORY_ECHO_SQL": "yes"}
        )
        assert settings.retry_attempts == 2
        assert settings.echo_sql is True

    def test_config_path_from_env(self, tmp_path):
        path = _write(tmp_path, {"database_url": "sqlite:///inventory.db"})
        settings = load_settings(environ={"INVENTORY_CONFIG": str(path)})
        assert settings.database_url == "sqlite:///inventory.db"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_settings(path, environ={}) == KernelSettings()


class TestInvalidSettings:
    def test_unknown_key(self, tmp_path):
        path = _write(tmp_path, {"max_bases": 10})
        with pytest.raises(ValueError, match="max_bases"):
            load_settings(path, environ={})

    def test_non_numeric(self):
        with pytest.raises(ValueError, match="retry_attempts"):
            load_settings(environ={"INVENTORY_RETRY_ATTEMPTS": "many"})

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError):
            load_settings(path, environ={})

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "absent.yaml", environ={})
