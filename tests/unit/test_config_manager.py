"""Unit tests for configuration manager."""

import os
import pytest
from pathlib import Path

from src.remoting_guard.config.manager import ConfigManager, initialize_config


@pytest.fixture
def config_file(tmp_path):
    """Write a TOML config file and return its path."""
    def _write(content: str) -> Path:
        path = tmp_path / "config.toml"
        path.write_text(content)
        return path
    return _write


@pytest.fixture
def no_env(tmp_path):
    """Path to a .env file that does not exist."""
    return tmp_path / "missing.env"


class TestConfigManagerInitialization:
    """Test ConfigManager initialization."""

    def test_init_with_defaults(self):
        """ConfigManager should initialize with default paths."""
        manager = ConfigManager()
        assert manager.config_file == Path("config/default.toml")
        assert manager.env_file == Path(".env")
        assert manager.static_config == {}
        assert manager.dynamic_config == {}

    def test_init_with_custom_paths(self):
        """ConfigManager should accept custom file paths."""
        config_path = Path("custom/config.toml")
        env_path = Path("custom/.env")
        manager = ConfigManager(config_file=config_path, env_file=env_path)
        assert manager.config_file == config_path
        assert manager.env_file == env_path


class TestStaticConfigLoading:
    """Test static configuration loading."""

    def test_missing_file_uses_defaults(self, tmp_path, no_env):
        """Startup never fails because the config file is absent."""
        manager = ConfigManager(config_file=tmp_path / "absent.toml", env_file=no_env)
        config = manager.load_static_config()

        assert config == {
            "denylist.additional": [],
            "role_check.bypass_all": False,
            "role_check.bypass_additional": [],
        }
        assert manager.static_config == config

    def test_load_from_file(self, config_file, no_env):
        path = config_file(
            '[denylist]\n'
            'additional = ["pkg.mod.Dangerous"]\n'
            '[role_check]\n'
            'bypass_all = true\n'
            'bypass_additional = ["pkg.mod.Legacy"]\n'
        )
        config = ConfigManager(config_file=path, env_file=no_env).load_static_config()

        assert config["denylist.additional"] == ["pkg.mod.Dangerous"]
        assert config["role_check.bypass_all"] is True
        assert config["role_check.bypass_additional"] == ["pkg.mod.Legacy"]

    def test_malformed_lists_tolerated(self, config_file, no_env):
        """Whitespace, empty and non-string entries are dropped, not fatal."""
        path = config_file(
            '[denylist]\n'
            'additional = [" pkg.A ", "", "   ", 7, "pkg.B"]\n'
            '[role_check]\n'
            'bypass_additional = "pkg.C, ,pkg.D,"\n'
        )
        config = ConfigManager(config_file=path, env_file=no_env).load_static_config()

        assert config["denylist.additional"] == ["pkg.A", "pkg.B"]
        assert config["role_check.bypass_additional"] == ["pkg.C", "pkg.D"]

    def test_non_list_value_ignored(self, config_file, no_env):
        path = config_file('[denylist]\nadditional = 12\n')
        config = ConfigManager(config_file=path, env_file=no_env).load_static_config()

        assert config["denylist.additional"] == []

    def test_wrong_bool_type_rejected(self, config_file, no_env):
        path = config_file('[role_check]\nbypass_all = "maybe"\n')

        with pytest.raises(ValueError, match="role_check.bypass_all"):
            ConfigManager(config_file=path, env_file=no_env).load_static_config()

    def test_env_variable_override(self, config_file, no_env, monkeypatch):
        """Environment variables should override TOML values."""
        path = config_file('[denylist]\nadditional = ["pkg.FromToml"]\n')
        monkeypatch.setenv("REMOTING_GUARD_DENYLIST_ADDITIONAL", " pkg.A,,pkg.B ")
        monkeypatch.setenv("REMOTING_GUARD_ROLE_CHECK_BYPASS_ALL", "TRUE")

        config = ConfigManager(config_file=path, env_file=no_env).load_static_config()

        assert config["denylist.additional"] == ["pkg.A", "pkg.B"]
        assert config["role_check.bypass_all"] is True

    def test_env_file_loaded(self, tmp_path, monkeypatch):
        monkeypatch.delenv("REMOTING_GUARD_ROLE_CHECK_BYPASS_ADDITIONAL", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("REMOTING_GUARD_ROLE_CHECK_BYPASS_ADDITIONAL=pkg.Legacy\n")

        try:
            config = ConfigManager(
                config_file=tmp_path / "absent.toml", env_file=env_file
            ).load_static_config()
            assert config["role_check.bypass_additional"] == ["pkg.Legacy"]
        finally:
            os.environ.pop("REMOTING_GUARD_ROLE_CHECK_BYPASS_ADDITIONAL", None)

    def test_shipped_default_file_loads(self, no_env):
        """config/default.toml in the repository is valid."""
        default = Path(__file__).resolve().parents[2] / "config" / "default.toml"
        manager = ConfigManager(config_file=default, env_file=no_env)

        assert manager.load_static_config()["role_check.bypass_all"] is False
        assert manager.load_dynamic_config_defaults()["pipeline.allow_legacy_operations"] is False


class TestDynamicConfig:
    """Test dynamic configuration loading and hot updates."""

    def test_load_dynamic_defaults(self, config_file, no_env):
        path = config_file('[pipeline]\nallow_legacy_operations = true\n')
        manager = ConfigManager(config_file=path, env_file=no_env)

        config = manager.load_dynamic_config_defaults()

        assert config == {"pipeline.allow_legacy_operations": True}
        assert manager.get("pipeline.allow_legacy_operations") is True

    def test_update_dynamic_config(self, tmp_path, no_env):
        manager = initialize_config(config_file=tmp_path / "absent.toml", env_file=no_env)
        manager.update_dynamic_config("pipeline.allow_legacy_operations", True)

        assert manager.get("pipeline.allow_legacy_operations") is True

    def test_update_static_config_fails(self, tmp_path, no_env):
        manager = initialize_config(config_file=tmp_path / "absent.toml", env_file=no_env)

        with pytest.raises(KeyError, match="restart required"):
            manager.update_dynamic_config("role_check.bypass_all", True)

    def test_update_with_validation_failure(self, tmp_path, no_env):
        manager = initialize_config(config_file=tmp_path / "absent.toml", env_file=no_env)

        with pytest.raises(ValueError):
            manager.update_dynamic_config("pipeline.allow_legacy_operations", "yes")

    def test_subscriber_notification(self, tmp_path, no_env):
        manager = initialize_config(config_file=tmp_path / "absent.toml", env_file=no_env)
        received = []

        def on_update(key, value):
            received.append((key, value))

        manager.subscribe(on_update)
        manager.update_dynamic_config("pipeline.allow_legacy_operations", True)

        assert received == [("pipeline.allow_legacy_operations", True)]

    def test_failing_subscriber_does_not_block_others(self, tmp_path, no_env):
        manager = initialize_config(config_file=tmp_path / "absent.toml", env_file=no_env)
        received = []

        def broken(key, value):
            raise RuntimeError("subscriber failed")

        manager.subscribe(broken)
        manager.subscribe(lambda key, value: received.append(value))
        manager.update_dynamic_config("pipeline.allow_legacy_operations", True)

        assert received == [True]


class TestConfigGet:
    """Test value lookup."""

    def test_get_before_load_returns_default(self):
        assert ConfigManager().get("role_check.bypass_all") is False

    def test_get_nonexistent_key(self):
        with pytest.raises(KeyError):
            ConfigManager().get("nonexistent.key")


class TestHelpers:
    """Test TOML flattening and env parsing."""

    def test_flatten_nested_structure(self):
        manager = ConfigManager()
        flattened = manager._flatten_toml({"denylist": {"additional": ["a"]}, "top": 1})
        assert flattened == {"denylist.additional": ["a"], "top": 1}

    @pytest.mark.parametrize("raw,expected", [
        ("true", True), ("1", True), ("yes", True), ("on", True),
        ("false", False), ("0", False), ("", False),
    ])
    def test_parse_bool(self, raw, expected):
        assert ConfigManager()._parse_env_value(raw, bool) is expected

    def test_parse_list_drops_empty_entries(self):
        assert ConfigManager()._parse_env_value(" a , ,b,", list) == ["a", "b"]

    def test_parse_unsupported_type(self):
        with pytest.raises(ValueError):
            ConfigManager()._parse_env_value("x", dict)
