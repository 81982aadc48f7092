"""Unit tests for Config (scarff.config).

Tests cover:
- Defaults and validation (log level, language aliases, templates_dir)
- save/load JSON round-trip and ConfigError on bad files
- from_env overlays and precedence over a loaded file
- Default file location and single-key get/set
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from scarff.config import Config
from scarff.errors import ConfigError
from scarff.models import Architecture, Language, ProjectType


class TestConfigDefaults:
    @pytest.mark.unit
    def test_defaults(self):
        config = Config()
        assert config.default_language is None
        assert config.default_project_type is None
        assert config.default_architecture is None
        assert config.templates_dir is None
        assert config.log_level == "WARNING"
        assert config.no_color is False

    @pytest.mark.unit
    def test_log_level_normalised(self):
        assert Config(log_level=" debug ").log_level == "DEBUG"

    @pytest.mark.unit
    def test_bad_log_level(self):
        with pytest.raises(ValueError):
            Config(log_level="chatty")

    @pytest.mark.unit
    def test_language_alias(self):
        assert Config(default_language="golang").default_language is Language.GO

    @pytest.mark.unit
    def test_policy_aliases(self):
        config = Config(default_project_type="api", default_architecture="clean")
        assert config.default_project_type is ProjectType.WEB_BACKEND
        assert config.default_architecture is Architecture.HEXAGONAL

    @pytest.mark.unit
    def test_bad_policy_value(self):
        with pytest.raises(ValueError):
            Config(default_architecture="spaghetti")

    @pytest.mark.unit
    def test_templates_dir_expanded(self):
        config = Config(templates_dir="~/templates")
        assert config.templates_dir == Path("~/templates").expanduser()


class TestConfigSerialisation:
    @pytest.mark.unit
    def test_save_and_load(self, tmp_path):
        config = Config(default_language=Language.RUST, log_level="INFO", no_color=True)
        path = config.save(tmp_path / "nested" / "scarff.json")

        assert path.exists()
        data = json.loads(path.read_text())
        assert data["default_language"] == "rust"
        assert "templates_dir" not in data

        assert Config.load(path) == config

    @pytest.mark.unit
    def test_load_missing_file(self, tmp_path):
        with pytest.raises(ConfigError) as exc_info:
            Config.load(tmp_path / "nope.json")
        assert exc_info.value.exit_code == 4

    @pytest.mark.unit
    def test_load_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError):
            Config.load(path)

    @pytest.mark.unit
    def test_load_invalid_value(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"default_language": "cobol"}))
        with pytest.raises(ConfigError, match="default_language"):
            Config.load(path)


class TestConfigFromEnv:
    @pytest.mark.unit
    def test_empty_environment(self):
        assert Config.from_env(environ={}) == Config()

    @pytest.mark.unit
    def test_reads_variables(self, tmp_path):
        env = {
            "SCARFF_DEFAULT_LANGUAGE": "ts",
            "SCARFF_DEFAULT_PROJECT_TYPE": "cli",
            "SCARFF_DEFAULT_ARCHITECTURE": "flat",
            "SCARFF_TEMPLATES_DIR": str(tmp_path),
            "SCARFF_LOG_LEVEL": "info",
            "NO_COLOR": "1",
        }
        config = Config.from_env(environ=env)
        assert config.default_language is Language.TYPESCRIPT
        assert config.default_project_type is ProjectType.CLI
        assert config.default_architecture is Architecture.FLAT
        assert config.templates_dir == tmp_path
        assert config.log_level == "INFO"
        assert config.no_color is True

    @pytest.mark.unit
    def test_empty_values_ignored(self):
        config = Config.from_env(environ={"SCARFF_DEFAULT_LANGUAGE": "", "NO_COLOR": ""})
        assert config.default_language is None
        assert config.no_color is False

    @pytest.mark.unit
    def test_env_overrides_base(self):
        base = Config(default_language=Language.RUST, log_level="ERROR")
        config = Config.from_env(base, environ={"SCARFF_DEFAULT_LANGUAGE": "go"})
        assert config.default_language is Language.GO
        assert config.log_level == "ERROR"

    @pytest.mark.unit
    def test_invalid_env_value(self):
        with pytest.raises(ConfigError, match="environment"):
            Config.from_env(environ={"SCARFF_DEFAULT_LANGUAGE": "cobol"})

    @pytest.mark.unit
    def test_resolve_file_then_env(self, tmp_path, monkeypatch):
        path = Config(default_language=Language.PYTHON, log_level="INFO").save(tmp_path / "c.json")
        monkeypatch.setenv("SCARFF_LOG_LEVEL", "DEBUG")
        monkeypatch.delenv("SCARFF_DEFAULT_LANGUAGE", raising=False)
        config = Config.resolve(path)
        assert config.default_language is Language.PYTHON
        assert config.log_level == "DEBUG"

    @pytest.mark.unit
    def test_resolve_reads_default_location(self, tmp_path, monkeypatch):
        path = Config(default_project_type=ProjectType.LIBRARY).save(tmp_path / "home.json")
        monkeypatch.setenv("SCARFF_CONFIG", str(path))
        monkeypatch.delenv("SCARFF_DEFAULT_PROJECT_TYPE", raising=False)
        assert Config.resolve().default_project_type is ProjectType.LIBRARY

    @pytest.mark.unit
    def test_resolve_without_default_file(self, tmp_path):
        environ = {"SCARFF_CONFIG": str(tmp_path / "absent.json")}
        assert Config.resolve(environ=environ) == Config()

    @pytest.mark.unit
    def test_resolve_explicit_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            Config.resolve(tmp_path / "absent.json", environ={})
        assert Config.resolve(tmp_path / "absent.json", missing_ok=True, environ={}) == Config()


class TestConfigLocation:
    @pytest.mark.unit
    def test_explicit_variable(self, tmp_path):
        path = tmp_path / "c.json"
        assert Config.default_path({"SCARFF_CONFIG": str(path)}) == path

    @pytest.mark.unit
    def test_xdg_config_home(self, tmp_path):
        assert Config.default_path({"XDG_CONFIG_HOME": str(tmp_path)}) == (
            tmp_path / "scarff" / "config.json"
        )

    @pytest.mark.unit
    def test_home_fallback(self):
        assert Config.default_path({}) == Path("~/.config/scarff/config.json").expanduser()


class TestConfigKeys:
    @pytest.mark.unit
    def test_keys(self):
        assert "default_project_type" in Config.keys()
        assert "no_color" in Config.keys()

    @pytest.mark.unit
    def test_get_value(self, tmp_path):
        config = Config(default_architecture="hexagonal", templates_dir=tmp_path)
        assert config.get_value("default_architecture") == "hexagonal"
        assert config.get_value("templates_dir") == str(tmp_path)
        assert config.get_value("default_language") is None
        assert config.get_value("no_color") is False

    @pytest.mark.unit
    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="unknown key") as exc_info:
            Config().get_value("colour")
        assert exc_info.value.exit_code == 4

    @pytest.mark.unit
    def test_with_value_parses_strings(self):
        config = Config().with_value("no_color", "yes").with_value("default_language", "py")
        assert config.no_color is True
        assert config.default_language is Language.PYTHON

    @pytest.mark.unit
    def test_with_value_leaves_original(self):
        original = Config()
        original.with_value("log_level", "debug")
        assert original.log_level == "WARNING"

    @pytest.mark.unit
    def test_empty_value_restores_default(self):
        config = Config(log_level="ERROR", default_language=Language.GO)
        assert config.with_value("log_level", "").log_level == "WARNING"
        assert config.with_value("default_language", "").default_language is None

    @pytest.mark.unit
    def test_invalid_value(self):
        with pytest.raises(ConfigError, match="default_project_type"):
            Config().with_value("default_project_type", "spreadsheet")
