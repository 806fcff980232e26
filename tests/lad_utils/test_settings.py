# -*- coding: utf-8 -*-
"""工具配置测试"""

from pathlib import Path

import pytest

from lad.lad_utils.config import (
    CONFIG_ENV_VAR,
    CommandContext,
    LadSettings,
    get_config_path,
    load_settings,
    settings_from_dict,
    validate_env,
)
from lad.lad_utils.errors import InvalidInputError


class TestLadSettings:
    def test_defaults(self):
        settings = LadSettings()
        assert settings.samconfig == "samconfig.toml"
        assert settings.pretty_output is True
        assert settings.strict_canary_check is False
        assert settings.default_wait_seconds == 300
        assert settings.default_percent == 10

    def test_rollback_log_defaults_to_data_dir(self, temp_dir):
        settings = LadSettings(data_dir=str(temp_dir))
        assert settings.rollback_log_path == temp_dir / "rollback.log"

    def test_explicit_rollback_log(self, temp_dir):
        settings = LadSettings(rollback_log=str(temp_dir / "logs" / "r.log"))
        assert settings.rollback_log_path == temp_dir / "logs" / "r.log"


class TestSettingsFromDict:
    def test_known_keys(self):
        settings = settings_from_dict(
            {"default_wait": "90s", "default_percent": 25, "strict_canary_check": True}
        )
        assert settings.default_wait_seconds == 90
        assert settings.default_percent == 25
        assert settings.strict_canary_check is True

    def test_unknown_and_null_keys_ignored(self):
        settings = settings_from_dict({"unknown": 1, "samconfig": None})
        assert settings == LadSettings()

    @pytest.mark.parametrize(
        "data",
        [
            {"default_percent": "10"},
            {"default_percent": True},
            {"pretty_output": "yes"},
            {"default_wait": "soon"},
        ],
    )
    def test_invalid_values(self, data):
        with pytest.raises(InvalidInputError):
            settings_from_dict(data)


class TestLoadSettings:
    def test_missing_default_file_returns_defaults(self, monkeypatch, temp_dir):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(temp_dir / "missing.yaml"))
        assert load_settings() == LadSettings()

    def test_missing_explicit_file_is_error(self, temp_dir):
        with pytest.raises(InvalidInputError):
            load_settings(str(temp_dir / "missing.yaml"))

    def test_load_yaml(self, temp_dir):
        path = temp_dir / "config.yaml"
        path.write_text("default_wait: 1m\nrollback_log: /tmp/lad.log\n", encoding="utf-8")
        settings = load_settings(str(path))
        assert settings.default_wait_seconds == 60
        assert settings.rollback_log_path == Path("/tmp/lad.log")

    def test_env_var_path(self, monkeypatch, temp_dir):
        path = temp_dir / "env.yaml"
        path.write_text("default_percent: 20\n", encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert get_config_path() == path
        assert load_settings().default_percent == 20

    def test_empty_file_returns_defaults(self, temp_dir):
        path = temp_dir / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert load_settings(str(path)) == LadSettings()

    @pytest.mark.parametrize("content", ["- a\n- b\n", "key: [unclosed\n"])
    def test_malformed_file(self, temp_dir, content):
        path = temp_dir / "config.yaml"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(InvalidInputError):
            load_settings(str(path))


class TestEnvAndContext:
    @pytest.mark.parametrize("env", ["test", "prod"])
    def test_valid_env(self, env):
        assert validate_env(env) == env

    @pytest.mark.parametrize("env", [None, "", "dev", "PROD"])
    def test_invalid_env(self, env):
        with pytest.raises(InvalidInputError):
            validate_env(env)

    def test_context_defaults(self):
        context = CommandContext(env="test", function_name="app-function-default")
        assert context.profile is None
        assert isinstance(context.settings, LadSettings)
