# -*- coding: utf-8 -*-
"""samconfig.toml 读取测试"""

import pytest

from lad.lad_config.samconfig import (
    SAMConfig,
    load_samconfig,
    resolve_function_name,
    resolve_profile,
)
from lad.lad_utils.errors import InvalidInputError

SAMCONFIG = """version = 0.1

[test.deploy.parameters]
stack_name = "my-app-test"
profile = "test-profile"

[prod.deploy.parameters]
stack_name = "my-app-prod"
"""


@pytest.fixture
def samconfig_path(temp_dir):
    path = temp_dir / "samconfig.toml"
    path.write_text(SAMCONFIG, encoding="utf-8")
    return path


class TestSAMConfig:
    def test_load(self, samconfig_path):
        config = load_samconfig(samconfig_path)
        assert config.get_stack_name("test") == "my-app-test"
        assert config.get_profile("test") == "test-profile"
        assert config.get_profile("prod") == ""
        assert config.get_function_name("prod") == "my-app-prod-function-default"

    def test_unknown_env(self, samconfig_path):
        config = load_samconfig(samconfig_path)
        assert config.get_stack_name("dev") == ""
        assert config.get_function_name("dev") == ""

    def test_from_dict_skips_non_tables(self):
        config = SAMConfig.from_dict({"version": 0.1, "default": {"global": {}}})
        assert list(config.env_configs) == ["default"]
        assert config.get_stack_name("default") == ""


class TestResolve:
    def test_function_override_wins(self, temp_dir):
        assert resolve_function_name("test", "custom", temp_dir / "missing.toml") == "custom"

    def test_function_from_samconfig(self, samconfig_path):
        assert resolve_function_name("test", None, samconfig_path) == "my-app-test-function-default"

    def test_function_missing_file(self, temp_dir):
        with pytest.raises(InvalidInputError) as exc_info:
            resolve_function_name("test", None, temp_dir / "missing.toml")
        assert "--function" in exc_info.value.message

    def test_function_missing_stack(self, samconfig_path):
        with pytest.raises(InvalidInputError):
            resolve_function_name("dev", None, samconfig_path)

    def test_function_invalid_toml(self, temp_dir):
        path = temp_dir / "samconfig.toml"
        path.write_text("[test.deploy\n", encoding="utf-8")
        with pytest.raises(InvalidInputError):
            resolve_function_name("test", None, path)

    def test_profile(self, samconfig_path, temp_dir):
        assert resolve_profile("test", "cli", samconfig_path) == "cli"
        assert resolve_profile("test", None, samconfig_path) == "test-profile"
        assert resolve_profile("prod", None, samconfig_path) is None
        assert resolve_profile("test", None, temp_dir / "missing.toml") is None
