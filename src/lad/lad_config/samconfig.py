# -*- coding: utf-8 -*-
"""samconfig.toml 读取

从 [<env>.deploy.parameters] 中读取 stack_name 与 profile。
"""

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from lad.lad_utils.errors import InvalidInputError

logger = logging.getLogger(__name__)


@dataclass
class DeployParameters:
    """deploy 参数"""

    stack_name: str = ""
    profile: str = ""


@dataclass
class SAMConfig:
    """samconfig.toml 中各环境的 deploy 参数"""

    env_configs: Dict[str, DeployParameters] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "SAMConfig":
        config = cls()
        for key, value in raw.items():
            if key == "version" or not isinstance(value, dict):
                continue
            params = DeployParameters()
            deploy = value.get("deploy")
            if isinstance(deploy, dict) and isinstance(deploy.get("parameters"), dict):
                raw_params = deploy["parameters"]
                if isinstance(raw_params.get("stack_name"), str):
                    params.stack_name = raw_params["stack_name"]
                if isinstance(raw_params.get("profile"), str):
                    params.profile = raw_params["profile"]
            config.env_configs[key] = params
        return config

    def get_stack_name(self, env: str) -> str:
        """获取指定环境的 stack_name"""
        params = self.env_configs.get(env)
        return params.stack_name if params else ""

    def get_profile(self, env: str) -> str:
        """获取指定环境的 AWS profile"""
        params = self.env_configs.get(env)
        return params.profile if params else ""

    def get_function_name(self, env: str) -> str:
        """
        根据 stack_name 生成函数名

        格式: {stack_name}-function-default
        """
        stack_name = self.get_stack_name(env)
        if not stack_name:
            return ""
        return f"{stack_name}-function-default"


def load_samconfig(path: Union[str, Path]) -> SAMConfig:
    """
    加载 samconfig.toml 文件

    异常:
        OSError: 无法读取配置文件
        tomllib.TOMLDecodeError: 无法解析配置文件
    """
    with open(path, "rb") as f:
        raw = tomllib.load(f)
    return SAMConfig.from_dict(raw)


def resolve_function_name(env: str, override: Optional[str], samconfig_path: Union[str, Path]) -> str:
    """
    获取函数名

    优先级: --function > samconfig.toml
    """
    if override:
        return override

    try:
        config = load_samconfig(samconfig_path)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise InvalidInputError(
            f"无法读取 {samconfig_path}，请通过 --function 指定函数名: {e}"
        ) from e

    function_name = config.get_function_name(env)
    if not function_name:
        raise InvalidInputError(
            f"{samconfig_path} 中未找到 stack_name 配置，请通过 --function 指定函数名"
        )
    return function_name


def resolve_profile(env: str, override: Optional[str], samconfig_path: Union[str, Path]) -> Optional[str]:
    """
    获取 AWS Profile

    优先级: --profile > samconfig.toml，都未指定时返回 None（使用默认 AWS 配置）
    """
    if override:
        return override

    try:
        config = load_samconfig(samconfig_path)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.debug(f"无法读取 {samconfig_path}，使用默认 AWS 配置: {e}")
        return None

    return config.get_profile(env) or None
