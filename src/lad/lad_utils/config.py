# -*- coding: utf-8 -*-
"""配置管理模块。

工具配置从 YAML 文件读取（默认 ~/.lad/config.yaml），带有回退默认值。
命令行解析出的环境、函数名、Profile 与工具配置一起组成 CommandContext，
显式传递给状态机和自动灰度循环。
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from lad.lad_utils.duration import parse_duration
from lad.lad_utils.errors import InvalidInputError

logger = logging.getLogger(__name__)

VALID_ENVS = ("test", "prod")
DEFAULT_DATA_DIR = "~/.lad"
CONFIG_ENV_VAR = "LAD_CONFIG"


@dataclass
class LadSettings:
    """工具配置"""

    data_dir: str = DEFAULT_DATA_DIR
    rollback_log: Optional[str] = None
    samconfig: str = "samconfig.toml"
    pretty_output: bool = True
    print_error_traceback: bool = False
    # live 别名读取失败时是否中止（默认视为无活跃灰度）
    strict_canary_check: bool = False
    default_wait: str = "5m"
    default_percent: int = 10

    @property
    def rollback_log_path(self) -> Path:
        """回退日志文件路径"""
        if self.rollback_log:
            return Path(os.path.expanduser(self.rollback_log))
        return Path(os.path.expanduser(self.data_dir)) / "rollback.log"

    @property
    def default_wait_seconds(self) -> float:
        return parse_duration(self.default_wait)


_FIELD_TYPES = {
    "data_dir": str,
    "rollback_log": str,
    "samconfig": str,
    "pretty_output": bool,
    "print_error_traceback": bool,
    "strict_canary_check": bool,
    "default_wait": str,
    "default_percent": int,
}


def get_config_path(config_file: Optional[str] = None) -> Path:
    """
    获取配置文件路径。

    获取顺序：
    1. 显式传入的路径（--config）
    2. 环境变量 LAD_CONFIG
    3. ~/.lad/config.yaml
    """
    if config_file:
        return Path(os.path.expanduser(config_file))
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(os.path.expanduser(env_path))
    return Path(os.path.expanduser(DEFAULT_DATA_DIR)) / "config.yaml"


def settings_from_dict(data: Dict[str, Any]) -> LadSettings:
    """从字典构造配置，未知键忽略，类型错误视为参数错误"""
    values: Dict[str, Any] = {}
    for key, value in data.items():
        expected = _FIELD_TYPES.get(key)
        if expected is None:
            logger.debug(f"忽略未知配置项: {key}")
            continue
        if value is None:
            continue
        # bool 是 int 的子类，这里需要单独排除
        if expected is int and isinstance(value, bool):
            raise InvalidInputError(f"配置项 {key} 应为整数，实际为: {value!r}")
        if not isinstance(value, expected):
            raise InvalidInputError(
                f"配置项 {key} 应为 {expected.__name__}，实际为: {value!r}"
            )
        values[key] = value

    settings = LadSettings(**values)
    # 提前校验时长格式
    parse_duration(settings.default_wait)
    return settings


def load_settings(config_file: Optional[str] = None) -> LadSettings:
    """
    加载工具配置。

    参数:
        config_file: 配置文件路径，默认为None(使用~/.lad/config.yaml)

    返回:
        LadSettings: 配置文件不存在时返回默认配置
    """
    path = get_config_path(config_file)
    if not path.exists():
        if config_file:
            raise InvalidInputError(f"配置文件不存在: {path}")
        return LadSettings()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise InvalidInputError(f"无法读取配置文件 {path}: {e}") from e

    if not isinstance(data, dict):
        raise InvalidInputError(f"配置文件格式错误（顶层应为映射）: {path}")

    logger.debug(f"已加载配置文件: {path}")
    return settings_from_dict(data)


def validate_env(env: Optional[str]) -> str:
    """验证环境参数，只接受 test 或 prod"""
    if not env:
        raise InvalidInputError(
            "必须指定 --env 参数", hint=f"有效值为: {', '.join(VALID_ENVS)}"
        )
    if env not in VALID_ENVS:
        raise InvalidInputError(
            f"无效的环境值 '{env}'，有效值为: {', '.join(VALID_ENVS)}"
        )
    return env


@dataclass
class CommandContext:
    """单次命令执行的上下文"""

    env: str
    function_name: str
    profile: Optional[str] = None
    settings: LadSettings = field(default_factory=LadSettings)
