# -*- coding: utf-8 -*-
"""外部命令执行

deploy 通过 CommandExecutor 调用 sam 命令，测试时可替换为假实现。
"""

import logging
import subprocess
from abc import ABC, abstractmethod

from lad.lad_utils.errors import ServiceGenericError

logger = logging.getLogger(__name__)


class CommandExecutor(ABC):
    """命令执行接口"""

    @abstractmethod
    def run(self, name: str, *args: str) -> None:
        """执行命令，失败时抛出 ServiceGenericError"""


class SubprocessExecutor(CommandExecutor):
    """实际的命令执行器，输出直接继承当前终端"""

    def run(self, name: str, *args: str) -> None:
        cmd = [name, *args]
        logger.debug(f"执行命令: {cmd}")
        try:
            subprocess.run(cmd, check=True)
        except FileNotFoundError as e:
            raise ServiceGenericError(f"找不到命令 '{name}'，请确认已安装") from e
        except subprocess.CalledProcessError as e:
            raise ServiceGenericError(
                f"命令执行失败 ({' '.join(cmd)})，退出码 {e.returncode}"
            ) from e
