# -*- coding: utf-8 -*-
"""进程退出码定义

供调用脚本/流水线判断执行结果。
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """lad 命令的退出码"""

    SUCCESS = 0  # 成功
    PARAM_ERROR = 1  # 参数错误 / 前置条件不满足
    AWS_ERROR = 2  # AWS 错误
    RESOURCE_NOT_FOUND = 3  # 资源不存在
    NETWORK_ERROR = 4  # 网络错误 / 凭证错误
