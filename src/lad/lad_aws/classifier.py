# -*- coding: utf-8 -*-
"""别名服务错误分类

根据错误信息（不区分大小写的子串匹配）判断错误种类：
网络关键词优先，其次是资源不存在关键词，其余都视为一般服务错误。
"""

from typing import Optional, Union

from lad.lad_utils.errors import ErrorKind

NETWORK_KEYWORDS = (
    "unable to locate credentials",
    "could not connect",
    "connection refused",
    "network",
    "timeout",
    "timed out",
    "unreachable",
)

RESOURCE_NOT_FOUND_KEYWORDS = (
    "resourcenotfoundexception",
    "does not exist",
    "not found",
    "cannot find",
)


def classify_error(error: Optional[Union[BaseException, str]]) -> ErrorKind:
    """对错误进行分类

    参数:
        error: 异常对象或错误信息，None 表示成功

    返回:
        ErrorKind: SUCCESS / NETWORK / NOT_FOUND / SERVICE 之一
    """
    if error is None:
        return ErrorKind.SUCCESS

    message = str(error).lower()

    for keyword in NETWORK_KEYWORDS:
        if keyword in message:
            return ErrorKind.NETWORK

    for keyword in RESOURCE_NOT_FOUND_KEYWORDS:
        if keyword in message:
            return ErrorKind.NOT_FOUND

    return ErrorKind.SERVICE
