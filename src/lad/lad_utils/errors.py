# -*- coding: utf-8 -*-
"""错误分类体系

所有核心操作只抛出 LadError 的子类，退出码的转换只在命令行边界做一次。
"""

from enum import Enum
from typing import Optional

from lad.lad_utils.exitcode import ExitCode


class ErrorKind(Enum):
    """错误种类"""

    SUCCESS = "success"
    INVALID_INPUT = "invalid_input"
    PRECONDITION = "precondition"
    NETWORK = "network"
    NOT_FOUND = "not_found"
    SERVICE = "service"


_EXIT_CODES = {
    ErrorKind.SUCCESS: ExitCode.SUCCESS,
    ErrorKind.INVALID_INPUT: ExitCode.PARAM_ERROR,
    ErrorKind.PRECONDITION: ExitCode.PARAM_ERROR,
    ErrorKind.NETWORK: ExitCode.NETWORK_ERROR,
    ErrorKind.NOT_FOUND: ExitCode.RESOURCE_NOT_FOUND,
    ErrorKind.SERVICE: ExitCode.AWS_ERROR,
}


def exit_code_for(kind: ErrorKind) -> ExitCode:
    """返回错误种类对应的退出码"""
    return _EXIT_CODES[kind]


class LadError(Exception):
    """lad 错误基类"""

    kind: ErrorKind = ErrorKind.SERVICE

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint

    @property
    def exit_code(self) -> ExitCode:
        return exit_code_for(self.kind)


class InvalidInputError(LadError):
    """参数错误（百分比越界、缺少必需参数等）"""

    kind = ErrorKind.INVALID_INPUT


class PreconditionError(LadError):
    """前置条件不满足（例如 live 与 latest 指向同一版本时执行灰度）"""

    kind = ErrorKind.PRECONDITION


class ServiceError(LadError):
    """别名服务返回的错误"""

    kind = ErrorKind.SERVICE


class ServiceNetworkError(ServiceError):
    """网络或凭证错误"""

    kind = ErrorKind.NETWORK


class ServiceNotFoundError(ServiceError):
    """资源不存在"""

    kind = ErrorKind.NOT_FOUND


class ServiceGenericError(ServiceError):
    """其他服务错误"""

    kind = ErrorKind.SERVICE


_SERVICE_ERRORS = {
    ErrorKind.NETWORK: ServiceNetworkError,
    ErrorKind.NOT_FOUND: ServiceNotFoundError,
    ErrorKind.SERVICE: ServiceGenericError,
}


def service_error_for(kind: ErrorKind, message: str) -> ServiceError:
    """根据分类结果构造对应的服务错误"""
    error_cls = _SERVICE_ERRORS.get(kind, ServiceGenericError)
    return error_cls(message)
