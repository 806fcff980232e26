# -*- coding: utf-8 -*-
"""错误分类与退出码测试"""

import pytest

from lad.lad_utils.errors import (
    ErrorKind,
    InvalidInputError,
    LadError,
    PreconditionError,
    ServiceGenericError,
    ServiceNetworkError,
    ServiceNotFoundError,
    exit_code_for,
    service_error_for,
)
from lad.lad_utils.exitcode import ExitCode


class TestExitCodes:
    def test_exit_code_values(self):
        assert ExitCode.SUCCESS == 0
        assert ExitCode.PARAM_ERROR == 1
        assert ExitCode.AWS_ERROR == 2
        assert ExitCode.RESOURCE_NOT_FOUND == 3
        assert ExitCode.NETWORK_ERROR == 4

    @pytest.mark.parametrize(
        "kind, code",
        [
            (ErrorKind.SUCCESS, 0),
            (ErrorKind.INVALID_INPUT, 1),
            (ErrorKind.PRECONDITION, 1),
            (ErrorKind.SERVICE, 2),
            (ErrorKind.NOT_FOUND, 3),
            (ErrorKind.NETWORK, 4),
        ],
    )
    def test_exit_code_for_every_kind(self, kind, code):
        assert exit_code_for(kind) == code


class TestErrorHierarchy:
    @pytest.mark.parametrize(
        "error_cls, code",
        [
            (InvalidInputError, 1),
            (PreconditionError, 1),
            (ServiceGenericError, 2),
            (ServiceNotFoundError, 3),
            (ServiceNetworkError, 4),
        ],
    )
    def test_error_exit_codes(self, error_cls, code):
        error = error_cls("boom")
        assert isinstance(error, LadError)
        assert error.exit_code == code
        assert error.message == "boom"
        assert str(error) == "boom"

    def test_hint_is_kept(self):
        error = PreconditionError("存在未完成的灰度发布", hint="请先执行 promote")
        assert error.hint == "请先执行 promote"

    @pytest.mark.parametrize(
        "kind, error_cls",
        [
            (ErrorKind.NETWORK, ServiceNetworkError),
            (ErrorKind.NOT_FOUND, ServiceNotFoundError),
            (ErrorKind.SERVICE, ServiceGenericError),
        ],
    )
    def test_service_error_for(self, kind, error_cls):
        error = service_error_for(kind, "msg")
        assert type(error) is error_cls
        assert error.kind == kind
