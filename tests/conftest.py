# -*- coding: utf-8 -*-
"""pytest 配置文件"""
import os
import sys

import pytest

# 将 src 目录添加到 Python 路径
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from lad.lad_aws.client import AliasConfig, AliasServiceClient  # noqa: E402
from lad.lad_utils.errors import ServiceNotFoundError  # noqa: E402
from lad.lad_utils.output import OutputSink, PrettyOutput  # noqa: E402


class FakeAliasClient(AliasServiceClient):
    """内存中的别名服务，记录所有写操作"""

    def __init__(self, live=None, previous=None, latest=None, routing=None):
        self.aliases = {}
        if live is not None:
            self.aliases["live"] = AliasConfig("live", live, routing)
        if previous is not None:
            self.aliases["previous"] = AliasConfig("previous", previous)
        if latest is not None:
            self.aliases["latest"] = AliasConfig("latest", latest)
        self.versions = {
            a.version for a in self.aliases.values()
        }
        self.next_version = max([int(v) for v in self.versions] or [0]) + 1
        self.mutations = []
        # (操作, 参数) -> 异常
        self.failures = {}

    def _maybe_fail(self, operation, key):
        error = self.failures.get((operation, key))
        if error is not None:
            raise error

    def publish_version(self, function_name, description):
        self._maybe_fail("publish_version", function_name)
        version = str(self.next_version)
        self.next_version += 1
        self.versions.add(version)
        self.mutations.append(("publish_version", description))
        return version

    def get_alias(self, function_name, alias_name):
        self._maybe_fail("get_alias", alias_name)
        alias = self.aliases.get(alias_name)
        if alias is None:
            raise ServiceNotFoundError(f"ResourceNotFoundException: alias {alias_name} not found")
        return alias

    def update_alias(self, function_name, alias_name, version, routing=None):
        self._maybe_fail("update_alias", alias_name)
        self.mutations.append(("update_alias", alias_name, version, routing))
        self.aliases[alias_name] = AliasConfig(alias_name, version, routing)

    def version_exists(self, function_name, version):
        self._maybe_fail("version_exists", version)
        if version not in self.versions:
            raise ServiceNotFoundError(f"ResourceNotFoundException: version {version} not found")


class RecordingSink(OutputSink):
    """记录输出事件"""

    def __init__(self):
        self.events = []

    def emit(self, event):
        self.events.append(event)

    def texts(self, output_type=None):
        return [
            e.text
            for e in self.events
            if output_type is None or e.output_type == output_type
        ]


@pytest.fixture
def temp_dir(tmp_path):
    """临时目录 fixture，每个测试函数都会获得一个新的临时目录"""
    return tmp_path


@pytest.fixture
def fake_client_factory():
    return FakeAliasClient


@pytest.fixture
def output_sink():
    sink = RecordingSink()
    PrettyOutput.add_sink(sink)
    yield sink


@pytest.fixture(autouse=True)
def reset_output():
    """每个测试后恢复默认控制台输出，防止测试之间的干扰"""
    yield
    PrettyOutput.configure_console(pretty=False)
    PrettyOutput.clear_sinks(keep_default=True)
