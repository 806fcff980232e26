# -*- coding: utf-8 -*-
"""回退审计日志

每次实际发生的回退追加一行，格式:
[timestamp] ENV=env FROM_VERSION=from TO_VERSION=to REASON="reason" OPERATOR=operator
"""

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Union

DEFAULT_REASON = "未指定原因"


def _now() -> datetime:
    return datetime.now().astimezone()


def format_rfc3339(timestamp: datetime) -> str:
    """格式化为 RFC3339 时间戳，UTC 使用 Z 后缀"""
    if timestamp.tzinfo is None:
        timestamp = timestamp.astimezone()
    text = timestamp.isoformat(timespec="seconds")
    if timestamp.utcoffset() == timezone.utc.utcoffset(None):
        text = text.replace("+00:00", "Z")
    return text


def escape_reason(reason: str) -> str:
    """转义原因中的反斜杠、引号和换行，保证每条日志只占一行"""
    return (
        reason.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )


def current_operator() -> str:
    """操作人，从 USER 环境变量获取"""
    return os.getenv("USER") or "unknown"


@dataclass
class RollbackLogEntry:
    """回退日志条目"""

    env: str
    from_version: str
    to_version: str
    reason: str = DEFAULT_REASON
    operator: str = field(default_factory=current_operator)
    timestamp: datetime = field(default_factory=_now)

    def format(self) -> str:
        """格式化日志条目"""
        return (
            f"[{format_rfc3339(self.timestamp)}] ENV={self.env} "
            f"FROM_VERSION={self.from_version} TO_VERSION={self.to_version} "
            f'REASON="{escape_reason(self.reason)}" OPERATOR={self.operator}'
        )

    def append_to_file(self, path: Union[str, Path]) -> None:
        """
        追加到日志文件，文件或目录不存在时创建

        异常:
            OSError: 无法打开或写入日志文件
        """
        log_path = Path(path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(log_path, "a", encoding="utf-8") as f:
            f.write(self.format() + "\n")
