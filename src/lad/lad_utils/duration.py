# -*- coding: utf-8 -*-
"""时长解析

支持 "90s"、"5m"、"1h30m"、"1.5m" 这类带单位的时长字符串。
"""

import re

from lad.lad_utils.errors import InvalidInputError

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(value: str) -> float:
    """把时长字符串解析为秒数

    参数:
        value: 时长字符串，例如 "5m"、"1h30m"

    返回:
        float: 秒数

    异常:
        InvalidInputError: 格式无效
    """
    text = (value or "").strip()
    if not text:
        raise InvalidInputError("时长不能为空")

    pos = 0
    total = 0.0
    for match in _PART_RE.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()

    if pos != len(text):
        raise InvalidInputError(
            f"无效的时长 '{value}'，示例: 30s, 5m, 1h30m"
        )
    return total


def format_duration(seconds: float) -> str:
    """把秒数格式化为 "1h2m3s" 形式"""
    if seconds < 1:
        ms = seconds * 1000
        return f"{ms:g}ms"

    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    parts = []
    if hours:
        parts.append(f"{int(hours)}h")
    if hours or minutes:
        parts.append(f"{int(minutes)}m")
    parts.append(f"{secs:g}s")
    return "".join(parts)
