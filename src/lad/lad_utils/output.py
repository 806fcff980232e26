# -*- coding: utf-8 -*-
"""
输出格式化模块
该模块为 lad 提供终端输出工具。
包含：
- 用于分类不同输出类型的OutputType枚举
- 输出事件与输出后端（Sink）抽象
- 用于格式化和显示样式化输出的PrettyOutput类
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import colorama
from rich.console import Console
from rich.panel import Panel
from rich.text import Text
from rich.theme import Theme

# 初始化colorama以支持跨平台的彩色文本
colorama.init()

custom_theme = Theme(
    {
        "INFO": "default",
        "WARNING": "yellow",
        "ERROR": "red",
        "SUCCESS": "green",
        "PROGRESS": "cyan",
        "RESULT": "blue",
        "DEBUG": "grey58",
    }
)
console = Console(theme=custom_theme)
err_console = Console(theme=custom_theme, stderr=True)


class OutputType(Enum):
    """
    输出类型枚举，用于分类和样式化不同类型的消息。

    属性：
        INFO: 普通信息
        SUCCESS: 成功信息
        WARNING: 警告信息
        ERROR: 错误信息（输出到 stderr）
        PROGRESS: 执行进度
        RESULT: 执行结果
        DEBUG: 调试信息
    """

    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"
    PROGRESS = "PROGRESS"
    RESULT = "RESULT"
    DEBUG = "DEBUG"


@dataclass
class OutputEvent:
    """
    输出事件的通用结构，供不同输出后端（Sink）消费。
    - text: 文本内容
    - output_type: 输出类型
    - timestamp: 是否显示时间戳
    - section: 若为章节标题输出，填入标题文本；否则为None
    - separator: 是否为分隔线
    - context: 额外上下文
    """

    text: str
    output_type: OutputType
    timestamp: bool = False
    section: Optional[str] = None
    separator: bool = False
    context: Optional[Dict[str, Any]] = None


class OutputSink(ABC):
    """输出后端抽象接口，不同前端（控制台/日志/测试）实现该接口以消费输出事件。"""

    @abstractmethod
    def emit(self, event: OutputEvent) -> None:  # pragma: no cover - 抽象方法
        raise NotImplementedError


class ConsoleOutputSink(OutputSink):
    """
    默认控制台输出实现。

    pretty=False 时输出与脚本友好的纯文本行：
    成功 "✓ xxx"，警告 "⚠ xxx"，错误 "错误: xxx"（stderr）。
    """

    _PLAIN_PREFIX = {
        OutputType.SUCCESS: "✓ ",
        OutputType.WARNING: "⚠ ",
        OutputType.ERROR: "错误: ",
    }

    def __init__(self, pretty: bool = False, traceback: bool = False) -> None:
        self.pretty = pretty
        self.traceback = traceback

    def emit(self, event: OutputEvent) -> None:
        target = err_console if event.output_type == OutputType.ERROR else console

        if event.separator:
            target.print(Text(PrettyOutput.SEPARATOR))
            return

        # 章节输出
        if event.section is not None:
            text = Text(event.section, style=event.output_type.value, justify="center")
            if self.pretty:
                target.print(Panel(text, border_style=event.output_type.value))
            else:
                target.print(text)
            return

        line = self._PLAIN_PREFIX.get(event.output_type, "") + event.text
        if self.pretty:
            header = PrettyOutput._format(event.output_type, event.timestamp)
            target.print(Text(header + line, style=event.output_type.value))
        else:
            target.print(Text(line))

        if self.traceback and event.output_type == OutputType.ERROR:
            try:
                err_console.print_exception()
            except Exception as e:
                err_console.print(f"Error: {e}")


# 模块级输出分发器（默认注册控制台后端）
_output_sinks: List[OutputSink] = [ConsoleOutputSink()]


def emit_output(event: OutputEvent) -> None:
    """向所有已注册的输出后端广播事件。"""
    for sink in list(_output_sinks):
        try:
            sink.emit(event)
        except Exception as e:
            # 后端故障不影响其他后端
            err_console.print(f"[输出后端错误] {sink.__class__.__name__}: {e}")


class PrettyOutput:
    """
    使用rich库格式化和显示终端输出的类。
    """

    SEPARATOR = "=========================================="

    # 不同输出类型的图标
    _ICONS = {
        OutputType.INFO: "ℹ️",
        OutputType.SUCCESS: "✅",
        OutputType.WARNING: "⚠️",
        OutputType.ERROR: "❌",
        OutputType.PROGRESS: "⏳",
        OutputType.RESULT: "✨",
        OutputType.DEBUG: "🔍",
    }

    @staticmethod
    def _format(output_type: OutputType, timestamp: bool = True) -> str:
        """
        使用时间戳和图标格式化输出头。

        参数：
            output_type: 输出类型
            timestamp: 是否包含时间戳

        返回：
            str: 格式化后的输出头
        """
        icon = PrettyOutput._ICONS.get(output_type, "")
        formatted = f"{icon}  "
        if timestamp:
            formatted += f"[{datetime.now().strftime('%H:%M:%S')}][{output_type.value}] "
        return formatted

    @staticmethod
    def print(text: str, output_type: OutputType, timestamp: bool = False) -> None:
        """打印一行格式化输出（事件 + Sink 机制）"""
        emit_output(
            OutputEvent(text=text, output_type=output_type, timestamp=timestamp)
        )

    @staticmethod
    def info(text: str) -> None:
        PrettyOutput.print(text, OutputType.INFO)

    @staticmethod
    def success(text: str) -> None:
        PrettyOutput.print(text, OutputType.SUCCESS)

    @staticmethod
    def warning(text: str) -> None:
        PrettyOutput.print(text, OutputType.WARNING)

    @staticmethod
    def error(text: str) -> None:
        PrettyOutput.print(text, OutputType.ERROR)

    @staticmethod
    def section(title: str, output_type: OutputType = OutputType.INFO) -> None:
        """
        在样式化面板中打印章节标题（通过事件 + Sink 机制分发）。
        """
        emit_output(OutputEvent(text="", output_type=output_type, section=title))

    @staticmethod
    def separator() -> None:
        """输出分隔线"""
        emit_output(OutputEvent(text="", output_type=OutputType.INFO, separator=True))

    # Sink管理（为外部注册自定义后端预留）
    @staticmethod
    def add_sink(sink: OutputSink) -> None:
        """注册一个新的输出后端。"""
        _output_sinks.append(sink)

    @staticmethod
    def clear_sinks(keep_default: bool = True) -> None:
        """清空已注册的输出后端；可选择保留默认控制台后端。"""
        if keep_default:
            _output_sinks[:] = [
                s for s in _output_sinks if isinstance(s, ConsoleOutputSink)
            ]
        else:
            _output_sinks.clear()

    @staticmethod
    def configure_console(pretty: bool, traceback: bool = False) -> None:
        """用新的设置替换控制台后端"""
        _output_sinks[:] = [
            s for s in _output_sinks if not isinstance(s, ConsoleOutputSink)
        ]
        _output_sinks.insert(0, ConsoleOutputSink(pretty=pretty, traceback=traceback))
