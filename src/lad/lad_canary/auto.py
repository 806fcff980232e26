# -*- coding: utf-8 -*-
"""自动递进灰度

按步长逐步增加 latest 版本的流量，每个阶段等待固定时长，
最后通过 promote 完成 100% 切换。

live/latest 版本只在开始时读取一次，运行期间外部对别名的修改不会被感知。
任一步骤失败立即中止，已应用的灰度比例保持不变，不会重试也不会回滚。
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List

from lad.lad_aws.client import ALIAS_LATEST, ALIAS_LIVE
from lad.lad_canary.machine import DeploymentStateMachine, TransitionResult
from lad.lad_utils.duration import format_duration
from lad.lad_utils.errors import InvalidInputError, PreconditionError
from lad.lad_utils.output import OutputType, PrettyOutput

logger = logging.getLogger(__name__)


def plan_steps(step_percent: int) -> List[int]:
    """
    计算灰度步骤

    返回 step, 2*step, ... 中小于 100 的百分比，100% 由 promote 完成。
    """
    if isinstance(step_percent, bool) or not isinstance(step_percent, int):
        raise InvalidInputError(f"无效的百分比 '{step_percent}'，应为 1-100 的整数")
    if step_percent < 1 or step_percent > 100:
        raise InvalidInputError(f"无效的百分比 '{step_percent}'，有效范围为 1-100")
    return list(range(step_percent, 100, step_percent))


@dataclass
class AutoResult:
    """自动灰度的结果"""

    steps: List[int]
    live_version: str
    latest_version: str
    total_wait: float
    promote: TransitionResult
    applied: List[int] = field(default_factory=list)


class AutoProgression:
    """自动递进灰度驱动"""

    def __init__(
        self,
        machine: DeploymentStateMachine,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.machine = machine
        self._sleep = sleep

    def run(self, step_percent: int, wait_seconds: float) -> AutoResult:
        """
        执行自动灰度

        参数:
            step_percent: 每次增加的灰度百分比 (1-100)
            wait_seconds: 每个灰度阶段的等待时间（秒）
        """
        steps = plan_steps(step_percent)
        if wait_seconds <= 0:
            raise InvalidInputError(f"无效的等待时间 '{wait_seconds}s'，必须大于 0")

        PrettyOutput.info(f"灰度步骤: {steps} → promote")
        PrettyOutput.info("获取别名版本...")
        live_version = self.machine.read_alias(ALIAS_LIVE).version
        latest_version = self.machine.read_alias(ALIAS_LATEST).version

        if live_version == latest_version:
            raise PreconditionError(
                f"live 和 latest 指向同一版本 ({live_version})，请先执行 deploy 部署新版本"
            )

        total_steps = len(steps) + 1  # 包括最后的 promote
        applied: List[int] = []
        for index, percent in enumerate(steps, start=1):
            PrettyOutput.separator()
            PrettyOutput.print(
                f"[{index}/{total_steps}] 执行灰度: {percent}% 流量到新版本",
                OutputType.PROGRESS,
            )
            self.machine.apply_canary(live_version, latest_version, percent / 100)
            applied.append(percent)

            PrettyOutput.info(f"等待 {format_duration(wait_seconds)}...")
            logger.debug(f"灰度 {percent}% 已应用，等待 {wait_seconds}s")
            self._sleep(wait_seconds)

        PrettyOutput.separator()
        PrettyOutput.print(
            f"[{total_steps}/{total_steps}] 执行 promote，完成 100% 切换...",
            OutputType.PROGRESS,
        )
        promote = self.machine.apply_promote(live_version, latest_version)
        promote.message = "自动灰度发布完成!"

        return AutoResult(
            steps=steps,
            live_version=live_version,
            latest_version=latest_version,
            total_wait=len(steps) * wait_seconds,
            promote=promote,
            applied=applied,
        )
