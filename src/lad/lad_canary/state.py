# -*- coding: utf-8 -*-
"""灰度状态

灰度状态由 live 别名的路由配置推导，不做持久化。
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from lad.lad_aws.client import AliasConfig


@dataclass(frozen=True)
class Stable:
    """无灰度，100% 流量到 version"""

    version: str


@dataclass(frozen=True)
class Canary:
    """灰度中，weight 比例的流量到 canary"""

    primary: str
    canary: str
    weight: float


CanaryState = Union[Stable, Canary]


def derive_canary_state(live: AliasConfig) -> CanaryState:
    """由 live 别名推导灰度状态"""
    if live.routing is None:
        return Stable(live.version)
    canary_version, weight = live.routing
    return Canary(primary=live.version, canary=canary_version, weight=weight)


class StatusClass(Enum):
    """status 命令的状态分类"""

    STABLE = "stable"  # live == latest，无灰度
    PENDING = "pending"  # live != latest，无灰度，有新版本待发布
    CANARY_ACTIVE = "canary-active"  # 存在灰度路由
    INCOMPLETE = "incomplete"  # live 或 latest 未配置


@dataclass(frozen=True)
class AliasSnapshot:
    """三个别名的快照，读取失败的别名为 None"""

    live: Optional[AliasConfig]
    previous: Optional[AliasConfig]
    latest: Optional[AliasConfig]

    @property
    def status_class(self) -> StatusClass:
        if self.live is not None and self.live.routing is not None:
            return StatusClass.CANARY_ACTIVE
        if self.live is None or self.latest is None:
            return StatusClass.INCOMPLETE
        if self.live.version == self.latest.version:
            return StatusClass.STABLE
        return StatusClass.PENDING

    def recommended_actions(self, env: str) -> List[str]:
        """根据当前状态给出可用操作提示"""
        status = self.status_class
        if status == StatusClass.CANARY_ACTIVE:
            return [
                f"完成灰度发布: lad --env {env} promote",
                f"回退灰度: lad --env {env} rollback",
                f"调整灰度比例: lad --env {env} canary --strategy <strategy>",
            ]
        if status == StatusClass.PENDING:
            return [
                f"开始灰度发布: lad --env {env} canary --strategy canary10",
                f"自动灰度发布: lad --env {env} auto --percent 10 --wait 5m",
                f"直接发布: lad --env {env} promote --skip-canary",
            ]
        actions = [f"部署新版本: lad --env {env} deploy"]
        if (
            status == StatusClass.STABLE
            and self.previous is not None
            and self.live is not None
            and self.previous.version != self.live.version
        ):
            actions.append(f"回退到上一版本: lad --env {env} rollback")
        return actions
