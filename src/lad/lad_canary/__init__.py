"""lad 灰度发布核心

提供灰度策略表、发布状态机、自动递进灰度和回退审计日志。

主要功能：
- 灰度策略：canary0/10/25/50/75/100 及其后继关系
- 状态机：deploy / canary / promote / rollback / switch / status
- 自动灰度：按步长递增流量，最后 promote
- 回退日志：每次回退追加一行审计记录
"""

from lad.lad_canary.audit import RollbackLogEntry
from lad.lad_canary.auto import AutoProgression, AutoResult, plan_steps
from lad.lad_canary.machine import DeploymentStateMachine, TransitionResult
from lad.lad_canary.state import (
    AliasSnapshot,
    Canary,
    Stable,
    StatusClass,
    derive_canary_state,
)
from lad.lad_canary.strategy import (
    ALL_STRATEGIES,
    CanaryStrategy,
    is_valid,
    successor,
    weight_of,
)

__all__ = [
    "ALL_STRATEGIES",
    "AliasSnapshot",
    "AutoProgression",
    "AutoResult",
    "Canary",
    "CanaryStrategy",
    "DeploymentStateMachine",
    "RollbackLogEntry",
    "Stable",
    "StatusClass",
    "TransitionResult",
    "derive_canary_state",
    "is_valid",
    "plan_steps",
    "successor",
    "weight_of",
]
