# -*- coding: utf-8 -*-
"""灰度策略表

策略顺序: canary0 -> canary10 -> canary25 -> canary50 -> canary75 -> canary100 -> canary100
"""

from enum import Enum
from typing import List, Optional, Union


class CanaryStrategy(Enum):
    """灰度策略"""

    CANARY0 = "canary0"  # 0%，清除灰度，回到旧版本
    CANARY10 = "canary10"
    CANARY25 = "canary25"
    CANARY50 = "canary50"
    CANARY75 = "canary75"
    CANARY100 = "canary100"  # 全量切换，但不更新 previous

    @property
    def weight(self) -> float:
        return _WEIGHTS[self]

    @property
    def percent(self) -> int:
        return round(self.weight * 100)


_WEIGHTS = {
    CanaryStrategy.CANARY0: 0.0,
    CanaryStrategy.CANARY10: 0.10,
    CanaryStrategy.CANARY25: 0.25,
    CanaryStrategy.CANARY50: 0.50,
    CanaryStrategy.CANARY75: 0.75,
    CanaryStrategy.CANARY100: 1.0,
}

# 所有有效策略，按权重升序
ALL_STRATEGIES: List[CanaryStrategy] = list(CanaryStrategy)

StrategyLike = Union[CanaryStrategy, str]


def parse_strategy(strategy: StrategyLike) -> Optional[CanaryStrategy]:
    """把策略名转换为策略，无法识别时返回 None"""
    if isinstance(strategy, CanaryStrategy):
        return strategy
    try:
        return CanaryStrategy(str(strategy).strip().lower())
    except ValueError:
        return None


def is_valid(strategy: StrategyLike) -> bool:
    """验证策略是否有效"""
    return parse_strategy(strategy) is not None


def weight_of(strategy: StrategyLike) -> Optional[float]:
    """
    返回策略对应的权重

    返回:
        0.0-1.0 之间的权重；无法识别的策略返回 None（区别于 canary0 的 0.0）
    """
    parsed = parse_strategy(strategy)
    if parsed is None:
        return None
    return parsed.weight


def successor(strategy: StrategyLike) -> CanaryStrategy:
    """
    返回下一个策略

    最后一个策略返回自身；无法识别的策略返回第一个非零策略。
    """
    parsed = parse_strategy(strategy)
    if parsed is None:
        return CanaryStrategy.CANARY10
    index = ALL_STRATEGIES.index(parsed)
    return ALL_STRATEGIES[min(index + 1, len(ALL_STRATEGIES) - 1)]


def strategy_for_percent(percent: int) -> Optional[CanaryStrategy]:
    """返回与百分比完全对应的策略，没有对应策略时返回 None"""
    for strategy in ALL_STRATEGIES:
        if strategy.percent == percent:
            return strategy
    return None


def valid_strategy_names() -> str:
    return ", ".join(s.value for s in ALL_STRATEGIES)
