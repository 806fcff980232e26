# -*- coding: utf-8 -*-
"""灰度策略表测试"""

import pytest

from lad.lad_canary.strategy import (
    ALL_STRATEGIES,
    CanaryStrategy,
    is_valid,
    parse_strategy,
    strategy_for_percent,
    successor,
    valid_strategy_names,
    weight_of,
)


class TestStrategyTable:
    def test_order_and_weights(self):
        assert [s.value for s in ALL_STRATEGIES] == [
            "canary0",
            "canary10",
            "canary25",
            "canary50",
            "canary75",
            "canary100",
        ]
        assert [weight_of(s) for s in ALL_STRATEGIES] == [0.0, 0.10, 0.25, 0.50, 0.75, 1.0]

    def test_weights_strictly_increasing(self):
        weights = [weight_of(s) for s in ALL_STRATEGIES]
        assert all(a < b for a, b in zip(weights, weights[1:]))

    @pytest.mark.parametrize("strategy", ALL_STRATEGIES)
    def test_successor_never_decreases(self, strategy):
        assert weight_of(successor(strategy)) >= weight_of(strategy)

    def test_successor_chain(self):
        assert successor("canary0") == CanaryStrategy.CANARY10
        assert successor("canary10") == CanaryStrategy.CANARY25
        assert successor("canary75") == CanaryStrategy.CANARY100

    def test_successor_saturates(self):
        assert successor(CanaryStrategy.CANARY100) == CanaryStrategy.CANARY100
        assert successor(successor(CanaryStrategy.CANARY100)) == CanaryStrategy.CANARY100

    def test_successor_of_unknown(self):
        assert successor("canary33") == CanaryStrategy.CANARY10

    @pytest.mark.parametrize("name", ["", "canary", "canary33", "linear10"])
    def test_unknown_strategy(self, name):
        assert weight_of(name) is None
        assert not is_valid(name)
        assert parse_strategy(name) is None

    def test_canary0_is_valid_with_zero_weight(self):
        assert is_valid("canary0")
        assert weight_of("canary0") == 0.0

    def test_parse_is_case_insensitive(self):
        assert parse_strategy(" Canary50 ") == CanaryStrategy.CANARY50

    def test_percent(self):
        assert CanaryStrategy.CANARY25.percent == 25
        assert strategy_for_percent(75) == CanaryStrategy.CANARY75
        assert strategy_for_percent(30) is None

    def test_valid_strategy_names(self):
        assert valid_strategy_names().startswith("canary0, canary10")
