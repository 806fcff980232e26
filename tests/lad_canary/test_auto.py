# -*- coding: utf-8 -*-
"""自动递进灰度测试"""

import pytest

from lad.lad_aws.client import AliasConfig
from lad.lad_canary.auto import AutoProgression, plan_steps
from lad.lad_canary.machine import DeploymentStateMachine
from lad.lad_utils.config import CommandContext, LadSettings
from lad.lad_utils.errors import (
    InvalidInputError,
    PreconditionError,
    ServiceGenericError,
)


class TestPlanSteps:
    @pytest.mark.parametrize(
        "step, expected",
        [
            (25, [25, 50, 75]),
            (30, [30, 60, 90]),
            (10, [10, 20, 30, 40, 50, 60, 70, 80, 90]),
            (50, [50]),
            (60, [60]),
            (100, []),
            (1, list(range(1, 100))),
        ],
    )
    def test_steps_below_100(self, step, expected):
        assert plan_steps(step) == expected

    @pytest.mark.parametrize("step", [0, -5, 101, True, 2.5, "10"])
    def test_invalid_step(self, step):
        with pytest.raises(InvalidInputError):
            plan_steps(step)


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_auto(fake_client_factory, temp_dir, sleeps):
    def _make(**aliases):
        client = fake_client_factory(**aliases)
        context = CommandContext(
            env="test",
            function_name="app-function-default",
            settings=LadSettings(data_dir=str(temp_dir)),
        )
        machine = DeploymentStateMachine(client, context)
        return AutoProgression(machine, sleep=sleeps.append), client

    return _make


def _live_updates(client):
    return [m for m in client.mutations if m[1] == "live"]


class TestAutoProgression:
    def test_step_25(self, make_auto, sleeps):
        auto, client = make_auto(live="3", previous="2", latest="4")
        result = auto.run(25, 60)

        assert result.steps == [25, 50, 75]
        assert result.applied == [25, 50, 75]
        assert _live_updates(client) == [
            ("update_alias", "live", "3", ("4", 0.25)),
            ("update_alias", "live", "3", ("4", 0.5)),
            ("update_alias", "live", "3", ("4", 0.75)),
            ("update_alias", "live", "4", None),
        ]
        assert client.aliases["previous"].version == "3"
        assert sleeps == [60, 60, 60]
        assert result.total_wait == 180
        assert result.promote.message == "自动灰度发布完成!"

    def test_step_30_never_lands_on_100(self, make_auto, sleeps):
        auto, client = make_auto(live="3", previous="2", latest="4")
        result = auto.run(30, 1)
        assert result.steps == [30, 60, 90]
        weights = [m[3][1] for m in _live_updates(client) if m[3] is not None]
        assert weights == pytest.approx([0.3, 0.6, 0.9])
        assert client.aliases["live"] == AliasConfig("live", "4", None)

    def test_step_100_promotes_directly(self, make_auto, sleeps):
        auto, client = make_auto(live="3", previous="2", latest="4")
        result = auto.run(100, 60)
        assert result.steps == []
        assert sleeps == []
        assert client.aliases["live"] == AliasConfig("live", "4", None)

    def test_same_version_is_rejected(self, make_auto, sleeps):
        auto, client = make_auto(live="3", previous="2", latest="3")
        with pytest.raises(PreconditionError):
            auto.run(25, 60)
        assert client.mutations == []
        assert sleeps == []

    @pytest.mark.parametrize("wait", [0, -1])
    def test_invalid_wait(self, make_auto, wait):
        auto, client = make_auto(live="3", previous="2", latest="4")
        with pytest.raises(InvalidInputError):
            auto.run(25, wait)
        assert client.mutations == []

    def test_failure_mid_sequence_keeps_applied_weight(self, make_auto, sleeps):
        auto, client = make_auto(live="3", previous="2", latest="4")

        def fail_on_second_sleep(seconds):
            sleeps.append(seconds)
            if len(sleeps) == 2:
                client.failures[("update_alias", "live")] = ServiceGenericError("throttled")

        auto._sleep = fail_on_second_sleep
        with pytest.raises(ServiceGenericError):
            auto.run(25, 10)

        # 第三步失败，停留在 50%，不会 promote 也不会回滚
        assert client.aliases["live"] == AliasConfig("live", "3", ("4", 0.5))
        assert client.aliases["previous"].version == "2"
        assert len(sleeps) == 2
