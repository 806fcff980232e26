# -*- coding: utf-8 -*-
"""灰度状态与别名快照测试"""

import pytest

from lad.lad_aws.client import AliasConfig
from lad.lad_canary.state import (
    AliasSnapshot,
    Canary,
    Stable,
    StatusClass,
    derive_canary_state,
)


def _alias(name, version, routing=None):
    return AliasConfig(name, version, routing)


class TestDeriveCanaryState:
    def test_stable(self):
        assert derive_canary_state(_alias("live", "3")) == Stable("3")

    def test_canary(self):
        state = derive_canary_state(_alias("live", "3", ("4", 0.1)))
        assert state == Canary(primary="3", canary="4", weight=0.1)


class TestAliasSnapshot:
    @pytest.mark.parametrize(
        "live, previous, latest, expected",
        [
            (_alias("live", "3"), _alias("previous", "2"), _alias("latest", "3"), StatusClass.STABLE),
            (_alias("live", "3"), _alias("previous", "2"), _alias("latest", "4"), StatusClass.PENDING),
            (
                _alias("live", "3", ("4", 0.25)),
                _alias("previous", "2"),
                _alias("latest", "4"),
                StatusClass.CANARY_ACTIVE,
            ),
            (None, None, _alias("latest", "4"), StatusClass.INCOMPLETE),
            (_alias("live", "3"), None, None, StatusClass.INCOMPLETE),
        ],
    )
    def test_status_class(self, live, previous, latest, expected):
        assert AliasSnapshot(live, previous, latest).status_class == expected

    def test_canary_actions(self):
        snapshot = AliasSnapshot(
            _alias("live", "3", ("4", 0.25)), _alias("previous", "2"), _alias("latest", "4")
        )
        actions = snapshot.recommended_actions("prod")
        assert any("lad --env prod promote" in a for a in actions)
        assert any("lad --env prod rollback" in a for a in actions)

    def test_pending_actions(self):
        snapshot = AliasSnapshot(_alias("live", "3"), None, _alias("latest", "4"))
        actions = snapshot.recommended_actions("test")
        assert any("lad canary" in a for a in actions)
        assert any("--skip-canary" in a for a in actions)

    def test_stable_suggests_rollback_only_when_previous_differs(self):
        same = AliasSnapshot(_alias("live", "3"), _alias("previous", "3"), _alias("latest", "3"))
        differs = AliasSnapshot(_alias("live", "3"), _alias("previous", "2"), _alias("latest", "3"))
        missing = AliasSnapshot(_alias("live", "3"), None, _alias("latest", "3"))

        assert not any("rollback" in a for a in same.recommended_actions("test"))
        assert any("rollback" in a for a in differs.recommended_actions("test"))
        assert not any("rollback" in a for a in missing.recommended_actions("test"))

    def test_incomplete_suggests_deploy(self):
        snapshot = AliasSnapshot(None, None, None)
        assert snapshot.recommended_actions("test") == ["部署新版本: lad --env test deploy"]
