# -*- coding: utf-8 -*-
"""时长解析测试"""

import pytest

from lad.lad_utils.duration import format_duration, parse_duration
from lad.lad_utils.errors import InvalidInputError


class TestParseDuration:
    @pytest.mark.parametrize(
        "text, seconds",
        [
            ("30s", 30),
            ("5m", 300),
            ("1h", 3600),
            ("1h30m", 5400),
            ("1.5m", 90),
            ("500ms", 0.5),
            ("2m30s", 150),
            (" 10s ", 10),
        ],
    )
    def test_valid(self, text, seconds):
        assert parse_duration(text) == pytest.approx(seconds)

    @pytest.mark.parametrize("text", ["", "   ", "5", "abc", "5x", "m5", "5m abc", "-5m"])
    def test_invalid(self, text):
        with pytest.raises(InvalidInputError):
            parse_duration(text)

    def test_zero_is_parsed(self):
        # 是否大于 0 由调用方判断
        assert parse_duration("0s") == 0


class TestFormatDuration:
    @pytest.mark.parametrize(
        "seconds, text",
        [
            (300, "5m0s"),
            (3600, "1h0m0s"),
            (90, "1m30s"),
            (45, "45s"),
            (0.5, "500ms"),
        ],
    )
    def test_format(self, seconds, text):
        assert format_duration(seconds) == text
