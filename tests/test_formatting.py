"""Tests for human-readable formatting helpers."""

import pytest

from collection_report.formatting import filesize, inc, percent, pretty_ms, total_tests


class TestPrettyMs:
    """Tests for pretty_ms."""

    @pytest.mark.parametrize(
        "ms, expected",
        [
            (0, "0ms"),
            (0.4, "0ms"),
            (150, "150ms"),
            (1997.9, "1997ms"),
            (2000, "2s"),
            (2550, "2.5s"),
            (95500, "1m 35.5s"),
            (120000, "2m"),
            (3600000, "1h"),
            (90061000, "1d 1h 1m 1s"),
        ],
    )
    def test_values(self, ms, expected):
        assert pretty_ms(ms) == expected

    def test_none_and_negative(self):
        assert pretty_ms(None) == "0ms"
        assert pretty_ms(-20) == "0ms"


class TestFilesize:
    """Tests for filesize."""

    @pytest.mark.parametrize(
        "size, expected",
        [
            (0, "0B"),
            (500, "500B"),
            (150.5, "150.5B"),
            (1023, "1023B"),
            (1024, "1KB"),
            (1536, "1.5KB"),
            (1048576, "1MB"),
            (5 * 1024**3, "5GB"),
        ],
    )
    def test_values(self, size, expected):
        assert filesize(size) == expected

    def test_none(self):
        assert filesize(None) == "0B"


class TestTemplateHelpers:
    """Tests for percent, inc and total_tests."""

    def test_percent(self):
        assert percent(3, 1) == "75"
        assert percent(2, 1) == "67"
        assert percent(0, 0) == "0"

    def test_inc(self):
        assert inc(0) == 1
        assert inc("4") == 5

    def test_total_tests(self):
        assert total_tests(10, 2) == 8
        assert total_tests(10, None) == 10
        assert total_tests("5", 0) == 5
