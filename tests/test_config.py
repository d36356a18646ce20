"""Tests for loudscan.config environment overrides."""

import pytest

from loudscan import config


class TestWindowOverride:
    """Tests for LOUDSCAN_WINDOW_SEC."""

    def test_default(self, monkeypatch):
        monkeypatch.delenv("LOUDSCAN_WINDOW_SEC", raising=False)
        assert config._get_window_sec() == 1.0

    def test_override(self, monkeypatch):
        monkeypatch.setenv("LOUDSCAN_WINDOW_SEC", "0.5")
        assert config._get_window_sec() == 0.5

    @pytest.mark.parametrize("value", ["abc", "0", "-2"])
    def test_invalid_falls_back(self, monkeypatch, value):
        monkeypatch.setenv("LOUDSCAN_WINDOW_SEC", value)
        assert config._get_window_sec() == config.DEFAULT_WINDOW_SEC


class TestConcurrencyOverride:
    """Tests for LOUDSCAN_CONCURRENCY."""

    def test_default(self, monkeypatch):
        monkeypatch.delenv("LOUDSCAN_CONCURRENCY", raising=False)
        assert config._get_concurrency() == 5

    def test_override(self, monkeypatch):
        monkeypatch.setenv("LOUDSCAN_CONCURRENCY", "8")
        assert config._get_concurrency() == 8

    @pytest.mark.parametrize("value", ["many", "0", "1.5"])
    def test_invalid_falls_back(self, monkeypatch, value):
        monkeypatch.setenv("LOUDSCAN_CONCURRENCY", value)
        assert config._get_concurrency() == config.DEFAULT_CONCURRENCY


def test_ffmpeg_bin_override(monkeypatch):
    monkeypatch.setenv("LOUDSCAN_FFMPEG_BIN", "/opt/ffmpeg/bin/ffmpeg")
    assert config._get_ffmpeg_bin() == "/opt/ffmpeg/bin/ffmpeg"


def test_color_variable():
    assert config.COLOR_ENV_VAR == "AV_LOG_FORCE_NOCOLOR"
    assert config.COLOR_ENV_VALUE == "1"
