"""Tests for environment-driven settings"""
import pytest
from decimal import Decimal

from shopcart import config


class TestConfig:
    """Tests for env parsing helpers."""

    def test_env_decimal(self, monkeypatch):
        """Test decimal env values and fallbacks"""
        monkeypatch.setenv("TEST_FEE", "7.25")
        assert config._env_decimal("TEST_FEE", "5.90") == Decimal("7.25")

        monkeypatch.setenv("TEST_FEE", "cheap")
        assert config._env_decimal("TEST_FEE", "5.90") == Decimal("5.90")

        monkeypatch.setenv("TEST_FEE", "-1")
        assert config._env_decimal("TEST_FEE", "5.90") == Decimal("5.90")

        monkeypatch.delenv("TEST_FEE")
        assert config._env_decimal("TEST_FEE", "5.90") == Decimal("5.90")

    def test_env_int(self, monkeypatch):
        """Test int env values and fallbacks"""
        monkeypatch.setenv("TEST_TTL", "3600")
        assert config._env_int("TEST_TTL", 0) == 3600

        monkeypatch.setenv("TEST_TTL", "soon")
        assert config._env_int("TEST_TTL", 0) == 0

    def test_defaults(self):
        """Test pricing defaults"""
        assert config.FREE_SHIPPING_THRESHOLD == Decimal("50")
        assert config.SHIPPING_FEE == Decimal("5.90")
        assert config.CART_OPEN_DELAY == pytest.approx(0.1)
        assert config.CART_STORAGE_PREFIX == "cart:"
