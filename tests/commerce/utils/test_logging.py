import pytest
import structlog
from commerce.utils.logging import get_log_level, log_context


class TestLogLevel:
    @pytest.mark.parametrize(
        "env,level",
        [("production", "INFO"), ("staging", "INFO"), ("development", "DEBUG"), ("test", "WARNING"), ("other", "INFO")],
    )
    def test_level_follows_environment(self, monkeypatch, env, level):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert get_log_level(env) == level

    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "error")
        assert get_log_level("production") == "ERROR"


class TestLogContext:
    def test_values_are_bound_inside_block_only(self):
        with log_context(order_id=42, customer_id=None):
            assert structlog.contextvars.get_contextvars() == {"order_id": "42"}

        assert "order_id" not in structlog.contextvars.get_contextvars()
