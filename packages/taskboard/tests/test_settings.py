"""Tests for configuration settings."""


def test_settings_loads_from_env():
    """Test that settings loads from environment variables."""
    # Import after env vars are set in conftest
    from taskboard.config.settings import get_settings

    get_settings.cache_clear()
    settings = get_settings()

    assert settings.store_api_token.get_secret_value() == "test-token"


def test_settings_has_defaults():
    """Test that settings has sensible defaults."""
    from taskboard.config.settings import get_settings

    get_settings.cache_clear()
    settings = get_settings()

    assert settings.store_api_url == "http://localhost:8000"
    assert settings.store_timeout == 30.0
    assert settings.store_max_retries == 3
    assert settings.order_gap == 1000.0
    assert settings.rollback_on_failure is True
    assert settings.day_width == 40
    assert settings.view_padding_before_days == 2
    assert settings.view_padding_after_days == 5
    assert settings.empty_view_days == 30


def test_settings_override_from_env(monkeypatch):
    """Test that board settings can be overridden."""
    from taskboard.config.settings import get_settings

    monkeypatch.setenv("TASKBOARD_ORDER_GAP", "500")
    monkeypatch.setenv("TASKBOARD_ROLLBACK_ON_FAILURE", "false")
    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.order_gap == 500.0
        assert settings.rollback_on_failure is False
    finally:
        get_settings.cache_clear()


def test_settings_are_cached():
    """Test that get_settings returns cached instance."""
    from taskboard.config.settings import get_settings

    get_settings.cache_clear()

    settings1 = get_settings()
    settings2 = get_settings()

    assert settings1 is settings2


def test_configure_logging_json():
    """Test that logging can be configured for JSON output."""
    import structlog

    from taskboard.config import configure_logging, get_logger

    configure_logging(level="DEBUG", format="json")

    assert isinstance(structlog.get_config()["processors"][-1], structlog.processors.JSONRenderer)
    assert get_logger("taskboard.test") is not None


def test_configure_logging_quiets_http_loggers():
    """Test that per-request httpx logging is raised to WARNING outside DEBUG."""
    import logging

    from taskboard.config import configure_logging

    configure_logging(level="INFO", format="console")
    assert logging.getLogger("httpx").level == logging.WARNING

    configure_logging(level="DEBUG", format="console")
    assert logging.getLogger("httpx").level == logging.DEBUG


def test_add_app_name():
    """Test that events are tagged with the package name."""
    from taskboard.config.logging import add_app_name

    assert add_app_name(None, "info", {"event": "x"}) == {"event": "x", "app": "taskboard"}
    assert add_app_name(None, "info", {"app": "other"})["app"] == "other"
