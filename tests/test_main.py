"""Tests for the standalone server entrypoint."""

from fee_gateway.main import startup_banner


def test_startup_banner_lists_urls(settings) -> None:
    banner = startup_banner(settings.model_copy(update={"port": 8080}))

    assert "Port: 8080" in banner
    assert "Cache: memory" in banner
    assert "http://localhost:8080/swagger" in banner
    assert "http://localhost:8080/health" in banner
