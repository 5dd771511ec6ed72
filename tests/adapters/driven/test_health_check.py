"""Tests for health check validator."""
from unittest.mock import patch

from http_property.adapters.driven.config.health_check import main

__all__ = []


def test_health_check_success() -> None:
    """Health check should return 0 when configuration loads successfully."""
    with patch("http_property.adapters.driven.config.health_check.load_settings") as mock_load:
        mock_load.return_value = None
        result = main()

    assert result == 0


def test_health_check_failure_on_config_error() -> None:
    """Health check should return 1 when configuration fails to load."""
    with patch("http_property.adapters.driven.config.health_check.load_settings") as mock_load:
        mock_load.side_effect = RuntimeError("Missing required channel address: PORT_INT")
        result = main()

    assert result == 1
