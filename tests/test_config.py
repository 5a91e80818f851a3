"""Tests for podgate.config and podgate.log."""

import dataclasses
import logging

import pytest

from podgate.config import APIConfig
from podgate.log import configure_logging


class TestAPIConfig:
    def test_defaults(self) -> None:
        config = APIConfig()
        assert config.host == "127.0.0.1"
        assert config.port == 8080
        assert config.debug is False
        assert config.api_version is None
        assert config.log_level == "info"

    def test_frozen(self) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            APIConfig().port = 9000  # type: ignore[misc]

    def test_replace(self) -> None:
        config = dataclasses.replace(APIConfig(), api_version="1.40")
        assert config.api_version == "1.40"


class TestConfigureLogging:
    def test_sets_level(self) -> None:
        logger = configure_logging("warning")
        assert logger.name == "podgate"
        assert logger.level == logging.WARNING

    def test_handler_added_once(self) -> None:
        configure_logging("info")
        configure_logging("debug")
        logger = logging.getLogger("podgate")
        assert sum(1 for h in logger.handlers if getattr(h, "_podgate", False)) == 1

    def test_children_inherit(self) -> None:
        configure_logging("error")
        assert logging.getLogger("podgate.routing").getEffectiveLevel() == logging.ERROR

    def test_unknown_level(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging("chatty")
