import logging

import pytest

from clipclean.logging import configure_logging, resolve_level

pytestmark = pytest.mark.unit


def test_resolve_level_accepts_names_and_numbers() -> None:
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level(" Warning ") == logging.WARNING
    assert resolve_level(logging.ERROR) == logging.ERROR


def test_resolve_level_rejects_unknown_names() -> None:
    with pytest.raises(ValueError):
        resolve_level("chatty")


def test_configure_logging_sets_root_level_on_repeat_calls() -> None:
    root = logging.getLogger()
    previous = root.level
    try:
        assert configure_logging("ERROR") == logging.ERROR
        assert root.level == logging.ERROR
        configure_logging("DEBUG")
        assert root.level == logging.DEBUG
    finally:
        root.setLevel(previous)
