"""Tests for the package logger setup."""

import logging

from secretfriend.logger import setup_logger


def test_logger_does_not_propagate_by_default():
    logger = setup_logger("secretfriend-test-quiet", "debug")
    assert logger.propagate is False
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1


def test_logger_propagation_can_be_enabled():
    logger = setup_logger("secretfriend-test-loud", propagate=True)
    assert logger.propagate is True


def test_repeated_setup_keeps_one_handler():
    setup_logger("secretfriend-test-repeat")
    logger = setup_logger("secretfriend-test-repeat", "nonsense")
    assert len(logger.handlers) == 1
    assert logger.level == logging.INFO


def test_app_logger_follows_config(app):
    assert logging.getLogger("secretfriend").propagate is True
