# tests/test_logger.py

import logging

from agen8.utils.logger import get_logger, init_logger, parse_level


def test_file_handler_receives_child_records(tmp_path):
    logger = init_logger(level=logging.DEBUG, log_dir=tmp_path / "logs")
    try:
        get_logger("structural.repair").info("auto-connected 'demo'")
        for h in logger.handlers:
            h.flush()
        text = (tmp_path / "logs" / "agen8.log").read_text(encoding="utf-8")
        assert "agen8.structural.repair" in text
        assert "auto-connected 'demo'" in text
    finally:
        for h in logger.handlers:
            h.close()
        init_logger()


def test_level_from_env(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "warning")
    try:
        assert init_logger().level == logging.WARNING
    finally:
        monkeypatch.delenv("LOG_LEVEL")
        init_logger()


def test_reinit_replaces_handlers():
    init_logger()
    logger = init_logger()
    assert len(logger.handlers) == 1
    assert logger.propagate is False


def test_parse_level():
    assert parse_level("debug") == logging.DEBUG
    assert parse_level(" WARN ") == logging.WARNING
    assert parse_level("15") == 15
    assert parse_level("loud") == logging.INFO
    assert parse_level(None, default=logging.ERROR) == logging.ERROR
