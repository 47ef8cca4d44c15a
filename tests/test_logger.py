# File: tests/test_logger.py
import logging
from logging.handlers import RotatingFileHandler

import pytest

from deploy_scout.logger import LOG_FILE_BACKUPS, LOG_FILE_MAX_BYTES, init_logging


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    init_logging(level="WARNING")


def test_console_handler_writes_to_stderr(capsys):
    lg = init_logging(level="INFO")
    lg.info("crawl started")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "crawl started" in captured.err
    assert "| INFO     | DeployScout |" in captured.err


def test_log_file_is_rotating(tmp_path):
    log_file = tmp_path / "deploy_scout.log"
    lg = init_logging(level="DEBUG", log_file=log_file)
    lg.debug("candidate ranked")

    file_handlers = [h for h in lg.handlers if isinstance(h, RotatingFileHandler)]
    assert len(file_handlers) == 1
    assert file_handlers[0].maxBytes == LOG_FILE_MAX_BYTES
    assert file_handlers[0].backupCount == LOG_FILE_BACKUPS
    file_handlers[0].flush()
    assert "candidate ranked" in log_file.read_text(encoding="utf-8")


def test_reconfiguring_replaces_handlers(tmp_path):
    init_logging(level="INFO", log_file=tmp_path / "a.log")
    lg = init_logging(level="ERROR")
    assert len(lg.handlers) == 1
    assert lg.level == logging.ERROR
    assert lg.propagate is False
