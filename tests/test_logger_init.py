"""
Tests for root logger setup.
"""
import logging

import pytest

from utils import logger_init


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


def test_logger_init_writes_file(root_logger, tmp_path):
    logger_init(file=str(tmp_path / "selection"), level=logging.DEBUG)
    logging.getLogger("selection.manager").debug("select: probe")

    added = [h for h in root_logger.handlers if isinstance(h, logging.FileHandler)]
    assert len(added) == 1
    added[0].flush()
    content = (tmp_path / "selection.log").read_text()
    assert "| MainProcess | select: probe" in content


def test_logger_init_stream_only(root_logger):
    before = len(root_logger.handlers)
    logger_init(level=logging.WARNING)
    assert root_logger.level == logging.WARNING
    assert len(root_logger.handlers) == before + 1
