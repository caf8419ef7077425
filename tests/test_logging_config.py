"""Tests for structured logging helpers."""

import json
import logging
import threading
from typing import List

import pytest

from utils.logging_config import LogContext, StructuredFormatter


class _Collector(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.records: List[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def collected():
    logger = logging.getLogger("applist.tests.logctx")
    logger.setLevel(logging.DEBUG)
    handler = _Collector()
    logger.addHandler(handler)
    yield logger, handler.records
    logger.removeHandler(handler)


class TestLogContext:
    def test_attaches_data_inside_block_only(self, collected) -> None:
        logger, records = collected
        with LogContext(format="csv", count=3):
            logger.info("inside")
        logger.info("outside")

        assert records[0].extra_data == {"format": "csv", "count": 3}
        assert not hasattr(records[1], "extra_data")

    def test_nested_contexts_merge(self, collected) -> None:
        logger, records = collected
        with LogContext(format="csv", count=3):
            with LogContext(count=5, path="/tmp/x.csv"):
                logger.info("inner")
            logger.info("outer")

        assert records[0].extra_data == {"format": "csv", "count": 5, "path": "/tmp/x.csv"}
        assert records[1].extra_data == {"format": "csv", "count": 3}

    def test_other_threads_not_tagged(self, collected) -> None:
        logger, records = collected
        entered = threading.Event()
        logged = threading.Event()

        def worker() -> None:
            entered.wait(timeout=5)
            logger.info("from load thread")
            logged.set()

        thread = threading.Thread(target=worker)
        thread.start()
        with LogContext(format="json"):
            entered.set()
            logged.wait(timeout=5)
            logger.info("from export thread")
        thread.join(timeout=5)

        by_message = {r.getMessage(): r for r in records}
        assert not hasattr(by_message["from load thread"], "extra_data")
        assert by_message["from export thread"].extra_data == {"format": "json"}

    def test_structured_formatter_includes_context(self, collected) -> None:
        logger, records = collected
        with LogContext(count=2):
            logger.warning("exported")

        data = json.loads(StructuredFormatter().format(records[0]))
        assert data["message"] == "exported"
        assert data["data"] == {"count": 2}
