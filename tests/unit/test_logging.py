"""
Unit tests for logging configuration.
"""

import asyncio
import logging

import pytest

from newsfeed.utils.logging_config import LogContext, current_log_context, get_logger, setup_logging


class TestSetup:

    def test_logger_namespace(self):
        assert get_logger("paginated_fetcher").name == "newsfeed.paginated_fetcher"

    def test_file_logging(self, tmp_path):
        root = setup_logging(level=logging.INFO, log_dir=tmp_path, console=False, file=True)
        try:
            get_logger("test").error("something broke")
            for handler in root.handlers:
                handler.flush()
            assert "something broke" in (tmp_path / "newsfeed.log").read_text()
            assert "something broke" in (tmp_path / "newsfeed_errors.log").read_text()
        finally:
            for handler in list(root.handlers):
                handler.close()
            root.handlers.clear()


class TestLogContext:

    def test_stamps_records(self, caplog):
        logger = get_logger("ctx")
        with caplog.at_level(logging.INFO, logger="newsfeed"):
            with LogContext(context_id="category:sports"):
                logger.info("inside")
            logger.info("outside")

        inside, outside = caplog.records[-2:]
        assert inside.context_id == "category:sports"
        assert not hasattr(outside, "context_id")

    @pytest.mark.asyncio
    async def test_concurrent_tasks_do_not_leak(self):
        seen = {}

        async def work(name, delay):
            with LogContext(context_id=name):
                await asyncio.sleep(delay)
                seen[name] = current_log_context()["context_id"]

        await asyncio.gather(work("a", 0.01), work("b", 0))
        assert seen == {"a": "a", "b": "b"}
        assert current_log_context() == {}
