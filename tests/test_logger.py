"""
Tests for multillm/logger.py

Key behaviors to verify:
1. Lazy initialization - no files created until first log
2. Single append-only JSONL file per component
3. JSON lines carry run_id, component and keyword fields
4. Without a log directory records propagate to stdlib logging
"""

import json
import logging

from multillm.logger import RunLogger, create_logger


class TestLazyInit:

    def test_no_file_created_on_init(self, tmp_path):
        log_dir = tmp_path / "logs"

        logger = RunLogger(run_id="run-1", component="client", log_dir=log_dir)

        assert not log_dir.exists(), "Log directory should not be created on init"
        assert logger.log_file is None

    def test_file_created_on_first_log(self, tmp_path):
        log_dir = tmp_path / "logs"
        logger = RunLogger(run_id="run-1", component="client", log_dir=log_dir)

        logger.info("First message")

        assert logger.log_file == log_dir / "client.jsonl"
        assert logger.log_file.exists()
        logger.close()

    def test_close_without_logging_creates_nothing(self, tmp_path):
        log_dir = tmp_path / "logs"
        logger = RunLogger(run_id="run-1", component="client", log_dir=log_dir)

        logger.close()

        assert not log_dir.exists()


class TestJSONFormat:

    def test_structured_fields(self, tmp_path):
        with create_logger("run-2", "invoker", log_dir=tmp_path) as logger:
            logger.warning(
                "retrying",
                model="microsoft/phi-4",
                attempt=1,
                status_code=429,
                delay_seconds=2.0
            )

        entry = json.loads((tmp_path / "invoker.jsonl").read_text().strip())

        assert entry["level"] == "WARNING"
        assert entry["message"] == "retrying"
        assert entry["run_id"] == "run-2"
        assert entry["component"] == "invoker"
        assert entry["model"] == "microsoft/phi-4"
        assert entry["attempt"] == 1
        assert entry["status_code"] == 429
        assert entry["delay_seconds"] == 2.0
        assert "timestamp" in entry

    def test_append_only(self, tmp_path):
        for i in range(2):
            with create_logger(f"run-{i}", "client", log_dir=tmp_path) as logger:
                logger.info(f"message {i}")

        lines = (tmp_path / "client.jsonl").read_text().strip().splitlines()
        assert [json.loads(line)["message"] for line in lines] == ["message 0", "message 1"]

    def test_level_filtering(self, tmp_path):
        with create_logger("run-3", "client", log_dir=tmp_path, level="WARNING") as logger:
            logger.debug("hidden")
            logger.info("hidden too")
            logger.error("shown", error="boom")

        lines = (tmp_path / "client.jsonl").read_text().strip().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["error"] == "boom"


class TestPropagation:

    def test_propagates_without_log_dir(self, caplog):
        logger = create_logger("run-4", "catalog")

        with caplog.at_level(logging.INFO):
            logger.info("fetched models", count=3)

        record = caplog.records[-1]
        assert record.getMessage() == "fetched models"
        assert record.count == 3
        assert record.run_id == "run-4"

    def test_child_shares_run_and_destination(self, tmp_path):
        parent = create_logger("run-5", "client", log_dir=tmp_path)
        child = parent.child("dispatcher")

        child.info("dispatching")
        child.close()

        entry = json.loads((tmp_path / "dispatcher.jsonl").read_text())
        assert entry["run_id"] == "run-5"
        assert entry["component"] == "dispatcher"


class TestClose:

    def test_parent_closes_children(self, tmp_path):
        parent = create_logger("run-6", "client", log_dir=tmp_path)
        children = [parent.child("dispatcher"), parent.child("catalog")]
        for child in children:
            child.info("working")

        parent.close()

        assert all(not child.logger.handlers for child in children)
