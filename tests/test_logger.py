"""Tests for structured logging setup"""

import json
import logging

from docsite.utils.logger import get_logger, setup_logger


def test_json_lines_written_to_file(tmp_path):
    log_file = tmp_path / "logs" / "docsite.log"
    setup_logger(log_level="INFO", log_format="json", file_path=str(log_file))
    try:
        get_logger("docsite.test").info("Login successful", scope="site", client_ip="10.0.0.1")
        get_logger("docsite.test").debug("Filtered out")
        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
        assert len(lines) == 1
        assert lines[0]["event"] == "Login successful"
        assert lines[0]["scope"] == "site"
        assert lines[0]["level"] == "info"
        assert lines[0]["logger"] == "docsite.test"
    finally:
        setup_logger(log_level="INFO", log_format="console")


def test_setup_is_idempotent():
    setup_logger(log_format="console")
    setup_logger(log_format="console")
    marked = [h for h in logging.getLogger().handlers if getattr(h, "_docsite_handler", False)]
    assert len(marked) == 1
