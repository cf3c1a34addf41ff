"""Tests for logging configuration."""

import json
import logging

from finledger.cli.main import cli
from finledger.logging_config import JSONFormatter, get_logger, setup_logging


def test_get_logger_is_namespaced():
    assert get_logger("ledger").name == "finledger.ledger"


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord(
        name="finledger.ledger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Loaded %d accounts",
        args=(3,),
        exc_info=None,
    )
    record.collection = "accounts"

    data = json.loads(JSONFormatter().format(record))

    assert data["message"] == "Loaded 3 accounts"
    assert data["level"] == "INFO"
    assert data["extra"] == {"collection": "accounts"}


def test_setup_logging_writes_json_file(tmp_path):
    log_file = tmp_path / "logs" / "finledger.log"
    logger = setup_logging(level=logging.WARNING, log_file=str(log_file))

    get_logger("test").info("written to file only")
    for handler in logger.handlers:
        handler.flush()

    lines = log_file.read_text().splitlines()
    assert json.loads(lines[-1])["message"] == "written to file only"
    setup_logging()


def test_cli_log_file_option(cli_runner, temp_db, tmp_path):
    log_file = tmp_path / "cli.log"

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "--log-file", str(log_file), "account", "list"]
    )

    assert result.exit_code == 0
    messages = [json.loads(line)["message"] for line in log_file.read_text().splitlines()]
    assert any(message.startswith("Loaded 0 accounts") for message in messages)
    setup_logging()
