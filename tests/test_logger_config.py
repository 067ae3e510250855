import json
import logging
from unittest.mock import MagicMock

from logger_config import (
    OperationLogger,
    StructuredLogzioFormatter,
    setup_logger,
    structured_log,
)


def test_setup_logger_is_idempotent():
    logger = setup_logger()
    handler_count = len(logger.handlers)

    assert setup_logger() is logger
    assert len(logger.handlers) == handler_count


def test_structured_formatter_includes_fields():
    record = logging.LogRecord(
        name="gresources", level=logging.INFO, pathname=__file__, lineno=1,
        msg=structured_log("POST /a - SUCCESS", event="write_operation", path="/a"),
        args=None, exc_info=None,
    )
    payload = json.loads(StructuredLogzioFormatter().format(record))

    assert payload["message"] == "[gresources] POST /a - SUCCESS"
    assert payload["event"] == "write_operation"
    assert payload["path"] == "/a"
    assert payload["level"] == "INFO"


def test_structured_message_renders_as_plain_text():
    assert str(structured_log("DELETE /a - FAILED", status="FAILED")) == "DELETE /a - FAILED"


def test_log_write_operation_levels():
    logger = MagicMock()
    operation_logger = OperationLogger(logger)

    operation_logger.log_write_operation("POST", "/a", True)
    level, message = logger.log.call_args[0]
    assert level == logging.INFO
    assert message.kwargs["status"] == "SUCCESS"
    assert message.kwargs["operation"] == "POST"

    operation_logger.log_write_operation("PATCH", "/a", False)
    level, message = logger.log.call_args[0]
    assert level == logging.WARNING
    assert str(message) == "PATCH /a - FAILED"


def test_leveled_calls_delegate():
    logger = MagicMock()
    operation_logger = OperationLogger(logger)

    operation_logger.info("hello %s", "world")
    operation_logger.error("boom", exc_info=True)

    logger.info.assert_called_once_with("hello %s", "world")
    logger.error.assert_called_once_with("boom", exc_info=True)
