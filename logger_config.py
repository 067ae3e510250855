import json
import logging
import platform
import socket
import sys
from datetime import datetime, timezone
from pathlib import Path

from logzio.handler import LogzioHandler

import config

LOGGER_NAME = "gresources"


class StructuredMessage:
    def __init__(self, message, **kwargs):
        self.message = message
        self.kwargs = kwargs

    def __str__(self):
        return '%s' % (self.message)


class StructuredLogzioFormatter(logging.Formatter):
    def __init__(self):
        super().__init__()
        self.hostname = socket.gethostname()

    def format(self, record):
        # Get the original message
        if isinstance(record.msg, StructuredMessage):
            message = record.msg.message
            extra = record.msg.kwargs
        else:
            message = record.getMessage()
            extra = {}

        log_data = {
            'message': f"[gresources] {message}",
            'level': record.levelname,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'logger': record.name,
            'environment': config.APP_ENV,
            'application': 'gresources',
            'hostname': self.hostname,
            'platform': platform.platform(),
            'python_version': platform.python_version(),
            'function': record.funcName,
            'line_number': record.lineno,
            'filename': record.filename,
        }

        # Add any extra fields from the StructuredMessage
        log_data.update(extra)

        return json.dumps(log_data, default=str)


def setup_logger():
    logger = logging.getLogger(LOGGER_NAME)
    # Handlers are attached once per process
    if logger.handlers:
        return logger

    logs_dir = Path(config.LOG_DIR)
    logs_dir.mkdir(parents=True, exist_ok=True)

    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    # Create formatters
    file_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
    )
    console_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s'
    )

    # File handler (for detailed logging)
    file_handler = logging.FileHandler(logs_dir / config.LOG_FILE_NAME)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(file_formatter)

    # Console handler (for basic logging)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(config.LOG_LEVEL.upper())
    console_handler.setFormatter(console_formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    if config.LOGZIO_TOKEN:
        logzio_handler = LogzioHandler(
            token=config.LOGZIO_TOKEN,
            url=config.LOGZIO_URL,
            logs_drain_timeout=5,
            network_timeout=10.0
        )
        logzio_handler.setFormatter(StructuredLogzioFormatter())
        logger.addHandler(logzio_handler)

    return logger


# Helper function to create structured logs
def structured_log(message, **kwargs):
    return StructuredMessage(message, **kwargs)


class OperationLogger:
    """Leveled logging plus one structured record per write outcome.

    Request handlers receive an instance through ``app.state`` and never
    decide verbosity themselves; that is left to the handler levels set up
    in :func:`setup_logger`.
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    def info(self, message: str, *args, **kwargs):
        self._logger.info(message, *args, **kwargs)

    def debug(self, message: str, *args, **kwargs):
        self._logger.debug(message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs):
        self._logger.warning(message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs):
        self._logger.error(message, *args, **kwargs)

    def critical(self, message: str, *args, **kwargs):
        self._logger.critical(message, *args, **kwargs)

    def log_write_operation(self, operation: str, path: str, success: bool):
        """Record the outcome of a POST, PATCH or DELETE request."""
        status = "SUCCESS" if success else "FAILED"
        self._logger.log(
            logging.INFO if success else logging.WARNING,
            structured_log(
                f"{operation} {path} - {status}",
                event="write_operation",
                operation=operation,
                path=path,
                status=status,
            ),
        )
