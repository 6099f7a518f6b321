"""Logging setup for the module importer.

Records emitted while a module is being imported carry ``module_id`` and
``stage`` attributes (see ImportContext). The console shows them as a
``[module/stage]`` tag; the JSON file format writes them as fields.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

ROOT_LOGGER = 'module_importer'

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(tag)s%(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(tag)s%(message)s"


def _context_tag(record: logging.LogRecord) -> str:
    module_id = getattr(record, 'module_id', None)
    if module_id is None:
        return ""
    stage = getattr(record, 'stage', None)
    return f"[{module_id}/{stage}] " if stage else f"[{module_id}] "


class TaggedFormatter(logging.Formatter):
    """Text formatter that prefixes messages with the import context."""

    def format(self, record: logging.LogRecord) -> str:
        record.tag = _context_tag(record)
        return super().format(record)


class JsonFormatter(logging.Formatter):
    """One JSON object per line, with import context and error details."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        for field in ('module_id', 'stage', 'details'):
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value
        if record.exc_info:
            entry['exception'] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = False,
    console: bool = True,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """Configure the package logger from the ``logging`` config section.

    Console output goes to stdout next to the progress lines. The optional
    log file rotates at ``max_bytes`` and is JSON when ``json_format`` is set.

    Returns:
        The package root logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper()))
    logger.handlers.clear()
    logger.propagate = False

    if console:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(TaggedFormatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))
        logger.addHandler(handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8'
        )
        handler.setFormatter(JsonFormatter() if json_format else TaggedFormatter(FILE_FORMAT))
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger, e.g. get_logger('reset') -> module_importer.reset."""
    return logging.getLogger(f'{ROOT_LOGGER}.{name}')


class ImportContext:
    """Tag every record created inside the block with the module being imported.

    ``stage`` may be reassigned inside the block; records pick up the value
    current at the time they are created.

    Example:
        with ImportContext('m1') as context:
            context.stage = 'import_quizzes'
            logger.info("writing")   # record.module_id == 'm1'
    """

    def __init__(self, module_id: str, stage: Optional[str] = None):
        self.module_id = module_id
        self.stage = stage
        self._previous_factory = None

    def __enter__(self) -> "ImportContext":
        previous = self._previous_factory = logging.getLogRecordFactory()

        def record_factory(*args, **kwargs):
            record = previous(*args, **kwargs)
            record.module_id = self.module_id
            record.stage = self.stage
            return record

        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        logging.setLogRecordFactory(self._previous_factory)
        return False


def log_exception(logger: logging.Logger, exc: Exception,
                  message: str = "An error occurred",
                  level: int = logging.ERROR) -> None:
    """Log an exception with its traceback and, for package errors, its details."""
    details = getattr(exc, 'details', None)
    extra = {'details': details} if details else {}
    logger.log(level, f"{message}: {exc}", exc_info=True, extra=extra)
