"""
Catalog Service Logging
=======================

Every catalog component logs one JSON object per line. Ids and operation
names go through ``extra=`` and become top-level keys, e.g.::

    logger.info("Category moved", extra={"category_id": 7, "parent_id": 2})
"""

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, List, Optional

# Attributes every LogRecord carries; anything else came from ``extra=``
_RECORD_ATTRIBUTES = frozenset(
    logging.LogRecord("", logging.NOTSET, "", 0, "", (), None).__dict__
) | {"message", "asctime"}

DEFAULT_LOG_DIR = Path(__file__).parent.parent / "logs"


class CatalogJSONFormatter(logging.Formatter):
    """Render a record and its ``extra`` fields as a single JSON line"""

    def __init__(
        self,
        exclude_fields: Optional[Iterable[str]] = None,
        service: str = "catalog_service",
    ):
        super().__init__()
        self.service = service
        self.hidden = _RECORD_ATTRIBUTES | set(exclude_fields or ())

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "service": self.service,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in self.hidden
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=False)


def _rotating_handler(
    path: Path, level: int, max_bytes: int, backups: int
) -> logging.Handler:
    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backups)
    handler.setLevel(level)
    return handler


def setup_catalog_logging(
    service_name: str = "catalog_service",
    log_level: str = "INFO",
    enable_file_logging: bool = False,
    log_dir: Optional[str] = None,
    max_file_size: int = 100 * 1024 * 1024,
    backup_count: int = 5,
    exclude_fields: Optional[List[str]] = None,
) -> logging.Logger:
    """
    Configure and return the logger ``service_name``.

    Calling it again for the same name replaces the handlers instead of
    stacking them. With file logging on, ``<name>.log`` receives everything at
    ``log_level`` and ``<name>_errors.log`` only errors.
    """
    level = logging.getLevelName(log_level.upper())
    logger = logging.getLogger(service_name)
    logger.setLevel(level)
    logger.handlers.clear()

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    handlers[0].setLevel(level)

    if enable_file_logging:
        directory = Path(log_dir) if log_dir else DEFAULT_LOG_DIR
        directory.mkdir(parents=True, exist_ok=True)
        handlers.append(
            _rotating_handler(
                directory / f"{service_name}.log", level, max_file_size, backup_count
            )
        )
        handlers.append(
            _rotating_handler(
                directory / f"{service_name}_errors.log",
                logging.ERROR,
                max_file_size,
                backup_count,
            )
        )

    formatter = CatalogJSONFormatter(exclude_fields=exclude_fields)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug(
        "Logging configured",
        extra={"component": service_name, "file_logging": enable_file_logging},
    )
    return logger
