import logging
import os
from collections import OrderedDict
from logging import Logger
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

import structlog

from usergate.core.config import get_usergate_config
from usergate.core.utils import as_bool, ifnone

ROOT_LOGGER_NAME = "usergate"


def default_formatter(fmt: Optional[str] = None) -> logging.Formatter:
    """Returns a logging formatter with a default format if none is specified."""
    default_fmt = "[%(asctime)s] %(levelname)s: %(name)s: %(message)s"
    return logging.Formatter(fmt or default_fmt)


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    *,
    log_dir: Optional[Path] = None,
    logger_level: int = logging.DEBUG,
    stream_level: int = logging.ERROR,
    add_stream_handler: bool = True,
    file_level: int = logging.DEBUG,
    file_mode: str = "a",
    add_file_handler: bool = True,
    propagate: bool = False,
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5,
    use_structlog: Optional[bool] = None,
    structlog_json: bool = True,
) -> Logger | structlog.stdlib.BoundLogger:
    """Configure and initialize logging for usergate components.

    Sets up a rotating file handler and a console handler on the given logger. The log file defaults to
    ``<LOG_DIR>/{name}.log`` for the root logger and ``<LOG_DIR>/modules/{name}.log`` for child loggers.

    Args:
        name: Logger name, defaults to "usergate".
        log_dir: Custom directory for log files. Defaults to ``USERGATE__LOG_DIR``.
        logger_level: Overall logger level.
        stream_level: StreamHandler level.
        add_stream_handler: Whether to add a stream handler.
        file_level: FileHandler level.
        file_mode: Mode for the file handler.
        add_file_handler: Whether to add a file handler.
        propagate: Whether the logger should propagate messages to ancestor loggers.
        max_bytes: Maximum size in bytes before rotating the log file.
        backup_count: Number of backup files to retain.
        use_structlog: If True, return a structlog BoundLogger. Defaults to ``USERGATE__USE_STRUCTLOG``.
        structlog_json: Render JSON when using structlog; otherwise use the console renderer.

    Returns:
        Logger | structlog.stdlib.BoundLogger: Configured logger instance.
    """
    settings = get_usergate_config().USERGATE
    use_structlog = ifnone(use_structlog, as_bool(settings.USE_STRUCTLOG))

    logger = logging.getLogger(name)
    logger.handlers.clear()
    logger.setLevel(logger_level)
    logger.propagate = propagate

    child_log_path = f"{name}.log" if name == ROOT_LOGGER_NAME else os.path.join("modules", f"{name}.log")
    log_file_path = os.path.join(ifnone(log_dir, settings.LOG_DIR), child_log_path)

    formatter = logging.Formatter("%(message)s") if use_structlog else default_formatter()

    if add_stream_handler:
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(stream_level)
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    if add_file_handler:
        os.makedirs(Path(log_file_path).parent, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=str(log_file_path), maxBytes=max_bytes, backupCount=backup_count, mode=file_mode
        )
        file_handler.setLevel(file_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if not use_structlog:
        return logger

    renderer = structlog.processors.JSONRenderer() if structlog_json else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _enforce_key_order_processor(["timestamp", "event", "backend", "operation", "level", "logger"]),
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    return structlog.get_logger(name)


def _enforce_key_order_processor(key_order: list[str]):
    def _processor(_logger, _method_name, event_dict):
        ordered = OrderedDict()
        for key in key_order:
            if key in event_dict:
                ordered[key] = event_dict.pop(key)
        for k in sorted(event_dict.keys()):
            ordered[k] = event_dict[k]
        return ordered

    return _processor


def get_logger(name: str | None = ROOT_LOGGER_NAME, **kwargs) -> Logger | structlog.stdlib.BoundLogger:
    """Create or retrieve a named logger under the ``usergate`` namespace.

    Child loggers propagate to the ``usergate`` root logger by default and only get a file handler of their own.

    Example:
        .. code-block:: python

            from usergate.core.logging import get_logger

            logger = get_logger("database.registry")
            logger.info("Registry ready")
    """
    if not name:
        name = ROOT_LOGGER_NAME
    full_name = name if name.startswith(ROOT_LOGGER_NAME) else f"{ROOT_LOGGER_NAME}.{name}"
    kwargs.setdefault("propagate", True)
    if kwargs["propagate"]:
        kwargs.setdefault("add_stream_handler", False)
    return setup_logger(full_name, **kwargs)
