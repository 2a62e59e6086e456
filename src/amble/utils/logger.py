"""
Logging utilities: one place to configure the Flask app logger and the
``amble`` package logger, with request-aware context on every handler.
"""
import logging
import os
from logging.handlers import TimedRotatingFileHandler

from flask import has_request_context, request

DEFAULT_FMT = "%(asctime)s | %(levelname)s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
REQUEST_FMT = "%(asctime)s | %(levelname)s | %(name)s | %(method)s %(path)s | %(funcName)s:%(lineno)d | %(message)s"

PACKAGE_LOGGER = "amble"


class RequestContextFilter(logging.Filter):
    """Inject lightweight request context into log records when available."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            record.path = request.path
            record.method = request.method
        else:
            record.path = "-"
            record.method = "-"
        return True


def _build_formatter(fmt: str, time_fmt: str) -> logging.Formatter:
    return logging.Formatter(fmt, datefmt=time_fmt)


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()


def configure_logging(app):
    """Configure console (dev) and rotating file (prod) handlers for the app and package loggers."""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    loggers = [app.logger] if app.logger is package_logger else [app.logger, package_logger]
    for logger in loggers:
        _reset_handlers(logger)

    log_level_str = app.config.get("LOG_LEVEL", "INFO")
    log_level = getattr(logging, log_level_str.upper(), logging.INFO)
    time_fmt = app.config.get("LOG_TIME_FORMAT", "%Y-%m-%d %H:%M:%S")
    request_fmt = app.config.get("LOG_REQUEST_FORMAT", REQUEST_FMT)
    base_formatter = _build_formatter(app.config.get("LOG_FORMAT", DEFAULT_FMT), time_fmt)
    request_formatter = _build_formatter(request_fmt, time_fmt)
    request_filter = RequestContextFilter()

    handlers = []

    # Console handler for development
    if app.debug or os.environ.get("FLASK_ENV") == "development":
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(request_formatter)
        stream_handler.addFilter(request_filter)
        stream_handler.setLevel(log_level)
        handlers.append(stream_handler)

    # Rotating file handlers outside debug/testing runs
    if not app.debug and not app.testing:
        log_dir = app.config.get("LOG_DIR", "logs")
        os.makedirs(log_dir, exist_ok=True)

        file_handler = TimedRotatingFileHandler(
            filename=os.path.join(log_dir, "amble.log"),
            when="midnight",
            interval=1,
            backupCount=app.config.get("LOG_BACKUP_COUNT", 3),
            encoding="utf-8",
        )
        file_handler.setFormatter(request_formatter)
        file_handler.setLevel(log_level)
        file_handler.addFilter(request_filter)
        handlers.append(file_handler)

        error_handler = logging.FileHandler(
            os.path.join(log_dir, "errors.log"),
            encoding="utf-8",
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(base_formatter)
        handlers.append(error_handler)

    for logger in loggers:
        logger.setLevel(log_level)
        for handler in handlers:
            logger.addHandler(handler)
