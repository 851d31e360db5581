"""
Logger factories used across the quote service
"""
import logging
import sys

from app.logging.config import LoggingConfig
from app.logging.handlers import get_app_handler, get_audit_handler, get_local_file_handler
from app.logging.filters import RequestContextFilter, QuoteContextFilter
from app.logging.slack_handler import slack_handler


def _attach(logger: logging.Logger, handler: logging.Handler, *filters) -> logging.Logger:
    for context_filter in filters:
        handler.addFilter(context_filter)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger


def get_app_logger(name: str):
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    # shared firehose buffer, or one file per module locally
    if LoggingConfig.FIREHOSE_ENABLED:
        handler = get_app_handler()
    else:
        handler = get_local_file_handler(name.replace('.', '_'))
    _attach(logger, handler, RequestContextFilter(), QuoteContextFilter())
    logger.addHandler(slack_handler)
    return logger


def init_audit_logger(stream_name: str | None = None, method: str = ''):
    suffix = stream_name.replace('-', '_') if stream_name else ''
    logger = logging.getLogger(f"quote.audit.{suffix}" if suffix else "quote.audit")
    if logger.handlers:
        return logger
    return _attach(logger, get_audit_handler(method), RequestContextFilter())


def initialize_logging():
    for problem in LoggingConfig.problems():
        sys.stderr.write(f"logging_config_warning | {problem}\n")
