import logging

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

# Logger
from app.logging.utils import get_app_logger
logger = get_app_logger("app.config.sentry")

# Settings
from app.config.settings import QuoteConfigs
configs = QuoteConfigs()

from app.middlewares.request_context import request_context

SENSITIVE_HEADERS = {"authorization", "cookie", "x-api-key", "x-auth-token"}


def sentry_active() -> bool:
    return configs.SENTRY_ENABLED and bool(configs.SENTRY_DSN)


def init_sentry():
    if not configs.SENTRY_ENABLED:
        logger.info("sentry_disabled")
        return
    if not configs.SENTRY_DSN:
        logger.warning("sentry_dsn_missing | SENTRY_ENABLED is set without SENTRY_DSN")
        return

    sentry_sdk.init(
        dsn=configs.SENTRY_DSN,
        environment=configs.ENVIRONMENT,
        release=configs.SENTRY_RELEASE,
        traces_sample_rate=float(configs.SENTRY_TRACES_SAMPLE_RATE),
        profiles_sample_rate=float(configs.SENTRY_PROFILES_SAMPLE_RATE),
        # INFO and above become breadcrumbs, ERROR and above become events
        integrations=[FastApiIntegration(), LoggingIntegration(level=logging.INFO, event_level=logging.ERROR)],
        send_default_pii=False,
        attach_stacktrace=True,
        max_breadcrumbs=50,
        before_send=before_send_filter,
    )
    logger.info(f"sentry_initialized | environment={configs.ENVIRONMENT} release={configs.SENTRY_RELEASE}")


def before_send_filter(event, hint):
    """Scrub credentials and tag the event with the quote being priced"""

    headers = event.get('request', {}).get('headers') or {}
    for name in list(headers):
        if name.lower() in SENSITIVE_HEADERS:
            headers[name] = '[Filtered]'

    tags = event.setdefault('tags', {})
    if request_context.request_id:
        tags['request_id'] = request_context.request_id
    if request_context.promotion_code:
        tags['promotion_code'] = request_context.promotion_code
    tags['line_count'] = request_context.line_count

    return event


def capture_exception(exception, **kwargs):
    """Report to Sentry when active; always logged locally."""
    if sentry_active():
        sentry_sdk.capture_exception(exception, **kwargs)
    logger.error(f"exception_captured | type={exception.__class__.__name__} error={exception}", exc_info=exception)


def add_breadcrumb(message, category="quote", level="info", data=None):
    if sentry_active():
        sentry_sdk.add_breadcrumb(message=message, category=category, level=level, data=data or {})
