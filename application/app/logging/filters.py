"""
Logging filters for the POS quote service
"""
import logging
from app.middlewares.request_context import request_context


class RequestContextFilter(logging.Filter):
    def filter(self, record):
        record.request_id = getattr(request_context, 'request_id', None) or ''
        record.request_method = getattr(request_context, 'request_method', '') or ''
        record.request_path = getattr(request_context, 'request_path', '') or ''
        record.app_version = getattr(request_context, 'app_version', '') or ''
        return True


class QuoteContextFilter(logging.Filter):
    def filter(self, record):
        record.promotion_code = getattr(request_context, 'promotion_code', '') or ''
        record.line_count = getattr(request_context, 'line_count', 0) or 0
        return True
