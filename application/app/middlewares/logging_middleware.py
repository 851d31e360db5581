"""
Request id and audit trail middleware for the quote API
"""
import json
import socket
import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from app.logging.utils import get_app_logger, init_audit_logger
from app.logging.config import LoggingConfig
from app.middlewares.request_context import create_request_id, request_context, clear_request_context

# settings
from app.config.settings import QuoteConfigs
configs = QuoteConfigs()

MAX_BODY_CHARS = 1000
MASKED_HEADERS = ('authorization', 'cookie', 'x-api-key')


def decode_body(body_bytes: bytes, content_type: str):
    """JSON bodies are kept structured, anything else as truncated text."""
    text = body_bytes.decode('utf-8', errors='replace')
    if body_bytes and 'application/json' in content_type:
        try:
            return json.loads(text)
        except ValueError:
            pass
    return text[:MAX_BODY_CHARS]


def mask_headers(headers) -> dict:
    return {k: ('****' if k.lower() in MASKED_HEADERS else v) for k, v in headers.items()}


class AuditMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, exclude_paths: list[str] | None = None):
        super().__init__(app)
        self.logger = get_app_logger('app.middlewares.audit')
        self.exclude_audit_paths = exclude_paths or ['/health', '/docs', '/redoc', '/openapi.json']
        self.hostname = socket.gethostname()

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        clear_request_context()
        request_id = create_request_id()
        received_at = datetime.now(timezone.utc).isoformat()
        started = time.perf_counter()
        body_bytes = await request.body()

        request_context.request_method = request.method
        request_context.request_path = request.url.path
        request_context.app_version = request.headers.get('x-app-version', '')

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = (time.perf_counter() - started) * 1000
            self.logger.error(
                f"request_exception | method={request.method} path={request.url.path} "
                f"exception_type={exc.__class__.__name__} duration_ms={duration_ms:.0f}",
                exc_info=True,
            )
            self.audit(request, None, body_bytes, duration_ms, request_id, received_at, exc)
            clear_request_context()
            raise

        duration_ms = (time.perf_counter() - started) * 1000
        response.headers['x-request-id'] = request_id
        self.audit(request, response, body_bytes, duration_ms, request_id, received_at)
        clear_request_context()
        return response

    def should_audit(self, path: str) -> bool:
        return LoggingConfig.AUDIT_LOGGING_ENABLED and not path.startswith(tuple(self.exclude_audit_paths))

    def audit(self, request: Request, response: Optional[Response], body_bytes: bytes, duration_ms: float,
              request_id: str, received_at: str, exc: Optional[Exception] = None) -> None:
        if not self.should_audit(request.url.path):
            return

        status = response.status_code if response is not None else 500
        response_body = ''
        # only plain error bodies are captured; streamed bodies cannot be re-read here
        if (LoggingConfig.CAPTURE_RESPONSE_BODY and response is not None and status >= 400
                and getattr(response, 'body', None)):
            response_body = response.body.decode('utf-8', errors='replace')[:MAX_BODY_CHARS]

        record = {
            'request_id': request_id,
            'request_method': request.method,
            'request_path': request.url.path,
            'status_code': status,
            'duration': round(duration_ms, 2),
            'hostname': self.hostname,
            'app_name': configs.APP_NAME,
            'version': configs.APP_VERSION,
            'timestamp': received_at,
            'request': {
                "QUERY": dict(request.query_params),
                "BODY": decode_body(body_bytes, request.headers.get('content-type', '')),
                "HEADERS": mask_headers(dict(request.headers)),
            },
            'response': response_body,
        }
        if exc is not None:
            record['exception'] = exc.__class__.__name__

        stream = (LoggingConfig.AUDIT_LOGS_GET_STREAM_NAME if request.method.upper() == 'GET'
                  else LoggingConfig.AUDIT_LOGS_STREAM_NAME)
        init_audit_logger(stream, request.method).info("audit", extra=record)
