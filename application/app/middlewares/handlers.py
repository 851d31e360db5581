from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config.sentry import capture_exception, add_breadcrumb
from app.config.settings import QuoteConfigs
from app.core.constants import QuoteErrorCode
from app.core.exceptions import QuoteError
from app.logging.utils import get_app_logger
from app.middlewares.request_context import request_context

logger = get_app_logger(__name__)
configs = QuoteConfigs()


def _format_validation_errors(exc: RequestValidationError) -> str:
    # "field_path: error_message" per error, joined on one line
    error_messages = []
    for err in exc.errors():
        field_path = " -> ".join(str(loc) for loc in err.get("loc", []))
        error_messages.append(f"{field_path}: {err.get('msg', 'Invalid input')}")
    return "; ".join(error_messages) or "Invalid request data"


async def _validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors in the quote envelope."""
    request_context.module_name = 'middleware_handlers'
    message = _format_validation_errors(exc) if configs.DEBUG else "Invalid request data"
    logger.warning(f"validation_error | method={request.method} url={request.url.path} errors={exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"ok": False, "error": message, "error_code": QuoteErrorCode.VALIDATION_ERROR},
    )


async def _quote_exception_handler(request: Request, exc: QuoteError):
    request_context.module_name = 'middleware_handlers'
    if exc.status_code >= 500:
        logger.error(f"quote_error | method={request.method} url={request.url.path} error_code={exc.error_code} message={exc.message}")
        add_breadcrumb(
            message=f"Quote failure on {request.method} {request.url.path}",
            category="quote",
            level="error",
            data={"error_code": exc.error_code},
        )
        capture_exception(exc)
        payload = exc.to_dict() if configs.DEBUG else {"ok": False, "error": "Something went wrong", "error_code": exc.error_code}
    else:
        logger.warning(f"quote_error | method={request.method} url={request.url.path} error_code={exc.error_code} message={exc.message}")
        payload = exc.to_dict()
    return JSONResponse(status_code=exc.status_code, content=payload)


async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    request_context.module_name = 'middleware_handlers'
    status_code = exc.status_code
    if status_code >= 500:
        logger.error(f"http_exception | method={request.method} url={request.url.path} status_code={status_code} detail={exc.detail}")
    else:
        logger.warning(f"http_exception | method={request.method} url={request.url.path} status_code={status_code} detail={exc.detail}")

    if configs.DEBUG:
        message = str(exc.detail)
    elif status_code == 404:
        message = "Resource not found"
    elif 400 <= status_code < 500:
        message = "Invalid request"
    else:
        message = "Something went wrong"
    return JSONResponse(status_code=status_code, content={"ok": False, "error": message})


async def _general_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions with production-safe messages."""
    request_context.module_name = 'middleware_handlers'
    logger.error(
        f"unhandled_exception | method={request.method} url={request.url.path} exception_type={type(exc).__name__} exception_message={exc}",
        exc_info=exc,
    )
    add_breadcrumb(
        message=f"Unhandled exception on {request.method} {request.url.path}",
        category="exception",
        level="error",
        data={"exception_type": type(exc).__name__, "exception_message": str(exc)},
    )
    capture_exception(exc)

    message = f"Internal server error: {exc}" if configs.DEBUG else "Something went wrong"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"ok": False, "error": message, "error_code": QuoteErrorCode.INTERNAL_ERROR},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the given FastAPI instance."""
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(QuoteError, _quote_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _general_exception_handler)
