import uuid
from typing import List

from starlette.concurrency import run_in_threadpool

# Engine
from app.promotions.engine import QuoteEngine
from app.promotions.loader import normalize_code

# DTOs
from app.dto.quote import (QuoteRequest, QuoteResponse, QuoteLineRequest,
    LegacyPriceRequest, LegacyPriceResponse, LegacyPricedLine, LegacyQuoteMeta, LegacyQuoteTotals
)

# Context
from app.middlewares.request_context import request_context

# Logging
from app.logging.utils import get_app_logger
logger = get_app_logger("app.core.quote_functions")


def _bind_quote_context(promotion_code, line_count: int) -> None:
    request_context.promotion_code = normalize_code(promotion_code)
    request_context.line_count = line_count


async def quote_order_core(request: QuoteRequest, engine: QuoteEngine) -> QuoteResponse:
    """
    Core function for the line-based quote

    Args:
        request: QuoteRequest with promotion code and lines
        engine: QuoteEngine bound to the catalog and promotion store
    Returns:
        QuoteResponse with priced lines, totals and meta
    """
    _bind_quote_context(request.promotion_code, len(request.lines))
    logger.info(f"quote_order_core_request | code={request_context.promotion_code} lines={len(request.lines)}")

    # engine reads the database synchronously
    response = await run_in_threadpool(engine.quote_request, request)

    logger.info(f"quote_order_core_response | code={response.meta.promotion_code} grand_total={response.totals.grand_total}")
    return response


def legacy_lines(request: LegacyPriceRequest) -> List[QuoteLineRequest]:
    # positional line ids; the legacy envelope never returns them
    return [
        QuoteLineRequest(line_id=str(uuid.UUID(int=index + 1)), product_id=line.product_id, qty=line.qty, price_key=line.size)
        for index, line in enumerate(request.lines)
    ]


def to_legacy_response(response: QuoteResponse) -> LegacyPriceResponse:
    meta = response.meta
    priced_lines = [
        LegacyPricedLine(
            product_id=line.product_id,
            size=line.requested_size_key,
            qty=line.qty,
            category=line.category,
            original_price_key=line.effective_size_key,
            original_unit_price=line.unit_price_before,
            final_unit_price=line.unit_price_after,
            original_line_total=line.line_total_before,
            final_line_total=line.line_total_after,
            discount_amount_line=line.discount_amount,
        )
        for line in response.lines
    ]
    return LegacyPriceResponse(
        ok=True,
        meta=LegacyQuoteMeta(
            promotion_code=meta.promotion_code,
            promo_type=meta.promo_type,
            percent_off=meta.percent_off,
            min_qty=meta.min_qty,
            drink_qty=meta.drink_qty,
            free_upsize_applies=meta.free_upsize_applies,
            free_upsize_threshold=meta.free_upsize_threshold,
            scope_categories=list(meta.scope_categories),
            missing_price_count=meta.missing_price_count,
        ),
        priced_lines=priced_lines,
        totals=LegacyQuoteTotals(
            subtotal_before_discount=response.totals.subtotal_before,
            discount_amount=response.totals.discount_amount,
            grand_total=response.totals.grand_total,
        ),
    )


async def legacy_price_core(request: LegacyPriceRequest, engine: QuoteEngine) -> LegacyPriceResponse:
    """Per-item quote kept for older POS clients; delegates to the line-based engine."""
    lines = legacy_lines(request)
    _bind_quote_context(request.promotion_code, len(lines))
    logger.info(f"legacy_price_core_request | code={request_context.promotion_code} lines={len(lines)}")

    response = await run_in_threadpool(engine.quote, request.promotion_code, lines)
    return to_legacy_response(response)
