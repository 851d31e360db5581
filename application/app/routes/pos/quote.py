from fastapi import APIRouter, Depends

# Core functions
from app.core.quote_functions import quote_order_core, legacy_price_core

# DTOs
from app.dto.quote import QuoteRequest, QuoteResponse, LegacyPriceRequest, LegacyPriceResponse

# Engine
from app.promotions.engine import QuoteEngine

pos_router = APIRouter(tags=["pos-quote"])


def get_quote_engine() -> QuoteEngine:
    return QuoteEngine()


@pos_router.post("/quote", response_model=QuoteResponse)
async def quote_order(request: QuoteRequest, engine: QuoteEngine = Depends(get_quote_engine)):
    """ Price order lines with an optional promotion code """
    return await quote_order_core(request, engine)


@pos_router.post("/price", response_model=LegacyPriceResponse)
async def legacy_price(request: LegacyPriceRequest, engine: QuoteEngine = Depends(get_quote_engine)):
    """ Legacy per-item quote """
    return await legacy_price_core(request, engine)
