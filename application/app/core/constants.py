"""
Core constants for the POS quote service

Size variants, promotion types, quote lifecycle states and error codes shared
across the pricing engine, the repositories and the HTTP layer.
"""
from decimal import Decimal
from enum import Enum


class SizeKey(str, Enum):
    """Catalog size variants. A product carries one price per variant."""
    STD = "STD"
    SIZE_LA = "SIZE_LA"
    SIZE_PHE = "SIZE_PHE"


class PromotionType(str, Enum):
    DISCOUNT = "DISCOUNT"
    RULE = "RULE"


class ScopeType:
    CATEGORY = "CATEGORY"


class AdjustmentType:
    DISCOUNT = "DISCOUNT"
    FREE_UPSIZE = "FREE_UPSIZE"


class QuoteState(str, Enum):
    """Lifecycle of a single quote invocation"""
    RECEIVED = "RECEIVED"
    PROMOTION_RESOLVED = "PROMOTION_RESOLVED"
    PRICED = "PRICED"
    AGGREGATED = "AGGREGATED"
    RETURNED = "RETURNED"
    FAILED = "FAILED"


class QuoteErrorCode:
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_PROMOTION = "INVALID_PROMOTION"
    PROMO_NOT_FOUND = "PROMO_NOT_FOUND"
    PROMO_INACTIVE = "PROMO_INACTIVE"
    PROMO_NOT_STARTED = "PROMO_NOT_STARTED"
    PROMO_EXPIRED = "PROMO_EXPIRED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class Category:
    """Canonical category codes produced by category normalization"""
    DRINK = "DRINK"
    CAKE = "CAKE"
    TOPPING = "TOPPING"
    MERCHANDISE = "MERCHANDISE"
    PCTC = "PCTC"
    UNKNOWN = "UNKNOWN"

    # alias -> canonical, matched exactly after normalization
    ALIASES = {
        "DRK": DRINK,
        "DO_UONG": DRINK,
        "DO UONG": DRINK,
        "DOUONG": DRINK,
        "BANH": CAKE,
        "TOP": TOPPING,
        "MERCH": MERCHANDISE,
        "MER": MERCHANDISE,
    }

    # canonical codes also absorb anything that starts with them (DRINKS, CAKE_SLICE, ...)
    PREFIXES = (DRINK, CAKE, TOPPING, MERCHANDISE, PCTC)


# Currency has no minor denomination: every amount is a whole unit
MONEY_QUANTUM = Decimal("1")
HUNDRED = Decimal("100")
