from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from app.core.constants import PromotionType, SizeKey
from app.dto.promotions import Promotion
from app.dto.quote import PricedLine
from app.pricing.price_resolver import PriceResolver


class UpsizeSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    target_category: str
    from_size: SizeKey
    to_size: SizeKey
    default_min_qty: int


class PricingContext(BaseModel):
    """Read-only collaborators a strategy may consult"""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    resolver: PriceResolver
    upsize: UpsizeSettings


class StrategyResult(BaseModel):
    lines: List[PricedLine]
    percent_off: Decimal = Decimal("0")
    qualifying_qty: Optional[int] = None
    free_upsize_applies: bool = False
    free_upsize_threshold: Optional[int] = None


class BasePromotionStrategy(ABC):
    promotion_type: PromotionType

    @abstractmethod
    def apply(self, lines: List[PricedLine], promotion: Promotion, context: PricingContext) -> StrategyResult:
        """Return new priced lines; the input lines are never modified."""
        pass
