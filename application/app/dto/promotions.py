from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from app.core.constants import PromotionType


class PromotionScopeEntry(BaseModel):
    """One (category, is_included) pair of a promotion scope"""
    model_config = ConfigDict(frozen=True)

    category: str
    is_included: bool = True


class Promotion(BaseModel):
    """Validated, in-window promotion resolved for one quote"""
    model_config = ConfigDict(frozen=True)

    code: str
    name: Optional[str] = None
    promo_type: PromotionType
    priority: int = 0
    is_stackable: bool = False
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    percent_off: Optional[Decimal] = Field(None, ge=0, le=100)
    min_qty: Optional[int] = Field(None, ge=0)
    scopes: Tuple[PromotionScopeEntry, ...] = ()
