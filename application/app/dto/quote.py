import uuid
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.core.constants import PromotionType, SizeKey


def validate_uuid(value: str) -> str:
    """Catalog and POS line ids are UUIDs; returns the canonical lower-case form"""
    try:
        return str(uuid.UUID(str(value).strip()))
    except ValueError as e:
        raise ValueError(f"not a valid UUID: {value!r}") from e


class QuoteLineRequest(BaseModel):
    """One requested order line"""
    model_config = ConfigDict(frozen=True)

    line_id: str = Field(..., min_length=1, description="Caller-assigned id, unique within the request")
    product_id: str = Field(..., min_length=1, description="Catalog product id")
    qty: int = Field(..., gt=0, description="Positive integer quantity")
    price_key: SizeKey = Field(..., description="Requested size variant")
    options: Dict[str, str] = Field(default_factory=dict, description="Opaque options echoed back on the priced line")

    @field_validator("line_id", "product_id")
    @classmethod
    def validate_ids(cls, v):
        return validate_uuid(v)


class QuoteRequest(BaseModel):
    promotion_code: Optional[str] = Field(None, description="Promotion code; blank means no promotion")
    lines: List[QuoteLineRequest] = Field(..., min_length=1, description="Order lines to price")

    @model_validator(mode="after")
    def check_unique_line_ids(self):
        seen = set()
        for line in self.lines:
            if line.line_id in seen:
                raise ValueError(f"duplicate line_id: {line.line_id}")
            seen.add(line.line_id)
        return self


class Adjustment(BaseModel):
    """Promotion adjustment attached to a priced line"""
    model_config = ConfigDict(frozen=True)

    type: str
    amount: int


class LineDiagnostics(BaseModel):
    product_category: Optional[str] = None
    normalized_category: str
    promo_eligible: bool


class PricedLine(BaseModel):
    """
    A requested line after pricing. Price fields are None when the catalog has
    no price for the effective size; such lines contribute nothing to totals.
    """
    line_id: str
    product_id: str
    qty: int
    requested_size_key: SizeKey
    effective_size_key: SizeKey
    category: str
    unit_price_before: Optional[int] = None
    unit_price_after: Optional[int] = None
    line_total_before: Optional[int] = None
    line_total_after: Optional[int] = None
    discount_amount: Optional[int] = None
    missing_price: bool = False
    promo_eligible: bool = Field(False, exclude=True)
    adjustments: List[Adjustment] = Field(default_factory=list)
    options: Dict[str, str] = Field(default_factory=dict)
    debug: Optional[LineDiagnostics] = None


class QuoteMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    promotion_code: Optional[str] = None
    promo_type: Optional[PromotionType] = Field(None, alias="promoType")
    percent_off: float = Field(0.0, alias="percentOff")
    drink_qty: int = Field(0, alias="drinkQty")
    free_upsize_applies: bool = Field(False, alias="freeUpsizeApplies")
    missing_price_count: int = Field(0, alias="missingPriceCount")
    free_upsize_threshold: Optional[int] = Field(None, alias="freeUpsizeThreshold")
    scope_categories: List[str] = Field(default_factory=list, alias="scopeCategories")
    min_qty: Optional[int] = Field(None, exclude=True)


class QuoteTotals(BaseModel):
    subtotal_before: int
    discount_amount: int
    grand_total: int


class QuoteResponse(BaseModel):
    ok: bool = True
    meta: QuoteMeta
    lines: List[PricedLine]
    totals: QuoteTotals


# Legacy per-item quote

class LegacyPriceLine(BaseModel):
    product_id: str = Field(..., min_length=1)
    size: SizeKey = Field(SizeKey.STD, description="Requested size variant")
    qty: int = Field(..., gt=0)

    @field_validator("product_id")
    @classmethod
    def validate_product_id(cls, v):
        return validate_uuid(v)


class LegacyPriceRequest(BaseModel):
    promotion_code: Optional[str] = None
    lines: List[LegacyPriceLine] = Field(..., min_length=1)


class LegacyPricedLine(BaseModel):
    product_id: str
    size: SizeKey
    qty: int
    category: str
    original_price_key: SizeKey
    original_unit_price: Optional[int] = None
    final_unit_price: Optional[int] = None
    original_line_total: Optional[int] = None
    final_line_total: Optional[int] = None
    discount_amount_line: Optional[int] = None


class LegacyQuoteMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    promotion_code: Optional[str] = None
    promo_type: Optional[PromotionType] = Field(None, alias="promoType")
    percent_off: float = Field(0.0, alias="percentOff")
    min_qty: Optional[int] = Field(None, alias="minQty")
    drink_qty: int = Field(0, alias="drinkQty")
    free_upsize_applies: bool = Field(False, alias="freeUpsizeApplies")
    free_upsize_threshold: Optional[int] = Field(None, alias="freeUpsizeThreshold")
    scope_categories: List[str] = Field(default_factory=list, alias="scopeCategories")
    missing_price_count: int = Field(0, alias="missingPriceCount")


class LegacyQuoteTotals(BaseModel):
    subtotal_before_discount: int
    discount_amount: int
    grand_total: int


class LegacyPriceResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    meta: LegacyQuoteMeta
    priced_lines: List[LegacyPricedLine] = Field(..., alias="pricedLines")
    totals: LegacyQuoteTotals
