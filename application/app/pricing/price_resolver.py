"""
Price Resolver

Maps (product, size variant) to the VAT-inclusive unit price from a catalog
snapshot read once per quote. A missing price is reported as ``None`` and is
never an error.
"""
from decimal import Decimal
from typing import Dict, Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from app.core.constants import SizeKey
from app.pricing.money import to_money


class CatalogProduct(BaseModel):
    model_config = ConfigDict(frozen=True)

    product_id: str
    category: Optional[str] = None


class CatalogSnapshot(BaseModel):
    """Products and prices for the product ids of one quote"""
    model_config = ConfigDict(frozen=True)

    products: Dict[str, CatalogProduct] = {}
    prices: Dict[Tuple[str, str], int] = {}

    @classmethod
    def from_rows(cls, products: Iterable[CatalogProduct], prices: Dict[Tuple[str, str], Decimal]) -> "CatalogSnapshot":
        return cls(
            products={product.product_id: product for product in products},
            prices={key: to_money(value) for key, value in prices.items() if value is not None},
        )


class PriceResolver:
    def __init__(self, snapshot: CatalogSnapshot):
        self.snapshot = snapshot

    def resolve(self, product_id: str, size_key: SizeKey) -> Optional[int]:
        if product_id not in self.snapshot.products:
            return None
        return self.snapshot.prices.get((product_id, SizeKey(size_key).value))

    def category_of(self, product_id: str) -> Optional[str]:
        product = self.snapshot.products.get(product_id)
        return product.category if product else None
