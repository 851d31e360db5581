"""
Catalog Repository
Reads products and their VAT-inclusive prices for one quote
"""

from decimal import Decimal
from typing import Dict, List, Tuple

from app.connections.database import fetch_all, get_db_session
from app.pricing.price_resolver import CatalogProduct, CatalogSnapshot

from app.logging.utils import get_app_logger
logger = get_app_logger("app.catalog_repository")


PRODUCTS_QUERY = """
    SELECT id, category, category_code
    FROM products
    WHERE id IN :product_ids AND is_active = true
"""

VARIANT_PRICES_QUERY = """
    SELECT pv.product_id, pv.size_key, pvp.price_vat_incl
    FROM product_variants pv
    LEFT JOIN product_variant_prices pvp ON pvp.variant_id = pv.id
    WHERE pv.product_id IN :product_ids AND pv.is_active = true
"""

LEGACY_PRICES_QUERY = """
    SELECT product_id, price_key, price_vat_incl
    FROM product_prices
    WHERE product_id IN :product_ids
"""


class CatalogRepository:
    """Repository for catalog reads used by the quote engine"""

    def load_snapshot(self, product_ids: List[str]) -> CatalogSnapshot:
        """
        Load active products and their prices in one read session.

        Variant prices are authoritative. Legacy ``product_prices`` rows are
        used only for products with no active variant rows; an active variant
        without a price row leaves that size unpriced.

        Args:
            product_ids: Product ids referenced by the quote (duplicates allowed)

        Returns:
            CatalogSnapshot for the requested products
        """
        ids = sorted(set(product_ids))
        if not ids:
            return CatalogSnapshot()

        try:
            with get_db_session(read_only=True) as db:
                params = {"product_ids": ids}
                product_rows = fetch_all(db, PRODUCTS_QUERY, params, expanding=["product_ids"])
                variant_rows = fetch_all(db, VARIANT_PRICES_QUERY, params, expanding=["product_ids"])
                legacy_rows = fetch_all(db, LEGACY_PRICES_QUERY, params, expanding=["product_ids"])

            products = [
                CatalogProduct(product_id=str(row["id"]), category=row.get("category_code") or row.get("category"))
                for row in product_rows
            ]

            prices: Dict[Tuple[str, str], Decimal] = {}
            with_variants = set()
            for row in variant_rows:
                with_variants.add(str(row["product_id"]))
                if row.get("price_vat_incl") is None or not row.get("size_key"):
                    continue
                prices[(str(row["product_id"]), str(row["size_key"]).upper())] = Decimal(str(row["price_vat_incl"]))

            for row in legacy_rows:
                product_id = str(row["product_id"])
                if product_id in with_variants:
                    continue
                if row.get("price_vat_incl") is None or not row.get("price_key"):
                    continue
                prices[(product_id, str(row["price_key"]).upper())] = Decimal(str(row["price_vat_incl"]))

            logger.info(f"catalog_snapshot_loaded | requested={len(ids)} products={len(products)} prices={len(prices)}")
            return CatalogSnapshot.from_rows(products, prices)

        except Exception as e:
            logger.error(f"catalog_snapshot_error | product_ids={ids} error={e}", exc_info=True)
            raise
