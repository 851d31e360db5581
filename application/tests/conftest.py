import os
import tempfile
import uuid
from datetime import datetime, timezone
from decimal import Decimal

# Settings are read at import time: point the app at a throwaway database first
_TMP_DIR = tempfile.mkdtemp(prefix="pos_quote_tests_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'quote.db')}"
os.environ.pop("DATABASE_READ_URL", None)
os.environ["LOG_DIR"] = os.path.join(_TMP_DIR, "logs")
os.environ["DEBUG"] = "true"
os.environ["SENTRY_ENABLED"] = "false"
os.environ["FIREHOSE_ENABLED"] = "false"
os.environ["AUDIT_LOGGING_ENABLED"] = "false"
os.environ["SLACK_WEBHOOK_URL"] = ""

import pytest

from app.config.settings import QuoteConfigs
from app.dto.quote import QuoteLineRequest
from app.pricing.price_resolver import CatalogProduct, CatalogSnapshot
from app.promotions.engine import QuoteEngine

NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def uid(name):
    """Stable UUID for a readable test name, so fixtures stay legible"""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"pos-quote-tests/{name}"))


CATALOG_PRODUCTS = {
    uid("cake-x"): "CAKE",
    uid("bun"): "Cake",
    uid("tea"): "Đồ uống",
    uid("coffee"): "DRINK",
    uid("juice"): "DRINKS",
    uid("soda"): "DRK",
    uid("mug"): "MERCH",
    uid("no-price"): "CAKE",
}

CATALOG_PRICES = {
    (uid("cake-x"), "STD"): 50000,
    (uid("bun"), "STD"): 12345,
    (uid("tea"), "SIZE_LA"): 30000,
    (uid("tea"), "SIZE_PHE"): 35000,
    (uid("coffee"), "STD"): 28000,
    (uid("coffee"), "SIZE_LA"): 25000,
    (uid("coffee"), "SIZE_PHE"): 32000,
    (uid("juice"), "SIZE_LA"): 20000,
    (uid("soda"), "SIZE_LA"): 18000,
    (uid("soda"), "SIZE_PHE"): 16000,
    (uid("mug"), "STD"): 120000,
}

PROMOTIONS = {
    "SUMMER10": {"code": "SUMMER10", "name": "Summer 10%", "promo_type": "DISCOUNT", "percent_off": 10, "is_active": True, "scopes": []},
    "CAKE20": {
        "code": "CAKE20", "promo_type": "DISCOUNT", "percent_off": 20, "is_active": True,
        "scopes": [{"category": "Cake", "is_included": True}, {"category": "CAKE_SLICE", "is_included": True}],
    },
    "NODRINK": {
        "code": "NODRINK", "promo_type": "DISCOUNT", "percent_off": 15, "is_active": True,
        "scopes": [{"category": "DRINK", "is_included": False}],
    },
    "BUY5UPSIZE": {"code": "BUY5UPSIZE", "promo_type": "RULE", "min_qty": 5, "is_active": True, "scopes": []},
    "UPSIZEDEFAULT": {"code": "UPSIZEDEFAULT", "promo_type": "RULE", "min_qty": None, "is_active": True, "scopes": []},
    "EXPIRED2020": {
        "code": "EXPIRED2020", "promo_type": "DISCOUNT", "percent_off": 10, "is_active": True,
        "end_at": datetime(2020, 12, 31, 23, 59, 59, tzinfo=timezone.utc), "scopes": [],
    },
    "FUTURE": {
        "code": "FUTURE", "promo_type": "DISCOUNT", "percent_off": 10, "is_active": True,
        "start_at": datetime(2030, 1, 1, tzinfo=timezone.utc), "scopes": [],
    },
    "INACTIVE": {"code": "INACTIVE", "promo_type": "DISCOUNT", "percent_off": 10, "is_active": False, "scopes": []},
    "BADPCT": {"code": "BADPCT", "promo_type": "DISCOUNT", "percent_off": 150, "is_active": True, "scopes": []},
    "NOPCT": {"code": "NOPCT", "promo_type": "DISCOUNT", "percent_off": None, "is_active": True, "scopes": []},
    "MYSTERY": {"code": "MYSTERY", "promo_type": "BOGO", "is_active": True, "scopes": []},
    "EXACTWINDOW": {
        "code": "EXACTWINDOW", "promo_type": "DISCOUNT", "percent_off": 5, "is_active": True,
        "start_at": NOW, "end_at": NOW, "scopes": [],
    },
}


class FakeCatalogRepository:
    def __init__(self, products=None, prices=None):
        self.products = CATALOG_PRODUCTS if products is None else products
        self.prices = CATALOG_PRICES if prices is None else prices
        self.calls = []

    def load_snapshot(self, product_ids):
        self.calls.append(list(product_ids))
        wanted = set(product_ids)
        return CatalogSnapshot.from_rows(
            [CatalogProduct(product_id=pid, category=category) for pid, category in self.products.items() if pid in wanted],
            {key: Decimal(str(value)) for key, value in self.prices.items() if key[0] in wanted},
        )


class FakePromotionsRepository:
    def __init__(self, promotions=None):
        self.promotions = PROMOTIONS if promotions is None else promotions
        self.calls = []

    def get_promotion_with_scopes(self, promotion_code):
        self.calls.append(promotion_code)
        doc = self.promotions.get(promotion_code.strip().upper())
        if doc is None:
            return None
        doc = dict(doc)
        doc["scopes"] = [dict(scope) for scope in doc.get("scopes", [])]
        return doc


class FailingCatalogRepository:
    def load_snapshot(self, product_ids):
        raise RuntimeError("catalog unavailable")


def make_line(line_id, product_id, qty=1, size="STD", **options):
    return QuoteLineRequest(line_id=uid(line_id), product_id=uid(product_id), qty=qty, price_key=size, options=options)


@pytest.fixture
def catalog_repository():
    return FakeCatalogRepository()


@pytest.fixture
def promotions_repository():
    return FakePromotionsRepository()


@pytest.fixture
def quote_configs():
    return QuoteConfigs()


@pytest.fixture
def engine(catalog_repository, promotions_repository, quote_configs):
    return QuoteEngine(
        catalog_repository=catalog_repository,
        promotions_repository=promotions_repository,
        clock=lambda: NOW,
        configs=quote_configs,
    )
