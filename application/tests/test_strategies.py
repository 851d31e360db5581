from decimal import Decimal

from app.core.constants import AdjustmentType, PromotionType, SizeKey
from app.dto.promotions import Promotion
from app.dto.quote import PricedLine
from app.pricing.price_resolver import CatalogProduct, CatalogSnapshot, PriceResolver
from app.promotions.engine import PROMOTION_STRATEGIES
from app.promotions.strategy.base import PricingContext, UpsizeSettings
from app.promotions.strategy.discount import DiscountStrategy
from app.promotions.strategy.free_upsize import FreeUpsizeStrategy


def context():
    snapshot = CatalogSnapshot.from_rows(
        [CatalogProduct(product_id="tea", category="DRINK")],
        {("tea", "SIZE_LA"): Decimal("30000"), ("tea", "SIZE_PHE"): Decimal("35000")},
    )
    return PricingContext(
        resolver=PriceResolver(snapshot),
        upsize=UpsizeSettings(target_category="DRINK", from_size=SizeKey.SIZE_LA, to_size=SizeKey.SIZE_PHE, default_min_qty=5),
    )


def priced(line_id, unit_price, qty=1, category="DRINK", size=SizeKey.SIZE_LA, eligible=True):
    missing = unit_price is None
    return PricedLine(
        line_id=line_id,
        product_id="tea",
        qty=qty,
        requested_size_key=size,
        effective_size_key=size,
        category=category,
        unit_price_before=unit_price,
        unit_price_after=unit_price,
        line_total_before=None if missing else unit_price * qty,
        line_total_after=None if missing else unit_price * qty,
        discount_amount=None if missing else 0,
        missing_price=missing,
        promo_eligible=eligible,
    )


def test_registry_covers_every_promotion_type():
    assert set(PROMOTION_STRATEGIES) == set(PromotionType)
    for promo_type, strategy in PROMOTION_STRATEGIES.items():
        assert strategy.promotion_type == promo_type


def test_discount_skips_ineligible_and_missing_lines():
    promotion = Promotion(code="D", promo_type=PromotionType.DISCOUNT, percent_off=Decimal("25"))
    lines = [priced("in", 30000, 2), priced("out", 30000, eligible=False), priced("missing", None)]

    result = DiscountStrategy().apply(lines, promotion, context())

    assert result.lines[0].unit_price_after == 22500
    assert result.lines[0].adjustments[0].type == AdjustmentType.DISCOUNT
    assert result.lines[0].adjustments[0].amount == 15000
    assert result.lines[1] is lines[1]
    assert result.lines[2] is lines[2]
    assert result.percent_off == Decimal("25")


def test_strategies_do_not_mutate_their_input():
    lines = [priced("a", 30000, 3), priced("b", 30000, 3)]
    snapshot = [line.model_copy(deep=True) for line in lines]

    DiscountStrategy().apply(lines, Promotion(code="D", promo_type=PromotionType.DISCOUNT, percent_off=Decimal("10")), context())
    FreeUpsizeStrategy().apply(lines, Promotion(code="R", promo_type=PromotionType.RULE, min_qty=5), context())

    assert lines == snapshot


def test_free_upsize_counts_only_in_scope_target_lines():
    promotion = Promotion(code="R", promo_type=PromotionType.RULE, min_qty=5)
    lines = [priced("a", 30000, 3), priced("b", 30000, 3, eligible=False), priced("c", 50000, 4, category="CAKE", size=SizeKey.STD)]

    result = FreeUpsizeStrategy().apply(lines, promotion, context())

    assert result.qualifying_qty == 3
    assert result.free_upsize_applies is False
    assert all(line.effective_size_key == line.requested_size_key for line in result.lines)


def test_free_upsize_is_idempotent_over_its_own_output():
    promotion = Promotion(code="R", promo_type=PromotionType.RULE, min_qty=2)
    strategy = FreeUpsizeStrategy()

    once = strategy.apply([priced("a", 30000, 2)], promotion, context())
    twice = strategy.apply(once.lines, promotion, context())

    assert twice.lines == once.lines
    assert once.lines[0].effective_size_key == SizeKey.SIZE_PHE
    assert once.lines[0].discount_amount == 10000
