from typing import List

from app.core.constants import AdjustmentType, PromotionType
from app.dto.promotions import Promotion
from app.dto.quote import Adjustment, PricedLine
from app.pricing.money import apply_percent_off
from .base import BasePromotionStrategy, PricingContext, StrategyResult


class DiscountStrategy(BasePromotionStrategy):
    promotion_type = PromotionType.DISCOUNT

    def apply(self, lines: List[PricedLine], promotion: Promotion, context: PricingContext) -> StrategyResult:
        percent_off = promotion.percent_off or 0
        discounted_lines = []

        for line in lines:
            if line.missing_price or not line.promo_eligible or not percent_off:
                discounted_lines.append(line)
                continue

            # rounded per unit, per line; never on the aggregate
            unit_after = apply_percent_off(line.unit_price_after, percent_off)
            total_after = unit_after * line.qty

            adjustments = list(line.adjustments)
            if total_after != line.line_total_after:
                adjustments.append(Adjustment(type=AdjustmentType.DISCOUNT, amount=line.line_total_after - total_after))

            discounted_lines.append(line.model_copy(update={
                "unit_price_after": unit_after,
                "line_total_after": total_after,
                "discount_amount": line.line_total_before - total_after,
                "adjustments": adjustments,
            }))

        return StrategyResult(lines=discounted_lines, percent_off=percent_off)
