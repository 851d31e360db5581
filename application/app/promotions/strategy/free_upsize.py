from typing import List

from app.core.constants import AdjustmentType, PromotionType
from app.dto.promotions import Promotion
from app.dto.quote import Adjustment, PricedLine
from app.promotions.category_filter import CategoryFilter
from .base import BasePromotionStrategy, PricingContext, StrategyResult

from app.logging.utils import get_app_logger
logger = get_app_logger("app.promotions.free_upsize")


class FreeUpsizeStrategy(BasePromotionStrategy):
    """
    Buy N in the target category, get every smaller-tier line upsized at the
    smaller-tier price. One threshold only; exceeding it does not compound.
    """
    promotion_type = PromotionType.RULE

    def apply(self, lines: List[PricedLine], promotion: Promotion, context: PricingContext) -> StrategyResult:
        upsize = context.upsize
        threshold = promotion.min_qty if promotion.min_qty is not None else upsize.default_min_qty

        target_lines = [
            line for line in lines
            if line.promo_eligible and CategoryFilter.matches_category(line.category, upsize.target_category)
        ]
        qualifying_qty = sum(line.qty for line in target_lines)
        applies = qualifying_qty >= threshold

        result = StrategyResult(
            lines=list(lines),
            qualifying_qty=qualifying_qty,
            free_upsize_applies=applies,
            free_upsize_threshold=threshold,
        )
        if not applies:
            return result

        target_ids = {line.line_id for line in target_lines}
        result.lines = [
            self.upsize_line(line, context) if line.line_id in target_ids else line
            for line in lines
        ]
        return result

    def upsize_line(self, line: PricedLine, context: PricingContext) -> PricedLine:
        upsize = context.upsize
        # an already upsized line is left alone
        if line.missing_price or line.requested_size_key != upsize.from_size or line.effective_size_key != upsize.from_size:
            return line

        larger_price = context.resolver.resolve(line.product_id, upsize.to_size)
        if larger_price is None:
            logger.warning(f"free_upsize_skipped | line_id={line.line_id} product_id={line.product_id} reason=no_larger_price")
            return line
        if larger_price < line.unit_price_before:
            logger.warning(f"free_upsize_skipped | line_id={line.line_id} product_id={line.product_id} reason=larger_cheaper")
            return line

        # billed price stays at what the requested tier costs
        unit_after = line.unit_price_after
        total_before = larger_price * line.qty
        total_after = unit_after * line.qty

        adjustments = list(line.adjustments)
        adjustments.append(Adjustment(type=AdjustmentType.FREE_UPSIZE, amount=(larger_price - line.unit_price_before) * line.qty))

        return line.model_copy(update={
            "effective_size_key": upsize.to_size,
            "unit_price_before": larger_price,
            "unit_price_after": unit_after,
            "line_total_before": total_before,
            "line_total_after": total_after,
            "discount_amount": total_before - total_after,
            "adjustments": adjustments,
        })
