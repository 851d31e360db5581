from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence

# Repository
from app.repository.catalog import CatalogRepository
from app.repository.promotions import PromotionsRepository

# DTOs
from app.dto.promotions import Promotion
from app.dto.quote import LineDiagnostics, PricedLine, QuoteLineRequest, QuoteMeta, QuoteRequest, QuoteResponse, QuoteTotals

# Constants
from app.core.constants import PromotionType, QuoteState, SizeKey
from app.core.exceptions import QuoteError, QuoteInternalError, QuoteValidationError

# Pricing
from app.pricing.price_resolver import PriceResolver
from app.promotions.category_filter import CategoryFilter, normalize_category
from app.promotions.loader import PromotionLoader

# Strategies
from app.promotions.strategy.base import BasePromotionStrategy, PricingContext, StrategyResult, UpsizeSettings
from app.promotions.strategy.discount import DiscountStrategy
from app.promotions.strategy.free_upsize import FreeUpsizeStrategy

PROMOTION_STRATEGIES: Dict[PromotionType, BasePromotionStrategy] = {
    PromotionType.DISCOUNT: DiscountStrategy(),
    PromotionType.RULE: FreeUpsizeStrategy(),
}

# Settings
from app.config.settings import QuoteConfigs
from app.config.sentry import add_breadcrumb, capture_exception

# Logging
from app.logging.utils import get_app_logger
logger = get_app_logger("app.quote_engine")


ALLOWED_TRANSITIONS = {
    QuoteState.RECEIVED: {QuoteState.PROMOTION_RESOLVED, QuoteState.FAILED},
    QuoteState.PROMOTION_RESOLVED: {QuoteState.PRICED, QuoteState.FAILED},
    QuoteState.PRICED: {QuoteState.AGGREGATED, QuoteState.FAILED},
    QuoteState.AGGREGATED: {QuoteState.RETURNED, QuoteState.FAILED},
    QuoteState.RETURNED: set(),
    QuoteState.FAILED: set(),
}


class QuoteRun:
    """State of a single quote invocation. Never shared between calls."""

    def __init__(self, promotion_code: Optional[str], line_count: int, now: datetime):
        self.promotion_code = promotion_code
        self.line_count = line_count
        self.now = now
        self.state = QuoteState.RECEIVED

    def advance(self, state: QuoteState) -> None:
        if state not in ALLOWED_TRANSITIONS[self.state]:
            raise QuoteInternalError(f"Illegal quote transition {self.state.value} -> {state.value}")
        logger.debug(f"quote_state_transition | from={self.state.value} to={state.value} code={self.promotion_code}")
        self.state = state

    def fail(self, error: Exception) -> None:
        previous = self.state
        if QuoteState.FAILED in ALLOWED_TRANSITIONS[self.state]:
            self.state = QuoteState.FAILED
        logger.warning(f"quote_failed | state={previous.value} code={self.promotion_code} lines={self.line_count} error={error}")


class QuoteEngine:
    """
    Quote aggregator: resolves the promotion, prices every line, applies the
    promotion strategy and sums exact totals.

    The engine keeps no state between calls; collaborators are injected so the
    same engine can run against the database or in-memory fakes.
    """

    def __init__(
        self,
        catalog_repository: Optional[CatalogRepository] = None,
        promotions_repository: Optional[PromotionsRepository] = None,
        clock: Optional[Callable[[], datetime]] = None,
        configs: Optional[QuoteConfigs] = None,
    ):
        configs = configs or QuoteConfigs()
        self.catalog_repository = catalog_repository or CatalogRepository()
        self.loader = PromotionLoader(promotions_repository)
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.upsize = UpsizeSettings(
            target_category=normalize_category(configs.UPSIZE_TARGET_CATEGORY),
            from_size=SizeKey(configs.UPSIZE_FROM_SIZE),
            to_size=SizeKey(configs.UPSIZE_TO_SIZE),
            default_min_qty=configs.UPSIZE_DEFAULT_MIN_QTY,
        )
        self.debug_fields = configs.QUOTE_DEBUG_FIELDS

    def quote_request(self, request: QuoteRequest) -> QuoteResponse:
        return self.quote(request.promotion_code, request.lines)

    def quote(self, promotion_code: Optional[str], lines: Sequence[QuoteLineRequest]) -> QuoteResponse:
        """Price an order.

        Args:
            promotion_code: Optional promotion code
            lines: Requested order lines

        Returns:
            QuoteResponse with one priced line per requested line

        Raises:
            QuoteValidationError: Malformed line list
            InvalidPromotionError: Supplied code cannot be applied
            QuoteInternalError: Catalog or promotion store fault
        """
        lines = list(lines or [])
        run = QuoteRun(promotion_code, len(lines), self.clock())
        try:
            self.validate_lines(lines)

            promotions = self.resolve_promotions(promotion_code, run.now)
            run.advance(QuoteState.PROMOTION_RESOLVED)

            snapshot = self.catalog_repository.load_snapshot([line.product_id for line in lines])
            resolver = PriceResolver(snapshot)
            primary = promotions[0] if promotions else None
            priced = self.price_lines(lines, resolver, primary)
            results = self.apply_promotions(priced, promotions, PricingContext(resolver=resolver, upsize=self.upsize))
            priced = results[-1].lines if results else priced
            run.advance(QuoteState.PRICED)

            totals = self.aggregate(priced)
            run.advance(QuoteState.AGGREGATED)

            response = self.build_response(primary, priced, results, totals, resolver)
            run.advance(QuoteState.RETURNED)

            logger.info(
                f"quote_returned | code={primary.code if primary else None} lines={len(priced)} "
                f"subtotal={totals.subtotal_before} discount={totals.discount_amount} "
                f"grand_total={totals.grand_total} missing={response.meta.missing_price_count}"
            )
            return response

        except QuoteError as e:
            run.fail(e)
            raise
        except Exception as e:
            run.fail(e)
            capture_exception(e)
            raise QuoteInternalError("Failed to compute quote") from e

    def validate_lines(self, lines: List[QuoteLineRequest]) -> None:
        if not lines:
            raise QuoteValidationError("lines must not be empty")

        errors = []
        seen = set()
        for index, line in enumerate(lines):
            if not line.line_id:
                errors.append({"index": index, "field": "line_id", "message": "line_id is required"})
            elif line.line_id in seen:
                errors.append({"index": index, "field": "line_id", "message": f"duplicate line_id {line.line_id}"})
            seen.add(line.line_id)

            if not line.product_id:
                errors.append({"index": index, "field": "product_id", "message": "product_id is required"})
            if isinstance(line.qty, bool) or not isinstance(line.qty, int) or line.qty <= 0:
                errors.append({"index": index, "field": "qty", "message": "qty must be a positive integer"})
            if not isinstance(line.price_key, SizeKey):
                errors.append({"index": index, "field": "price_key", "message": f"unknown size key {line.price_key}"})

        if errors:
            raise QuoteValidationError(f"Invalid quote request: {errors[0]['message']}", errors=errors)

    def resolve_promotions(self, promotion_code: Optional[str], now: datetime) -> List[Promotion]:
        """Promotions to evaluate, highest priority first, up to the first non-stackable one."""
        promotion = self.loader.load(promotion_code, now)
        candidates = [promotion] if promotion else []

        selected = []
        for candidate in sorted(candidates, key=lambda p: p.priority, reverse=True):
            selected.append(candidate)
            if not candidate.is_stackable:
                break

        if selected:
            add_breadcrumb("promotion_resolved", category="quote", data={"codes": [p.code for p in selected]})
        return selected

    def price_lines(self, lines: List[QuoteLineRequest], resolver: PriceResolver, promotion: Optional[Promotion]) -> List[PricedLine]:
        """Base prices for every line; no promotion applied yet."""
        priced = []
        for line in lines:
            category = normalize_category(resolver.category_of(line.product_id))
            unit_price = resolver.resolve(line.product_id, line.price_key)
            missing = unit_price is None
            if missing:
                logger.warning(f"missing_price | line_id={line.line_id} product_id={line.product_id} size_key={line.price_key.value}")

            priced.append(PricedLine(
                line_id=line.line_id,
                product_id=line.product_id,
                qty=line.qty,
                requested_size_key=line.price_key,
                effective_size_key=line.price_key,
                category=category,
                unit_price_before=unit_price,
                unit_price_after=unit_price,
                line_total_before=None if missing else unit_price * line.qty,
                line_total_after=None if missing else unit_price * line.qty,
                discount_amount=None if missing else 0,
                missing_price=missing,
                promo_eligible=promotion is not None and CategoryFilter.is_eligible(category, promotion.scopes),
                options=dict(line.options),
            ))
        return priced

    def apply_promotions(self, lines: List[PricedLine], promotions: List[Promotion], context: PricingContext) -> List[StrategyResult]:
        results = []
        for promotion in promotions:
            strategy = PROMOTION_STRATEGIES.get(promotion.promo_type)
            if strategy is None:
                raise QuoteInternalError(f"No pricing strategy for promotion type {promotion.promo_type}")

            lines = [
                line.model_copy(update={"promo_eligible": CategoryFilter.is_eligible(line.category, promotion.scopes)})
                for line in lines
            ]
            result = strategy.apply(lines, promotion, context)
            logger.info(
                f"promotion_applied | code={promotion.code} type={promotion.promo_type.value} "
                f"eligible_lines={sum(1 for line in lines if line.promo_eligible)} free_upsize={result.free_upsize_applies}"
            )
            results.append(result)
            lines = result.lines
        return results

    @staticmethod
    def aggregate(lines: List[PricedLine]) -> QuoteTotals:
        # missing-price lines contribute zero to both sums
        subtotal_before = sum(line.line_total_before or 0 for line in lines)
        grand_total = sum(line.line_total_after or 0 for line in lines)
        return QuoteTotals(
            subtotal_before=subtotal_before,
            discount_amount=subtotal_before - grand_total,
            grand_total=grand_total,
        )

    def build_response(
        self,
        promotion: Optional[Promotion],
        lines: List[PricedLine],
        results: List[StrategyResult],
        totals: QuoteTotals,
        resolver: PriceResolver,
    ) -> QuoteResponse:
        drink_qty = sum(line.qty for line in lines if line.category == self.upsize.target_category)
        meta = QuoteMeta(
            promotion_code=promotion.code if promotion else None,
            promo_type=promotion.promo_type if promotion else None,
            missing_price_count=sum(1 for line in lines if line.missing_price),
            drink_qty=drink_qty,
            scope_categories=CategoryFilter.scope_categories(promotion.scopes) if promotion else [],
            min_qty=promotion.min_qty if promotion else None,
        )
        for result in results:
            if result.percent_off:
                meta.percent_off = float(result.percent_off)
            if result.qualifying_qty is not None:
                meta.drink_qty = result.qualifying_qty
                meta.free_upsize_applies = result.free_upsize_applies
                meta.free_upsize_threshold = result.free_upsize_threshold

        if self.debug_fields:
            lines = [
                line.model_copy(update={"debug": LineDiagnostics(
                    product_category=resolver.category_of(line.product_id),
                    normalized_category=line.category,
                    promo_eligible=line.promo_eligible,
                )})
                for line in lines
            ]

        return QuoteResponse(ok=True, meta=meta, lines=lines, totals=totals)
