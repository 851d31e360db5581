from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

# Repository
from app.repository.promotions import PromotionsRepository

# DTOs
from app.dto.promotions import Promotion, PromotionScopeEntry

# Constants
from app.core.constants import PromotionType, QuoteErrorCode
from app.core.exceptions import InvalidPromotionError

# Logging
from app.logging.utils import get_app_logger
logger = get_app_logger("app.promotions.loader")


def normalize_code(promotion_code: Optional[str]) -> Optional[str]:
    if promotion_code is None:
        return None
    code = str(promotion_code).strip().upper()
    return code or None


def as_utc(value: Any) -> Optional[datetime]:
    """Stored timestamps may be naive (read as UTC) or ISO strings."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "t", "1", "yes")
    return bool(value)


class PromotionLoader:
    """Resolves a promotion code to a validated, in-window promotion."""

    def __init__(self, repository: Optional[PromotionsRepository] = None):
        self.repository = repository or PromotionsRepository()

    def load(self, promotion_code: Optional[str], now: datetime) -> Optional[Promotion]:
        """
        Args:
            promotion_code: Caller-supplied code; None or blank means no promotion
            now: Timestamp captured once for the whole quote

        Returns:
            The promotion with its scopes, or None when no code was supplied

        Raises:
            InvalidPromotionError: Unknown, inactive, out-of-window or malformed promotion
        """
        code = normalize_code(promotion_code)
        if code is None:
            return None

        promotion_doc = self.repository.get_promotion_with_scopes(code)
        if not promotion_doc:
            logger.warning(f"promotion_not_found | code={code}")
            raise InvalidPromotionError(f"Promotion code '{code}' not found", QuoteErrorCode.PROMO_NOT_FOUND)

        if not as_bool(promotion_doc.get("is_active")):
            logger.warning(f"promotion_inactive | code={code}")
            raise InvalidPromotionError(f"Promotion code '{code}' is inactive", QuoteErrorCode.PROMO_INACTIVE)

        self.validate_window(code, promotion_doc, now)
        return self.build_promotion(code, promotion_doc)

    def validate_window(self, code: str, promotion_doc: Dict, now: datetime) -> None:
        now = as_utc(now)
        try:
            start_at = as_utc(promotion_doc.get("start_at"))
            end_at = as_utc(promotion_doc.get("end_at"))
        except ValueError as e:
            logger.error(f"promotion_window_unreadable | code={code} error={e}")
            raise InvalidPromotionError(f"Promotion code '{code}' has an unreadable active window") from e

        # both bounds inclusive, a missing bound leaves that side open
        if start_at is not None and now < start_at:
            logger.warning(f"promotion_not_started | code={code} start_at={start_at.isoformat()}")
            raise InvalidPromotionError(f"Promotion code '{code}' is not active yet", QuoteErrorCode.PROMO_NOT_STARTED)
        if end_at is not None and now > end_at:
            logger.warning(f"promotion_expired | code={code} end_at={end_at.isoformat()}")
            raise InvalidPromotionError(f"Promotion code '{code}' has expired", QuoteErrorCode.PROMO_EXPIRED)

    def build_promotion(self, code: str, promotion_doc: Dict) -> Promotion:
        raw_type = str(promotion_doc.get("promo_type") or "").strip().upper()
        try:
            promo_type = PromotionType(raw_type)
        except ValueError:
            logger.error(f"promotion_type_unsupported | code={code} promo_type={raw_type}")
            raise InvalidPromotionError(f"Promotion code '{code}' has unsupported type '{raw_type}'")

        percent_off = self._decimal_or_none(code, promotion_doc.get("percent_off"))
        out_of_range = percent_off is not None and (percent_off < 0 or percent_off > 100)
        if out_of_range or (promo_type == PromotionType.DISCOUNT and percent_off is None):
            logger.error(f"promotion_percent_off_invalid | code={code} percent_off={percent_off}")
            raise InvalidPromotionError(f"Promotion code '{code}' has an invalid percent_off")

        min_qty = promotion_doc.get("min_qty")
        if min_qty is not None:
            try:
                min_qty = int(min_qty)
            except (TypeError, ValueError) as e:
                raise InvalidPromotionError(f"Promotion code '{code}' has an invalid min_qty") from e
            if min_qty < 0:
                logger.error(f"promotion_min_qty_invalid | code={code} min_qty={min_qty}")
                raise InvalidPromotionError(f"Promotion code '{code}' has an invalid min_qty")

        scopes = tuple(
            PromotionScopeEntry(category=str(scope.get("category") or ""), is_included=as_bool(scope.get("is_included")))
            for scope in promotion_doc.get("scopes") or []
        )

        promotion = Promotion(
            code=code,
            name=promotion_doc.get("name"),
            promo_type=promo_type,
            priority=int(promotion_doc.get("priority") or 0),
            is_stackable=as_bool(promotion_doc.get("is_stackable")),
            start_at=as_utc(promotion_doc.get("start_at")),
            end_at=as_utc(promotion_doc.get("end_at")),
            percent_off=percent_off,
            min_qty=min_qty,
            scopes=scopes,
        )
        logger.info(f"promotion_resolved | code={code} type={promo_type.value} scopes={len(scopes)}")
        return promotion

    @staticmethod
    def _decimal_or_none(code: str, value: Any) -> Optional[Decimal]:
        if value is None or value == "":
            return None
        try:
            return Decimal(str(value))
        except InvalidOperation as e:
            raise InvalidPromotionError(f"Promotion code '{code}' has an invalid percent_off") from e
