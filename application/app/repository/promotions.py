from typing import Dict, Optional

# Database connection
from app.connections.database import fetch_all, get_db_session

# Constants
from app.core.constants import ScopeType

from app.logging.utils import get_app_logger
logger = get_app_logger("app.promotions_repository")


PROMOTION_QUERY = """
    SELECT code, name, promo_type, priority, is_stackable, is_active,
           start_at, end_at, percent_off, min_qty
    FROM promotions
    WHERE UPPER(code) = :code
    LIMIT 1
"""

PROMOTION_SCOPES_QUERY = """
    SELECT category, is_included
    FROM promotion_scopes
    WHERE UPPER(promotion_code) = :code AND UPPER(scope_type) = :scope_type
    ORDER BY id
"""


class PromotionsRepository:
    def get_promotion_with_scopes(self, promotion_code: str) -> Optional[Dict]:
        """Promotion row with its CATEGORY scope rows under ``scopes``, or None."""
        code = promotion_code.strip().upper()
        try:
            with get_db_session(read_only=True) as db:
                rows = fetch_all(db, PROMOTION_QUERY, {"code": code})
                if not rows:
                    logger.info(f"get_promotion_with_scopes_result | code={code} found=False")
                    return None

                promotion_doc = rows[0]
                promotion_doc["scopes"] = fetch_all(
                    db, PROMOTION_SCOPES_QUERY, {"code": code, "scope_type": ScopeType.CATEGORY}
                )

            logger.info(f"get_promotion_with_scopes_result | code={code} found=True scopes={len(promotion_doc['scopes'])}")
            return promotion_doc
        except Exception as e:
            logger.error(f"get_promotion_with_scopes_error | code={code} error={e}", exc_info=True)
            raise
