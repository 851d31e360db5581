"""
Promotion models. Promotions are administered elsewhere; the quote engine
only reads a promotion and its category scope by code.
"""

from sqlalchemy import Column, String, Boolean, Integer, Numeric, TIMESTAMP, ForeignKey, Index
from app.models.common import CommonModel


class Promotion(CommonModel):
    __tablename__ = "promotions"

    code = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    promo_type = Column(String(32), nullable=False)
    priority = Column(Integer, nullable=False, default=0, server_default="0")
    is_stackable = Column(Boolean, nullable=False, default=False, server_default="false")
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    start_at = Column(TIMESTAMP(timezone=True), nullable=True)
    end_at = Column(TIMESTAMP(timezone=True), nullable=True)
    percent_off = Column(Numeric(5, 2), nullable=True)
    min_qty = Column(Integer, nullable=True)

    def __repr__(self):
        return f"<Promotion(code='{self.code}', promo_type='{self.promo_type}', is_active={self.is_active})>"

    __table_args__ = (
        Index('idx_promotions_priority', 'priority'),
    )


class PromotionScope(CommonModel):
    __tablename__ = "promotion_scopes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    promotion_code = Column(String(64), ForeignKey("promotions.code", ondelete="CASCADE"), nullable=False, index=True)
    scope_type = Column(String(32), nullable=False, default="CATEGORY", server_default="CATEGORY")
    category = Column(String(64), nullable=False)
    is_included = Column(Boolean, nullable=False, default=True, server_default="true")
