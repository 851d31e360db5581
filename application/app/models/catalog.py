"""
Catalog models: products, their size variants and VAT-inclusive prices.
The quote engine reads these tables; administration writes them.

The repositories query these tables with raw SQL, so at runtime the models
only document the schema. Tests use them to create and seed a SQLite copy.
"""

from sqlalchemy import Column, String, Boolean, Integer, Numeric, ForeignKey, Index, UniqueConstraint
from app.models.common import CommonModel


class Product(CommonModel):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True)
    code = Column(String(64), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    # legacy free-text category; category_code wins when both are set
    category = Column(String(64), nullable=True)
    category_code = Column(String(64), nullable=True, index=True)
    subcategory_id = Column(String(36), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")

    def __repr__(self):
        return f"<Product(id={self.id}, code='{self.code}', category_code='{self.category_code}', is_active={self.is_active})>"


class ProductVariant(CommonModel):
    __tablename__ = "product_variants"

    id = Column(String(36), primary_key=True)
    product_id = Column(String(36), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    size_key = Column(String(16), nullable=False)
    sku_code = Column(String(64), nullable=False, unique=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    sort_order = Column(Integer, nullable=False, default=0, server_default="0")

    __table_args__ = (
        UniqueConstraint('product_id', 'size_key', name='uq_product_size'),
        Index('idx_product_variants_is_active', 'is_active'),
    )


class ProductVariantPrice(CommonModel):
    __tablename__ = "product_variant_prices"

    variant_id = Column(String(36), ForeignKey("product_variants.id", ondelete="CASCADE"), primary_key=True)
    price_vat_incl = Column(Numeric(14, 2), nullable=False)


class ProductPrice(CommonModel):
    """Legacy per-product price table, read only for products without variants"""
    __tablename__ = "product_prices"

    product_id = Column(String(36), ForeignKey("products.id", ondelete="CASCADE"), primary_key=True)
    price_key = Column(String(16), primary_key=True)
    price_vat_incl = Column(Numeric(14, 2), nullable=False)
