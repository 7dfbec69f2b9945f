# backend/models/product.py
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Enum, Numeric,
    CheckConstraint, Index, func
)
from models.base import Base, JSONColumn

PRODUCT_CATEGORIES = ("vegetables", "fruits", "dairy", "grains", "herbs", "other")

# Model Product
# A catalog item offered by a farmer. The farmer reference is a plain string
# so it can hold ids from any backend; it is not a foreign key.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    category = Column(
        Enum(*PRODUCT_CATEGORIES, name="product_category", create_constraint=True),
        nullable=False,
        default="other",
        index=True,
    )
    price = Column(Numeric(10, 2, asdecimal=False), CheckConstraint("price >= 0"), nullable=False)
    sku = Column(String(100), unique=True, nullable=False, index=True)
    farmer_id = Column(String(64), nullable=False, index=True)

    stock = Column(Integer, CheckConstraint("stock >= 0"), nullable=False, default=0)
    description = Column(Text, nullable=True)

    # Ordered list of image URIs (may be data URIs)
    images = Column(JSONColumn, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_products_farmer_category", "farmer_id", "category"),
    )
