# backend/models/cart.py
from sqlalchemy import Column, Integer, String, DateTime, func
from models.base import Base, JSONColumn

# Represents the customer's shopping cart; at most one row per customer
class Cart(Base):
    __tablename__ = "carts" # Table name

    id = Column(Integer, primary_key=True, index=True) # Primary key
    customer_id = Column(String(64), unique=True, nullable=False, index=True) # Upsert key

    # [{productId, quantity, price, name}], overwritten as a whole on every update
    items = Column(JSONColumn, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now()) # Creation timestamp
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
