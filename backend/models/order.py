from sqlalchemy import Column, Integer, String, Float, DateTime, Enum, Index, func
from models.base import Base, JSONColumn

ORDER_STATUSES = ("pending", "confirmed", "shipped", "delivered", "cancelled")

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(String(64), nullable=False, index=True)

    # Line items snapshot name and price at order time: [{productId, quantity, price, name}]
    items = Column(JSONColumn, nullable=False)
    total_amount = Column(Float, nullable=False)
    status = Column(
        Enum(*ORDER_STATUSES, name="order_status", create_constraint=True),
        nullable=False,
        default="pending",
        index=True,
    )

    # Either a structured address or free text
    shipping_address = Column(JSONColumn, nullable=True)

    order_date = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    delivery_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_orders_customer_status", "customer_id", "status"),
    )
