from pydantic import BaseModel, Field
from typing import List, Literal, Optional, Union
from datetime import datetime

OrderStatus = Literal["pending", "confirmed", "shipped", "delivered", "cancelled"]


# A line item; name and price are copied from the product at order time
class OrderItem(BaseModel):
    productId: str
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0)
    name: str


class ShippingAddress(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipCode: Optional[str] = None
    country: Optional[str] = None


# Input schema for creating a new order
class OrderCreate(BaseModel):
    customerId: str
    items: List[OrderItem] = Field(..., min_length=1)
    totalAmount: float = Field(..., gt=0)
    # Structured address or a single free-text line
    shippingAddress: Optional[Union[ShippingAddress, str]] = None
    deliveryDate: Optional[datetime] = None


# Schema for updating order status
class OrderStatusPatch(BaseModel):
    status: OrderStatus


# Output schema representing the full order details
class OrderResponse(BaseModel):
    id: str
    customerId: str
    items: List[OrderItem]
    totalAmount: float
    status: OrderStatus
    shippingAddress: Optional[Union[ShippingAddress, str]] = None
    orderDate: Optional[datetime] = None
    deliveryDate: Optional[datetime] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
