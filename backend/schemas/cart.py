from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from schemas.order import OrderItem

# Request schema replacing the whole cart content
class CartUpdate(BaseModel):
    items: List[OrderItem]

# Response schema for a customer's cart; id is empty until the cart is first saved
class CartResponse(BaseModel):
    id: Optional[str] = None
    customerId: str
    items: List[OrderItem]
    updatedAt: Optional[datetime] = None
