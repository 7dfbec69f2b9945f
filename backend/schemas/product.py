# backend/schemas/product.py
from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime

Category = Literal["vegetables", "fruits", "dairy", "grains", "herbs", "other"]


# Shared base attributes for product entities
class ProductBase(BaseModel):
    name: str = Field(..., min_length=1)
    category: Category = "other"
    price: float = Field(..., ge=0)
    sku: str = Field(..., min_length=1)
    farmerId: str
    stock: int = Field(0, ge=0)
    description: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    isActive: bool = True


# Schema for creating a new product
class ProductCreate(ProductBase):
    pass


# Schema for partial product updates
class ProductUpdate(BaseModel):
    """All fields optional; unknown keys are ignored."""
    name: Optional[str] = Field(None, min_length=1)
    category: Optional[Category] = None
    price: Optional[float] = Field(None, ge=0)
    sku: Optional[str] = Field(None, min_length=1)
    farmerId: Optional[str] = None
    stock: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None
    images: Optional[List[str]] = None
    isActive: Optional[bool] = None


# Full product representation including ID
class ProductResponse(ProductBase):
    id: str
    images: Optional[List[str]] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
