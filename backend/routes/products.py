# backend/routes/products.py
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Request, status

from database import DatabaseAdapter, NotFoundError, get_db
from schemas.product import Category, ProductCreate, ProductResponse, ProductUpdate
from utils.audit import write_log

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("", response_model=List[ProductResponse])
async def list_products(
    farmerId: Optional[str] = Query(None),
    category: Optional[Category] = Query(None),
    inStock: bool = Query(False),
    isActive: Optional[bool] = Query(None),
    db: DatabaseAdapter = Depends(get_db),
):
    filter = {"farmerId": farmerId, "category": category, "isActive": isActive, "inStock": inStock}
    return await db.find_products({k: v for k, v in filter.items() if v is not None})


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(payload: ProductCreate, request: Request, db: DatabaseAdapter = Depends(get_db)):
    product = await db.create_product(payload.model_dump())
    write_log(user_id=product["farmerId"], action="PRODUCT_CREATE", resource="products",
              ip=request.client.host if request.client else None,
              meta={"product_id": product["id"], "sku": product["sku"]})
    return product


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str, db: DatabaseAdapter = Depends(get_db)):
    product = await db.find_product_by_id(product_id)
    if not product:
        raise NotFoundError("Product", product_id)
    return product


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    payload: ProductUpdate,
    request: Request,
    db: DatabaseAdapter = Depends(get_db),
):
    updates = payload.model_dump(exclude_unset=True)
    product = await db.update_product(product_id, updates)
    if not product:
        raise NotFoundError("Product", product_id)
    write_log(action="PRODUCT_UPDATE", resource="products",
              ip=request.client.host if request.client else None,
              meta={"product_id": product_id, "fields": sorted(updates)})
    return product


@router.delete("/{product_id}")
async def delete_product(product_id: str, db: DatabaseAdapter = Depends(get_db)):
    if not await db.delete_product(product_id):
        raise NotFoundError("Product", product_id)
    write_log(action="PRODUCT_DELETE", resource="products", meta={"product_id": product_id})
    return {"message": "Product deleted successfully"}
