# backend/routes/cart.py
from fastapi import APIRouter, Depends, Request
from database import DatabaseAdapter, get_db
from utils.audit import write_log
from schemas.cart import CartResponse, CartUpdate

router = APIRouter(prefix="/cart", tags=["Cart"])


def _empty_cart(customer_id: str) -> dict:
    return {"id": None, "customerId": customer_id, "items": [], "updatedAt": None}


@router.get("/{customer_id}", response_model=CartResponse)
async def get_cart(customer_id: str, db: DatabaseAdapter = Depends(get_db)):
    cart = await db.find_cart(customer_id)
    return cart or _empty_cart(customer_id)


# Replace the cart content (last write wins)
@router.put("/{customer_id}", response_model=CartResponse)
async def save_cart(
    customer_id: str,
    payload: CartUpdate,
    request: Request,
    db: DatabaseAdapter = Depends(get_db),
):
    cart = await db.update_cart(customer_id, payload.model_dump())
    write_log(user_id=customer_id, action="CART_UPDATE", resource="cart",
              ip=request.client.host if request.client else None,
              meta={"items": len(cart["items"])})
    return cart


@router.delete("/{customer_id}", response_model=CartResponse)
async def clear_cart(customer_id: str, db: DatabaseAdapter = Depends(get_db)):
    cleared = await db.clear_cart(customer_id)
    write_log(user_id=customer_id, action="CART_CLEAR", resource="cart", meta={"cleared": cleared})
    return _empty_cart(customer_id)
