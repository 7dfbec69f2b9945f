# backend/routes/orders.py
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
import logging

from database import DatabaseAdapter, NotFoundError, get_db
from schemas.order import OrderCreate, OrderResponse, OrderStatus, OrderStatusPatch
from utils.audit import write_log
from utils.order_status import can_transition, is_terminal

router = APIRouter(prefix="/orders", tags=["Orders"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[OrderResponse])
async def list_orders(
    customerId: Optional[str] = Query(None),
    status: Optional[OrderStatus] = Query(None),
    db: DatabaseAdapter = Depends(get_db),
):
    filter = {"customerId": customerId, "status": status}
    return await db.find_orders({k: v for k, v in filter.items() if v is not None})


# Place an order; new orders always start as pending
@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(payload: OrderCreate, request: Request, db: DatabaseAdapter = Depends(get_db)):
    data = payload.model_dump(exclude_none=True)
    data["status"] = "pending"
    order = await db.create_order(data)

    write_log(user_id=order["customerId"], action="ORDER_CREATE", resource="orders",
              ip=request.client.host if request.client else None,
              meta={"order_id": order["id"], "total": order["totalAmount"], "items": len(order["items"])})
    return order


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order_detail(order_id: str, db: DatabaseAdapter = Depends(get_db)):
    order = await db.find_order_by_id(order_id)
    if not order:
        raise NotFoundError("Order", order_id)
    return order


# Move an order along the status graph
@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    payload: OrderStatusPatch,
    request: Request,
    db: DatabaseAdapter = Depends(get_db),
):
    order = await db.find_order_by_id(order_id)
    if not order:
        raise NotFoundError("Order", order_id)

    old_status, new_status = order["status"], payload.status
    if is_terminal(old_status):
        raise HTTPException(status_code=400, detail=f"Cannot change status from {old_status}")
    if not can_transition(old_status, new_status):
        raise HTTPException(status_code=400, detail=f"Invalid status change: {old_status} -> {new_status}")

    updated = await db.update_order(order_id, {"status": new_status})
    write_log(user_id=order["customerId"], action="ORDER_STATUS_CHANGE", resource="orders",
              ip=request.client.host if request.client else None,
              meta={"order_id": order_id, "old": old_status, "new": new_status})
    return updated


# Hard delete; exceptional, normal flow cancels instead
@router.delete("/{order_id}")
async def delete_order(order_id: str, db: DatabaseAdapter = Depends(get_db)):
    if not await db.delete_order(order_id):
        raise NotFoundError("Order", order_id)
    logger.warning("Order %s deleted", order_id)
    return {"message": "Order deleted successfully"}
