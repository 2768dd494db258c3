from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

import db.crud as crud
from auth.tokens import Identity
from db import models
from utils.logger import get_logger
from web.deps import require_identity
from web.routes_cart import parse_product_id
from web.schemas import OrderCreate, OrderCreated, OrderOut

_logger = get_logger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post("", response_model=OrderCreated, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreate, identity: Identity = Depends(require_identity)
):
    items = [(parse_product_id(i.product_id), i.quantity) for i in payload.items]
    await crud.ensure_user(identity.subject_id, identity.email, identity.name)
    try:
        order = await crud.place_order(
            identity.subject_id,
            payload.customer_name,
            payload.customer_email,
            items,
        )
    except crud.ProductNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (crud.InsufficientStockError, crud.EmptyOrderError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return OrderCreated(id=order.id, total=order.total)


@router.get("", response_model=List[OrderOut])
async def list_orders(identity: Identity = Depends(require_identity)):
    orders = await crud.list_orders(identity.subject_id)
    return [OrderOut.from_model(o) for o in orders]


async def find_order(order_id: int, identity: Identity) -> models.Order:
    """The order if the caller placed it; admins may read any order."""
    order = await crud.get_order(order_id)
    if not order or (order.user_id != identity.subject_id and identity.role != "admin"):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order


@router.get("/{order_id}", response_model=OrderOut)
async def get_order(order_id: int, identity: Identity = Depends(require_identity)):
    return OrderOut.from_model(await find_order(order_id, identity))
