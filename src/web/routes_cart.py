"""
Cart persistence API: one row per (subject, product), scoped by the token's
subject. Every endpoint answers 401 without an authenticated identity.
"""

from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, status

import db.crud as crud
from auth.tokens import Identity
from utils.logger import get_logger
from web.deps import require_identity
from web.schemas import CartAddPayload, CartItemOut, CartQuantityPayload, Message

_logger = get_logger(__name__)

router = APIRouter(prefix="/api/cart", tags=["cart"])


def parse_product_id(value: Optional[Union[int, str]]) -> int:
    """Product ids arrive as numbers or strings; both name the same product."""
    try:
        pid = int(str(value).strip())
    except (TypeError, ValueError):
        pid = 0
    if value is None or pid <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid product ID"
        )
    return pid


@router.get("", response_model=List[CartItemOut])
async def get_cart(identity: Identity = Depends(require_identity)):
    lines = await crud.list_cart(identity.subject_id)
    _logger.debug(f"Cart of {identity.subject_id}: {len(lines)} row(s)")
    return [CartItemOut.from_line(line) for line in lines]


@router.post("", response_model=CartItemOut)
async def add_to_cart(
    payload: CartAddPayload, identity: Identity = Depends(require_identity)
):
    if payload.quantity <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid product ID or quantity",
        )
    pid = parse_product_id(payload.product_id)
    await crud.ensure_user(identity.subject_id, identity.email, identity.name)
    try:
        line = await crud.add_to_cart(identity.subject_id, pid, payload.quantity)
    except crud.ProductNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    except crud.InsufficientStockError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Insufficient stock")
    return CartItemOut.from_line(line)


@router.delete("", response_model=Message)
async def clear_cart(identity: Identity = Depends(require_identity)):
    deleted = await crud.clear_cart(identity.subject_id)
    _logger.info(f"Cleared {deleted} cart row(s) of {identity.subject_id}")
    return Message(message="Cart cleared successfully")


@router.put("/{product_id}", response_model=Message)
async def update_quantity(
    product_id: str,
    payload: CartQuantityPayload,
    identity: Identity = Depends(require_identity),
):
    pid = parse_product_id(product_id)
    if payload.quantity is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Product ID and quantity are required",
        )
    if payload.quantity <= 0:
        await crud.set_cart_quantity(identity.subject_id, pid, 0)
        return Message(message="Item removed from cart")
    if not await crud.set_cart_quantity(identity.subject_id, pid, payload.quantity):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found in cart")
    return Message(message="Item quantity updated successfully")


@router.delete("/{product_id}", response_model=Message)
async def remove_item(product_id: str, identity: Identity = Depends(require_identity)):
    pid = parse_product_id(product_id)
    if not await crud.remove_from_cart(identity.subject_id, pid):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Item not found in cart")
    return Message(message="Item removed from cart successfully")
