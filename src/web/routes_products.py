from typing import List, Optional

from fastapi import APIRouter, HTTPException

import db.crud as crud
from web.schemas import ProductOut

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("", response_model=List[ProductOut])
async def list_products(category: Optional[str] = None, q: Optional[str] = None):
    products = await crud.list_products(category=category, query=q)
    return [ProductOut.from_model(p) for p in products]


@router.get("/{pid}", response_model=ProductOut)
async def get_product(pid: int):
    product = await crud.get_product(pid)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return ProductOut.from_model(product)
