# provide dataclass models

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Literal

Role = Literal["admin", "user"]


@dataclass(frozen=True)
class User:
    id: str  # subject id, stable across email changes
    email: str
    name: str


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    description: str
    price: float
    image_url: str
    category: str
    stock: int


@dataclass(frozen=True)
class CartLine:
    """One persisted cart row joined with the product it points at."""

    product: Product
    quantity: int
    created_at: datetime


@dataclass(frozen=True)
class OrderItem:
    product_id: int
    quantity: int
    price_at_purchase: float
    product_name: str = ""


@dataclass(frozen=True)
class Order:
    id: int
    user_id: str | None
    customer_name: str
    customer_email: str
    total: float
    created_at: datetime
    items: List[OrderItem] = field(default_factory=list)
    status: str = "delivered"  # cosmetic, orders have no lifecycle


@dataclass(frozen=True)
class TopProduct:
    name: str
    total_sold: int


@dataclass(frozen=True)
class DailySale:
    date: str
    sales: float


@dataclass(frozen=True)
class Stats:
    total_products: int
    total_orders: int
    total_users: int
    total_revenue: float
    top_products: List[TopProduct]
    daily_sales: List[DailySale]
    recent_orders: List[Order]
