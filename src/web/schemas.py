"""
Request and response bodies of the JSON API.

Field names travel in camelCase on the wire (``imageUrl``, ``productId``,
``customerEmail``); Python code uses snake_case.
"""

from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from auth.tokens import Identity
from db import models


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SignInPayload(CamelModel):
    email: EmailStr
    name: str = ""
    sub: Optional[str] = Field(None, description="Subject id from the upstream provider")
    callback_url: Optional[str] = None


class SessionUser(CamelModel):
    id: str
    email: str
    name: str
    role: Literal["admin", "user"]

    @classmethod
    def from_identity(cls, identity: Identity) -> "SessionUser":
        return cls(
            id=identity.subject_id,
            email=identity.email,
            name=identity.name,
            role=identity.role,
        )


class SignInResult(CamelModel):
    token: str
    user: SessionUser


class ProductOut(CamelModel):
    id: int
    name: str
    description: str
    price: float
    image_url: str
    category: str
    stock: int

    @classmethod
    def from_model(cls, p: models.Product) -> "ProductOut":
        return cls(
            id=p.id,
            name=p.name,
            description=p.description,
            price=p.price,
            image_url=p.image_url,
            category=p.category,
            stock=p.stock,
        )


class CartItemOut(CamelModel):
    id: str = Field(..., description="Product id, always a string")
    name: str
    price: float
    image_url: str
    category: str
    stock: int
    quantity: int

    @classmethod
    def from_line(cls, line: models.CartLine) -> "CartItemOut":
        return cls(
            id=str(line.product.id),
            name=line.product.name,
            price=line.product.price,
            image_url=line.product.image_url,
            category=line.product.category,
            stock=line.product.stock,
            quantity=line.quantity,
        )


class CartAddPayload(CamelModel):
    product_id: Optional[Union[int, str]] = None
    quantity: int = 1


class CartQuantityPayload(CamelModel):
    quantity: Optional[int] = None


class Message(BaseModel):
    message: str


class OrderLineIn(CamelModel):
    product_id: Union[int, str] = Field(
        ..., validation_alias=AliasChoices("productId", "product_id", "id")
    )
    quantity: int = Field(..., ge=1)


class OrderCreate(CamelModel):
    items: List[OrderLineIn]
    customer_name: str = Field(..., min_length=1)
    customer_email: EmailStr


class OrderCreated(CamelModel):
    id: int
    total: float


class OrderItemOut(CamelModel):
    product_id: int
    product_name: str
    quantity: int
    price_at_purchase: float


class OrderOut(CamelModel):
    id: int
    customer_name: str
    customer_email: str
    total: float
    status: str
    created_at: datetime
    items: List[OrderItemOut] = []

    @classmethod
    def from_model(cls, o: models.Order) -> "OrderOut":
        return cls(
            id=o.id,
            customer_name=o.customer_name,
            customer_email=o.customer_email,
            total=o.total,
            status=o.status,
            created_at=o.created_at,
            items=[
                OrderItemOut(
                    product_id=i.product_id,
                    product_name=i.product_name,
                    quantity=i.quantity,
                    price_at_purchase=i.price_at_purchase,
                )
                for i in o.items
            ],
        )


class TopProductOut(CamelModel):
    name: str
    total_sold: int


class DailySaleOut(CamelModel):
    date: str
    sales: float


class RecentOrderOut(CamelModel):
    id: str
    customer_name: str
    customer_email: str
    total: float
    status: str
    created_at: str


class StatsOut(CamelModel):
    total_products: int
    total_orders: int
    total_users: int
    total_revenue: float
    top_products: List[TopProductOut]
    daily_sales: List[DailySaleOut]
    recent_orders: List[RecentOrderOut]

    @classmethod
    def from_model(cls, s: models.Stats) -> "StatsOut":
        return cls(
            total_products=s.total_products,
            total_orders=s.total_orders,
            total_users=s.total_users,
            total_revenue=s.total_revenue,
            top_products=[
                TopProductOut(name=t.name, total_sold=t.total_sold)
                for t in s.top_products
            ],
            daily_sales=[DailySaleOut(date=d.date, sales=d.sales) for d in s.daily_sales],
            recent_orders=[
                RecentOrderOut(
                    id=str(o.id),
                    customer_name=o.customer_name,
                    customer_email=o.customer_email,
                    total=o.total,
                    status=o.status,
                    created_at=o.created_at.isoformat(),
                )
                for o in s.recent_orders
            ],
        )


class RoleAssignmentIn(CamelModel):
    email: EmailStr
    role: Literal["admin", "user"]


class ProductIn(CamelModel):
    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    category: str = ""
    description: str = ""
    image_url: str = ""
