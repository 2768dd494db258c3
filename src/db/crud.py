# src/db/crud.py
from __future__ import annotations

import uuid
from collections import OrderedDict
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from db import models
from db.database import connect
from utils.logger import get_logger

_logger = get_logger(__name__)

ROLES = ("admin", "user")

_PRODUCT_COLUMNS = "p.id, p.name, p.description, p.price, p.image_url, p.category, p.stock"


class CommerceError(Exception):
    """Base class for errors the API layer maps to client responses."""


class ProductNotFoundError(CommerceError, LookupError):
    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class InsufficientStockError(CommerceError):
    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"requested {requested}, available {available}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class EmptyOrderError(CommerceError, ValueError):
    def __init__(self):
        super().__init__("Order has no items")


def _to_datetime(val) -> datetime:
    if isinstance(val, datetime):
        return val
    return datetime.fromisoformat(str(val))


def _row_to_product(row, offset: int = 0) -> models.Product:
    return models.Product(
        id=int(row[offset]),
        name=row[offset + 1],
        description=row[offset + 2],
        price=float(row[offset + 3]),
        image_url=row[offset + 4],
        category=row[offset + 5],
        stock=int(row[offset + 6]),
    )


# ---------------------------
# Users & Roles
# ---------------------------


async def upsert_user(
    email: str, name: str = "", subject_id: Optional[str] = None
) -> models.User:
    """Return the user registered under ``email``, creating it on first sign-in.

    The subject id of an existing user never changes; ``subject_id`` is only
    used when the row is created.
    """
    email = email.strip().lower()
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT id, email, name FROM users WHERE email = ?;", (email,)
        )
        row = await cur.fetchone()
        await cur.close()
        if row:
            if name and name != row[2]:
                await conn.execute(
                    "UPDATE users SET name = ? WHERE id = ?;", (name, row[0])
                )
                await conn.commit()
            return models.User(id=row[0], email=row[1], name=name or row[2])

        uid = subject_id or uuid.uuid4().hex
        await conn.execute(
            "INSERT INTO users(id, email, name) VALUES (?, ?, ?);",
            (uid, email, name),
        )
        await conn.commit()
    _logger.info(f"Registered user {uid} <{email}>")
    return models.User(id=uid, email=email, name=name)


async def ensure_user(subject_id: str, email: str, name: str = "") -> models.User:
    """Make sure the token's subject has a users row before rows reference it.

    A row registered under the same email with another id is re-keyed to
    ``subject_id``; dependent cart and order rows follow the new id.
    """
    user = await get_user(subject_id)
    if user:
        return user
    email = email.strip().lower()
    async with connect() as conn:
        cur = await conn.execute("SELECT id FROM users WHERE email = ?;", (email,))
        row = await cur.fetchone()
        await cur.close()
        if row:
            _logger.warning(f"Re-keying user <{email}> from {row[0]} to {subject_id}")
            await conn.execute(
                "UPDATE users SET id = ? WHERE id = ?;", (subject_id, row[0])
            )
        else:
            await conn.execute(
                "INSERT INTO users(id, email, name) VALUES (?, ?, ?);",
                (subject_id, email, name),
            )
        await conn.commit()
    return await get_user(subject_id)


async def get_user(user_id: str) -> Optional[models.User]:
    """Return a User object for the given subject id, or None if not found."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT id, email, name FROM users WHERE id = ?;", (user_id,)
        )
        row = await cur.fetchone()
        await cur.close()
    if not row:
        return None
    return models.User(id=row[0], email=row[1], name=row[2])


async def get_assigned_role(email: str) -> models.Role:
    """Role granted to ``email``; everybody without an assignment is a plain user."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT role FROM role_assignments WHERE email = ?;",
            (email.strip().lower(),),
        )
        row = await cur.fetchone()
        await cur.close()
    return row[0] if row else "user"


async def assign_role(email: str, role: models.Role) -> None:
    if role not in ROLES:
        raise ValueError(f"Unknown role {role!r}")
    async with connect() as conn:
        await conn.execute(
            """
            INSERT INTO role_assignments(email, role) VALUES (?, ?)
            ON CONFLICT(email) DO UPDATE SET role = excluded.role;
            """,
            (email.strip().lower(), role),
        )
        await conn.commit()
    _logger.info(f"Role of <{email}> set to {role}")


# ---------------------------
# Products
# ---------------------------


async def list_products(
    category: Optional[str] = None, query: Optional[str] = None
) -> List[models.Product]:
    """All products ordered by id, optionally filtered.

    ``query`` is a case-insensitive match over name and description.
    """
    clauses: List[str] = []
    params: List[str] = []
    if category:
        clauses.append("LOWER(p.category) = ?")
        params.append(category.strip().lower())
    phrase = (query or "").strip().lower()
    if phrase:
        clauses.append("(LOWER(p.name) LIKE ? OR LOWER(p.description) LIKE ?)")
        params.extend([f"%{phrase}%", f"%{phrase}%"])
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_PRODUCT_COLUMNS} FROM products p {where} ORDER BY p.id;",
            tuple(params),
        )
        rows = await cur.fetchall()
        await cur.close()
    return [_row_to_product(row) for row in rows]


async def get_product(pid: int) -> Optional[models.Product]:
    """Fetch a product by id."""
    async with connect() as conn:
        cur = await conn.execute(
            f"SELECT {_PRODUCT_COLUMNS} FROM products p WHERE p.id = ?;", (pid,)
        )
        row = await cur.fetchone()
        await cur.close()
    if not row:
        return None
    return _row_to_product(row)


async def create_product(
    name: str,
    price: float,
    stock: int,
    category: str = "",
    description: str = "",
    image_url: str = "",
) -> models.Product:
    async with connect() as conn:
        cur = await conn.execute(
            """
            INSERT INTO products(name, description, price, image_url, category, stock)
            VALUES (?, ?, ?, ?, ?, ?);
            """,
            (name, description, price, image_url, category, stock),
        )
        pid = cur.lastrowid
        await cur.close()
        await conn.commit()
    return models.Product(
        id=pid,
        name=name,
        description=description,
        price=float(price),
        image_url=image_url,
        category=category,
        stock=stock,
    )


# ---------------------------
# Cart Management
# ---------------------------


async def list_cart(user_id: str) -> List[models.CartLine]:
    """Persisted cart rows of a user joined with current product data, newest first."""
    async with connect() as conn:
        cur = await conn.execute(
            f"""
            SELECT {_PRODUCT_COLUMNS}, c.quantity, c.created_at
            FROM cart c
            JOIN products p ON p.id = c.product_id
            WHERE c.user_id = ?
            ORDER BY c.created_at DESC, c.rowid DESC;
            """,
            (user_id,),
        )
        rows = await cur.fetchall()
        await cur.close()
    return [
        models.CartLine(
            product=_row_to_product(row),
            quantity=int(row[7]),
            created_at=_to_datetime(row[8]),
        )
        for row in rows
    ]


async def get_cart_line(user_id: str, pid: int) -> Optional[models.CartLine]:
    async with connect() as conn:
        cur = await conn.execute(
            f"""
            SELECT {_PRODUCT_COLUMNS}, c.quantity, c.created_at
            FROM cart c
            JOIN products p ON p.id = c.product_id
            WHERE c.user_id = ? AND c.product_id = ?;
            """,
            (user_id, pid),
        )
        row = await cur.fetchone()
        await cur.close()
    if not row:
        return None
    return models.CartLine(
        product=_row_to_product(row),
        quantity=int(row[7]),
        created_at=_to_datetime(row[8]),
    )


async def add_to_cart(user_id: str, pid: int, qty: int) -> models.CartLine:
    """
    Create the (user, product) cart row with ``qty`` or increment an existing one.

    The requested quantity must be positive and not exceed the product stock.
    The increment is a single statement, so concurrent adds for the same row
    do not lose updates.
    """
    if qty <= 0:
        raise ValueError("Quantity must be positive.")
    async with connect() as conn:
        cur = await conn.execute("SELECT stock FROM products WHERE id = ?;", (pid,))
        row = await cur.fetchone()
        await cur.close()
        if not row:
            raise ProductNotFoundError(pid)
        stock = int(row[0])
        if stock < qty:
            raise InsufficientStockError(pid, qty, stock)

        await conn.execute(
            """
            INSERT INTO cart(user_id, product_id, quantity) VALUES (?, ?, ?)
            ON CONFLICT(user_id, product_id)
            DO UPDATE SET quantity = quantity + excluded.quantity;
            """,
            (user_id, pid, qty),
        )
        await conn.commit()
    return await get_cart_line(user_id, pid)


async def set_cart_quantity(user_id: str, pid: int, qty: int) -> bool:
    """Overwrite the quantity of an existing row; ``qty <= 0`` removes it.

    Returns False when a positive quantity targets a row that does not exist.
    """
    async with connect() as conn:
        if qty <= 0:
            await conn.execute(
                "DELETE FROM cart WHERE user_id = ? AND product_id = ?;",
                (user_id, pid),
            )
            await conn.commit()
            return True
        cur = await conn.execute(
            "UPDATE cart SET quantity = ? WHERE user_id = ? AND product_id = ?;",
            (qty, user_id, pid),
        )
        updated = cur.rowcount
        await cur.close()
        await conn.commit()
    return updated > 0


async def remove_from_cart(user_id: str, pid: int) -> bool:
    """Remove a single product from the user's cart. False if it was not there."""
    async with connect() as conn:
        cur = await conn.execute(
            "DELETE FROM cart WHERE user_id = ? AND product_id = ?;",
            (user_id, pid),
        )
        deleted = cur.rowcount
        await cur.close()
        await conn.commit()
    return deleted > 0


async def clear_cart(user_id: str) -> int:
    """Remove all items from the user's cart, returning how many rows went away."""
    async with connect() as conn:
        cur = await conn.execute("DELETE FROM cart WHERE user_id = ?;", (user_id,))
        deleted = cur.rowcount
        await cur.close()
        await conn.commit()
    return deleted


# ---------------------------
# Checkout & Orders
# ---------------------------


def _merge_lines(items: Iterable[Tuple[int, int]]) -> "OrderedDict[int, int]":
    merged: "OrderedDict[int, int]" = OrderedDict()
    for pid, qty in items:
        if qty <= 0:
            raise ValueError(f"Quantity for product {pid} must be positive.")
        merged[pid] = merged.get(pid, 0) + qty
    return merged


async def place_order(
    user_id: Optional[str],
    customer_name: str,
    customer_email: str,
    items: Iterable[Tuple[int, int]],
    odate: Optional[datetime] = None,
) -> models.Order:
    """
    Persist an order snapshot from ``(product_id, quantity)`` pairs.

    Every product must exist and have enough stock; otherwise nothing is
    written. Prices are frozen into the order items and stock is decremented
    in the same transaction.
    """
    lines = _merge_lines(items)
    if not lines:
        raise EmptyOrderError()
    odate = odate or datetime.now()

    async with connect() as conn:
        await conn.execute("BEGIN IMMEDIATE;")
        try:
            priced: List[models.OrderItem] = []
            for pid, qty in lines.items():
                cur = await conn.execute(
                    "SELECT name, price, stock FROM products WHERE id = ?;", (pid,)
                )
                row = await cur.fetchone()
                await cur.close()
                if not row:
                    raise ProductNotFoundError(pid)
                if int(row[2]) < qty:
                    raise InsufficientStockError(pid, qty, int(row[2]))
                priced.append(
                    models.OrderItem(
                        product_id=pid,
                        quantity=qty,
                        price_at_purchase=float(row[1]),
                        product_name=row[0],
                    )
                )

            total = round(sum(i.price_at_purchase * i.quantity for i in priced), 2)
            cur = await conn.execute(
                """
                INSERT INTO orders(user_id, customer_name, customer_email, total, created_at)
                VALUES (?, ?, ?, ?, ?);
                """,
                (user_id, customer_name, customer_email, total, odate.isoformat(sep=" ")),
            )
            order_id = cur.lastrowid
            await cur.close()

            for line_no, item in enumerate(priced, start=1):
                await conn.execute(
                    """
                    INSERT INTO order_items(order_id, line_no, product_id, quantity, price_at_purchase)
                    VALUES (?, ?, ?, ?, ?);
                    """,
                    (order_id, line_no, item.product_id, item.quantity, item.price_at_purchase),
                )
                await conn.execute(
                    "UPDATE products SET stock = stock - ? WHERE id = ?;",
                    (item.quantity, item.product_id),
                )
            await conn.commit()
        except BaseException:
            await conn.rollback()
            raise

    _logger.info(f"Order {order_id} placed by {customer_email}, total {total:.2f}")
    return models.Order(
        id=order_id,
        user_id=user_id,
        customer_name=customer_name,
        customer_email=customer_email,
        total=total,
        created_at=odate,
        items=priced,
    )


async def _order_items(conn, order_id: int) -> List[models.OrderItem]:
    cur = await conn.execute(
        """
        SELECT oi.product_id, oi.quantity, oi.price_at_purchase, COALESCE(p.name, '')
        FROM order_items oi
        LEFT JOIN products p ON p.id = oi.product_id
        WHERE oi.order_id = ?
        ORDER BY oi.line_no;
        """,
        (order_id,),
    )
    rows = await cur.fetchall()
    await cur.close()
    return [
        models.OrderItem(
            product_id=int(r[0]),
            quantity=int(r[1]),
            price_at_purchase=float(r[2]),
            product_name=r[3],
        )
        for r in rows
    ]


def _row_to_order(row, items: List[models.OrderItem]) -> models.Order:
    return models.Order(
        id=int(row[0]),
        user_id=row[1],
        customer_name=row[2],
        customer_email=row[3],
        total=float(row[4]),
        created_at=_to_datetime(row[5]),
        items=items,
    )


async def list_orders(user_id: str) -> List[models.Order]:
    """
    List a user's orders with their items in reverse chronological order.
    """
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT id, user_id, customer_name, customer_email, total, created_at
            FROM orders
            WHERE user_id = ?
            ORDER BY created_at DESC, id DESC;
            """,
            (user_id,),
        )
        rows = await cur.fetchall()
        await cur.close()
        return [_row_to_order(row, await _order_items(conn, row[0])) for row in rows]


async def get_order(order_id: int) -> Optional[models.Order]:
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT id, user_id, customer_name, customer_email, total, created_at
            FROM orders WHERE id = ?;
            """,
            (order_id,),
        )
        row = await cur.fetchone()
        await cur.close()
        if not row:
            return None
        return _row_to_order(row, await _order_items(conn, order_id))


# ---------------------------
# Admin Stats
# ---------------------------


async def admin_stats(top_k: int = 3, recent: int = 5, days: int = 30) -> models.Stats:
    """
    Aggregate figures for the admin dashboard.

    Users are counted as distinct customer emails on orders. Daily sales cover
    the last ``days`` days that had orders, oldest first.
    """
    async with connect() as conn:
        cur = await conn.execute(
            """
            SELECT
                (SELECT COUNT(*) FROM products),
                (SELECT COUNT(*) FROM orders),
                (SELECT COUNT(DISTINCT LOWER(customer_email)) FROM orders),
                (SELECT COALESCE(SUM(total), 0.0) FROM orders);
            """
        )
        totals = await cur.fetchone()
        await cur.close()

        cur = await conn.execute(
            """
            SELECT COALESCE(p.name, 'Unknown product'), SUM(oi.quantity) AS sold
            FROM order_items oi
            LEFT JOIN products p ON p.id = oi.product_id
            GROUP BY oi.product_id
            ORDER BY sold DESC, oi.product_id
            LIMIT ?;
            """,
            (top_k,),
        )
        top_rows = await cur.fetchall()
        await cur.close()

        cur = await conn.execute(
            """
            SELECT date(created_at) AS day, SUM(total)
            FROM orders
            GROUP BY day
            ORDER BY day DESC
            LIMIT ?;
            """,
            (days,),
        )
        daily_rows = await cur.fetchall()
        await cur.close()

        cur = await conn.execute(
            """
            SELECT id, user_id, customer_name, customer_email, total, created_at
            FROM orders
            ORDER BY created_at DESC, id DESC
            LIMIT ?;
            """,
            (recent,),
        )
        recent_rows = await cur.fetchall()
        await cur.close()

    return models.Stats(
        total_products=int(totals[0] or 0),
        total_orders=int(totals[1] or 0),
        total_users=int(totals[2] or 0),
        total_revenue=round(float(totals[3] or 0.0), 2),
        top_products=[
            models.TopProduct(name=r[0], total_sold=int(r[1] or 0)) for r in top_rows
        ],
        daily_sales=[
            models.DailySale(date=str(r[0]), sales=round(float(r[1] or 0.0), 2))
            for r in reversed(daily_rows)
        ],
        recent_orders=[_row_to_order(r, []) for r in recent_rows],
    )
