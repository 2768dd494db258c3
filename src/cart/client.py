"""
HTTP client for the storefront API, used by the terminal client.

The cart store only needs the five cart persistence calls; everything else
(sign-in, catalog, orders, stats) is here so screens share one connection
and one credential.
"""

from typing import Any, Dict, Iterable, List, Optional

import httpx

from auth.tokens import ANONYMOUS, Identity
from cart.items import CartItem, normalize_id
from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)


class PersistenceError(Exception):
    """A storefront API call failed, either in transport or with an error status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StoreClient:
    def __init__(
        self,
        base_url: str = config.API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport)
        self.token: Optional[str] = None
        self.identity: Identity = ANONYMOUS

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(
        self,
        method: str,
        url: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        allow_statuses: Iterable[int] = (),
    ) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        try:
            response = await self._http.request(
                method, url, json=json, params=params, headers=headers
            )
        except httpx.HTTPError as e:
            raise PersistenceError(f"{method} {url} failed: {e!r}") from e
        if response.is_error and response.status_code not in allow_statuses:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            raise PersistenceError(
                f"{method} {url} answered {response.status_code}: {detail}",
                response.status_code,
            )
        return response

    # ---------------------------
    # Identity
    # ---------------------------

    async def sign_in(self, email: str, name: str = "") -> Identity:
        response = await self._request(
            "POST", "/api/auth/callback", json={"email": email, "name": name}
        )
        data = response.json()
        user = data["user"]
        self.token = data["token"]
        self.identity = Identity(
            subject_id=user["id"], email=user["email"], name=user["name"], role=user["role"]
        )
        _logger.info(f"Signed in as {self.identity.email} ({self.identity.role})")
        return self.identity

    async def sign_out(self) -> None:
        try:
            await self._request("POST", "/api/auth/signout")
        except PersistenceError as e:
            _logger.warning(f"Sign-out call failed, dropping the session anyway: {e}")
        self.token = None
        self.identity = ANONYMOUS
        self._http.cookies.clear()

    # ---------------------------
    # Catalog
    # ---------------------------

    async def list_products(
        self, category: Optional[str] = None, query: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        params = {k: v for k, v in (("category", category), ("q", query)) if v}
        return (await self._request("GET", "/api/products", params=params)).json()

    async def get_product(self, product_id) -> Dict[str, Any]:
        pid = normalize_id(product_id)
        return (await self._request("GET", f"/api/products/{pid}")).json()

    # ---------------------------
    # Cart persistence
    # ---------------------------

    async def list_cart(self) -> List[CartItem]:
        rows = (await self._request("GET", "/api/cart")).json()
        return [CartItem.from_wire(row) for row in rows]

    async def add_cart_row(self, product_id, quantity: int) -> CartItem:
        """Create the row or increment its quantity by ``quantity``."""
        response = await self._request(
            "POST",
            "/api/cart",
            json={"productId": normalize_id(product_id), "quantity": quantity},
        )
        return CartItem.from_wire(response.json())

    async def set_cart_quantity(self, product_id, quantity: int) -> None:
        await self._request(
            "PUT", f"/api/cart/{normalize_id(product_id)}", json={"quantity": quantity}
        )

    async def delete_cart_row(self, product_id) -> None:
        # a row that is already gone is what the caller wanted
        await self._request(
            "DELETE", f"/api/cart/{normalize_id(product_id)}", allow_statuses=(404,)
        )

    async def clear_cart_rows(self) -> None:
        await self._request("DELETE", "/api/cart")

    # ---------------------------
    # Orders & Stats
    # ---------------------------

    async def place_order(
        self, items: Iterable[CartItem], customer_name: str, customer_email: str
    ) -> Dict[str, Any]:
        body = {
            "items": [{"productId": i.id, "quantity": i.quantity} for i in items],
            "customerName": customer_name,
            "customerEmail": customer_email,
        }
        return (await self._request("POST", "/api/orders", json=body)).json()

    async def list_orders(self) -> List[Dict[str, Any]]:
        return (await self._request("GET", "/api/orders")).json()

    async def admin_stats(self) -> Dict[str, Any]:
        return (await self._request("GET", "/api/admin/stats")).json()
