from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from auth.tokens import ANONYMOUS, Identity
from cart.client import StoreClient
from cart.local import LocalCartFile
from cart.store import CartStore
from utils import config


@dataclass
class GlobalState:
    """
    Centralized client state shared by screens.

    Fields:
      - client: API client holding the session credential
      - cart: the cart store, persisting through ``client``
      - identity: who is signed in; anonymous until the login screen succeeds
    """

    client: StoreClient
    cart: CartStore
    identity: Identity = ANONYMOUS

    @classmethod
    def create(
        cls, base_url: str = config.API_URL, cart_file: str = config.CART_FILE
    ) -> GlobalState:
        client = StoreClient(base_url)
        cart = CartStore(client, LocalCartFile(cart_file))
        cart.restore()
        return cls(client=client, cart=cart)

    @property
    def role(self) -> Optional[Literal["admin", "user"]]:
        return self.identity.role if self.identity.is_authenticated else None

    async def sign_in(self, email: str, name: str = "") -> Identity:
        """Sign in and pull the subject's persisted cart into the local store."""
        self.identity = await self.client.sign_in(email, name)
        await self.cart.handle_identity(self.identity)
        return self.identity

    async def sign_out(self) -> None:
        """
        Push the local cart to the server while the credential is still held,
        then drop the session.
        """
        if not self.identity.is_authenticated:
            return
        await self.cart.handle_identity(ANONYMOUS)
        await self.client.sign_out()
        self.identity = ANONYMOUS

    async def close(self) -> None:
        await self.client.aclose()
