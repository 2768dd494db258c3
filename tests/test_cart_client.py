import os
import unittest

import httpx
from dbcase import TempDatabaseCase

from cart.client import PersistenceError, StoreClient
from cart.local import LocalCartFile
from cart.store import CartStore
from utils.state import GlobalState
from web.app import app


class ClientSyncTestCase(TempDatabaseCase):
    """Cart store and API client talking to the real app in-process."""

    async def asyncSetUp(self):
        await super().asyncSetUp()
        self.client = self.new_client()
        self.state = GlobalState(
            client=self.client,
            cart=CartStore(self.client, LocalCartFile(os.path.join(self.temp_dir.name, "cart.json"))),
        )

    async def asyncTearDown(self):
        await self.client.aclose()

    def new_client(self) -> StoreClient:
        return StoreClient("http://testserver", transport=httpx.ASGITransport(app=app))

    async def server_cart(self, email: str) -> dict:
        other = self.new_client()
        try:
            await other.sign_in(email)
            return {i.id: i.quantity for i in await other.list_cart()}
        finally:
            await other.aclose()

    async def test_mutations_reach_the_server(self):
        await self.state.sign_in("jane@example.com", "Jane")
        cart = self.state.cart
        products = await self.client.list_products()

        self.assertTrue(await cart.add_item(products[0], 2))
        self.assertTrue(await cart.add_item(products[1]))
        self.assertTrue(await cart.update_quantity(products[1]["id"], 3))
        self.assertEqual(await self.server_cart("jane@example.com"), {"1": 2, "2": 3})

        self.assertTrue(await cart.remove_item("1"))
        self.assertEqual(await self.server_cart("jane@example.com"), {"2": 3})
        self.assertAlmostEqual(cart.total_price, round(49.99 * 3, 2))

    async def test_rejected_add_rolls_back(self):
        await self.state.sign_in("jane@example.com")
        cart = self.state.cart
        product = await self.client.get_product(1)
        await cart.add_item(product, 1)

        self.assertFalse(await cart.add_item(product, 500))
        self.assertEqual([(i.id, i.quantity) for i in cart.items], [("1", 1)])
        self.assertEqual(await self.server_cart("jane@example.com"), {"1": 1})

    async def test_cart_survives_sign_out_and_sign_in(self):
        await self.state.sign_in("jane@example.com")
        product = await self.client.get_product(4)
        await self.state.cart.add_item(product, 2)

        await self.state.sign_out()
        self.assertFalse(self.state.identity.is_authenticated)
        self.assertIsNone(self.client.token)
        self.assertEqual(self.state.cart.items, [])
        self.assertEqual(await self.server_cart("jane@example.com"), {"4": 2})

        await self.state.sign_in("jane@example.com")
        self.assertEqual([(i.id, i.quantity) for i in self.state.cart.items], [("4", 2)])
        self.assertEqual(self.state.cart.items[0].name, "Mochila Viajera")

    async def test_calls_without_a_session_fail(self):
        with self.assertRaises(PersistenceError) as ctx:
            await self.client.list_cart()
        self.assertEqual(ctx.exception.status_code, 401)

    async def test_deleting_a_missing_row_is_not_an_error(self):
        await self.state.sign_in("jane@example.com")
        await self.client.delete_cart_row("3")

    async def test_orders_and_stats(self):
        identity = await self.state.sign_in("jane@example.com", "Jane")
        cart = self.state.cart
        await cart.add_item(await self.client.get_product(2), 2)

        created = await self.client.place_order(cart.items, identity.name, identity.email)
        await cart.clear()
        self.assertAlmostEqual(created["total"], round(49.99 * 2, 2))
        self.assertEqual(await self.server_cart("jane@example.com"), {})

        orders = await self.client.list_orders()
        self.assertEqual([o["id"] for o in orders], [created["id"]])

        with self.assertRaises(PersistenceError) as ctx:
            await self.client.admin_stats()
        self.assertEqual(ctx.exception.status_code, 403)

        admin = self.new_client()
        try:
            await admin.sign_in("admin@example.com")
            self.assertTrue(admin.identity.is_admin)
            self.assertEqual((await admin.admin_stats())["totalOrders"], 1)
        finally:
            await admin.aclose()

    async def test_sign_in_with_invalid_email(self):
        with self.assertRaises(PersistenceError) as ctx:
            await self.state.sign_in("nope")
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertFalse(self.state.identity.is_authenticated)


if __name__ == "__main__":
    unittest.main()
