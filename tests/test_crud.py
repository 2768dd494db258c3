import unittest
from datetime import datetime, timedelta

from dbcase import TempDatabaseCase

from db import crud
from db import database as db_database


class CrudTestCase(TempDatabaseCase):
    # ---------- Users & roles ----------

    async def test_upsert_user_creates_once_and_keeps_subject(self):
        user = await crud.upsert_user("Jane@Example.com", "Jane", subject_id="sub-1")
        self.assertEqual(user.id, "sub-1")
        self.assertEqual(user.email, "jane@example.com")

        again = await crud.upsert_user("jane@example.com", "Jane D.", subject_id="other")
        self.assertEqual(again.id, "sub-1")
        self.assertEqual(again.name, "Jane D.")
        self.assertEqual((await crud.get_user("sub-1")).name, "Jane D.")

    async def test_upsert_user_generates_subject_when_missing(self):
        user = await crud.upsert_user("nosub@example.com")
        self.assertTrue(user.id)
        self.assertEqual(await crud.get_user(user.id), user)
        self.assertIsNone(await crud.get_user("missing"))

    async def test_ensure_user_inserts_and_rekeys(self):
        created = await crud.ensure_user("sub-a", "a@example.com", "A")
        self.assertEqual(created.id, "sub-a")

        # same email under another subject: the row and its cart follow the new id
        await crud.add_to_cart("sub-a", 1, 2)
        rekeyed = await crud.ensure_user("sub-b", "a@example.com")
        self.assertEqual(rekeyed.id, "sub-b")
        self.assertIsNone(await crud.get_user("sub-a"))
        lines = await crud.list_cart("sub-b")
        self.assertEqual([(l.product.id, l.quantity) for l in lines], [(1, 2)])

    async def test_roles_default_to_user_and_admin_is_seeded(self):
        self.assertEqual(await crud.get_assigned_role("admin@example.com"), "admin")
        self.assertEqual(await crud.get_assigned_role("ADMIN@example.com "), "admin")
        self.assertEqual(await crud.get_assigned_role("someone@example.com"), "user")

        await crud.assign_role("Someone@example.com", "admin")
        self.assertEqual(await crud.get_assigned_role("someone@example.com"), "admin")
        await crud.assign_role("someone@example.com", "user")
        self.assertEqual(await crud.get_assigned_role("someone@example.com"), "user")

        with self.assertRaises(ValueError):
            await crud.assign_role("someone@example.com", "superuser")

    # ---------- Products ----------

    async def test_seeded_products_and_filters(self):
        products = await crud.list_products()
        self.assertEqual(len(products), 4)
        self.assertEqual(products[0].name, "Zapatillas Urbanas")
        self.assertAlmostEqual(products[0].price, 179.99)
        self.assertEqual(products[0].stock, 100)

        ropa = await crud.list_products(category="ropa")
        self.assertEqual([p.name for p in ropa], ["Camiseta Deportiva"])

        found = await crud.list_products(query="BACKPACK")
        self.assertEqual([p.name for p in found], ["Mochila Viajera"])
        self.assertEqual(await crud.list_products(query="nothing like this"), [])

        self.assertIsNone(await crud.get_product(999))

    async def test_create_product(self):
        p = await crud.create_product("Gorra", 19.5, 3, category="Accesorios")
        self.assertEqual(await crud.get_product(p.id), p)

    # ---------- Cart ----------

    async def test_add_to_cart_increments_existing_row(self):
        await crud.ensure_user("u1", "u1@example.com")
        first = await crud.add_to_cart("u1", 2, 1)
        self.assertEqual(first.quantity, 1)
        second = await crud.add_to_cart("u1", 2, 3)
        self.assertEqual(second.quantity, 4)
        self.assertEqual(len(await crud.list_cart("u1")), 1)

    async def test_add_to_cart_rejects_bad_input(self):
        await crud.ensure_user("u1", "u1@example.com")
        with self.assertRaises(ValueError):
            await crud.add_to_cart("u1", 1, 0)
        with self.assertRaises(crud.ProductNotFoundError):
            await crud.add_to_cart("u1", 999, 1)
        with self.assertRaises(crud.InsufficientStockError) as ctx:
            await crud.add_to_cart("u1", 1, 101)
        self.assertEqual(ctx.exception.available, 100)
        self.assertEqual(await crud.list_cart("u1"), [])

    async def test_list_cart_is_newest_first(self):
        await crud.ensure_user("u1", "u1@example.com")
        for pid in (1, 3, 2):
            await crud.add_to_cart("u1", pid, 1)
        lines = await crud.list_cart("u1")
        self.assertEqual([l.product.id for l in lines], [2, 3, 1])

    async def test_set_quantity_remove_and_clear(self):
        await crud.ensure_user("u1", "u1@example.com")
        await crud.add_to_cart("u1", 1, 1)
        await crud.add_to_cart("u1", 2, 1)

        self.assertTrue(await crud.set_cart_quantity("u1", 1, 5))
        self.assertEqual((await crud.get_cart_line("u1", 1)).quantity, 5)
        self.assertFalse(await crud.set_cart_quantity("u1", 4, 5))

        self.assertTrue(await crud.set_cart_quantity("u1", 1, 0))
        self.assertIsNone(await crud.get_cart_line("u1", 1))

        self.assertTrue(await crud.remove_from_cart("u1", 2))
        self.assertFalse(await crud.remove_from_cart("u1", 2))

        await crud.add_to_cart("u1", 3, 1)
        await crud.add_to_cart("u1", 4, 1)
        self.assertEqual(await crud.clear_cart("u1"), 2)
        self.assertEqual(await crud.list_cart("u1"), [])

    async def test_carts_are_scoped_per_user(self):
        await crud.ensure_user("u1", "u1@example.com")
        await crud.ensure_user("u2", "u2@example.com")
        await crud.add_to_cart("u1", 1, 1)
        self.assertEqual(await crud.list_cart("u2"), [])
        self.assertEqual(await crud.clear_cart("u2"), 0)
        self.assertEqual(len(await crud.list_cart("u1")), 1)

    # ---------- Orders ----------

    async def test_place_order_snapshots_prices_and_decrements_stock(self):
        await crud.ensure_user("u1", "u1@example.com")
        order = await crud.place_order(
            "u1", "Jane", "jane@example.com", [(1, 2), (2, 1), (1, 1)]
        )
        self.assertAlmostEqual(order.total, round(179.99 * 3 + 49.99, 2))
        self.assertEqual([(i.product_id, i.quantity) for i in order.items], [(1, 3), (2, 1)])
        self.assertEqual((await crud.get_product(1)).stock, 97)
        self.assertEqual((await crud.get_product(2)).stock, 99)

        stored = await crud.get_order(order.id)
        self.assertEqual(stored.customer_email, "jane@example.com")
        self.assertEqual(stored.items[0].product_name, "Zapatillas Urbanas")
        self.assertAlmostEqual(stored.items[0].price_at_purchase, 179.99)
        self.assertIsNone(await crud.get_order(424242))

    async def test_place_order_is_all_or_nothing(self):
        await crud.ensure_user("u1", "u1@example.com")
        with self.assertRaises(crud.InsufficientStockError):
            await crud.place_order("u1", "Jane", "jane@example.com", [(1, 1), (2, 500)])
        with self.assertRaises(crud.ProductNotFoundError):
            await crud.place_order("u1", "Jane", "jane@example.com", [(1, 1), (999, 1)])
        with self.assertRaises(crud.EmptyOrderError):
            await crud.place_order("u1", "Jane", "jane@example.com", [])
        with self.assertRaises(ValueError):
            await crud.place_order("u1", "Jane", "jane@example.com", [(1, 0)])

        self.assertEqual((await crud.get_product(1)).stock, 100)
        self.assertEqual(await crud.list_orders("u1"), [])

    async def test_list_orders_newest_first(self):
        await crud.ensure_user("u1", "u1@example.com")
        now = datetime.now()
        old = await crud.place_order("u1", "J", "j@example.com", [(1, 1)], now - timedelta(days=2))
        new = await crud.place_order("u1", "J", "j@example.com", [(2, 1)], now)
        orders = await crud.list_orders("u1")
        self.assertEqual([o.id for o in orders], [new.id, old.id])
        self.assertEqual(orders[0].items[0].product_id, 2)
        self.assertEqual(await crud.list_orders("u2"), [])

    # ---------- Stats ----------

    async def test_admin_stats(self):
        await crud.ensure_user("u1", "u1@example.com")
        now = datetime.now()
        await crud.place_order("u1", "A", "a@example.com", [(1, 2)], now - timedelta(days=1))
        await crud.place_order("u1", "A", "A@example.com", [(2, 5)], now)
        await crud.place_order(None, "B", "b@example.com", [(1, 1), (3, 1)], now)

        stats = await crud.admin_stats(top_k=2, recent=2)
        self.assertEqual(stats.total_products, 4)
        self.assertEqual(stats.total_orders, 3)
        self.assertEqual(stats.total_users, 2)
        expected = round(179.99 * 2 + 49.99 * 5 + 179.99 + 299.99, 2)
        self.assertAlmostEqual(stats.total_revenue, expected)
        self.assertEqual(
            [(t.name, t.total_sold) for t in stats.top_products],
            [("Camiseta Deportiva", 5), ("Zapatillas Urbanas", 3)],
        )
        self.assertEqual(len(stats.daily_sales), 2)
        self.assertLess(stats.daily_sales[0].date, stats.daily_sales[1].date)
        self.assertEqual(len(stats.recent_orders), 2)

    async def test_admin_stats_on_empty_store(self):
        stats = await crud.admin_stats()
        self.assertEqual(stats.total_orders, 0)
        self.assertEqual(stats.total_revenue, 0.0)
        self.assertEqual(stats.top_products, [])
        self.assertEqual(stats.daily_sales, [])

    async def test_initialization_runs_once_per_database(self):
        async with db_database.connect() as conn:
            cur = await conn.execute("SELECT COUNT(*) FROM products;")
            (count,) = await cur.fetchone()
            await cur.close()
        self.assertEqual(count, 4)


if __name__ == "__main__":
    unittest.main()
