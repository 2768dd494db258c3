import unittest

import dbcase  # noqa: F401  (puts src/ on sys.path)

from cart.items import CartItem
from utils.pure import cart_summary_markdown, format_money, markdown_table, quantity_cap_notice


class PureHelpersTestCase(unittest.TestCase):
    def test_quantity_cap_notice(self):
        self.assertIsNone(quantity_cap_notice("Llavero", 3, 10))
        self.assertIsNone(quantity_cap_notice("Llavero", 10, 10))

        notice = quantity_cap_notice("Llavero", 25, 10)
        self.assertIn("25 x Llavero", notice)
        self.assertIn("at most 10", notice)
        # stock below the order limit is the cap that applies
        self.assertIn("at most 4", quantity_cap_notice("Llavero", 5, 4))

    def test_markdown_table(self):
        table = markdown_table(["Name", "Qty"], [["a|b", 2]], ["l", "r"])
        self.assertEqual(table.splitlines(), ["| Name | Qty |", "| :--- | ---: |", "| a\\|b | 2 |"])
        with self.assertRaises(ValueError):
            markdown_table(["Name"], [], ["l", "r"])

    def test_cart_summary(self):
        self.assertIn("Your cart is empty.", cart_summary_markdown([]))
        items = [
            CartItem(id="1", name="Zapatillas Urbanas", price=10.0, quantity=2),
            CartItem(id="7", name="Llavero", price=5.0, quantity=1),
        ]
        summary = cart_summary_markdown(items)
        self.assertIn("**Total:** $25.00", summary)
        self.assertEqual(format_money(1234.5), "$1,234.50")


if __name__ == "__main__":
    unittest.main()
