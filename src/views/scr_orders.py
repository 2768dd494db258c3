from math import ceil
from typing import Any, Dict, List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.reactive import reactive
from textual.widgets import Button, DataTable, Label, MarkdownViewer

from cart.client import PersistenceError
from utils.messages import NewOrderMessage
from utils.pure import format_money, markdown_table
from views.base_screen import BaseScreen

PAGE_SIZE = 5


class OrdersScreen(BaseScreen):
    """
    The signed-in user's orders, newest first, with details of the highlighted one.

    Layout:
    - Markdown detail view at the top.
    - Orders table below, 5 per page with Prev/Next.
    """

    MODE = "orders"

    BINDINGS = [
        Binding("enter", "noop", "View Order Detail", show=True, key_display="⏎"),
    ]

    page_idx = reactive(1)
    page_cnt = reactive(1)

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Dict[str, Any]] = []
        self._page: List[Dict[str, Any]] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("<", id="btn-prev")
            yield Label("1 / 1", id="label-page")
            yield Button(">", id="btn-next")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order No", "Date", "Items", "Status", "Total")

    @on(Button.Pressed, "#btn-refresh")
    @on(ScreenResume)
    @on(NewOrderMessage)
    @work(exclusive=True, group="orders")
    async def handle_refresh(self):
        try:
            self._orders = await self.app.state.client.list_orders()
        except PersistenceError as e:
            self.notify(f"Could not load orders: {e}", severity="error")
            self._orders = []
        self.page_cnt = max(ceil(len(self._orders) / PAGE_SIZE), 1)
        self.page_idx = 1
        self._render_page()

    def validate_page_idx(self, page_idx: int) -> int:
        return max(1, min(page_idx, self.page_cnt))

    def watch_page_idx(self, old: int, new: int) -> None:
        self._render_page()

    @on(Button.Pressed, "#btn-prev")
    def handle_prev(self) -> None:
        self.page_idx -= 1

    @on(Button.Pressed, "#btn-next")
    def handle_next(self) -> None:
        self.page_idx += 1

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        if 0 <= event.cursor_row < len(self._page):
            self._render_detail(self._page[event.cursor_row])

    def _render_page(self) -> None:
        start = (self.page_idx - 1) * PAGE_SIZE
        page = self._page = self._orders[start : start + PAGE_SIZE]

        table = self.query_one(DataTable)
        table.clear()
        for o in page:
            table.add_row(
                o["id"],
                o["createdAt"][:16].replace("T", " "),
                sum(i["quantity"] for i in o["items"]),
                o["status"],
                format_money(o["total"]),
            )

        self.query_one("#label-page", Label).content = f"{self.page_idx} / {self.page_cnt}"
        self.query_one("#btn-prev", Button).disabled = self.page_idx <= 1
        self.query_one("#btn-next", Button).disabled = self.page_idx >= self.page_cnt
        if page:
            table.move_cursor(row=0)
        self._render_detail(page[0] if page else None)

    def _render_detail(self, order: Optional[Dict[str, Any]]) -> None:
        viewer = self.query_one("#md-order-detail", MarkdownViewer)
        if not order:
            viewer.document.update("### No orders yet.")
            return
        rows = [
            [
                i["productName"] or f"Product {i['productId']}",
                i["quantity"],
                format_money(i["priceAtPurchase"]),
                format_money(i["quantity"] * i["priceAtPurchase"]),
            ]
            for i in order["items"]
        ]
        md = (
            f"### Order #{order['id']}\n"
            f"Placed: {order['createdAt']}  \n"
            f"Customer: {order['customerName']} <{order['customerEmail']}>\n\n"
            + markdown_table(
                ["Product", "Qty", "Unit Price", "Line Total"], rows, ["l", "r", "r", "r"]
            )
            + f"\n\n**Total:** {format_money(order['total'])}"
        )
        viewer.document.update(md)
