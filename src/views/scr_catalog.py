from math import ceil

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.events import ScreenResume
from textual.reactive import reactive
from textual.validation import Number
from textual.widgets import DataTable, Input, Label

from cart.client import PersistenceError
from utils.pure import format_money
from views.base_screen import BaseScreen
from views.modal_prod_detail import ProdDetailModal

PAGE_SIZE = 5


class CatalogScreen(BaseScreen):
    """
    Product catalog with search, for every signed-in user.
    """

    MODE = "catalog"

    # only here to be displayed in footer
    BINDINGS = [
        Binding("fn+shift+1", "noop", "View Product", show=True, key_display="⏎"),
        Binding("escape", "noop", "Exit Prod View", show=True),
    ]

    page_idx = reactive(1)
    page_cnt = reactive(1)
    query_str = reactive("")

    def __init__(self):
        super().__init__()
        self._products: list[dict] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield Input(id="input-search", placeholder="Search by name or description...")
        yield DataTable(id="table-search-result")
        with Horizontal():
            yield Input("1", id="input-page", type="integer")
            yield Label(" / 1", id="label-total-page-cnt")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Name", "Category", "Price", "Stock")
        self.query_one("#input-search").focus()

    @on(ScreenResume)
    def handle_resume(self):
        self.update_search_result(self.query_str)

    async def on_input_changed(self, message: Input.Changed) -> None:
        if message.input.id == "input-search":
            self.query_str = message.value.strip()
            self.update_search_result(self.query_str)
        if message.input.id == "input-page" and message.value.isdigit():
            self.page_idx = int(message.value)

    @on(DataTable.RowSelected)
    @work()
    async def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        start = (self.page_idx - 1) * PAGE_SIZE
        page = self._products[start : start + PAGE_SIZE]
        if 0 <= event.cursor_row < len(page):
            await self.app.push_screen_wait(ProdDetailModal(str(page[event.cursor_row]["id"])))

    def validate_page_idx(self, page_idx):
        return max(1, min(page_idx, self.page_cnt))

    def watch_page_idx(self, _, new_page_idx):
        self.query_one("#input-page").value = str(new_page_idx)
        self.query_one("#input-page").validators = [
            Number(minimum=1, maximum=self.page_cnt)
        ]
        self._render_page()

    @work(exclusive=True)
    async def update_search_result(self, query: str) -> None:
        try:
            self._products = await self.app.state.client.list_products(query=query or None)
        except PersistenceError as e:
            self.notify(f"Could not load products: {e}", severity="error")
            self._products = []
        self.page_cnt = max(ceil(len(self._products) / PAGE_SIZE), 1)
        self.query_one("#label-total-page-cnt").content = f" / {self.page_cnt}"
        if self.page_idx != 1:
            self.page_idx = 1
        else:
            self._render_page()

    def _render_page(self) -> None:
        start = (self.page_idx - 1) * PAGE_SIZE
        table = self.query_one(DataTable)
        table.clear()
        table.add_rows(
            [
                (p["id"], p["name"], p["category"], format_money(p["price"]), p["stock"])
                for p in self._products[start : start + PAGE_SIZE]
            ]
        )
