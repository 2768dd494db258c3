from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import HorizontalGroup, Vertical
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Footer, Input, Label, MarkdownViewer

from cart.client import PersistenceError
from cart.items import CartItem
from utils.pure import format_money, markdown_table, quantity_cap_notice
from views.modal_dialog import DialogModal

MAX_ORDER_QTY = 10


class ProdDetailModal(ModalScreen[bool]):
    """
    Product detail plus quantity picker.
    Adds to the cart, or sets the quantity when the product is already in it.
    Returns True if a cart change was started.
    """

    BINDINGS = [
        Binding("escape", "close", "Back", show=True),
        Binding("ctrl+up", "more", "Qty +1", show=True),
        Binding("ctrl+down", "less", "Qty -1", show=True),
    ]

    order_qty = reactive(1)

    def __init__(self, product_id: str) -> None:
        super().__init__()
        self._pid = product_id
        self._prod: dict = {}
        self._existing: CartItem | None = None
        self._max_qty = MAX_ORDER_QTY

    def compose(self) -> ComposeResult:
        with Vertical(id="div-prod-detail"):
            yield MarkdownViewer("", id="md-prod", show_table_of_contents=False)
            with HorizontalGroup(id="hgroup-qty"):
                yield Label("Quantity", id="label-qty")
                yield Button("-", id="btn-qty-less")
                yield Input(value="1", id="input-order-qty", type="integer")
                yield Button("+", id="btn-qty-more")
            with HorizontalGroup(id="hgroup-prod-actions"):
                yield Button("Back", id="btn-back")
                yield Button("Add to Cart", id="btn-addcart", variant="primary")
        yield Footer(show_command_palette=False)

    def on_mount(self):
        self.load_product()

    @work(exclusive=True)
    async def load_product(self):
        try:
            self._prod = await self.app.state.client.get_product(self._pid)
        except PersistenceError as e:
            self.app.notify(f"Could not load product: {e}", severity="error")
            self.dismiss(False)
            return

        rows = [
            ["Name", self._prod["name"]],
            ["Category", self._prod["category"]],
            ["Price", format_money(self._prod["price"])],
            ["In Stock", self._prod["stock"]],
        ]
        md = (
            f"### {self._prod['name']}\n\n{self._prod['description']}\n\n"
            + markdown_table(["Attribute", "Value"], rows)
        )
        await self.query_one("#md-prod", MarkdownViewer).document.update(md)

        order_btn = self.query_one("#btn-addcart", Button)
        stock = int(self._prod["stock"])
        if stock < 1:
            order_btn.label = "Out of Stock"
            order_btn.disabled = True
            order_btn.variant = "warning"
        self._max_qty = max(1, min(MAX_ORDER_QTY, stock))
        qty_input = self.query_one("#input-order-qty", Input)
        qty_input.validators = [Number(minimum=1, maximum=self._max_qty)]

        self._existing = self.app.state.cart.get(self._pid)
        if self._existing:
            if stock > 0:
                order_btn.label = "Update Cart"
            self.order_qty = min(self._existing.quantity, self._max_qty)
            notice = quantity_cap_notice(
                self._existing.name, self._existing.quantity, self._max_qty
            )
            if notice:
                self.notify(notice, severity="warning", timeout=8)
        self.watch_order_qty(self.order_qty)
        qty_input.focus()

    def on_input_changed(self, message: Input.Changed) -> None:
        if (
            message.input.id == "input-order-qty"
            and message.input.is_valid
            and message.value
            and self.focused == message.input
        ):
            self.order_qty = int(message.value)

    def validate_order_qty(self, qty: int) -> int:
        return max(1, min(qty, self._max_qty))

    def watch_order_qty(self, qty: int):
        self.query_one("#btn-qty-less").disabled = qty <= 1
        self.query_one("#btn-qty-more").disabled = qty >= self._max_qty
        self.query_one("#input-order-qty", Input).value = str(qty)

    @on(Button.Pressed, "#btn-qty-more")
    def action_more(self):
        self.order_qty += 1

    @on(Button.Pressed, "#btn-qty-less")
    def action_less(self):
        self.order_qty -= 1

    @on(Button.Pressed, "#btn-back")
    def action_close(self):
        self.dismiss(False)

    @on(Button.Pressed, "#btn-addcart")
    @work()
    async def handle_addcart(self):
        cart = self.app.state.cart
        if self._existing:
            in_cart = self._existing.quantity
            if self.order_qty < in_cart and quantity_cap_notice(
                self._existing.name, in_cart, self._max_qty
            ):
                lower = await self.app.push_screen_wait(
                    DialogModal.confirm(
                        f"Lower {self._existing.name} from {in_cart} to {self.order_qty}?"
                    )
                )
                if not lower:
                    return
            self.app.run_cart_action(
                cart.update_quantity(self._pid, self.order_qty),
                "Could not update the cart on the server; change reverted.",
            )
            self.app.notify("Updated cart item quantity.")
        else:
            self.app.run_cart_action(
                cart.add_item(self._prod, self.order_qty),
                "Could not save the item on the server; change reverted.",
            )
            self.app.notify("Item added to cart.")
        self.dismiss(True)
