from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, HorizontalGroup, VerticalScroll
from textual.events import ScreenResume
from textual.widgets import Button, Label, Rule

from cart.items import CartItem
from utils.messages import CartChangedMessage
from utils.pure import format_money
from views.base_screen import BaseScreen
from views.modal_checkout import CheckoutModal
from views.modal_dialog import DialogModal
from views.modal_prod_detail import ProdDetailModal


class CartItemWidget(HorizontalGroup):
    """One cart line: product, unit price, quantity, subtotal, and its actions."""

    def __init__(self, item: CartItem):
        super().__init__(classes="cart-line")
        self.item = item

    def compose(self):
        yield Label(self.item.name, classes="cart-line-name")
        yield Label(format_money(self.item.price), classes="cart-line-num")
        yield Label(f"x {self.item.quantity}", classes="cart-line-num")
        yield Label(format_money(self.item.subtotal), classes="cart-line-num")
        yield Button("Edit", classes="btn-line-edit")
        yield Button("Remove", classes="btn-line-remove", variant="error")

    @on(Button.Pressed, ".btn-line-edit")
    @work()
    async def handle_edit_item(self):
        await self.app.push_screen_wait(ProdDetailModal(self.item.id))

    @on(Button.Pressed, ".btn-line-remove")
    @work()
    async def handle_remove_item(self):
        if await self.app.push_screen_wait(
            DialogModal.confirm(f"Remove {self.item.name} from your cart?")
        ):
            self.app.run_cart_action(
                self.app.state.cart.remove_item(self.item.id),
                "Could not remove the item on the server; it is back in your cart.",
            )
            self.notify("Item removed from cart.", severity="information")


class CartScreen(BaseScreen):
    """
    The local cart. Renders straight from the cart store, which notifies this
    screen on every change, including rollbacks.
    """

    MODE = "cart"

    def __init__(self) -> None:
        super().__init__()
        self._unsubscribe = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("Total Cart Value: $0.00", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Clear Cart", id="btn-clear-cart")
            yield Button("Reload", id="btn-refresh")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    def on_mount(self):
        cart = self.app.state.cart
        self._unsubscribe = cart.subscribe(
            lambda: self.post_message(CartChangedMessage(cart.count, cart.total_price))
        )
        self.handle_cart_change()

    def on_unmount(self):
        if self._unsubscribe:
            self._unsubscribe()

    @on(CartChangedMessage)
    @on(ScreenResume)
    @work(exclusive=True)
    async def handle_cart_change(self):
        cart = self.app.state.cart
        items = cart.items

        content = self.query_one("#vertscroll-content")
        if [c.item for c in content.children] != items:
            await content.remove_children()
            await content.mount_all([CartItemWidget(item) for item in items])
        content.set_class(not items, "no-items")

        self.query_one("#label-cart-total").content = (
            f"Total Cart Value: {format_money(cart.total_price)}  ({cart.count} items)"
        )

    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True, group="cart-reload")
    async def handle_reload(self) -> None:
        cart = self.app.state.cart
        if cart.subject_id:
            await cart.load_from_persistent(cart.subject_id)

    @on(Button.Pressed, "#btn-clear-cart")
    @work()
    async def handle_clear_cart(self) -> None:
        if not self.app.state.cart.items:
            self.app.notify("Cart is empty.", severity="warning")
            return
        if await self.app.push_screen_wait(
            DialogModal.confirm(
                "Do you really want to remove all items from cart?", tone="error"
            )
        ):
            self.app.run_cart_action(
                self.app.state.cart.clear(),
                "The server cart could not be cleared; it will be replaced at sign-out.",
            )

    @on(Button.Pressed, "#btn-checkout")
    @work()
    async def handle_checkout(self) -> None:
        if not self.app.state.cart.items:
            self.app.notify("Cart is empty.", severity="warning")
            return
        await self.app.push_screen_wait(CheckoutModal())
