from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, MarkdownViewer

from cart.client import PersistenceError
from utils.messages import NewOrderMessage
from utils.pure import cart_summary_markdown, format_money
from views.modal_dialog import DialogModal


class CheckoutModal(ModalScreen[bool]):
    """
    Order summary plus customer name and email.
    On success the order is placed from the current cart and the cart is
    cleared. Returns True when an order was placed.
    """

    def compose(self) -> ComposeResult:
        with Vertical():
            yield MarkdownViewer("", show_table_of_contents=False)
            yield Label("Customer Name")
            yield Input(placeholder="Jane Doe", id="input-customer-name")
            yield Label("Customer Email")
            yield Input(placeholder="user@example.com", id="input-customer-email")
            with Horizontal():
                yield Button("Go Back", id="btn-quit")
                yield Button("Place Order", id="btn-submit", variant="primary")

    async def on_mount(self):
        identity = self.app.state.identity
        self.query_one("#input-customer-name", Input).value = identity.name
        self.query_one("#input-customer-email", Input).value = identity.email
        await self.query_one(MarkdownViewer).document.update(
            cart_summary_markdown(self.app.state.cart.items)
        )
        self.query_one("#input-customer-name").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    def _require(self, input_id: str, what: str) -> str:
        field = self.query_one(input_id, Input)
        value = field.value.strip()
        if not value:
            field.add_class("-invalid")
            field.focus()
            self.notify(f"{what} is required.", severity="error")
        return value

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        name = self._require("#input-customer-name", "Customer name")
        if not name:
            return
        email = self._require("#input-customer-email", "Customer email")
        if not email:
            return

        cart = self.app.state.cart
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Place order for {format_money(cart.total_price)}? This cannot be undone.",
                primary_text="Yes",
                secondary_text="No",
                tone="positive",
            )
        ):
            return

        try:
            created = await self.app.state.client.place_order(cart.items, name, email)
        except PersistenceError as e:
            self.notify(f"Order failed: {e}", severity="error")
            return

        await cart.clear()
        self.app.notify(
            f"Order placed. Your order number is {created['id']} "
            f"({format_money(created['total'])})."
        )
        self.app.post_message(NewOrderMessage(created["id"]))
        self.dismiss(True)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)
