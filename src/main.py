import os
from typing import Awaitable

os.environ.setdefault("STOREFRONT_LOG_FILE", os.path.expanduser("~/.min-commerce/client.log"))

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from utils.messages import QuitRequestedMessage, UserLogoutMessage
from utils.state import GlobalState
from views.scr_admin_stats import AdminStatsScreen
from views.scr_cart import CartScreen
from views.scr_catalog import CatalogScreen
from views.scr_login import LoginScreen
from views.scr_orders import OrdersScreen


class StorefrontApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "catalog": CatalogScreen,
        "cart": CartScreen,
        "orders": OrdersScreen,
        "admin_stats": AdminStatsScreen,
    }

    ADMIN_MODES = {"admin_stats": "Dashboard", "catalog": "Catalog"}
    USER_MODES = {
        "catalog": "Catalog",
        "cart": "Cart",
        "orders": "My Orders",
    }

    CSS_PATH = "styles/app.tcss"
    THEMES = ("textual-dark", "solarized-light")

    state: GlobalState

    def __init__(self, state: GlobalState | None = None):
        super().__init__()
        self.state = state or GlobalState.create()

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.main_flow()

    def action_switch_light(self):
        dark, light = self.THEMES
        self.theme = light if self.theme == dark else dark
        self.notify(f"Theme: {self.theme}")

    @work(group="cart")
    async def run_cart_action(self, action: Awaitable[bool], failure: str) -> None:
        """Run a cart store mutation in the background; report a rollback."""
        if not await action:
            self.notify(failure, severity="error")

    @on(UserLogoutMessage)
    @work(exclusive=True, group="session")
    async def handle_user_logout(self):
        synced_items = self.state.cart.count
        await self.state.sign_out()
        if self.state.cart.items:
            self.notify(
                "Cart could not be saved to the server; it is kept on this device.",
                severity="warning",
            )
        else:
            self.notify(f"Logout successful. {synced_items} item(s) saved to your account.")
        await self._reset_modes()
        self.main_flow()

    async def _reset_modes(self) -> None:
        # mode screens hold the previous user's sidebar and data
        await self.switch_mode("_default")
        for mode, screen in self.MODES.items():
            await self.remove_mode(mode)
            self.add_mode(mode, screen)

    @on(QuitRequestedMessage)
    @work
    async def handle_quit(self):
        await self.state.close()
        self.exit()

    @work(exclusive=True, group="flow")
    async def main_flow(self):
        await self.push_screen_wait(LoginScreen())
        landing = "admin_stats" if self.state.identity.is_admin else "catalog"
        await self.switch_mode(landing)


def main() -> None:
    StorefrontApp().run()


if __name__ == "__main__":
    main()
