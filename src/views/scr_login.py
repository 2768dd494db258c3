from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import Key
from textual.widgets import Button, Input, Label

from cart.client import PersistenceError
from views.base_screen import BaseScreen
from views.modal_dialog import QuitDialogModal


class LoginScreen(BaseScreen):
    """
    Sign in with an email address. The server assigns the role;
    dismisses once the session and the persisted cart are loaded.
    """

    SHOW_SIDEBAR = False
    SUB_TITLE = "Sign in"

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-login"):
            yield Label("Email")
            yield Input(placeholder="user@example.com", id="input-login-email")
            yield Label("Name")
            yield Input(placeholder="Jane Doe (optional)", id="input-login-name")
            with Horizontal(id="div-login-btns"):
                yield Button("Quit", id="btn-quit")
                yield Button("Sign in", id="btn-login", variant="primary")

    def on_mount(self):
        self.query_one("#input-login-email").focus()

    def on_key(self, event: Key) -> None:
        if event.key == "enter" and self.focused == self.query_one("#input-login-name"):
            self.handle_login_submit()

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        email_input = self.query_one("#input-login-email", Input)
        email = email_input.value.strip()
        name = self.query_one("#input-login-name", Input).value.strip()

        if not email:
            email_input.add_class("-invalid")
            email_input.focus()
            self.notify("Email cannot be empty!", severity="error")
            return

        try:
            identity = await self.app.state.sign_in(email, name)
        except PersistenceError as e:
            email_input.add_class("-invalid")
            email_input.focus()
            if e.status_code == 400:
                self.notify("That email address is not valid.", severity="error")
            else:
                self.notify(f"Sign-in failed: {e}", severity="error")
            return

        self.notify(f"Hello {identity.name or identity.email}!")
        self.dismiss()

    @on(Button.Pressed, "#btn-quit")
    def handle_quit_(self) -> None:
        self.app.push_screen(QuitDialogModal())
