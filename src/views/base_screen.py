from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from utils.messages import UserLogoutMessage
from utils.pure import markdown_table
from views.modal_dialog import DialogModal, QuitDialogModal

NAV_ITEM_PREFIX = "nav-"


def nav_entries(app) -> dict[str, str]:
    """Menu of the signed-in role, mode name to label."""
    return app.ADMIN_MODES if app.state.identity.is_admin else app.USER_MODES


class Sidebar(Vertical):
    """Session box and navigation for the current role."""

    def __init__(self, active_mode: str):
        super().__init__()
        self.active_mode = active_mode

    def compose(self) -> ComposeResult:
        yield Label("Signed in as", classes="sidebar-heading")
        yield Markdown("", id="md-session")
        yield Button("Log out", id="btn-logout", variant="error")
        yield Label("Go to", classes="sidebar-heading")
        yield ListView(id="list-nav")

    async def on_mount(self):
        identity = self.app.state.identity
        if not identity.is_authenticated:
            return

        await self.query_one("#md-session", Markdown).update(
            markdown_table(
                ["", ""],
                [
                    ["Email", identity.email],
                    ["Name", identity.name or "-"],
                    ["Role", "Administrator" if identity.is_admin else "Customer"],
                ],
            )
        )
        nav = self.query_one("#list-nav", ListView)
        await nav.clear()
        for mode, label in nav_entries(self.app).items():
            await nav.append(ListItem(Label(label), id=NAV_ITEM_PREFIX + mode))
        self._mark_active()

    def _mark_active(self) -> None:
        for entry in self.query_one("#list-nav", ListView).children:
            entry.highlighted = entry.id == NAV_ITEM_PREFIX + self.active_mode

    async def on_list_view_selected(self, event: ListView.Selected):
        target = event.item.id.removeprefix(NAV_ITEM_PREFIX)
        # the list moves its own highlight; keep it on this screen's entry
        self._mark_active()
        if target != self.app.current_mode:
            await self.app.switch_mode(target)

    @on(Button.Pressed, "#btn-logout")
    @work()
    async def confirm_logout(self):
        confirmed = await self.app.push_screen_wait(
            DialogModal.confirm("Are you sure you want to log out?")
        )
        if confirmed:
            self.post_message(UserLogoutMessage())


class BaseScreen(Screen):
    """
    Parent of every screen: header, footer, quit key and, for mode
    screens, the sidebar. ``MODE`` names the app mode the screen is
    registered under; its menu label becomes the sub title.
    """

    MODE = ""
    SHOW_SIDEBAR = True

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    def compose(self) -> ComposeResult:
        yield Header()
        if self.SHOW_SIDEBAR:
            yield Sidebar(self.MODE)
        yield Footer(show_command_palette=False)

    def on_screen_resume(self) -> None:
        self.app.title = "Min Commerce"
        if self.MODE:
            self.sub_title = nav_entries(self.app).get(self.MODE, "")

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())
