from textual import on, work
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.events import ScreenResume
from textual.widgets import Button, MarkdownViewer

from cart.client import PersistenceError
from utils.messages import NewOrderMessage
from utils.pure import format_money, markdown_table
from views.base_screen import BaseScreen


def stats_markdown(stats: dict) -> str:
    summary = (
        "### Store Summary\n\n"
        f"- Products: {stats['totalProducts']}\n"
        f"- Orders: {stats['totalOrders']}\n"
        f"- Users: {stats['totalUsers']}\n"
        f"- Revenue: {format_money(stats['totalRevenue'])}\n\n"
    )
    top = markdown_table(
        ["Product", "Units Sold"],
        [[t["name"], t["totalSold"]] for t in stats["topProducts"]],
        ["l", "r"],
    )
    daily = markdown_table(
        ["Date", "Sales"],
        [[d["date"], format_money(d["sales"])] for d in stats["dailySales"]],
        ["l", "r"],
    )
    recent = markdown_table(
        ["Order", "Customer", "Status", "Total", "Placed"],
        [
            [
                o["id"],
                f"{o['customerName']} <{o['customerEmail']}>",
                o["status"],
                format_money(o["total"]),
                o["createdAt"][:16].replace("T", " "),
            ]
            for o in stats["recentOrders"]
        ],
        ["r", "l", "l", "r", "l"],
    )
    return (
        summary
        + "### Top Products\n\n" + top + "\n\n"
        + "### Daily Sales\n\n" + daily + "\n\n"
        + "### Recent Orders\n\n" + recent
    )


class AdminStatsScreen(BaseScreen):
    """
    Admin dashboard: store totals, best sellers, daily sales and recent orders.
    """

    MODE = "admin_stats"

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-top", show_table_of_contents=False)
            yield Button("Refresh", id="btn-refresh", variant="primary")

    def on_mount(self) -> None:
        self.handle_reload()

    @on(Button.Pressed, "#btn-refresh")
    @on(NewOrderMessage)
    @on(ScreenResume)
    @work(exclusive=True)
    async def handle_reload(self) -> None:
        try:
            stats = await self.app.state.client.admin_stats()
        except PersistenceError as e:
            self.notify(f"Could not load statistics: {e}", severity="error")
            return
        await self.query_one("#md-top", MarkdownViewer).document.update(stats_markdown(stats))
