import asyncio

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.events import ScreenResume
from textual.widgets import Button, MarkdownViewer

from api import services
from api.errors import ShopError
from utils.pure import format_price, generate_markdown_table
from views.base_screen import BaseScreen


class AdminDashboardScreen(BaseScreen):
    """
    Store overview: headline numbers plus orders per status.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-top", show_table_of_contents=False)
            yield Button("Refresh", id="btn-refresh", variant="primary")

    @on(Button.Pressed, "#btn-refresh")
    @on(ScreenResume)
    @work(exclusive=True)
    async def handle_reload(self) -> None:
        try:
            stats, status_counts = await asyncio.gather(
                services.dashboard_stats(self.ctx.client),
                services.order_status_counts(self.ctx.client),
            )
        except ShopError as e:
            self.notify(e.message, severity="error")
            return

        summary_md = (
            "### Store Summary\n\n"
            f"- Customers: {stats.total_users}\n"
            f"- Orders: {stats.total_orders}\n"
            f"- Revenue: {format_price(stats.total_revenue)}\n"
            f"- Products: {stats.total_products}\n"
            f"- Categories: {stats.total_categories}\n"
            f"- Cancelled Orders: {stats.total_cancelled_orders}\n"
            f"- Refunded: {format_price(stats.total_refund_amount)}\n\n"
        )
        rows = [[status.title(), cnt] for status, cnt in sorted(status_counts.items())]
        status_md = "### Orders by Status\n\n" + (
            generate_markdown_table(["Status", "Orders"], rows, ["l", "r"])
            or "No orders yet."
        )
        await self.query_one("#md-top", MarkdownViewer).document.update(
            summary_md + status_md
        )
