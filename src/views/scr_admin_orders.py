from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.widgets import Button, Select

from api import services
from api.errors import ShopError
from api.models import ORDER_STATUSES, Order
from views.modal_dialog import DialogModal
from views.scr_orders import OrdersScreen


class AdminOrdersScreen(OrdersScreen):
    """
    Every customer's orders, filterable by status, with status updates.
    """

    show_customer = True

    def compose_actions(self) -> ComposeResult:
        yield Select(
            [(s.title(), s) for s in ORDER_STATUSES],
            prompt="All statuses",
            id="select-filter",
        )
        yield Select(
            [(s.title(), s) for s in ORDER_STATUSES],
            prompt="New status",
            id="select-status",
        )
        yield Button("Update Status", id="btn-update-status", variant="success")

    async def fetch_orders(self) -> List[Order]:
        status = self.query_one("#select-filter", Select).value
        if status == Select.BLANK:
            return await services.admin_list_orders(self.ctx.client)
        return await services.admin_orders_by_status(self.ctx.client, str(status))

    async def fetch_order(self, order_id: int) -> Order:
        return await services.admin_get_order(self.ctx.client, order_id)

    @on(Select.Changed, "#select-filter")
    def handle_filter(self) -> None:
        self.page_idx = 1
        self._load_orders()

    @on(Button.Pressed, "#btn-update-status")
    @work(exclusive=True, group="mutation")
    async def handle_update_status(self) -> None:
        order = self.selected_order()
        status = self.query_one("#select-status", Select).value
        if order is None:
            self.notify("Select an order first.", severity="warning")
            return
        if status == Select.BLANK:
            self.notify("Pick the new status.", severity="warning")
            return
        if status == order.order_status:
            self.notify("Nothing to update.", severity="warning")
            return

        if not await self.app.push_screen_wait(
            DialogModal(
                f"Change order #{order.id} to {status}?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return

        try:
            await services.admin_update_order_status(
                self.ctx.client, order.id, str(status)
            )
        except ShopError as e:
            self.notify(e.message, severity="error")
            return
        self.notify(f"Order #{order.id} is now {status}.")
        self._focus_order_id = order.id
        self._load_orders()
