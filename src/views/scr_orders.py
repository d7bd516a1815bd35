from math import ceil
from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.reactive import reactive
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Label, MarkdownViewer

from api import services
from api.errors import ShopError
from api.models import Order
from routing.routes import RouteMatch
from utils.pure import format_price, generate_markdown_table
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal

ORDERS_PER_PAGE = 5


def order_markdown(order: Optional[Order], show_customer: bool = False) -> str:
    if order is None:
        return "### Select an order to view its details."

    header = (
        f"### Order #{order.id}\n"
        f"Status: **{order.order_status}**  \n"
        f"Date: {order.order_date or '-'}  \n"
    )
    if order.delivered_date:
        header += f"Delivered: {order.delivered_date}  \n"
    if show_customer:
        header += f"Customer: {order.user_email or '-'}  \n"
    if order.shipping_address:
        a = order.shipping_address
        header += (
            f"Ship To: {a.get('address', '')}, {a.get('locality', '')}, "
            f"{a.get('city', '')}, {a.get('state', '')} {a.get('pinCode', '')} "
            f"(mobile {a.get('mobile', '-')})\n"
        )

    rows = [
        [
            item.product_name,
            item.quantity,
            format_price(item.selling_price),
            format_price(item.total_price),
        ]
        for item in order.items
    ]
    table = generate_markdown_table(
        ["Product", "Qty", "Unit Price", "Line Total"], rows, ["l", "r", "r", "r"]
    )
    footer = (
        f"\n\n**Items:** {order.total_item}  \n"
        f"**Discount:** {order.discount}%  \n"
        f"**Grand Total:** {format_price(order.total_selling_price)}"
    )
    return header + "\n" + table + footer


class OrdersScreen(BaseScreen):
    """
    Customers can browse their orders with pagination, view details and
    cancel an order while it has not shipped yet.

    Layout:
    - Markdown detail view at the top, showing selected order details.
    - Orders table below (newest first), 5 per page with Prev/Next.
    """

    # Show some hints in footer
    BINDINGS = [
        Binding("enter", "noop", "View Order Detail", show=True, key_display="⏎"),
    ]

    page_idx = reactive(1)
    page_cnt = reactive(1)

    show_customer = False

    def __init__(self, match: Optional[RouteMatch] = None) -> None:
        super().__init__(match)
        self._orders: List[Order] = []
        self._focus_order_id: Optional[int] = None
        order_id = match.params.get("orderId", "") if match else ""
        if order_id.isdigit():
            self._focus_order_id = int(order_id)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("<", id="btn-prev")
            yield Input("1", id="input-page", type="integer")
            yield Label(" / 1", id="label-total-page-cnt")
            yield Button(">", id="btn-next")
            yield from self.compose_actions()

    def compose_actions(self) -> ComposeResult:
        yield Button("Cancel Order", id="btn-cancel", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order No", "Date", "Status", "Items", "Total")

    async def fetch_orders(self) -> List[Order]:
        return await services.list_user_orders(self.ctx.client)

    async def fetch_order(self, order_id: int) -> Order:
        return await services.get_order(self.ctx.client, order_id)

    @on(Button.Pressed, "#btn-refresh")
    @on(ScreenResume)
    def handle_refresh(self):
        self._load_orders()

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        if event.row_key is not None and event.row_key.value is not None:
            self._render_detail(self._order_by_id(int(event.row_key.value)))

    def _order_by_id(self, order_id: int) -> Optional[Order]:
        return next((o for o in self._orders if o.id == order_id), None)

    def selected_order(self) -> Optional[Order]:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return self._order_by_id(int(row_key.value))

    def validate_page_idx(self, page_idx: int) -> int:
        return max(1, min(page_idx, self.page_cnt))

    def watch_page_idx(self, old: int, new: int) -> None:
        self.query_one("#input-page", Input).value = str(new)
        self._refresh_buttons()
        self._fill_table()

    def _refresh_buttons(self) -> None:
        self.query_one("#btn-prev", Button).disabled = self.page_idx <= 1
        self.query_one("#btn-next", Button).disabled = self.page_idx >= self.page_cnt
        self.query_one("#input-page", Input).validators = [
            Number(minimum=1, maximum=self.page_cnt)
        ]

    @on(Button.Pressed, "#btn-prev")
    def handle_prev(self) -> None:
        if self.page_idx > 1:
            self.page_idx -= 1

    @on(Button.Pressed, "#btn-next")
    def handle_next(self) -> None:
        if self.page_idx < self.page_cnt:
            self.page_idx += 1

    @on(Input.Changed, "#input-page")
    def handle_page_input(self, ev: Input.Changed) -> None:
        if ev.value and ev.value.isdigit():
            new_idx = max(1, min(int(ev.value), self.page_cnt))
            if new_idx != self.page_idx:
                self.page_idx = new_idx

    @work(exclusive=True, group="orders")
    async def _load_orders(self) -> None:
        try:
            orders = await self.fetch_orders()
        except ShopError as e:
            self.notify(e.message, severity="error")
            return

        self._orders = sorted(orders, key=lambda o: o.id, reverse=True)
        self.page_cnt = max(ceil(len(self._orders) / ORDERS_PER_PAGE), 1)
        self.query_one("#label-total-page-cnt", Label).update(f" / {self.page_cnt}")

        # deep link: open the page holding the requested order
        if self._focus_order_id is not None:
            ids = [o.id for o in self._orders]
            if self._focus_order_id in ids:
                self.page_idx = ids.index(self._focus_order_id) // ORDERS_PER_PAGE + 1
            else:
                self._load_single(self._focus_order_id)
        self._refresh_buttons()
        self._fill_table()

    def _fill_table(self) -> None:
        start = (self.page_idx - 1) * ORDERS_PER_PAGE
        page = self._orders[start : start + ORDERS_PER_PAGE]

        table = self.query_one(DataTable)
        table.clear()
        for o in page:
            table.add_row(
                o.id,
                o.order_date or "-",
                o.order_status,
                o.total_item,
                format_price(o.total_selling_price),
                key=str(o.id),
            )

        if not page:
            self._render_detail(None)
            return
        row = 0
        if self._focus_order_id is not None:
            row = next(
                (i for i, o in enumerate(page) if o.id == self._focus_order_id), 0
            )
        table.cursor_coordinate = (row, 0)
        self._render_detail(page[row])

    @work(exclusive=True, group="detail")
    async def _load_single(self, order_id: int) -> None:
        try:
            order = await self.fetch_order(order_id)
        except ShopError as e:
            self.notify(e.message, severity="error")
            return
        self._render_detail(order)

    def _render_detail(self, order: Optional[Order]) -> None:
        md = order_markdown(order, show_customer=self.show_customer)
        self.query_one("#md-order-detail", MarkdownViewer).document.update(md)
        cancel = self.query("#btn-cancel")
        if cancel:
            cancel.first(Button).disabled = order is None or not order.is_cancellable

    @on(Button.Pressed, "#btn-cancel")
    @work(exclusive=True, group="mutation")
    async def handle_cancel(self) -> None:
        order = self.selected_order()
        if order is None or not order.is_cancellable:
            self.notify("This order can no longer be cancelled.", severity="warning")
            return

        if not await self.app.push_screen_wait(
            DialogModal(
                f"Cancel order #{order.id}?",
                primary_text="Yes",
                secondary_text="No",
                tone="error",
            )
        ):
            return

        try:
            await services.cancel_order(self.ctx.client, order.id)
        except ShopError as e:
            self.notify(e.message, severity="error")
            return
        self.notify(f"Order #{order.id} cancelled.")
        self._focus_order_id = order.id
        self._load_orders()
