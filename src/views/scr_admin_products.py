from __future__ import annotations

from typing import Dict, List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.reactive import reactive
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Label, MarkdownViewer

from api import services
from api.errors import ShopError
from api.models import Product, ProductFilters
from utils.pure import build_first_image, format_price, generate_markdown_table
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal


class AdminProductsScreen(BaseScreen):
    """
    Admins browse the catalog page by page (or search it), view a product and
    update its stock or delete it.
    """

    page_idx = reactive(1)
    page_cnt = reactive(1)

    current_pid: Optional[int] = None

    def __init__(self, match=None) -> None:
        super().__init__(match)
        self._products: Dict[int, Product] = {}
        self._query = ""

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Input(id="input-search", placeholder="Search for product...")
            yield DataTable(id="table-prods")
            with Horizontal(id="hort-table-control"):
                yield Button("<", id="btn-prev")
                yield Label("1 / 1", id="label-page")
                yield Button(">", id="btn-next")
            yield MarkdownViewer(id="md-prod", show_table_of_contents=False)
            with Horizontal(id="hort-controls"):
                with Vertical():
                    yield Label("New Stock:")
                    yield Input(
                        placeholder="units in stock",
                        id="input-stock",
                        type="integer",
                        validators=[Number(minimum=0)],
                    )
                with Horizontal(id="div-button"):
                    yield Button("Update Stock", id="btn-update", variant="success")
                    yield Button("Delete", id="btn-delete", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Product", "Brand", "Category", "Price", "Stock")

        self.query_one("#md-prod").add_class("hidden")
        self.query_one("#hort-controls").add_class("hidden")
        self.query_one("#input-search", Input).focus()

    @on(ScreenResume)
    def handle_resume(self) -> None:
        self.update_table()

    def on_input_changed(self, message: Input.Changed) -> None:
        if message.input.id == "input-search":
            self._query = message.value.strip()
            self.page_idx = 1
            self.update_table()

    @on(Button.Pressed, "#btn-prev")
    def handle_prev(self) -> None:
        self.page_idx -= 1

    @on(Button.Pressed, "#btn-next")
    def handle_next(self) -> None:
        self.page_idx += 1

    def validate_page_idx(self, page_idx: int) -> int:
        return max(1, min(page_idx, self.page_cnt))

    def watch_page_idx(self, old: int, new: int) -> None:
        if old != new:
            self.update_table()

    @work(exclusive=True, group="table")
    async def update_table(self) -> None:
        products: List[Product]
        try:
            if self._query:
                products = await services.search_products(self.ctx.client, self._query)
                self.page_cnt = 1
            else:
                page = await services.admin_list_products(
                    self.ctx.client, ProductFilters(page_number=self.page_idx - 1)
                )
                products = page.content
                self.page_cnt = max(page.total_pages, 1)
        except ShopError as e:
            self.notify(e.message, severity="error")
            return

        self._products = {p.id: p for p in products}
        table = self.query_one(DataTable)
        table.clear()
        for p in products:
            table.add_row(
                p.id,
                p.title,
                p.brand,
                p.category,
                format_price(p.selling_price),
                p.quantity,
                key=str(p.id),
            )
        self.query_one("#label-page", Label).update(
            f"{self.page_idx} / {self.page_cnt}"
        )
        self.query_one("#btn-prev").disabled = self.page_idx <= 1
        self.query_one("#btn-next").disabled = self.page_idx >= self.page_cnt

    @on(DataTable.RowSelected)
    def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        self.current_pid = int(event.row_key.value)
        self.render_product()

        self.query_one("#md-prod").remove_class("hidden")
        self.query_one("#hort-controls").remove_class("hidden")

    @work(exclusive=True, group="detail")
    async def render_product(self) -> None:
        try:
            prod = await services.get_product(self.ctx.client, self.current_pid)
        except ShopError as e:
            self.notify(e.message, severity="error")
            return

        rows = [
            ["Title", prod.title],
            ["Brand", prod.brand],
            ["Color", prod.color],
            ["Category", prod.category],
            ["MRP", format_price(prod.mrp_price)],
            ["Price", format_price(prod.selling_price)],
            ["Discount", f"{prod.discount_percent}%"],
            ["Stock", prod.quantity],
            ["Image", build_first_image(prod.images)],
        ]
        md_table = generate_markdown_table(["Attribute", "Value"], rows, ["l", "l"])
        await self.query_one("#md-prod", MarkdownViewer).document.update(
            f"### Product #{prod.id}\n\n" + md_table
        )

        # prefill with the current value for convenience
        self.query_one("#input-stock", Input).value = str(prod.quantity)

    @on(Button.Pressed, "#btn-update")
    @work(exclusive=True, group="mutation")
    async def handle_update(self) -> None:
        if self.current_pid is None:
            return
        stock_input = self.query_one("#input-stock", Input)
        if not stock_input.value or not stock_input.is_valid:
            stock_input.focus()
            stock_input.add_class("-invalid")
            self.notify("Stock must be a whole number, 0 or more.", severity="error")
            return

        new_stock = int(stock_input.value)
        current = self._products.get(self.current_pid)
        if current is not None and current.quantity == new_stock:
            self.notify("Nothing to update.", severity="warning")
            return

        try:
            await services.admin_update_stock(
                self.ctx.client, self.current_pid, new_stock
            )
        except ShopError as e:
            self.notify(e.message, severity="error")
            return

        self.notify("Stock updated successfully.")
        self.render_product()
        self.update_table()

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True, group="mutation")
    async def handle_delete(self) -> None:
        if self.current_pid is None:
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Delete product #{self.current_pid}? This cannot be undone.",
                primary_text="Delete",
                secondary_text="Cancel",
                tone="error",
            )
        ):
            return

        try:
            await services.admin_delete_product(self.ctx.client, self.current_pid)
        except ShopError as e:
            self.notify(e.message, severity="error")
            return

        self.notify("Product deleted.")
        self.current_pid = None
        self.query_one("#md-prod").add_class("hidden")
        self.query_one("#hort-controls").add_class("hidden")
        self.update_table()
