from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label

from api.errors import ShopError
from utils.messages import WishlistChangedMessage
from utils.pure import build_first_image, format_price
from views.base_screen import BaseScreen
from views.modal_prod_detail import ProdDetailModal


class WishlistScreen(BaseScreen):
    """
    Saved products. Add to cart or remove; both round-trip the server.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield Label("", id="label-wishlist-info")
        yield DataTable(id="table-wishlist")
        with Horizontal(id="hort-buttons"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("Remove", id="btn-remove", variant="warning")
            yield Button("Add to Cart", id="btn-addcart", variant="primary")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Product", "Color", "Category", "Price", "MRP", "Image")

        if not self.session.is_shopper:
            self.query_one("#label-wishlist-info", Label).update(
                "The wishlist is only available to customer accounts."
            )
            self.query_one("#hort-buttons").display = False
            return
        self.render_wishlist()

    @on(Button.Pressed, "#btn-refresh")
    @on(ScreenResume)
    @work(exclusive=True)
    async def handle_refresh(self) -> None:
        if not self.session.is_shopper:
            return
        try:
            await self.ctx.wishlist.fetch()
        except ShopError as e:
            self.notify(e.message, severity="error")
        self.render_wishlist()

    @on(WishlistChangedMessage)
    def render_wishlist(self) -> None:
        items = self.ctx.wishlist.items
        table = self.query_one(DataTable)
        table.clear()
        for p in items:
            table.add_row(
                p.id,
                p.title,
                p.color,
                p.category,
                format_price(p.selling_price),
                format_price(p.mrp_price),
                build_first_image(p.images),
                key=str(p.id),
            )
        self.query_one("#label-wishlist-info", Label).update(
            f"{len(items)} saved item(s)" if items else "Your wishlist is empty."
        )

    def _selected_product_id(self) -> Optional[int]:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return int(row_key.value)

    @on(DataTable.RowSelected)
    @work()
    async def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        if await self.app.push_screen_wait(ProdDetailModal(int(event.row_key.value))):
            self.post_message(WishlistChangedMessage())

    @on(Button.Pressed, "#btn-remove")
    @work(exclusive=True, group="mutation")
    async def handle_remove(self) -> None:
        product_id = self._selected_product_id()
        if product_id is None:
            self.notify("Wishlist is empty.", severity="warning")
            return
        try:
            await self.ctx.wishlist.remove(product_id)
        except ShopError as e:
            self.notify(e.message, severity="error")
            return
        self.render_wishlist()
        self.notify("Removed from wishlist.")

    @on(Button.Pressed, "#btn-addcart")
    @work(exclusive=True, group="mutation")
    async def handle_add_to_cart(self) -> None:
        product_id = self._selected_product_id()
        if product_id is None:
            self.notify("Wishlist is empty.", severity="warning")
            return
        try:
            await self.ctx.cart.add(product_id, 1)
        except ShopError as e:
            self.notify(e.message, severity="error")
            return
        self.notify("Item added to cart successfully.")
