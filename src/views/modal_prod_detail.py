from typing import Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label, MarkdownViewer

from api import services
from api.errors import ShopError
from api.models import CartItem, Product
from utils.messages import NavigateMessage
from utils.pure import build_image_url, format_price, generate_markdown_table


class ProdDetailModal(ModalScreen[bool]):
    """
    prod detail, plus cart and wishlist actions
    Will return true if the cart or the wishlist changed, false if not
    """

    order_qty = reactive(1)

    def __init__(self, product_id: int) -> None:
        super().__init__()

        self._product_id = product_id

        self._prod: Optional[Product] = None
        self._existing_cart_item: Optional[CartItem] = None
        self._changed = False

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-prod-detail"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Vertical():
                yield Label("Order Quantity")
                with Horizontal():
                    yield Button("-", id="btn-sub-qty")
                    yield Input(value="1", id="input-order-qty", type="integer")
                    yield Button("+", id="btn-add-qty")
                yield Button("Add to Wishlist", id="btn-wishlist")
                with Horizontal():
                    yield Button("Go Back", id="btn-quit")
                    yield Button("Add to Cart", id="btn-addcart", variant="primary")

    @property
    def ctx(self):
        return self.app.ctx

    async def on_mount(self):
        self.load_product()

    @work(exclusive=True)
    async def load_product(self):
        try:
            self._prod = await services.get_product(self.ctx.client, self._product_id)
        except ShopError as e:
            self.app.notify(e.message, severity="error")
            self.dismiss(False)
            return

        prod = self._prod
        table_headers = ["Attribute", "Value"]
        table_rows = [
            ["Brand", prod.brand or "-"],
            ["Color", prod.color or "-"],
            ["Category", prod.category or "-"],
            ["MRP", format_price(prod.mrp_price)],
            ["Price", format_price(prod.selling_price)],
            ["Discount", f"{prod.discount_percent}%"],
            ["In Stock", prod.quantity],
            ["Image", build_image_url(prod.images[0] if prod.images else None)],
        ]
        md_table_str = generate_markdown_table(table_headers, table_rows, ["l", "l"])
        header_md = f"### {prod.title}\n\n{prod.description}\n\n"
        await self.query_one(MarkdownViewer).document.update(header_md + md_table_str)

        # update elements depending on stock cnt
        order_btn = self.query_one("#btn-addcart", Button)
        if prod.quantity < 1:
            order_btn.label = "Out of Stock"
            order_btn.disabled = True
            order_btn.variant = "warning"

        self.query_one("#input-order-qty").validators = [
            Number(minimum=1, maximum=max(prod.quantity, 1))
        ]

        session = self.ctx.session.get_state()
        if not session.is_authenticated:
            if prod.quantity >= 1:
                order_btn.label = "Login to Buy"
            self.query_one("#btn-wishlist").display = False
        else:
            # update elements based on server-confirmed cart status
            self._existing_cart_item = self.ctx.cart.item_for(prod.id)
            if self._existing_cart_item:
                self.order_qty = self._existing_cart_item.quantity
                order_btn.label = "Update Cart"
            self._refresh_wishlist_button()

        self.query_one("#input-order-qty").focus()

    def _refresh_wishlist_button(self) -> None:
        btn = self.query_one("#btn-wishlist", Button)
        if self.ctx.wishlist.contains(self._product_id):
            btn.label = "Remove from Wishlist"
            btn.variant = "warning"
        else:
            btn.label = "Add to Wishlist"
            btn.variant = "default"

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(self._changed)

    async def on_input_changed(self, message: Input.Changed) -> None:
        if (
            message.input.id == "input-order-qty"
            and message.input.is_valid
            and self.focused == message.input
        ):
            self.order_qty = int(message.value)

    def validate_order_qty(self, qty: int) -> int:
        max_qty = self._prod.quantity if self._prod else qty
        return max(1, min(qty, max(max_qty, 1)))

    async def watch_order_qty(self, qty: int):
        self.query_one("#btn-sub-qty").disabled = qty <= 1
        self.query_one("#btn-add-qty").disabled = (
            self._prod is not None and qty >= self._prod.quantity
        )
        self.query_one("#input-order-qty", Input).value = str(qty)

    @on(Button.Pressed, "#btn-add-qty")
    def handle_add_qty(self):
        self.order_qty += 1

    @on(Button.Pressed, "#btn-sub-qty")
    def handle_sub_qty(self):
        self.order_qty -= 1

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(self._changed)

    @on(Button.Pressed, "#btn-addcart")
    @work(exclusive=True)
    async def handle_addcart(self):
        if not self.ctx.session.get_state().is_authenticated:
            self.app.post_message(NavigateMessage("/login"))
            self.dismiss(False)
            return

        try:
            if not self._existing_cart_item:
                await self.ctx.cart.add(self._product_id, self.order_qty)
                self.app.notify("Item added to cart successfully.")
            else:
                await self.ctx.cart.update(self._existing_cart_item.id, self.order_qty)
                self.app.notify("Updated cart item quantity.")
        except ShopError as e:
            self.notify(e.message, severity="error")
            return

        self.dismiss(True)

    @on(Button.Pressed, "#btn-wishlist")
    @work(exclusive=True)
    async def handle_wishlist(self):
        try:
            added = await self.ctx.wishlist.toggle(self._product_id)
        except ShopError as e:
            self.notify(e.message, severity="error")
            return

        self._changed = True
        self._refresh_wishlist_button()
        self.notify("Added to wishlist." if added else "Removed from wishlist.")
