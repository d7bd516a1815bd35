from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, HorizontalGroup, VerticalScroll
from textual.events import ScreenResume
from textual.message import Message
from textual.widgets import Button, Label, Rule

from api.errors import ShopError
from api.models import Cart, CartItem
from utils.messages import CartChangedMessage
from utils.pure import format_price
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal
from views.modal_prod_detail import ProdDetailModal


class CartItemActionEditMessage(Message):
    bubble = True


class CartItemActionRemoveMessage(Message):
    bubble = True


class CartItemActionLabel(Label):
    def action_edit(self):
        self.post_message(CartItemActionEditMessage())

    def action_remove(self):
        self.post_message(CartItemActionRemoveMessage())


class CartItemWidget(HorizontalGroup):
    """One cart line, rendered from the server's view of it."""

    def __init__(self, item: CartItem):
        super().__init__()
        self.item = item

    def compose(self):
        with Container(id="div-cart-line"):
            with Container(id="div-line"):
                yield Label(self.item.product.title, id="label-item-name")
                yield Label(f"x{self.item.quantity}", id="label-item-qty")
                yield Label(
                    format_price(self.item.selling_price), id="label-item-price"
                )
            with Container(id="div-line-actions"):
                yield CartItemActionLabel(
                    "[@click=edit()]Edit[/]", id="link-item-edit"
                )
                yield CartItemActionLabel(
                    "[@click=remove()]Remove[/]", id="link-item-remove"
                )

    @on(CartItemActionEditMessage)
    @work()
    async def handle_edit_item(self):
        if await self.app.push_screen_wait(ProdDetailModal(self.item.product.id)):
            self.post_message(CartChangedMessage())

    @on(CartItemActionRemoveMessage)
    @work()
    async def handle_remove_item(self):
        remove_confirmed = await self.app.push_screen_wait(
            DialogModal(
                f"Remove {self.item.product.title} from your cart?",
                primary_text="Remove",
                secondary_text="Keep",
                tone="warning",
            )
        )
        if not remove_confirmed:
            return

        try:
            await self.app.ctx.cart.remove(self.item.id)
        except ShopError as e:
            self.notify(e.message, severity="error")
            return
        self.post_message(CartChangedMessage())
        self.notify("Item removed from cart.", severity="information")


class CartScreen(BaseScreen):
    """
    Renders the cart cache. Every change goes to the server first and the
    cache is re-read before anything is shown.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Clear Cart", id="btn-clear-cart")
            yield Button("Refresh", id="btn-refresh")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    async def on_mount(self):
        if not self.session.is_shopper:
            self.query_one("#label-cart-total", Label).update(
                "The cart is only available to customer accounts."
            )
            self.query_one("#hort-buttons").display = False
            return
        # the fetch itself runs on ScreenResume
        await self.render_cart()

    @on(Button.Pressed, "#btn-refresh")
    @on(ScreenResume)
    @work(exclusive=True)
    async def handle_refresh(self):
        if not self.session.is_shopper:
            return
        try:
            await self.ctx.cart.fetch()
        except ShopError as e:
            self.notify(e.message, severity="error")
        await self.render_cart()

    @on(CartChangedMessage)
    async def handle_cart_change(self):
        await self.render_cart()

    async def render_cart(self) -> None:
        cart: Cart | None = self.ctx.cart.cart
        items = list(cart.items) if cart else []

        content = self.query_one("#vertscroll-content")
        if [c.item for c in content.children] != items:
            await content.remove_children()
            await content.mount_all([CartItemWidget(item) for item in items])

        if not items:
            content.add_class("no-items")
            self.query_one("#label-cart-total", Label).update("Your cart is empty.")
            return

        content.remove_class("no-items")
        self.query_one("#label-cart-total", Label).update(
            f"Items: {cart.total_item}   "
            f"MRP: {format_price(cart.total_mrp_price)}   "
            f"Discount: {cart.discount}%   "
            f"Total: {format_price(cart.total_selling_price)}"
        )

    @on(Button.Pressed, "#btn-clear-cart")
    @work(exclusive=True)
    async def handle_clear_cart(self) -> None:
        cart = self.ctx.cart.cart
        if cart is None or cart.is_empty:
            self.app.notify("Your cart is empty.", severity="warning")
            return

        remove_confirmed = await self.app.push_screen_wait(
            DialogModal(
                "Empty your cart? Every item will be removed.",
                primary_text="Remove",
                secondary_text="Keep",
                tone="error",
            )
        )
        if not remove_confirmed:
            return

        try:
            await self.ctx.cart.clear()
        except ShopError as e:
            self.notify(e.message, severity="error")
        await self.render_cart()

    @on(Button.Pressed, "#btn-checkout")
    def handle_checkout(self) -> None:
        cart = self.ctx.cart.cart
        if cart is None or cart.is_empty:
            self.app.notify("Your cart is empty.", severity="warning")
            return
        self.navigate("/checkout")
