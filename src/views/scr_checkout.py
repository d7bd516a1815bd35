from typing import Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.widgets import Button, Input, Label, MarkdownViewer

from api import services
from api.errors import FormValidationError, ShopError
from routing.routes import RouteMatch
from state.checkout import CheckoutFlow, CheckoutStatus, parse_payment_return
from utils.pure import format_price, generate_markdown_table
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal

ADDRESS_FIELDS = {
    "locality": ("Locality", "Near City Mall"),
    "address": ("Address", "12, Shanti Nagar, Ring Road"),
    "city": ("City", "Ahmedabad"),
    "state": ("State", "Gujarat"),
    "pin_code": ("Pin Code", "380001"),
    "mobile": ("Mobile", "9876543210"),
}


class CheckoutScreen(BaseScreen):
    """
    Order summary and shipping address. Placing the order opens the hosted
    payment page; the return URL from the provider (or a plain "I have
    paid") leads to the payment status view.
    """

    def __init__(self, match: Optional[RouteMatch] = None):
        super().__init__(match)
        self.flow: Optional[CheckoutFlow] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-checkout"):
            yield MarkdownViewer("", show_table_of_contents=False, id="md-summary")
            with VerticalScroll(id="div-address"):
                yield Label("Shipping Address", id="label-address-title")
                for field, (caption, placeholder) in ADDRESS_FIELDS.items():
                    yield Label(caption)
                    yield Input(placeholder=placeholder, id=f"input-{field}")
                    yield Label("", id=f"err-{field}", classes="field-error")
                with Horizontal(id="hort-buttons"):
                    yield Button("Back to Cart", id="btn-quit")
                    yield Button("Place Order", id="btn-submit", variant="primary")
                with Vertical(id="div-payment", classes="hidden"):
                    yield Label("", id="label-payment")
                    yield Input(
                        placeholder="Paste the address you were redirected to",
                        id="input-return-url",
                    )
                    yield Button("I have paid", id="btn-paid", variant="success")

    async def on_mount(self):
        self.flow = CheckoutFlow(self.ctx.client, open_url=self.app.open_url)
        for field in ADDRESS_FIELDS:
            self.query_one(f"#input-{field}", Input).value = getattr(
                self.flow.draft, field
            )
        self.load_summary()
        self.prefill_from_profile()
        self.query_one("#input-locality").focus()

    @work(exclusive=True, group="summary")
    async def load_summary(self) -> None:
        try:
            cart = await self.ctx.cart.fetch()
        except ShopError as e:
            self.notify(e.message, severity="error")
            return
        if cart is None or cart.is_empty:
            self.app.notify("Cart is empty.", severity="warning")
            self.navigate("/cart")
            return

        headers = ["Product", "Qty", "Price", "MRP"]
        rows = [
            [
                item.product.title,
                item.quantity,
                format_price(item.selling_price),
                format_price(item.mrp_price),
            ]
            for item in cart.items
        ]
        md = "### Order Summary\n\n" + generate_markdown_table(
            headers, rows, ["l", "c", "r", "r"]
        )
        md += (
            f"\n\n**MRP:** {format_price(cart.total_mrp_price)}  \n"
            f"**Discount:** {cart.discount}%  \n"
            f"**Total:** {format_price(cart.total_selling_price)}"
        )
        await self.query_one("#md-summary", MarkdownViewer).document.update(md)

    @work(exclusive=True, group="profile")
    async def prefill_from_profile(self) -> None:
        try:
            profile = await services.get_profile(self.ctx.client)
        except ShopError:
            # nice to have only, the form works without it
            return
        self.flow.prefill(profile)
        mobile_input = self.query_one("#input-mobile", Input)
        if not mobile_input.value:
            mobile_input.value = self.flow.draft.mobile

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape" and self.flow.status == CheckoutStatus.EDITING:
            self.navigate("/cart")

    def on_input_changed(self, message: Input.Changed) -> None:
        field = (message.input.id or "").removeprefix("input-")
        if field not in ADDRESS_FIELDS or self.flow is None:
            return
        if self.flow.status != CheckoutStatus.EDITING:
            return
        self.flow.edit(field, message.value)
        message.input.remove_class("-invalid")
        self.query_one(f"#err-{field}", Label).update("")

    def _show_field_errors(self) -> None:
        for field in ADDRESS_FIELDS:
            error = self.flow.field_errors.get(field, "")
            self.query_one(f"#err-{field}", Label).update(error)
            widget = self.query_one(f"#input-{field}", Input)
            if error:
                widget.add_class("-invalid")
            else:
                widget.remove_class("-invalid")
        first = next((f for f in ADDRESS_FIELDS if f in self.flow.field_errors), None)
        if first:
            self.query_one(f"#input-{first}").focus()

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True, group="submit")
    async def handle_submit(self):
        if not self.flow.validate():
            self._show_field_errors()
            return
        self._show_field_errors()

        if not await self.app.push_screen_wait(
            DialogModal(
                "Place order and continue to payment?",
                primary_text="Yes",
                secondary_text="No",
                tone="positive",
            )
        ):
            return

        self.query_one("#btn-submit", Button).disabled = True
        try:
            link = await self.flow.submit()
        except FormValidationError:
            self._show_field_errors()
            self.query_one("#btn-submit", Button).disabled = False
            return
        except ShopError as e:
            self.notify(e.message, severity="error")
            self.query_one("#btn-submit", Button).disabled = False
            return

        for field in ADDRESS_FIELDS:
            self.query_one(f"#input-{field}", Input).disabled = True
        self.query_one("#hort-buttons").add_class("hidden")
        self.query_one("#div-payment").remove_class("hidden")
        if link.payment_url:
            info = (
                f"Order #{link.order_id} placed for {format_price(link.amount)}. "
                "The payment page has been opened in your browser:\n"
                f"{link.payment_url}"
            )
        else:
            info = link.message or f"Order #{link.order_id} placed."
        self.query_one("#label-payment", Label).update(info)
        self.query_one("#input-return-url").focus()

    @on(Button.Pressed, "#btn-paid")
    @on(Input.Submitted, "#input-return-url")
    def handle_paid(self) -> None:
        link = self.flow.payment_link
        if link is None:
            return
        returned = parse_payment_return(
            self.query_one("#input-return-url", Input).value, link.order_id
        )
        path = f"/payment-success/{link.order_id}"
        if returned.can_verify:
            path += (
                f"?payment_id={returned.payment_id}"
                f"&payment_link_id={returned.payment_link_id}"
            )
        self.navigate(path)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.navigate("/cart")
