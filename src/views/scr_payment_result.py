from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, LoadingIndicator, Markdown

from api.errors import ShopError
from routing.routes import RouteMatch
from state.checkout import PaymentVerification, parse_payment_return
from views.base_screen import BaseScreen


class PaymentResultScreen(BaseScreen):
    """
    Landing view after the hosted payment page. Verification is best effort
    and always ends on a message; the order status belongs to the backend.
    """

    def __init__(self, match: Optional[RouteMatch] = None):
        super().__init__(match)
        order_id = match.params.get("orderId", "") if match else ""
        self.payment_return = parse_payment_return(
            match.url if match else "",
            int(order_id) if order_id.isdigit() else None,
        )

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-payment-result"):
            yield LoadingIndicator()
            yield Markdown("", id="md-payment-result")
            with Horizontal(id="hort-buttons"):
                yield Button("Continue Shopping", id="btn-shop")
                yield Button("View Order", id="btn-order", variant="primary")

    def on_mount(self) -> None:
        self.query_one("#hort-buttons").display = False
        self.verify()

    @work(exclusive=True)
    async def verify(self) -> None:
        message = await PaymentVerification(self.ctx.client, self.payment_return).run()

        order_id = self.payment_return.order_id
        md = f"### {message}\n\n"
        if order_id:
            md += f"Order **#{order_id}** is being processed.\n"
        await self.query_one("#md-payment-result", Markdown).update(md)
        self.query_one(LoadingIndicator).display = False
        self.query_one("#hort-buttons").display = True
        self.query_one("#btn-order").display = bool(order_id)

        # the backend empties the cart once the order exists
        try:
            await self.ctx.cart.fetch()
        except ShopError as e:
            self.notify(e.message, severity="error")

    @on(Button.Pressed, "#btn-shop")
    def handle_shop(self) -> None:
        self.navigate("/products")

    @on(Button.Pressed, "#btn-order")
    def handle_order(self) -> None:
        self.navigate(f"/orders/{self.payment_return.order_id}")
