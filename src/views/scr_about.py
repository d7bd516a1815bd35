from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.widgets import Markdown

from utils import config
from views.base_screen import BaseScreen

ABOUT_MD = """\
## About {title}

{title} sells phones, laptops, audio gear and accessories from brands you
already trust.

- **Genuine products** sourced directly from brand distributors
- **Secure payments** through Razorpay, we never see your card details
- **Easy cancellation** while an order is still pending or confirmed
- **Fast delivery** across India

Questions? Write to support@electroshop.example.
"""


class AboutScreen(BaseScreen):
    def compose(self) -> ComposeResult:
        yield from super().compose()
        with VerticalScroll():
            yield Markdown(ABOUT_MD.format(title=config.APP_TITLE), id="md-about")
