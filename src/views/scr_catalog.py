from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.reactive import reactive
from textual.widgets import Button, DataTable, Input, Label, Markdown, Select

from api import services
from api.errors import ShopError
from api.models import Category, Product, ProductFilters
from routing.routes import RouteMatch
from utils.pure import format_price
from views.base_screen import BaseScreen
from views.modal_prod_detail import ProdDetailModal

SORT_OPTIONS = [
    ("Price: low to high", "price_low"),
    ("Price: high to low", "price_high"),
]

WELCOME_MD = """\
### Welcome to Electro Shop

Phones, laptops and accessories at honest prices.
Pick a category below or start typing to search.
"""


class CatalogScreen(BaseScreen):
    """
    Product listing with keyword search, category filter and paging.
    Open to guests and customers; a row opens the product detail modal.
    """

    # bindings here are only displayed in the footer
    BINDINGS = [
        Binding("enter", "noop", "View Product", show=True, key_display="⏎"),
        Binding("escape", "noop", "Exit Prod View", show=True),
    ]

    page_idx = reactive(1)
    page_cnt = reactive(1)
    query_str = reactive("")

    def __init__(self, match: Optional[RouteMatch] = None):
        super().__init__(match)
        self._categories: List[Category] = []
        self._category: Optional[str] = match.query.get("category") if match else None
        self._sort: Optional[str] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        if self.match is not None and self.match.route.view == "home":
            yield Markdown(WELCOME_MD, id="md-welcome")
        yield Input(
            id="input-search", placeholder="Start typing to search something..."
        )
        with Horizontal(id="hort-filters"):
            yield Select([], prompt="All categories", id="select-category")
            yield Select(SORT_OPTIONS, prompt="Sort", id="select-sort")
        yield DataTable(id="table-search-result")
        with Horizontal(id="hort-table-control"):
            yield Button("<", id="btn-prev")
            yield Input("1", id="input-page", type="integer")
            yield Label(" / 1", id="label-total-page-cnt")
            yield Button(">", id="btn-next")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Product", "Brand", "Category", "Price", "MRP", "Off")

        self.load_categories()
        self.update_search_result("", 1)
        self.query_one("#input-search").focus()

        # deep link to a product: /products/:id
        product_id = self.match.params.get("id") if self.match else None
        if product_id and product_id.isdigit():
            self.show_product(int(product_id))

    @work(exclusive=True, group="categories")
    async def load_categories(self) -> None:
        try:
            self._categories = await services.list_categories(self.ctx.client)
        except ShopError as e:
            self.notify(e.message, severity="error")
            return
        select = self.query_one("#select-category", Select)
        select.set_options(
            (f"{c.name} ({c.product_count})", c.name) for c in self._categories
        )
        if self._category:
            select.value = self._category

    @work()
    async def show_product(self, product_id: int) -> None:
        await self.app.push_screen_wait(ProdDetailModal(product_id))

    async def on_input_changed(self, message: Input.Changed) -> None:
        if message.input.id == "input-search":
            self.query_str = message.value.strip()
            self.page_idx = 1
            self.update_search_result(self.query_str, 1)
        if message.input.id == "input-page" and message.value.isdigit():
            self.page_idx = int(message.value)

    @on(Select.Changed, "#select-category")
    def handle_category(self, event: Select.Changed) -> None:
        self._category = None if event.value == Select.BLANK else str(event.value)
        self.page_idx = 1
        self.update_search_result(self.query_str, 1)

    @on(Select.Changed, "#select-sort")
    def handle_sort(self, event: Select.Changed) -> None:
        self._sort = None if event.value == Select.BLANK else str(event.value)
        self.update_search_result(self.query_str, self.page_idx)

    @on(DataTable.RowSelected)
    def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        self.show_product(int(event.row_key.value))

    @on(Button.Pressed, "#btn-prev")
    def handle_prev(self) -> None:
        self.page_idx -= 1

    @on(Button.Pressed, "#btn-next")
    def handle_next(self) -> None:
        self.page_idx += 1

    def validate_page_idx(self, page_idx):
        return max(1, min(page_idx, self.page_cnt))

    def watch_page_idx(self, old_page_idx, new_page_idx):
        self.query_one("#input-page", Input).value = str(new_page_idx)
        self.query_one("#btn-prev").disabled = new_page_idx <= 1
        self.query_one("#btn-next").disabled = new_page_idx >= self.page_cnt
        if old_page_idx != new_page_idx:
            self.update_search_result(self.query_str, new_page_idx)

    @work(exclusive=True, group="search")
    async def update_search_result(self, query: str, page: int) -> None:
        products: List[Product]
        try:
            if query:
                # keyword search is not paged by the backend
                products = await services.search_products(self.ctx.client, query)
                if self._category:
                    products = [p for p in products if p.category == self._category]
                total_pages = 1
            else:
                result = await services.list_products(
                    self.ctx.client,
                    ProductFilters(
                        category=self._category,
                        sort=self._sort,
                        page_number=page - 1,
                    ),
                )
                products, total_pages = result.content, result.total_pages
        except ShopError as e:
            self.notify(e.message, severity="error")
            return

        table = self.query_one(DataTable)
        table.clear()
        for p in products:
            table.add_row(
                p.id,
                p.title,
                p.brand,
                p.category,
                format_price(p.selling_price),
                format_price(p.mrp_price),
                f"{p.discount_percent}%",
                key=str(p.id),
            )
        self.page_cnt = max(total_pages, 1)
        self.query_one("#label-total-page-cnt", Label).update(f" / {self.page_cnt}")
        self.query_one("#btn-prev").disabled = self.page_idx <= 1
        self.query_one("#btn-next").disabled = self.page_idx >= self.page_cnt
