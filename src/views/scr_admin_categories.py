from typing import Dict, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label, MarkdownViewer

from api import services
from api.errors import ShopError
from api.models import Category
from utils.pure import build_image_url, generate_markdown_table
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal


class AdminCategoriesScreen(BaseScreen):
    """Catalog categories with their product counts. Admins may delete one."""

    current_cid: Optional[int] = None

    def __init__(self, match=None) -> None:
        super().__init__(match)
        self._categories: Dict[int, Category] = {}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Label("", id="label-category-count")
            yield DataTable(id="table-categories")
            yield MarkdownViewer(id="md-category", show_table_of_contents=False)
            with Horizontal(id="hort-buttons"):
                yield Button("Refresh", id="btn-refresh")
                yield Button("Delete Category", id="btn-delete", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Category", "Products")
        self.query_one("#md-category").add_class("hidden")

    @on(Button.Pressed, "#btn-refresh")
    @on(ScreenResume)
    @work(exclusive=True, group="table")
    async def update_table(self) -> None:
        try:
            categories = await services.admin_list_categories(self.ctx.client)
        except ShopError as e:
            self.notify(e.message, severity="error")
            return

        self._categories = {c.id: c for c in categories}
        table = self.query_one(DataTable)
        table.clear()
        for c in categories:
            table.add_row(c.id, c.name, c.product_count, key=str(c.id))
        self.query_one("#label-category-count", Label).update(
            f"{len(categories)} categories"
        )

    @on(DataTable.RowSelected)
    def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        self.current_cid = int(event.row_key.value)
        self.render_category()
        self.query_one("#md-category").remove_class("hidden")

    @work(exclusive=True, group="detail")
    async def render_category(self) -> None:
        try:
            category = await services.admin_get_category(
                self.ctx.client, self.current_cid
            )
        except ShopError as e:
            self.notify(e.message, severity="error")
            return

        rows = [
            ["Name", category.name],
            ["Products", category.product_count],
            ["Image", build_image_url(category.image_url)],
        ]
        md_table = generate_markdown_table(["Attribute", "Value"], rows, ["l", "l"])
        await self.query_one("#md-category", MarkdownViewer).document.update(
            f"### Category #{category.id}\n\n" + md_table
        )

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True, group="mutation")
    async def handle_delete(self) -> None:
        category = self._categories.get(self.current_cid)
        if category is None:
            self.notify("No category selected.", severity="warning")
            return

        detail = ""
        if category.product_count:
            detail = f"It still holds {category.product_count} product(s)."
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Delete category {category.name}?",
                primary_text="Delete",
                secondary_text="Cancel",
                tone="error",
                detail=detail,
            )
        ):
            return

        try:
            message = await services.admin_delete_category(
                self.ctx.client, category.id
            )
        except ShopError as e:
            self.notify(e.message, severity="error")
            return

        self.notify(message)
        self.current_cid = None
        self.query_one("#md-category").add_class("hidden")
        self.update_table()
