from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label

from api import services
from api.errors import ShopError
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal


class AdminUsersScreen(BaseScreen):
    """Registered customers; admins may delete an account."""

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield Label("", id="label-user-count")
        yield DataTable(id="table-users")
        with Horizontal(id="hort-buttons"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("Delete User", id="btn-delete", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Name", "Email")

    @on(Button.Pressed, "#btn-refresh")
    @on(ScreenResume)
    @work(exclusive=True)
    async def handle_refresh(self) -> None:
        try:
            users = await services.admin_list_users(self.ctx.client)
        except ShopError as e:
            self.notify(e.message, severity="error")
            return

        table = self.query_one(DataTable)
        table.clear()
        for u in users:
            table.add_row(u.id, u.full_name, u.email, key=str(u.id))
        self.query_one("#label-user-count", Label).update(f"{len(users)} customer(s)")

    def _selected_user(self) -> Optional[tuple]:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        return table.get_row_at(table.cursor_row)

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True, group="mutation")
    async def handle_delete(self) -> None:
        row = self._selected_user()
        if row is None:
            self.notify("No user selected.", severity="warning")
            return
        user_id, name, email = row

        if not await self.app.push_screen_wait(
            DialogModal(
                f"Delete {name} ({email})?",
                primary_text="Delete",
                secondary_text="Cancel",
                tone="error",
                detail="Their cart, wishlist and orders go with the account.",
            )
        ):
            return

        try:
            message = await services.admin_delete_user(self.ctx.client, int(user_id))
        except ShopError as e:
            self.notify(e.message, severity="error")
            return
        self.notify(message)
        self.handle_refresh()
