from typing import Dict, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Label

from api import services
from api.errors import ShopError
from api.models import AdminAccount
from state.account_forms import PASSWORD_RE, PASSWORD_RULES, validate_email
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal


class ManageAdminsScreen(BaseScreen):
    """
    Super admin only: create, edit and remove admin accounts.
    Blank fields keep their current value when editing.
    """

    def __init__(self, match=None) -> None:
        super().__init__(match)
        self._admins: Dict[int, AdminAccount] = {}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-admins"):
            yield DataTable(id="table-admins")
            with Vertical(id="div-admin-form"):
                yield Label("Name")
                yield Input(placeholder="Store Admin", id="input-admin-name")
                yield Label("Email")
                yield Input(placeholder="admin@example.com", id="input-admin-email")
                yield Label("Password")
                yield Input(password=True, id="input-admin-pwd")
                with Horizontal(id="hort-buttons"):
                    yield Button("Create", id="btn-create", variant="primary")
                    yield Button("Update Selected", id="btn-update")
                    yield Button("Delete Selected", id="btn-delete", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("ID", "Name", "Email", "Role")

    @on(ScreenResume)
    @work(exclusive=True)
    async def handle_refresh(self) -> None:
        try:
            admins = await services.list_admins(self.ctx.client)
        except ShopError as e:
            self.notify(e.message, severity="error")
            return

        self._admins = {a.id: a for a in admins}
        table = self.query_one(DataTable)
        table.clear()
        for a in admins:
            role = a.role.value if a.role else "-"
            table.add_row(a.id, a.admin_name, a.email, role, key=str(a.id))

    def _selected(self) -> Optional[AdminAccount]:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return self._admins.get(int(row_key.value))

    def _form(self):
        return (
            self.query_one("#input-admin-name", Input).value.strip(),
            self.query_one("#input-admin-email", Input).value.strip(),
            self.query_one("#input-admin-pwd", Input).value,
        )

    def _clear_form(self) -> None:
        for input_id in ("#input-admin-name", "#input-admin-email", "#input-admin-pwd"):
            self.query_one(input_id, Input).value = ""

    @on(DataTable.RowSelected)
    def handle_row_selected(self) -> None:
        admin = self._selected()
        if admin is not None:
            self.query_one("#input-admin-name", Input).value = admin.admin_name
            self.query_one("#input-admin-email", Input).value = admin.email
            self.query_one("#input-admin-pwd", Input).value = ""

    @on(Button.Pressed, "#btn-create")
    @work(exclusive=True, group="mutation")
    async def handle_create(self) -> None:
        name, email, pwd = self._form()
        if not name:
            self.notify("Name is required", severity="error")
            return
        errors = validate_email(email)
        if errors:
            self.notify(errors["email"], severity="error")
            return
        if not PASSWORD_RE.match(pwd):
            self.notify(PASSWORD_RULES, severity="error")
            return

        try:
            admin = await services.create_admin(self.ctx.client, name, email, pwd)
        except ShopError as e:
            self.notify(e.message, severity="error")
            return
        self.notify(f"Admin {admin.admin_name or name} created.")
        self._clear_form()
        self.handle_refresh()

    @on(Button.Pressed, "#btn-update")
    @work(exclusive=True, group="mutation")
    async def handle_update(self) -> None:
        admin = self._selected()
        if admin is None:
            self.notify("No admin selected.", severity="warning")
            return
        name, email, pwd = self._form()
        if email and validate_email(email):
            self.notify("Invalid email format", severity="error")
            return
        if pwd and not PASSWORD_RE.match(pwd):
            self.notify(PASSWORD_RULES, severity="error")
            return

        try:
            await services.update_admin(
                self.ctx.client,
                admin.id,
                admin_name=name or None,
                email=email or None,
                password=pwd or None,
            )
        except ShopError as e:
            self.notify(e.message, severity="error")
            return
        self.notify(f"Admin #{admin.id} updated.")
        self._clear_form()
        self.handle_refresh()

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True, group="mutation")
    async def handle_delete(self) -> None:
        admin = self._selected()
        if admin is None:
            self.notify("No admin selected.", severity="warning")
            return
        if admin.email == self.session.email:
            self.notify("You cannot delete your own account.", severity="warning")
            return

        if not await self.app.push_screen_wait(
            DialogModal(
                f"Delete admin {admin.admin_name} ({admin.email})?",
                primary_text="Delete",
                secondary_text="Cancel",
                tone="error",
            )
        ):
            return

        try:
            message = await services.delete_admin(self.ctx.client, admin.id)
        except ShopError as e:
            self.notify(e.message, severity="error")
            return
        self.notify(message)
        self.handle_refresh()
