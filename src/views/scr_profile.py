from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Input, Label, Markdown

from api import services
from api.errors import ShopError
from routing.routes import RouteMatch
from state.account_forms import PASSWORD_RE, PASSWORD_RULES, PHONE_RE
from utils.pure import generate_markdown_table
from views.base_screen import BaseScreen


class ProfileScreen(BaseScreen):
    """
    Account details and password change, for customers and admins alike.
    Only customers can edit their name and phone number.
    """

    def __init__(self, match: Optional[RouteMatch] = None):
        super().__init__(match)
        self._admin = bool(match and match.route.view == "admin_profile")

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-profile"):
            with Vertical(id="div-profile"):
                yield Markdown("", id="md-profile")
                if not self._admin:
                    yield Label("Full Name")
                    yield Input(id="input-name")
                    yield Label("Phone Number")
                    yield Input(id="input-phone", max_length=10)
                    yield Button("Save", id="btn-save", variant="primary")
            with Vertical(id="div-password"):
                yield Label("Change Password", id="label-pwd-title")
                yield Label("Current Password")
                yield Input(password=True, id="input-old-pwd")
                yield Label("New Password")
                yield Input(password=True, id="input-new-pwd")
                yield Label("Confirm New Password")
                yield Input(password=True, id="input-new-pwd2")
                yield Button("Change Password", id="btn-change-pwd", variant="warning")

    def on_mount(self) -> None:
        self.load_profile()

    @work(exclusive=True, group="profile")
    async def load_profile(self) -> None:
        try:
            if self._admin:
                admin = await services.get_admin_profile(self.ctx.client)
                rows = [
                    ["Name", admin.admin_name],
                    ["Email", admin.email],
                    ["Role", admin.role.value if admin.role else "-"],
                ]
            else:
                profile = await services.get_profile(self.ctx.client)
                rows = [
                    ["Name", profile.full_name],
                    ["Email", profile.email],
                    ["Phone", profile.phone_number or "-"],
                ]
                self.query_one("#input-name", Input).value = profile.full_name
                self.query_one("#input-phone", Input).value = profile.phone_number or ""
        except ShopError as e:
            self.notify(e.message, severity="error")
            return

        md = "### My Profile\n\n" + generate_markdown_table(None, rows, ["l", "l"])
        await self.query_one("#md-profile", Markdown).update(md)

    @on(Button.Pressed, "#btn-save")
    @work(exclusive=True, group="mutation")
    async def handle_save(self) -> None:
        name = self.query_one("#input-name", Input).value.strip()
        phone = self.query_one("#input-phone", Input).value.strip()
        if not name:
            self.query_one("#input-name", Input).add_class("-invalid")
            self.notify("Full name is required", severity="error")
            return
        if phone and not PHONE_RE.match(phone):
            self.query_one("#input-phone", Input).add_class("-invalid")
            self.notify("Phone number must be 10 digits", severity="error")
            return

        try:
            await services.update_profile(self.ctx.client, name, phone or None)
        except ShopError as e:
            self.notify(e.message, severity="error")
            return
        self.notify("Profile updated.")
        self.load_profile()

    @on(Button.Pressed, "#btn-change-pwd")
    @work(exclusive=True, group="mutation")
    async def handle_change_password(self) -> None:
        old_pwd = self.query_one("#input-old-pwd", Input).value
        new_pwd = self.query_one("#input-new-pwd", Input).value
        confirm = self.query_one("#input-new-pwd2", Input).value

        if not old_pwd:
            self.notify("Current password is required", severity="error")
            return
        if not PASSWORD_RE.match(new_pwd):
            self.notify(PASSWORD_RULES, severity="error")
            return
        if new_pwd != confirm:
            self.notify("Passwords do not match", severity="error")
            return

        try:
            if self._admin:
                message = await services.admin_change_password(
                    self.ctx.client, old_pwd, new_pwd
                )
            else:
                message = await services.change_password(
                    self.ctx.client, old_pwd, new_pwd
                )
        except ShopError as e:
            self.notify(e.message, severity="error")
            return

        for input_id in ("#input-old-pwd", "#input-new-pwd", "#input-new-pwd2"):
            self.query_one(input_id, Input).value = ""
        self.notify(message)

    def on_input_changed(self, message: Input.Changed) -> None:
        message.input.remove_class("-invalid")
