from typing import Dict, Optional
from urllib.parse import urlencode

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.events import Key
from textual.widgets import Button, Input, Label, TabbedContent, TabPane

from api.errors import ShopError
from api.models import PasswordResetRequest, RegistrationRequest
from routing.guards import SHOP_HOME
from routing.routes import RouteMatch
from state.account_forms import (
    validate_email,
    validate_login,
    validate_password_reset,
    validate_registration,
)
from views.base_screen import BaseScreen
from views.modal_dialog import QuitDialogModal, SimpleDialogModal

TABS = {
    "login": "tab-login",
    "register": "tab-signup",
    "forgot_password": "tab-reset",
}


class LoginScreen(BaseScreen):
    """
    Login, sign up (with email OTP) and password reset, one tab each.
    The route decides which tab is open first. A successful login needs no
    navigation here: the session change moves the app to the role's home.
    """

    def __init__(self, match: Optional[RouteMatch] = None):
        super().__init__(match)
        self.configure(show_sidebar=False)
        self._initial_tab = TABS.get(match.route.view if match else "", "tab-login")

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with TabbedContent(id="super-tab-loginscr", initial=self._initial_tab):
            with TabPane("Login", id="tab-login"):
                with Vertical(id="div-login"):
                    yield Label("Email")
                    yield Input(placeholder="user@example.com", id="input-login-email")
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-login-pwd"
                    )
                    with Horizontal(id="div-login-btns"):
                        yield Button("Quit", id="btn-quit")
                        yield Button("Browse as guest", id="btn-guest")
                        yield Button("Login", id="btn-login", variant="primary")

            with TabPane("Sign up", id="tab-signup"):
                with Vertical(id="div-reg"):
                    yield Label("Full Name")
                    yield Input(placeholder="Jane Doe", id="input-reg-name")
                    yield Label("Email")
                    yield Input(placeholder="user@example.com", id="input-reg-email")
                    yield Label("Phone Number")
                    yield Input(
                        placeholder="9876543210", id="input-reg-phone", max_length=10
                    )
                    yield Label("Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-reg-pwd"
                    )
                    yield Label("Confirm Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-reg-pwd2"
                    )
                    yield Label("OTP (sent to your email)")
                    yield Input(placeholder="123456", id="input-reg-otp", disabled=True)
                    with Container(id="div-reg-btns"):
                        yield Button("Send OTP", id="btn-reg-otp")
                        yield Button(
                            "Register", id="btn-reg", variant="primary", disabled=True
                        )

            with TabPane("Forgot Password", id="tab-reset"):
                with Vertical(id="div-reset"):
                    yield Label("Email")
                    yield Input(placeholder="user@example.com", id="input-reset-email")
                    yield Label("OTP (sent to your email)")
                    yield Input(placeholder="123456", id="input-reset-otp")
                    yield Label("New Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-reset-pwd"
                    )
                    yield Label("Confirm New Password")
                    yield Input(
                        placeholder="*********", password=True, id="input-reset-pwd2"
                    )
                    with Container(id="div-reset-btns"):
                        yield Button("Send OTP", id="btn-reset-otp")
                        yield Button(
                            "Reset Password", id="btn-reset", variant="primary"
                        )

    def on_mount(self):
        # arriving from sign up / reset with the email already known
        email = self.match.query.get("email", "") if self.match else ""
        if email:
            self.query_one("#input-login-email", Input).value = email
            self.query_one("#input-login-pwd").focus()
        elif self._initial_tab == "tab-signup":
            self.query_one("#input-reg-name").focus()
        elif self._initial_tab == "tab-reset":
            self.query_one("#input-reset-email").focus()
        else:
            self.query_one("#input-login-email").focus()

    def on_key(self, event: Key) -> None:
        if event.key == "enter" and self.focused == self.query_one("#input-login-pwd"):
            self.handle_login_submit()

    def on_input_changed(self, message: Input.Changed) -> None:
        message.input.remove_class("-invalid")
        self.ctx.session.clear_error()

    def _show_errors(self, errors: Dict[str, str], inputs: Dict[str, str]) -> None:
        for field, input_id in inputs.items():
            widget = self.query_one(input_id, Input)
            if field in errors:
                widget.add_class("-invalid")
            else:
                widget.remove_class("-invalid")
        first = next(f for f in inputs if f in errors)
        self.query_one(inputs[first]).focus()
        self.notify("\n".join(errors.values()), severity="error")

    # ---------- login ----------

    @on(Button.Pressed, "#btn-login")
    @work(exclusive=True)
    async def handle_login_submit(self) -> None:
        email = self.query_one("#input-login-email", Input).value.strip()
        pwd = self.query_one("#input-login-pwd", Input).value

        errors = validate_login(email, pwd)
        if errors:
            self._show_errors(
                errors, {"email": "#input-login-email", "password": "#input-login-pwd"}
            )
            return

        try:
            session = await self.ctx.login(email, pwd)
        except ShopError as e:
            self.notify(e.message, severity="error")
            input_login_pwd = self.query_one("#input-login-pwd", Input)
            input_login_pwd.value = ""
            input_login_pwd.focus()
            input_login_pwd.add_class("-invalid")
            return

        self.app.notify(f"Hello {session.display_name or session.email}!")

    @on(Button.Pressed, "#btn-guest")
    def handle_guest(self) -> None:
        self.navigate(SHOP_HOME)

    # ---------- sign up ----------

    def _registration(self) -> RegistrationRequest:
        return RegistrationRequest(
            email=self.query_one("#input-reg-email", Input).value.strip(),
            full_name=self.query_one("#input-reg-name", Input).value.strip(),
            phone_number=self.query_one("#input-reg-phone", Input).value.strip(),
            password=self.query_one("#input-reg-pwd", Input).value,
            confirm_password=self.query_one("#input-reg-pwd2", Input).value,
            otp=self.query_one("#input-reg-otp", Input).value.strip(),
        )

    _REG_INPUTS = {
        "full_name": "#input-reg-name",
        "email": "#input-reg-email",
        "phone_number": "#input-reg-phone",
        "password": "#input-reg-pwd",
        "confirm_password": "#input-reg-pwd2",
        "otp": "#input-reg-otp",
    }

    @on(Button.Pressed, "#btn-reg-otp")
    @work(exclusive=True)
    async def handle_registration_otp(self) -> None:
        request = self._registration()
        errors = validate_registration(request, require_otp=False)
        if errors:
            self._show_errors(errors, self._REG_INPUTS)
            return

        try:
            message = await self.ctx.session.send_registration_otp(request.email)
        except ShopError as e:
            self.notify(e.message, severity="error")
            return

        self.notify(message)
        self.query_one("#input-reg-otp", Input).disabled = False
        self.query_one("#btn-reg", Button).disabled = False
        self.query_one("#btn-reg-otp", Button).label = "Resend OTP"
        self.query_one("#input-reg-otp").focus()

    @on(Button.Pressed, "#btn-reg")
    @work(exclusive=True)
    async def handle_registration_submit(self) -> None:
        request = self._registration()
        errors = validate_registration(request)
        if errors:
            self._show_errors(errors, self._REG_INPUTS)
            return

        try:
            message = await self.ctx.session.register(request)
        except ShopError as e:
            self.notify(e.message, severity="error")
            return

        await self.app.push_screen_wait(
            SimpleDialogModal(message, "Registration successful! Please login.")
        )
        self.navigate("/login?" + urlencode({"email": request.email.lower()}))

    # ---------- password reset ----------

    def _reset(self) -> PasswordResetRequest:
        return PasswordResetRequest(
            email=self.query_one("#input-reset-email", Input).value.strip(),
            otp=self.query_one("#input-reset-otp", Input).value.strip(),
            password=self.query_one("#input-reset-pwd", Input).value,
            confirm_password=self.query_one("#input-reset-pwd2", Input).value,
        )

    @on(Button.Pressed, "#btn-reset-otp")
    @work(exclusive=True)
    async def handle_reset_otp(self) -> None:
        email = self.query_one("#input-reset-email", Input).value.strip()
        errors = validate_email(email)
        if errors:
            self._show_errors(errors, {"email": "#input-reset-email"})
            return

        try:
            message = await self.ctx.session.send_password_reset_otp(email)
        except ShopError as e:
            self.notify(e.message, severity="error")
            return

        self.notify(message)
        self.query_one("#input-reset-otp").focus()

    @on(Button.Pressed, "#btn-reset")
    @work(exclusive=True)
    async def handle_reset_submit(self) -> None:
        request = self._reset()
        errors = validate_password_reset(request)
        if errors:
            self._show_errors(
                errors,
                {
                    "email": "#input-reset-email",
                    "otp": "#input-reset-otp",
                    "password": "#input-reset-pwd",
                    "confirm_password": "#input-reset-pwd2",
                },
            )
            return

        try:
            message = await self.ctx.session.reset_password(request)
        except ShopError as e:
            self.notify(e.message, severity="error")
            return

        await self.app.push_screen_wait(
            SimpleDialogModal(message, "Password reset! Please login.")
        )
        self.navigate("/login?" + urlencode({"email": request.email.lower()}))

    @on(Button.Pressed, "#btn-quit")
    def handle_quit_(self) -> None:
        self.app.push_screen(QuitDialogModal())
