from typing import Dict, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import Resize
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from api.models import Role
from routing.guards import LOGIN_ROUTE
from routing.routes import RouteMatch
from state.context import ShopContext
from state.session import Session
from utils import config
from utils.messages import NavigateMessage, UserLogoutMessage
from utils.pure import generate_markdown_table
from views.modal_dialog import DialogModal, QuitDialogModal, ResizeScreenPromptModal

GUEST_MENU = {
    "/": "Home",
    "/products": "Products",
    "/about": "About",
    "/register": "Sign up",
}
SHOPPER_MENU = {
    "/": "Home",
    "/products": "Products",
    "/wishlist": "Wishlist",
    "/cart": "Cart",
    "/orders": "My Orders",
    "/profile": "Profile",
    "/about": "About",
}
ADMIN_MENU = {
    "/admin/dashboard": "Dashboard",
    "/admin/products": "Products",
    "/admin/categories": "Categories",
    "/admin/orders": "Orders",
    "/admin/users": "Users",
    "/admin/profile": "Profile",
}
SUPER_ADMIN_MENU = {**ADMIN_MENU, "/admin/manage-admins": "Manage Admins"}

ROLE_LABELS = {
    Role.USER: "Customer",
    Role.ADMIN: "Admin",
    Role.SUPER_ADMIN: "Super Admin",
}


def menu_for(session: Session) -> Dict[str, str]:
    if not session.is_authenticated:
        return GUEST_MENU
    if session.role == Role.SUPER_ADMIN:
        return SUPER_ADMIN_MENU
    if session.is_admin:
        return ADMIN_MENU
    return SHOPPER_MENU


class Sidebar(Container):
    def compose(self) -> ComposeResult:
        yield Label("User Info", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Button("Log out", id="btn-logout", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    @property
    def current_path(self) -> str:
        match = getattr(self.screen, "match", None)
        return match.path if match else ""

    async def on_mount(self):
        session = self.app.ctx.session.get_state()

        # identity and menu depend on the role
        if session.is_authenticated:
            table_rows = [
                ["Name", session.display_name or "-"],
                ["Email", session.email],
                ["Role", ROLE_LABELS.get(session.role, "-")],
            ]
        else:
            table_rows = [["Guest", "not signed in"]]
            btn_logout = self.query_one("#btn-logout", Button)
            btn_logout.label = "Log in"
            btn_logout.variant = "primary"
        md_table_str = generate_markdown_table(None, table_rows, ["l", "l"])
        await self.query_one(Markdown).update(md_table_str)

        list_menu: ListView = self.query_one("#list-menu")
        await list_menu.clear()
        await list_menu.extend(
            [ListItem(Label(v), name=k) for k, v in menu_for(session).items()]
        )
        self.highlight_item(self.current_path)

    def on_list_view_selected(self, event: ListView.Selected):
        selected_path = event.item.name
        self.highlight_item(self.current_path)
        if selected_path and selected_path != self.current_path:
            self.post_message(NavigateMessage(selected_path))

    @on(Button.Pressed, "#btn-logout")
    @work()
    async def handle_logout(self):
        if not self.app.ctx.session.get_state().is_authenticated:
            self.post_message(NavigateMessage(LOGIN_ROUTE))
            return

        if not await self.app.push_screen_wait(
            DialogModal(
                "Are you sure you want to log out?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return

        self.post_message(UserLogoutMessage())

    def highlight_item(self, path: str):
        list_menu = self.query_one("#list-menu")
        for item in list_menu.children:
            item.highlighted = item.name == path


class BaseScreen(Screen):
    """
    Inherited by all routed screens, contains common elements like
    headers, footers, sidebar, and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    def __init__(self, match: Optional[RouteMatch] = None):
        super().__init__()
        self.match = match

        self.configure()

    def configure(
        self,
        header_sub_title: Optional[str] = None,
        show_sidebar: bool = True,
    ) -> None:
        """
        configure behavior of the base screen
        :return:
        """
        self.app.title = config.APP_TITLE
        if header_sub_title is None and self.match is not None:
            header_sub_title = self.match.route.title
        self.sub_title = header_sub_title or ""

        self._show_sidebar = show_sidebar

    @property
    def ctx(self) -> ShopContext:
        return self.app.ctx

    @property
    def session(self) -> Session:
        return self.app.ctx.session.get_state()

    def navigate(self, path: str) -> None:
        self.post_message(NavigateMessage(path))

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    async def on_resize(self, event: Resize) -> None:
        min_width = 80
        min_height = 24
        if event.size.width < min_width or event.size.height < min_height:
            self.app.push_screen(ResizeScreenPromptModal(min_width, min_height))

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())
