import sys
from typing import Callable, Dict, Optional

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.screen import ModalScreen, Screen
from textual.widgets import LoadingIndicator

from routing.guards import LOGIN_ROUTE, SHOP_HOME
from routing.routes import Navigator, RouteMatch
from state.context import ShopContext
from state.session import Session, SessionEvent
from utils import config
from utils.logger import get_logger
from utils.messages import (
    CartChangedMessage,
    NavigateMessage,
    QuitRequestedMessage,
    SessionChangedMessage,
    UserLogoutMessage,
    WishlistChangedMessage,
)
from views.scr_about import AboutScreen
from views.scr_admin_categories import AdminCategoriesScreen
from views.scr_admin_dashboard import AdminDashboardScreen
from views.scr_admin_orders import AdminOrdersScreen
from views.scr_admin_products import AdminProductsScreen
from views.scr_admin_users import AdminUsersScreen
from views.scr_cart import CartScreen
from views.scr_catalog import CatalogScreen
from views.scr_checkout import CheckoutScreen
from views.scr_login import LoginScreen
from views.scr_manage_admins import ManageAdminsScreen
from views.scr_orders import OrdersScreen
from views.scr_payment_result import PaymentResultScreen
from views.scr_profile import ProfileScreen
from views.scr_wishlist import WishlistScreen

_logger = get_logger(__name__)


class ShopApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    # route view key -> screen factory
    VIEWS: Dict[str, Callable[[RouteMatch], Screen]] = {
        "login": LoginScreen,
        "register": LoginScreen,
        "forgot_password": LoginScreen,
        "home": CatalogScreen,
        "products": CatalogScreen,
        "product_detail": CatalogScreen,
        "about": AboutScreen,
        "wishlist": WishlistScreen,
        "cart": CartScreen,
        "profile": ProfileScreen,
        "checkout": CheckoutScreen,
        "orders": OrdersScreen,
        "order_detail": OrdersScreen,
        "payment_success": PaymentResultScreen,
        "admin_dashboard": AdminDashboardScreen,
        "admin_profile": ProfileScreen,
        "admin_products": AdminProductsScreen,
        "admin_categories": AdminCategoriesScreen,
        "admin_orders": AdminOrdersScreen,
        "admin_order_detail": AdminOrdersScreen,
        "admin_users": AdminUsersScreen,
        "manage_admins": ManageAdminsScreen,
    }

    CSS_PATH = ["styles/app.tcss"]

    ctx: ShopContext

    def __init__(self, ctx: Optional[ShopContext] = None, start_path: str = SHOP_HOME):
        super().__init__()
        self.title = config.APP_TITLE
        self.ctx = ctx or ShopContext()
        self.navigator = Navigator()
        self.start_path = start_path
        self._unsubscribe = self.ctx.session.subscribe(self._on_session_replaced)

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.main_flow()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    def _on_session_replaced(self, session: Session, event: SessionEvent) -> None:
        # listeners run synchronously inside the store, defer the UI work
        self.post_message(SessionChangedMessage(session, event))

    @work
    async def main_flow(self):
        await self.ctx.init()
        await self.navigate(self.start_path)

    async def navigate(self, path: str) -> None:
        """Every screen change goes through route admission."""
        match = self.navigator.navigate(path, self.ctx.session.get_state())
        await self._show(match)

    async def _show(self, match: RouteMatch) -> None:
        while len(self.screen_stack) > 1 and isinstance(self.screen, ModalScreen):
            await self.pop_screen()
        # a logout can be followed by both a redirect and an explicit navigate
        if not self.navigator.mark_shown(match):
            return

        _logger.debug(f"showing {match.url} ({match.route.view})")
        screen = self.VIEWS[match.route.view](match)
        if len(self.screen_stack) <= 1:
            await self.push_screen(screen)
        else:
            await self.switch_screen(screen)

    @on(NavigateMessage)
    async def handle_navigate(self, message: NavigateMessage):
        await self.navigate(message.path)

    @on(SessionChangedMessage)
    async def handle_session_changed(self, message: SessionChangedMessage):
        if message.event is SessionEvent.EXPIRED:
            self.notify(
                "Your session has expired. Please log in again.", severity="warning"
            )

        moved = self.navigator.after_session_change(message.session, message.event)
        if moved is not None:
            await self._show(moved)

        if message.session.is_shopper:
            self.refresh_caches()

    @work(exclusive=True, group="caches")
    async def refresh_caches(self):
        await self.ctx.refresh_caches()
        self.screen.post_message(CartChangedMessage())
        self.screen.post_message(WishlistChangedMessage())

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        await self.ctx.logout()
        self.notify("Logout successful.")
        await self.navigate(LOGIN_ROUTE)

    @on(QuitRequestedMessage)
    @work
    async def handle_quit(self):
        self._unsubscribe()
        await self.ctx.dispose()
        self.exit()


def run(start_path: str = SHOP_HOME) -> None:
    app = ShopApp(start_path=start_path)
    app.run()


if __name__ == "__main__":
    run(sys.argv[1] if len(sys.argv) > 1 else SHOP_HOME)
