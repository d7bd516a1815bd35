from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional
from urllib.parse import parse_qsl, urlsplit

from api.models import Role
from routing.guards import (
    LOGIN_ROUTE,
    SHOP_HOME,
    Access,
    Decision,
    admit,
    redirect_target,
)
from state.session import Session, SessionEvent
from utils.logger import get_logger

_logger = get_logger(__name__)

SHOPPERS: FrozenSet[Role] = frozenset({Role.USER})
ADMINS: FrozenSet[Role] = frozenset({Role.ADMIN, Role.SUPER_ADMIN})
SUPER_ADMINS: FrozenSet[Role] = frozenset({Role.SUPER_ADMIN})


@dataclass(frozen=True)
class Route:
    pattern: str  # "/orders/:orderId"
    view: str  # key into the app's screen factories
    access: Access
    allowed_roles: Optional[FrozenSet[Role]] = None
    title: str = ""

    @property
    def segments(self) -> List[str]:
        return [s for s in self.pattern.split("/") if s]


@dataclass(frozen=True)
class RouteMatch:
    route: Route
    path: str
    params: Dict[str, str] = field(default_factory=dict)
    query: Dict[str, str] = field(default_factory=dict)

    @property
    def url(self) -> str:
        if not self.query:
            return self.path
        return self.path + "?" + "&".join(f"{k}={v}" for k, v in self.query.items())


ROUTES: List[Route] = [
    # guest only
    Route("/login", "login", Access.GUEST_ONLY, title="Login"),
    Route("/register", "register", Access.GUEST_ONLY, title="Sign up"),
    Route(
        "/forgot-password", "forgot_password", Access.GUEST_ONLY, title="Reset Password"
    ),
    # storefront, closed to admins
    Route("/", "home", Access.PUBLIC, title="Home"),
    Route("/products", "products", Access.PUBLIC, title="Products"),
    Route("/products/:id", "product_detail", Access.PUBLIC, title="Product"),
    Route("/about", "about", Access.PUBLIC, title="About"),
    # signed in
    Route("/wishlist", "wishlist", Access.AUTHENTICATED, title="Wishlist"),
    Route("/cart", "cart", Access.AUTHENTICATED, title="Cart"),
    Route("/profile", "profile", Access.AUTHENTICATED, title="Profile"),
    Route("/checkout", "checkout", Access.AUTHENTICATED, SHOPPERS, "Checkout"),
    Route("/orders", "orders", Access.AUTHENTICATED, SHOPPERS, "Orders"),
    Route("/orders/:orderId", "order_detail", Access.AUTHENTICATED, SHOPPERS, "Order"),
    Route(
        "/payment-success/:orderId",
        "payment_success",
        Access.AUTHENTICATED,
        SHOPPERS,
        "Payment Status",
    ),
    # back office
    Route(
        "/admin/dashboard", "admin_dashboard", Access.AUTHENTICATED, ADMINS, "Dashboard"
    ),
    Route(
        "/admin/profile", "admin_profile", Access.AUTHENTICATED, ADMINS, "Profile"
    ),
    Route(
        "/admin/products", "admin_products", Access.AUTHENTICATED, ADMINS, "Products"
    ),
    Route(
        "/admin/categories",
        "admin_categories",
        Access.AUTHENTICATED,
        ADMINS,
        "Categories",
    ),
    Route("/admin/orders", "admin_orders", Access.AUTHENTICATED, ADMINS, "Orders"),
    Route(
        "/admin/orders/:orderId",
        "admin_order_detail",
        Access.AUTHENTICATED,
        ADMINS,
        "Order",
    ),
    Route("/admin/users", "admin_users", Access.AUTHENTICATED, ADMINS, "Users"),
    Route(
        "/admin/manage-admins",
        "manage_admins",
        Access.AUTHENTICATED,
        SUPER_ADMINS,
        "Manage Admins",
    ),
]


def match_path(path: str, routes: Optional[List[Route]] = None) -> Optional[RouteMatch]:
    """Match a path (optionally with a query string) against the route table."""
    parts = urlsplit(path or "/")
    segments = [s for s in parts.path.split("/") if s]
    query = dict(parse_qsl(parts.query))
    clean_path = "/" + "/".join(segments)

    for route in routes if routes is not None else ROUTES:
        pattern = route.segments
        if len(pattern) != len(segments):
            continue
        params: Dict[str, str] = {}
        for expected, actual in zip(pattern, segments):
            if expected.startswith(":"):
                params[expected[1:]] = actual
            elif expected != actual:
                break
        else:
            return RouteMatch(route, clean_path, params, query)
    return None


def admit_match(match: RouteMatch, session: Session) -> Decision:
    return admit(session, match.route.access, match.route.allowed_roles)


class Navigator:
    """
    Resolves a requested path to the view that may actually be shown,
    following redirects. Keeps the current location, never a decision.
    """

    MAX_REDIRECTS = 5

    def __init__(self, routes: Optional[List[Route]] = None) -> None:
        self._routes = routes if routes is not None else ROUTES
        self.current: Optional[RouteMatch] = None
        self.shown: Optional[RouteMatch] = None

    def resolve(self, path: str, session: Session) -> RouteMatch:
        requested = path
        for _ in range(self.MAX_REDIRECTS):
            match = match_path(path, self._routes)
            if match is None:
                # unknown paths land on the storefront root
                path = SHOP_HOME
                continue
            decision = admit_match(match, session)
            if decision is Decision.ALLOW:
                return match
            target = redirect_target(decision, session)
            _logger.debug(f"{match.path}: {decision.value} -> {target}")
            path = target
        raise RuntimeError(f"Too many redirects while resolving {requested!r}")

    def navigate(self, path: str, session: Session) -> RouteMatch:
        self.current = self.resolve(path, session)
        return self.current

    def mark_shown(self, match: RouteMatch) -> bool:
        """Record the location put on screen. False if it is already showing."""
        if self.shown is not None and self.shown.url == match.url:
            return False
        self.shown = match
        return True

    def revalidate(self, session: Session) -> Optional[RouteMatch]:
        """
        Re-admit the current location after a session change.
        Returns the new location if it moved, None if it may stay.
        """
        if self.current is None:
            return None
        match = self.resolve(self.current.url, session)
        if match.path == self.current.path:
            return None
        self.current = match
        return match

    def after_session_change(
        self, session: Session, event: SessionEvent
    ) -> Optional[RouteMatch]:
        """
        Where to go once the session was replaced. An expired session always
        ends on the login view, whatever was on screen; anything else only
        moves if the current view no longer admits the new session.
        """
        if event is SessionEvent.EXPIRED:
            if self.current is not None and self.current.path == LOGIN_ROUTE:
                return None
            return self.navigate(LOGIN_ROUTE, session)
        return self.revalidate(session)
