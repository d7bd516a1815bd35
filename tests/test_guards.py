import os
import sys
import unittest

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from api.models import Role  # noqa: E402
from routing import guards  # noqa: E402
from routing.guards import Access, Decision  # noqa: E402
from routing.routes import ROUTES, Navigator, admit_match, match_path  # noqa: E402
from state.session import ANONYMOUS, Session  # noqa: E402

GUEST = ANONYMOUS
SHOPPER = Session(token="t-user", role=Role.USER, email="alice@example.com")
ADMIN = Session(token="t-admin", role=Role.ADMIN, email="root@example.com")
SUPER = Session(token="t-super", role=Role.SUPER_ADMIN, email="boss@example.com")

A = Decision.ALLOW
L = Decision.REDIRECT_LOGIN
H = Decision.REDIRECT_ROLE_HOME

# view -> decision for (guest, shopper, admin, super admin)
EXPECTED = {
    "login": (A, H, H, H),
    "register": (A, H, H, H),
    "forgot_password": (A, H, H, H),
    "home": (A, A, H, H),
    "products": (A, A, H, H),
    "product_detail": (A, A, H, H),
    "about": (A, A, H, H),
    "wishlist": (L, A, A, A),
    "cart": (L, A, A, A),
    "profile": (L, A, A, A),
    "checkout": (L, A, H, H),
    "orders": (L, A, H, H),
    "order_detail": (L, A, H, H),
    "payment_success": (L, A, H, H),
    "admin_dashboard": (L, H, A, A),
    "admin_profile": (L, H, A, A),
    "admin_products": (L, H, A, A),
    "admin_categories": (L, H, A, A),
    "admin_orders": (L, H, A, A),
    "admin_order_detail": (L, H, A, A),
    "admin_users": (L, H, A, A),
    "manage_admins": (L, H, H, A),
}

SESSIONS = (GUEST, SHOPPER, ADMIN, SUPER)


def sample_path(pattern: str) -> str:
    return "/".join("42" if s.startswith(":") else s for s in pattern.split("/")) or "/"


class AdmissionTableTestCase(unittest.TestCase):
    def test_every_route_has_an_expectation(self):
        self.assertEqual({r.view for r in ROUTES}, set(EXPECTED))

    def test_route_session_role_table(self):
        for route in ROUTES:
            match = match_path(sample_path(route.pattern))
            self.assertIsNotNone(match, route.pattern)
            self.assertEqual(match.route, route)
            for session, expected in zip(SESSIONS, EXPECTED[route.view]):
                with self.subTest(view=route.view, role=session.role):
                    self.assertEqual(admit_match(match, session), expected)

    def test_decisions_depend_only_on_inputs(self):
        # equal sessions built independently give equal decisions, repeatedly
        other_shopper = Session(token="another", role=Role.USER, email="x@y.z")
        for route in ROUTES:
            first = guards.admit(SHOPPER, route.access, route.allowed_roles)
            for _ in range(3):
                self.assertEqual(
                    guards.admit(SHOPPER, route.access, route.allowed_roles), first
                )
            self.assertEqual(
                guards.admit(other_shopper, route.access, route.allowed_roles), first
            )

    def test_role_without_token_is_a_guest(self):
        stale = Session(token="", role=Role.ADMIN)
        self.assertEqual(guards.admit(stale, Access.PUBLIC), Decision.ALLOW)
        self.assertEqual(
            guards.admit(stale, Access.AUTHENTICATED), Decision.REDIRECT_LOGIN
        )


class GateTestCase(unittest.TestCase):
    def test_auth_required_gate(self):
        self.assertEqual(guards.auth_required_gate(GUEST, True), L)
        self.assertEqual(guards.auth_required_gate(SHOPPER, True), A)
        self.assertEqual(guards.auth_required_gate(GUEST, False), A)
        self.assertEqual(guards.auth_required_gate(ADMIN, False), H)

    def test_public_gate(self):
        self.assertEqual(guards.public_gate(GUEST), A)
        self.assertEqual(guards.public_gate(SHOPPER), A)
        self.assertEqual(guards.public_gate(ADMIN), H)
        self.assertEqual(guards.public_gate(SUPER), H)

    def test_role_gate(self):
        admins = frozenset({Role.ADMIN, Role.SUPER_ADMIN})
        self.assertEqual(guards.role_gate(GUEST, admins), L)
        self.assertEqual(guards.role_gate(SHOPPER, admins), H)
        self.assertEqual(guards.role_gate(ADMIN, admins), A)

    def test_home_route_for_every_role(self):
        self.assertEqual(guards.home_route_for(Role.USER), "/")
        self.assertEqual(guards.home_route_for(Role.ADMIN), "/admin/dashboard")
        self.assertEqual(guards.home_route_for(Role.SUPER_ADMIN), "/admin/dashboard")

    def test_redirect_target(self):
        self.assertIsNone(guards.redirect_target(A, SHOPPER))
        self.assertEqual(guards.redirect_target(L, GUEST), "/login")
        self.assertEqual(guards.redirect_target(H, SHOPPER), "/")
        self.assertEqual(guards.redirect_target(H, SUPER), "/admin/dashboard")


class RedirectScenarioTestCase(unittest.TestCase):
    def setUp(self):
        self.navigator = Navigator()

    def test_guest_checkout_goes_to_login(self):
        self.assertEqual(self.navigator.resolve("/checkout", GUEST).path, "/login")

    def test_shopper_admin_dashboard_goes_home(self):
        self.assertEqual(self.navigator.resolve("/admin/dashboard", SHOPPER).path, "/")

    def test_admin_storefront_goes_to_dashboard(self):
        self.assertEqual(self.navigator.resolve("/", ADMIN).path, "/admin/dashboard")

    def test_admin_on_super_admin_route_goes_to_dashboard(self):
        match = self.navigator.resolve("/admin/manage-admins", ADMIN)
        self.assertEqual(match.path, "/admin/dashboard")

    def test_super_admin_reaches_manage_admins(self):
        match = self.navigator.resolve("/admin/manage-admins", SUPER)
        self.assertEqual(match.route.view, "manage_admins")


if __name__ == "__main__":
    unittest.main()
