import os
import sys
import unittest

# Ensure project src/ is on sys.path for imports
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
src_path = os.path.join(ROOT, "src")
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from api.models import Role  # noqa: E402
from routing.guards import Access  # noqa: E402
from routing.routes import Navigator, Route, match_path  # noqa: E402
from state.session import ANONYMOUS, Session, SessionEvent  # noqa: E402

SHOPPER = Session(token="t-user", role=Role.USER, email="alice@example.com")
ADMIN = Session(token="t-admin", role=Role.ADMIN, email="root@example.com")


class MatchPathTestCase(unittest.TestCase):
    def test_params_and_query(self):
        match = match_path("/orders/42?payment_id=pay_1")
        self.assertEqual(match.route.view, "order_detail")
        self.assertEqual(match.params, {"orderId": "42"})
        self.assertEqual(match.query, {"payment_id": "pay_1"})
        self.assertEqual(match.path, "/orders/42")
        self.assertEqual(match.url, "/orders/42?payment_id=pay_1")

    def test_trailing_slash_and_root(self):
        self.assertEqual(match_path("/cart/").path, "/cart")
        self.assertEqual(match_path("").route.view, "home")
        self.assertEqual(match_path("/").route.view, "home")

    def test_static_segment_beats_nothing(self):
        self.assertEqual(match_path("/admin/orders").route.view, "admin_orders")
        self.assertEqual(
            match_path("/admin/orders/9").route.view, "admin_order_detail"
        )

    def test_unknown_path(self):
        self.assertIsNone(match_path("/nowhere"))
        self.assertIsNone(match_path("/orders/1/items"))


class NavigatorTestCase(unittest.TestCase):
    def setUp(self):
        self.navigator = Navigator()

    def test_unknown_path_lands_on_storefront(self):
        self.assertEqual(self.navigator.resolve("/nowhere", ANONYMOUS).path, "/")

    def test_unknown_path_for_admin_follows_redirects(self):
        self.assertEqual(
            self.navigator.resolve("/nowhere", ADMIN).path, "/admin/dashboard"
        )

    def test_navigate_keeps_location(self):
        self.navigator.navigate("/cart", SHOPPER)
        self.assertEqual(self.navigator.current.path, "/cart")

    def test_revalidate_stays_when_still_admitted(self):
        self.navigator.navigate("/products", SHOPPER)
        self.assertIsNone(self.navigator.revalidate(ANONYMOUS))
        self.assertEqual(self.navigator.current.path, "/products")

    def test_revalidate_moves_when_no_longer_admitted(self):
        self.navigator.navigate("/cart", SHOPPER)
        moved = self.navigator.revalidate(ANONYMOUS)
        self.assertEqual(moved.path, "/login")
        self.assertEqual(self.navigator.current.path, "/login")

    def test_revalidate_without_location(self):
        self.assertIsNone(self.navigator.revalidate(SHOPPER))

    def test_login_moves_off_guest_view(self):
        self.navigator.navigate("/login", ANONYMOUS)
        moved = self.navigator.after_session_change(ADMIN, SessionEvent.LOGGED_IN)
        self.assertEqual(moved.path, "/admin/dashboard")

    def test_expiry_always_ends_on_login(self):
        # a public page would still admit a guest, expiry moves anyway
        self.navigator.navigate("/products", SHOPPER)
        moved = self.navigator.after_session_change(
            ANONYMOUS, SessionEvent.EXPIRED
        )
        self.assertEqual(moved.path, "/login")

    def test_expiry_on_login_view_stays(self):
        self.navigator.navigate("/login", ANONYMOUS)
        self.assertIsNone(
            self.navigator.after_session_change(ANONYMOUS, SessionEvent.EXPIRED)
        )

    def test_logout_redirect_then_navigate_shows_login_once(self):
        self.assertTrue(
            self.navigator.mark_shown(self.navigator.navigate("/cart", SHOPPER))
        )
        moved = self.navigator.after_session_change(
            ANONYMOUS, SessionEvent.LOGGED_OUT
        )
        self.assertTrue(self.navigator.mark_shown(moved))
        again = self.navigator.navigate("/login", ANONYMOUS)
        self.assertFalse(self.navigator.mark_shown(again))

    def test_logout_navigate_then_redirect_shows_login_once(self):
        self.navigator.mark_shown(self.navigator.navigate("/cart", SHOPPER))
        self.assertTrue(
            self.navigator.mark_shown(self.navigator.navigate("/login", ANONYMOUS))
        )
        self.assertIsNone(
            self.navigator.after_session_change(ANONYMOUS, SessionEvent.LOGGED_OUT)
        )

    def test_query_string_counts_as_new_location(self):
        self.navigator.mark_shown(self.navigator.navigate("/login", ANONYMOUS))
        match = self.navigator.navigate("/login?email=a%40b.c", ANONYMOUS)
        self.assertTrue(self.navigator.mark_shown(match))

    def test_redirect_loop_is_reported(self):
        routes = [
            Route("/a", "a", Access.AUTHENTICATED),
            Route("/login", "login", Access.AUTHENTICATED),
        ]
        with self.assertRaises(RuntimeError):
            Navigator(routes).resolve("/a", ANONYMOUS)


if __name__ == "__main__":
    unittest.main()
