import asyncio
import unittest

from fakes import FakeShopBackend, TempStorageMixin, make_context

from api import services
from api.errors import ApiError
from api.models import Cart
from state.caches import CartCache

EMPTY_CART = Cart(
    id=1,
    items=[],
    total_selling_price=0,
    total_item=0,
    total_mrp_price=0,
    discount=0,
)


class GatedCartCache(CartCache):
    """Cart whose load waits until the test lets it finish."""

    def __init__(self, client):
        super().__init__(client)
        self.gate = asyncio.Event()

    async def _load(self):
        await self.gate.wait()
        return EMPTY_CART


class CacheTestCase(TempStorageMixin, unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.backend = FakeShopBackend()
        self.ctx = make_context(self.backend)
        await self.ctx.login("alice@example.com", "Secret#123")

    async def asyncTearDown(self):
        await self.ctx.dispose()

    # ---------- cart ----------

    async def test_every_cart_mutation_matches_a_fresh_fetch(self):
        cart = self.ctx.cart
        steps = [
            ("add", lambda: cart.add(1, 2)),
            ("add again", lambda: cart.add(1)),
            ("add other", lambda: cart.add(2)),
            ("update", lambda: cart.update(cart.item_for(2).id, 4)),
            ("remove", lambda: cart.remove(cart.item_for(1).id)),
            ("clear", lambda: cart.clear()),
        ]
        for name, step in steps:
            with self.subTest(step=name):
                await step()
                fresh = await services.get_cart(self.ctx.client)
                self.assertEqual(cart.cart, fresh)

    async def test_totals_come_from_the_server(self):
        await self.ctx.cart.add(1, 2)
        cart = self.ctx.cart.cart
        self.assertEqual(cart.total_item, 2)
        self.assertEqual(cart.total_selling_price, 18000)
        self.assertEqual(cart.total_mrp_price, 20000)
        self.assertEqual(cart.discount, 10)
        self.assertEqual(cart.items[0].product.category, "Electronics")

    async def test_mutate_and_reconcile_are_separate_phases(self):
        cart = self.ctx.cart
        await cart.fetch()
        before = cart.cart

        await cart.mutate(cart.add_mutation(3))
        self.assertEqual(cart.cart, before)
        self.assertTrue(cart.cart.is_empty)

        await cart.reconcile()
        self.assertEqual(len(cart.cart.items), 1)
        self.assertEqual(
            self.backend.paths()[-2:],
            [("POST", "/user/cart/add"), ("GET", "/user/cart")],
        )

    async def test_failed_mutation_skips_refetch(self):
        cart = self.ctx.cart
        calls_before = len(self.backend.calls)
        with self.assertRaises(ApiError):
            await cart.add(999)
        self.assertEqual(cart.error, "Product not found")
        self.assertEqual(len(self.backend.calls), calls_before + 1)

    async def test_quantity_must_be_positive(self):
        with self.assertRaises(ValueError):
            self.ctx.cart.add_mutation(1, 0)
        with self.assertRaises(ValueError):
            self.ctx.cart.update_mutation(1, -2)

    async def test_item_for(self):
        self.assertIsNone(self.ctx.cart.item_for(1))
        await self.ctx.cart.add(1)
        self.assertEqual(self.ctx.cart.item_for(1).quantity, 1)
        self.assertIsNone(self.ctx.cart.item_for(2))

    async def test_fetch_error_is_recorded(self):
        self.backend.script("GET", "/user/cart", (500, {"message": "db down"}))
        with self.assertRaises(ApiError):
            await self.ctx.cart.fetch()
        self.assertEqual(self.ctx.cart.error, "db down")
        self.assertFalse(self.ctx.cart.is_loading)

    async def test_malformed_payload_stops_loading(self):
        self.backend.script("GET", "/user/cart", (200, ["not", "a", "cart"]))
        with self.assertRaises(AttributeError):
            await self.ctx.cart.fetch()
        self.assertFalse(self.ctx.cart.is_loading)

    async def test_stale_response_is_discarded(self):
        cache = GatedCartCache(self.ctx.client)
        task = asyncio.create_task(cache.fetch())
        await asyncio.sleep(0)
        self.assertTrue(cache.is_loading)

        cache.reset()
        cache.gate.set()
        await task

        self.assertIsNone(cache.state)
        self.assertFalse(cache.is_loading)

    # ---------- wishlist ----------

    async def test_every_wishlist_mutation_matches_a_fresh_fetch(self):
        wishlist = self.ctx.wishlist
        for name, step in [
            ("add", lambda: wishlist.add(1)),
            ("add other", lambda: wishlist.add(2)),
            ("remove", lambda: wishlist.remove(1)),
        ]:
            with self.subTest(step=name):
                await step()
                fresh = await services.get_wishlist(self.ctx.client)
                self.assertEqual(wishlist.items, fresh)

    async def test_toggle_uses_confirmed_membership(self):
        self.assertTrue(await self.ctx.wishlist.toggle(2))
        self.assertTrue(self.ctx.wishlist.contains(2))
        self.assertFalse(await self.ctx.wishlist.toggle(2))
        self.assertEqual(self.ctx.wishlist.items, [])

    # ---------- context ----------

    async def test_refresh_caches_for_shopper(self):
        self.backend.wishlist.append(3)
        await self.ctx.refresh_caches()
        self.assertIsNotNone(self.ctx.cart.cart)
        self.assertEqual([p.id for p in self.ctx.wishlist.items], [3])

    async def test_refresh_caches_tolerates_failures(self):
        self.backend.script("GET", "/wishlist", (500, {"message": "boom"}))
        await self.ctx.refresh_caches()
        self.assertIsNotNone(self.ctx.cart.cart)
        self.assertEqual(self.ctx.wishlist.error, "boom")

    async def test_admins_have_no_caches(self):
        await self.ctx.logout()
        await self.ctx.login("root@example.com", "Secret#123")
        calls_before = len(self.backend.calls)
        await self.ctx.refresh_caches()
        self.assertEqual(len(self.backend.calls), calls_before)
        self.assertIsNone(self.ctx.cart.cart)


if __name__ == "__main__":
    unittest.main()
