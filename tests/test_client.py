import unittest
from unittest.mock import AsyncMock

import requests

from fakes import FakeShopBackend, make_client

from api.errors import (
    ApiError,
    AuthenticationError,
    ConnectivityError,
    RequestTimeoutError,
    ShopError,
)


class ApiClientTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.backend = FakeShopBackend()
        self.client = make_client(self.backend)
        self.on_unauthorized = AsyncMock()
        self.token = None
        self.client.bind(lambda: self.token, self.on_unauthorized)

    def tearDown(self):
        self.client.close()

    async def test_bearer_token_attached_when_present(self):
        self.token = self.backend.issue_token()
        await self.client.get("/user/cart")
        self.assertEqual(self.backend.calls[-1].authorization, f"Bearer {self.token}")

    async def test_no_authorization_header_for_guests(self):
        await self.client.get("/products")
        self.assertIsNone(self.backend.calls[-1].authorization)

    async def test_returns_decoded_json(self):
        payload = await self.client.get("/products/1")
        self.assertEqual(payload["title"], "Phone")

    async def test_empty_body_is_none(self):
        self.backend.script("DELETE", "/wishlist/1", (204, None))
        self.token = self.backend.issue_token()
        self.assertIsNone(await self.client.delete("/wishlist/1"))

    async def test_401_invalidates_then_raises(self):
        with self.assertRaises(AuthenticationError) as cm:
            await self.client.get("/user/cart")
        self.on_unauthorized.assert_awaited_once()
        self.assertEqual(cm.exception.status, 401)
        self.assertEqual(cm.exception.message, "Full authentication is required")

    async def test_401_without_message_uses_default(self):
        self.backend.script("GET", "/orders/user", (401, None))
        with self.assertRaises(AuthenticationError) as cm:
            await self.client.get("/orders/user")
        self.assertIn("expired", cm.exception.message)

    async def test_application_error_keeps_session(self):
        with self.assertRaises(ApiError) as cm:
            await self.client.get("/products/999")
        self.assertNotIsInstance(cm.exception, AuthenticationError)
        self.assertEqual(cm.exception.status, 404)
        self.assertEqual(cm.exception.message, "Product not found")
        self.on_unauthorized.assert_not_awaited()

    async def test_plain_text_error_body(self):
        self.backend.script("GET", "/products", (500, "Internal failure"))
        with self.assertRaises(ApiError) as cm:
            await self.client.get("/products")
        self.assertEqual(cm.exception.message, "Internal failure")

    async def test_error_without_message(self):
        self.backend.script("GET", "/products", (503, {}))
        with self.assertRaises(ApiError) as cm:
            await self.client.get("/products")
        self.assertEqual(cm.exception.message, "Request failed with status 503.")

    async def test_timeout(self):
        self.backend.script("GET", "/products", requests.exceptions.ReadTimeout())
        with self.assertRaises(RequestTimeoutError):
            await self.client.get("/products")

    async def test_connect_timeout_is_a_timeout(self):
        self.backend.script("GET", "/products", requests.exceptions.ConnectTimeout())
        with self.assertRaises(RequestTimeoutError):
            await self.client.get("/products")

    async def test_unreachable(self):
        self.backend.script("GET", "/products", requests.exceptions.ConnectionError())
        with self.assertRaises(ConnectivityError) as cm:
            await self.client.get("/products")
        self.assertIn("http://shop.test/api", cm.exception.message)
        self.assertIsInstance(cm.exception, ShopError)
        self.on_unauthorized.assert_not_awaited()

    async def test_no_retries(self):
        self.backend.script("GET", "/products", (500, {"message": "boom"}))
        with self.assertRaises(ApiError):
            await self.client.get("/products")
        self.assertEqual(self.backend.paths(), [("GET", "/products")])


if __name__ == "__main__":
    unittest.main()
