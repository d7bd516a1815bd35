import unittest

from fakes import FakeShopBackend, TempStorageMixin, make_context

from api import services
from api.errors import AuthenticationError
from api.models import ProductFilters
from utils.pure import (
    PLACEHOLDER_IMAGE,
    build_first_image,
    build_image_url,
    format_price,
    generate_markdown_table,
)


class PayloadParsingTestCase(unittest.TestCase):
    def test_product_with_nested_or_flat_category(self):
        nested = services.product_from_json(
            {"id": "4", "title": "TV", "category": {"name": "Screens"}}
        )
        flat = services.product_from_json({"id": 4, "category": "Screens"})
        self.assertEqual(nested.id, 4)
        self.assertEqual(nested.category, "Screens")
        self.assertEqual(flat.category, "Screens")
        self.assertEqual(nested.images, [])

    def test_order_with_legacy_address(self):
        order = services.order_from_json(
            {
                "id": 9,
                "orderStatus": "PLACED",
                "user": {"email": "alice@example.com"},
                "address": {"city": "Surat"},
                "items": [{"id": 1, "productName": "Phone", "quantity": 2}],
            }
        )
        self.assertEqual(order.user_email, "alice@example.com")
        self.assertEqual(order.shipping_address, {"city": "Surat"})
        self.assertIsNone(order.total_mrp_price)
        self.assertEqual(order.items[0].quantity, 2)
        self.assertTrue(order.is_cancellable)

    def test_wishlist_accepts_bare_list(self):
        products = services.wishlist_from_json([{"id": 1, "title": "Phone"}])
        self.assertEqual([p.title for p in products], ["Phone"])
        self.assertEqual(services.wishlist_from_json(None), [])

    def test_filters_drop_empty_values(self):
        params = ProductFilters(category="Phones", brand="", page_number=2).to_params()
        self.assertEqual(params, {"category": "Phones", "pageNumber": 2})


class ServicesTestCase(TempStorageMixin, unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.backend = FakeShopBackend()
        self.ctx = make_context(self.backend)

    async def asyncTearDown(self):
        await self.ctx.dispose()

    async def test_list_products_page(self):
        page = await services.list_products(
            self.ctx.client, ProductFilters(sort="price_low")
        )
        self.assertEqual(len(page.content), 3)
        self.assertEqual(page.total_pages, 1)
        self.assertEqual(
            self.backend.calls[-1].query, {"sort": "price_low", "pageNumber": "0"}
        )

    async def test_list_products_plain_list(self):
        self.backend.script("GET", "/products", (200, [{"id": 1, "title": "A"}]))
        page = await services.list_products(self.ctx.client)
        self.assertEqual(page.total_elements, 1)
        self.assertEqual(page.content[0].title, "A")

    async def test_empty_search_skips_network(self):
        self.assertEqual(await services.search_products(self.ctx.client, "  "), [])
        self.assertEqual(self.backend.calls, [])

    async def test_negative_stock_rejected_locally(self):
        with self.assertRaises(ValueError):
            await services.admin_update_stock(self.ctx.client, 1, -1)
        self.assertEqual(self.backend.calls, [])

    async def test_admin_categories(self):
        await self.ctx.login("root@example.com", "Secret#123")
        categories = await services.admin_list_categories(self.ctx.client)
        self.assertEqual([c.name for c in categories], ["Electronics", "Cameras"])
        self.assertEqual(categories[0].product_count, 3)

        camera = await services.admin_get_category(self.ctx.client, 2)
        self.assertEqual(camera.image_url, "images/c/2.jpg")

        message = await services.admin_delete_category(self.ctx.client, 2)
        self.assertEqual(message, "Category deleted successfully")
        self.assertEqual(self.backend.calls[-1].method, "DELETE")
        remaining = await services.admin_list_categories(self.ctx.client)
        self.assertEqual([c.id for c in remaining], [1])

    async def test_admin_categories_need_a_session(self):
        with self.assertRaises(AuthenticationError):
            await services.admin_list_categories(self.ctx.client)

    async def test_profile(self):
        await self.ctx.login("alice@example.com", "Secret#123")
        profile = await services.get_profile(self.ctx.client)
        self.assertEqual(profile.full_name, "Alice")
        self.assertEqual(profile.phone_number, "9876543210")


class PureTestCase(unittest.TestCase):
    def test_markdown_table(self):
        md = generate_markdown_table(["A", "B"], [["1", "x|y"]], ["l", "r"])
        self.assertEqual(md, "| A | B |\n| :--- | ---: |\n| 1 | x\\|y |")

    def test_markdown_table_first_row_as_header(self):
        md = generate_markdown_table(None, [["Name", "Value"], ["a", 1]], ["l", "l"])
        self.assertTrue(md.startswith("| Name | Value |"))
        self.assertEqual(generate_markdown_table(None, []), "")
        with self.assertRaises(ValueError):
            generate_markdown_table(["A"], [["1"]], ["l", "r"])

    def test_format_price(self):
        self.assertEqual(format_price(1234567.5), "₹1,234,567.50")
        self.assertEqual(format_price(None), "-")

    def test_image_urls(self):
        api = "http://shop.test:8080/api"
        cases = [
            ("/images/p/a.jpg", "http://shop.test:8080/images/p/a.jpg"),
            ("images/p/a.jpg", "http://shop.test:8080/images/p/a.jpg"),
            ("images\\p\\a.jpg", "http://shop.test:8080/images/p/a.jpg"),
            ("./images/a.jpg", "http://shop.test:8080/images/a.jpg"),
            ("https://cdn.test/a.jpg", "https://cdn.test/a.jpg"),
            ("//cdn.test/a.jpg", "//cdn.test/a.jpg"),
            ("data:image/png;base64,AAAA", "data:image/png;base64,AAAA"),
            ("", PLACEHOLDER_IMAGE),
            (None, PLACEHOLDER_IMAGE),
        ]
        for raw, expected in cases:
            with self.subTest(raw=raw):
                self.assertEqual(build_image_url(raw, api), expected)

    def test_first_image(self):
        self.assertEqual(build_first_image([]), PLACEHOLDER_IMAGE)
        self.assertEqual(
            build_first_image(["/a.jpg", "/b.jpg"], "http://h/api"), "http://h/a.jpg"
        )


if __name__ == "__main__":
    unittest.main()
