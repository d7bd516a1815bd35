import unittest
from dataclasses import replace

from fakes import FakeShopBackend, TempStorageMixin, make_context

from api.errors import FormValidationError, ShopError
from api.models import AddressDraft, UserProfile
from state.checkout import (
    CheckoutFlow,
    CheckoutStatus,
    PaymentReturn,
    PaymentVerification,
    parse_payment_return,
    validate_address,
)

VALID = AddressDraft(
    locality="Navrangpura",
    address="12 Main Street, Block B",
    city="Ahmedabad",
    state="Gujarat",
    pin_code="380009",
    mobile="9123456789",
)


class AddressValidationTestCase(unittest.TestCase):
    def test_valid_draft(self):
        self.assertEqual(validate_address(VALID), {})

    def test_field_rules(self):
        cases = [
            ("pin_code", "12345", False),
            ("pin_code", "123456", True),
            ("pin_code", "1234567", False),
            ("pin_code", "12a456", False),
            ("mobile", "5123456789", False),
            ("mobile", "9123456789", True),
            ("mobile", "6123456789", True),
            ("mobile", "912345678", False),
            ("address", "short", False),
            ("address", "0123456789", True),
            ("locality", "   ", False),
            ("city", "", False),
            ("state", "", False),
        ]
        for field, value, accepted in cases:
            with self.subTest(field=field, value=value):
                errors = validate_address(replace(VALID, **{field: value}))
                self.assertEqual(field not in errors, accepted, errors)

    def test_every_error_is_reported_at_once(self):
        errors = validate_address(AddressDraft())
        self.assertEqual(
            set(errors), {"locality", "address", "city", "state", "pin_code", "mobile"}
        )

    def test_body_uses_backend_names(self):
        body = replace(VALID, city="  Surat ").to_json()
        self.assertEqual(body["pinCode"], "380009")
        self.assertEqual(body["city"], "Surat")


class CheckoutFlowTestCase(TempStorageMixin, unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.backend = FakeShopBackend()
        self.ctx = make_context(self.backend)
        await self.ctx.login("alice@example.com", "Secret#123")
        await self.ctx.cart.add(1, 2)
        self.opened = []
        self.flow = CheckoutFlow(self.ctx.client, open_url=self.opened.append)

    async def asyncTearDown(self):
        await self.ctx.dispose()

    def fill(self, draft: AddressDraft) -> None:
        for field in ("locality", "address", "city", "state", "pin_code", "mobile"):
            self.flow.edit(field, getattr(draft, field))

    async def test_starts_editing_with_default_state(self):
        self.assertEqual(self.flow.status, CheckoutStatus.EDITING)
        self.assertEqual(self.flow.draft.state, "Gujarat")

    async def test_invalid_draft_never_reaches_network(self):
        self.fill(replace(VALID, pin_code="12345"))
        calls_before = len(self.backend.calls)

        with self.assertRaises(FormValidationError) as cm:
            await self.flow.submit()

        self.assertEqual(set(cm.exception.field_errors), {"pin_code"})
        self.assertEqual(self.flow.status, CheckoutStatus.EDITING)
        self.assertEqual(len(self.backend.calls), calls_before)
        self.assertEqual(self.opened, [])

    async def test_edit_clears_field_error(self):
        self.fill(replace(VALID, mobile="123"))
        self.assertFalse(self.flow.validate())
        self.assertIn("mobile", self.flow.field_errors)
        self.flow.edit("mobile", "9876543210")
        self.assertNotIn("mobile", self.flow.field_errors)

    async def test_edit_unknown_field(self):
        with self.assertRaises(KeyError):
            self.flow.edit("country", "IN")

    async def test_submit_opens_payment_page(self):
        self.fill(VALID)
        link = await self.flow.submit()

        self.assertEqual(self.flow.status, CheckoutStatus.AWAITING_EXTERNAL_PAYMENT)
        self.assertEqual(link.order_id, 101)
        self.assertEqual(link.amount, 18000)
        self.assertEqual(self.opened, ["https://pay.test/pl_101"])

        call = self.backend.calls[-1]
        self.assertEqual((call.method, call.path), ("POST", "/orders"))
        self.assertEqual(call.query, {"paymentMethod": "RAZORPAY"})
        self.assertEqual(call.body["pinCode"], "380009")

    async def test_flow_is_one_shot(self):
        self.fill(VALID)
        await self.flow.submit()
        with self.assertRaises(ShopError):
            await self.flow.submit()
        with self.assertRaises(ShopError):
            self.flow.edit("city", "Surat")

    async def test_backend_rejection_returns_to_editing(self):
        await self.ctx.cart.clear()
        self.fill(VALID)
        with self.assertRaises(ShopError):
            await self.flow.submit()
        self.assertEqual(self.flow.status, CheckoutStatus.EDITING)
        self.assertEqual(self.flow.error, "Cart is empty")
        self.assertEqual(self.opened, [])

    async def test_prefill_keeps_typed_mobile(self):
        profile = UserProfile("alice@example.com", "Alice", "9876543210")
        self.flow.prefill(profile)
        self.assertEqual(self.flow.draft.mobile, "9876543210")

        other = CheckoutFlow(self.ctx.client, open_url=self.opened.append)
        other.edit("mobile", "9000000000")
        other.prefill(profile)
        self.assertEqual(other.draft.mobile, "9000000000")


class PaymentReturnTestCase(unittest.TestCase):
    def test_full_redirect_url(self):
        ret = parse_payment_return(
            "http://localhost:3000/payment-success/12"
            "?payment_id=pay_1&payment_link_id=plink_1&payment_link_status=paid"
        )
        self.assertEqual(ret, PaymentReturn(12, "pay_1", "plink_1"))
        self.assertTrue(ret.can_verify)

    def test_bare_query_string(self):
        ret = parse_payment_return("payment_id=pay_2&payment_link_id=plink_2", 5)
        self.assertEqual(ret, PaymentReturn(5, "pay_2", "plink_2"))

    def test_provider_prefixed_names(self):
        ret = parse_payment_return(
            "?razorpay_payment_id=pay_3&razorpay_payment_link_id=plink_3"
        )
        self.assertEqual(ret.payment_id, "pay_3")
        self.assertEqual(ret.payment_link_id, "plink_3")
        self.assertIsNone(ret.order_id)

    def test_missing_identifiers(self):
        ret = parse_payment_return("/payment-success/abc")
        self.assertIsNone(ret.order_id)
        self.assertFalse(ret.can_verify)
        self.assertFalse(parse_payment_return("").can_verify)


class PaymentVerificationTestCase(TempStorageMixin, unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.backend = FakeShopBackend()
        self.ctx = make_context(self.backend)
        await self.ctx.login("alice@example.com", "Secret#123")

    async def asyncTearDown(self):
        await self.ctx.dispose()

    async def test_success_message_from_backend(self):
        check = PaymentVerification(
            self.ctx.client, PaymentReturn(12, "pay_1", "plink_1")
        )
        self.assertEqual(await check.run(), "Payment verified, order confirmed")
        self.assertEqual(check.status, CheckoutStatus.DONE)
        call = self.backend.calls[-1]
        self.assertEqual(call.path, "/payment/pay_1")
        self.assertEqual(call.query, {"paymentLinkId": "plink_1"})

    async def test_failure_is_swallowed(self):
        self.backend.script("GET", "/payment/pay_1", (500, {"message": "gateway"}))
        check = PaymentVerification(
            self.ctx.client, PaymentReturn(12, "pay_1", "plink_1")
        )
        self.assertEqual(await check.run(), "Payment successful.")
        self.assertEqual(check.status, CheckoutStatus.DONE)

    async def test_nothing_to_verify(self):
        calls_before = len(self.backend.calls)
        check = PaymentVerification(self.ctx.client, PaymentReturn(12, None, None))
        self.assertEqual(await check.run(), "Payment successful.")
        self.assertEqual(len(self.backend.calls), calls_before)


if __name__ == "__main__":
    unittest.main()
