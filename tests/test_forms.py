import unittest
from dataclasses import replace

from fakes import make_token

from api.models import PasswordResetRequest, RegistrationRequest
from state import claims
from state.account_forms import (
    PASSWORD_RULES,
    validate_email,
    validate_login,
    validate_password_reset,
    validate_registration,
)

GOOD_REGISTRATION = RegistrationRequest(
    email="bob@example.com",
    full_name="Bob Builder",
    phone_number="9876543210",
    password="Str0ng#Pass",
    confirm_password="Str0ng#Pass",
    otp="123456",
)


class AccountFormsTestCase(unittest.TestCase):
    def test_login(self):
        self.assertEqual(validate_login("bob@example.com", "x"), {})
        self.assertEqual(
            validate_login("", ""),
            {"email": "Email is required", "password": "Password is required"},
        )
        self.assertEqual(
            validate_login("bob@", "x"), {"email": "Invalid email format"}
        )

    def test_email(self):
        self.assertEqual(validate_email(" bob@example.com "), {})
        self.assertIn("email", validate_email("bob example.com"))

    def test_registration_valid(self):
        self.assertEqual(validate_registration(GOOD_REGISTRATION), {})

    def test_registration_before_otp_is_sent(self):
        request = replace(GOOD_REGISTRATION, otp="")
        self.assertEqual(validate_registration(request, require_otp=False), {})
        self.assertEqual(validate_registration(request), {"otp": "OTP is required"})

    def test_password_rules(self):
        # exactly 8 characters is long enough
        for password in ("Short1!A", "Str0ng#Pass"):
            with self.subTest(password=password):
                request = replace(
                    GOOD_REGISTRATION, password=password, confirm_password=password
                )
                self.assertEqual(validate_registration(request), {})

        weak = ("Sh0rt!A", "alllower1!", "ALLUPPER1!", "NoDigits!!", "NoSpecial1")
        for password in weak + ("Has Space1!",):
            with self.subTest(password=password):
                request = replace(
                    GOOD_REGISTRATION, password=password, confirm_password=password
                )
                self.assertEqual(
                    validate_registration(request), {"password": PASSWORD_RULES}
                )

    def test_registration_mismatch_and_phone(self):
        request = replace(
            GOOD_REGISTRATION,
            phone_number="12345",
            confirm_password="Other#Pass1",
            full_name=" ",
        )
        self.assertEqual(
            validate_registration(request),
            {
                "full_name": "Full name is required",
                "phone_number": "Phone number must be 10 digits",
                "confirm_password": "Passwords do not match",
            },
        )

    def test_password_reset(self):
        request = PasswordResetRequest(
            email="bob@example.com",
            otp="",
            password="Str0ng#Pass",
            confirm_password="",
        )
        self.assertEqual(
            validate_password_reset(request),
            {
                "otp": "OTP is required",
                "confirm_password": "Please confirm your password",
            },
        )


class ClaimsTestCase(unittest.TestCase):
    def test_user_id_claim(self):
        self.assertEqual(claims.extract_user_id(make_token({"userId": 42})), 42)
        self.assertEqual(claims.extract_user_id(make_token({"userId": "42"})), 42)

    def test_numeric_subject(self):
        self.assertEqual(claims.extract_user_id(make_token({"sub": "9"})), 9)

    def test_absent_is_not_an_error(self):
        for token in (
            None,
            "",
            "opaque",
            "a.b.c",
            "a..c",
            make_token({"sub": "alice@example.com"}),
            "x." + "W10" + ".y",  # claims segment is a JSON list
        ):
            with self.subTest(token=token):
                self.assertIsNone(claims.extract_user_id(token))

    def test_decode_payload(self):
        token = make_token({"sub": "alice@example.com", "exp": 1})
        self.assertEqual(
            claims.decode_payload(token), {"sub": "alice@example.com", "exp": 1}
        )


if __name__ == "__main__":
    unittest.main()
