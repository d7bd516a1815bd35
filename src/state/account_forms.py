# client-side checks for the login, sign-up and password reset forms
import re
from typing import Dict

from api.models import PasswordResetRequest, RegistrationRequest

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[0-9]{10}$")
# 8+ chars, upper, lower, digit, one of !@#$%^&*, no whitespace
PASSWORD_RE = re.compile(
    r"^(?=.*[0-9])(?=.*[a-z])(?=.*[A-Z])(?=.*[!@#$%^&*])(?=\S+$).{8,}$"
)

PASSWORD_RULES = (
    "Password must be at least 8 characters, include uppercase, lowercase, "
    "number, special character (!@#$%^&*), and no spaces"
)


def _check_email(email: str, errors: Dict[str, str]) -> None:
    if not email.strip():
        errors["email"] = "Email is required"
    elif not EMAIL_RE.match(email.strip()):
        errors["email"] = "Invalid email format"


def _check_new_password(password: str, confirm: str, errors: Dict[str, str]) -> None:
    if not password:
        errors["password"] = "Password is required"
    elif not PASSWORD_RE.match(password):
        errors["password"] = PASSWORD_RULES

    if not confirm:
        errors["confirm_password"] = "Please confirm your password"
    elif password != confirm:
        errors["confirm_password"] = "Passwords do not match"


def validate_login(email: str, password: str) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    _check_email(email, errors)
    if not password:
        errors["password"] = "Password is required"
    return errors


def validate_email(email: str) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    _check_email(email, errors)
    return errors


def validate_registration(
    request: RegistrationRequest, require_otp: bool = True
) -> Dict[str, str]:
    """
    Account details are checked before the OTP is requested; the OTP itself
    only once it has been sent.
    """
    errors: Dict[str, str] = {}
    _check_email(request.email, errors)

    if not request.full_name.strip():
        errors["full_name"] = "Full name is required"

    phone = request.phone_number.strip()
    if not phone:
        errors["phone_number"] = "Phone number is required"
    elif not PHONE_RE.match(phone):
        errors["phone_number"] = "Phone number must be 10 digits"

    _check_new_password(request.password, request.confirm_password, errors)

    if require_otp and not request.otp.strip():
        errors["otp"] = "OTP is required"
    return errors


def validate_password_reset(request: PasswordResetRequest) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    _check_email(request.email, errors)
    if not request.otp.strip():
        errors["otp"] = "OTP is required"
    _check_new_password(request.password, request.confirm_password, errors)
    return errors
