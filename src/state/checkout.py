import re
import webbrowser
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional
from urllib.parse import parse_qs, urlsplit

from api import services
from api.client import ApiClient
from api.errors import FormValidationError, ShopError
from api.models import AddressDraft, PaymentLink, UserProfile
from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)

PIN_CODE_RE = re.compile(r"^\d{6}$")
MOBILE_RE = re.compile(r"^[6-9]\d{9}$")
MIN_ADDRESS_LENGTH = 10

DEFAULT_SUCCESS_MESSAGE = "Payment successful."


class CheckoutStatus(Enum):
    EDITING = "editing"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    AWAITING_EXTERNAL_PAYMENT = "awaiting_external_payment"
    VERIFYING = "verifying"
    DONE = "done"


def validate_address(draft: AddressDraft) -> Dict[str, str]:
    """
    Same acceptance rules as the order endpoint.
    Returns {field: message}; empty when the draft is valid.
    """
    errors: Dict[str, str] = {}

    if not draft.locality.strip():
        errors["locality"] = "Locality is required"

    address = draft.address.strip()
    if not address:
        errors["address"] = "Address is required"
    elif len(address) < MIN_ADDRESS_LENGTH:
        errors["address"] = f"Address must be at least {MIN_ADDRESS_LENGTH} characters"

    if not draft.city.strip():
        errors["city"] = "City is required"

    if not draft.state.strip():
        errors["state"] = "State is required"

    pin_code = draft.pin_code.strip()
    if not pin_code:
        errors["pin_code"] = "Pin code is required"
    elif not PIN_CODE_RE.match(pin_code):
        errors["pin_code"] = "Pin code must be exactly 6 digits"

    mobile = draft.mobile.strip()
    if not mobile:
        errors["mobile"] = "Mobile number is required"
    elif not MOBILE_RE.match(mobile):
        errors["mobile"] = "Mobile number must be 10 digits starting with 6-9"

    return errors


class CheckoutFlow:
    """
    One-shot checkout: edit the address, create the order, hand the payment
    over to the provider's hosted page. Not resumable; build a new flow for
    a new attempt.
    """

    def __init__(
        self,
        client: ApiClient,
        open_url: Callable[[str], Any] = webbrowser.open_new_tab,
        draft: Optional[AddressDraft] = None,
    ) -> None:
        self._client = client
        self._open_url = open_url
        self.draft = draft or AddressDraft(state=config.DEFAULT_SHIPPING_STATE)
        self.status = CheckoutStatus.EDITING
        self.field_errors: Dict[str, str] = {}
        self.error: Optional[str] = None
        self.payment_link: Optional[PaymentLink] = None

    def edit(self, field: str, value: str) -> None:
        if self.status != CheckoutStatus.EDITING:
            raise ShopError("This order has already been submitted.")
        if not hasattr(self.draft, field):
            raise KeyError(field)
        setattr(self.draft, field, value)
        self.field_errors.pop(field, None)
        self.error = None

    def prefill(self, profile: UserProfile) -> None:
        """Use the profile phone number unless the user typed one already."""
        if profile.phone_number and not self.draft.mobile:
            self.draft.mobile = profile.phone_number

    def validate(self) -> bool:
        self.status = CheckoutStatus.VALIDATING
        self.field_errors = validate_address(self.draft)
        if self.field_errors:
            self.status = CheckoutStatus.EDITING
            return False
        return True

    async def submit(self, payment_method: str = "RAZORPAY") -> PaymentLink:
        """
        Validate, create the order and open the hosted payment page.
        Does not wait for the payment outcome.
        """
        if self.status != CheckoutStatus.EDITING:
            raise ShopError("This order has already been submitted.")
        if not self.validate():
            raise FormValidationError(self.field_errors)

        self.status = CheckoutStatus.SUBMITTING
        self.error = None
        try:
            link = await services.create_order(self._client, self.draft, payment_method)
        except ShopError as e:
            self.status = CheckoutStatus.EDITING
            self.error = e.message
            raise

        self.payment_link = link
        self.status = CheckoutStatus.AWAITING_EXTERNAL_PAYMENT
        _logger.info(f"Order {link.order_id} created, amount {link.amount}.")
        if link.payment_url:
            self._open_url(link.payment_url)
        return link


@dataclass(frozen=True)
class PaymentReturn:
    order_id: Optional[int]
    payment_id: Optional[str]
    payment_link_id: Optional[str]

    @property
    def can_verify(self) -> bool:
        return bool(self.payment_id and self.payment_link_id)


def parse_payment_return(url: str, order_id: Optional[int] = None) -> PaymentReturn:
    """
    Read the provider's redirect, e.g.
    /payment-success/12?payment_id=pay_1&payment_link_id=plink_1
    A bare query string is accepted as well.
    """
    url = (url or "").strip()
    if url and "?" not in url and "=" in url:
        url = "?" + url
    parts = urlsplit(url)
    query = parse_qs(parts.query)

    def first(*names: str) -> Optional[str]:
        for name in names:
            values = query.get(name)
            if values and values[0]:
                return values[0]
        return None

    if order_id is None:
        segments = [s for s in parts.path.split("/") if s]
        if len(segments) >= 2 and segments[-2] == "payment-success":
            try:
                order_id = int(segments[-1])
            except ValueError:
                order_id = None

    return PaymentReturn(
        order_id=order_id,
        payment_id=first("payment_id", "razorpay_payment_id"),
        payment_link_id=first("payment_link_id", "razorpay_payment_link_id"),
    )


class PaymentVerification:
    """
    Best-effort status check on the landing view. Never fails: the order
    status belongs to the backend and is reconciled there.
    """

    def __init__(self, client: ApiClient, payment_return: PaymentReturn) -> None:
        self._client = client
        self.payment_return = payment_return
        self.status = CheckoutStatus.AWAITING_EXTERNAL_PAYMENT
        self.message = DEFAULT_SUCCESS_MESSAGE

    async def run(self) -> str:
        if not self.payment_return.can_verify:
            self.status = CheckoutStatus.DONE
            return self.message

        self.status = CheckoutStatus.VERIFYING
        try:
            message = await services.verify_payment(
                self._client,
                self.payment_return.payment_id,
                self.payment_return.payment_link_id,
            )
            if message:
                self.message = message
        except ShopError as e:
            _logger.warning(f"Payment verification failed: {e.message}")
        finally:
            self.status = CheckoutStatus.DONE
        return self.message
