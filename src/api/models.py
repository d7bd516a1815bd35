# provide dataclass models for backend payloads

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class Role(str, Enum):
    USER = "ROLE_USER"
    ADMIN = "ROLE_ADMIN"
    SUPER_ADMIN = "ROLE_SUPER_ADMIN"

    @classmethod
    def parse(cls, value) -> Optional["Role"]:
        """Return the matching Role, or None for unknown/empty values."""
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def is_admin(self) -> bool:
        return self in (Role.ADMIN, Role.SUPER_ADMIN)


@dataclass(frozen=True)
class AuthResponse:
    jwt: str
    role: Optional[Role]
    full_name: str
    message: str


@dataclass(frozen=True)
class Category:
    id: int
    name: str
    image_url: Optional[str] = None
    product_count: int = 0


@dataclass(frozen=True)
class Product:
    id: int
    title: str
    description: str
    mrp_price: float
    selling_price: float
    discount_percent: int
    quantity: int  # units in stock
    color: str
    brand: str
    images: List[str]
    category: str


@dataclass(frozen=True)
class ProductPage:
    content: List[Product]
    total_elements: int
    total_pages: int
    number: int  # zero based
    size: int


@dataclass(frozen=True)
class ProductFilters:
    category: Optional[str] = None
    brand: Optional[str] = None
    colors: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_discount: Optional[int] = None
    sort: Optional[str] = None  # "price_low" | "price_high"
    page_number: int = 0

    def to_params(self) -> Dict[str, object]:
        params = {
            "category": self.category,
            "brand": self.brand,
            "colors": self.colors,
            "minPrice": self.min_price,
            "maxPrice": self.max_price,
            "minDiscount": self.min_discount,
            "sort": self.sort,
            "pageNumber": self.page_number,
        }
        return {k: v for k, v in params.items() if v not in (None, "")}


@dataclass(frozen=True)
class CartItem:
    id: int
    product: Product
    quantity: int
    mrp_price: float  # line totals, computed by the backend
    selling_price: float
    user_id: int


@dataclass(frozen=True)
class Cart:
    id: int
    items: List[CartItem]
    total_selling_price: float
    total_item: int
    total_mrp_price: float
    discount: int  # percent

    @property
    def is_empty(self) -> bool:
        return not self.items


@dataclass(frozen=True)
class WishlistProduct:
    id: int
    title: str
    description: str
    mrp_price: float
    selling_price: float
    color: str
    images: List[str]
    category: str


@dataclass
class AddressDraft:
    """Shipping address as typed in the checkout form."""

    locality: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    pin_code: str = ""
    mobile: str = ""

    def to_json(self) -> Dict[str, str]:
        return {
            "locality": self.locality.strip(),
            "address": self.address.strip(),
            "city": self.city.strip(),
            "state": self.state.strip(),
            "pinCode": self.pin_code.strip(),
            "mobile": self.mobile.strip(),
        }


@dataclass(frozen=True)
class PaymentLink:
    order_id: int
    amount: float
    payment_method: str
    message: str
    payment_url: Optional[str] = None


@dataclass(frozen=True)
class OrderItem:
    id: int
    product_id: int
    product_name: str
    quantity: int
    selling_price: float
    total_price: float


@dataclass(frozen=True)
class Order:
    id: int
    user_email: str
    total_selling_price: float
    total_mrp_price: Optional[float]
    discount: int
    total_item: int
    order_status: str
    order_date: str
    delivered_date: Optional[str]
    items: List[OrderItem] = field(default_factory=list)
    shipping_address: Optional[Dict[str, str]] = None

    @property
    def is_cancellable(self) -> bool:
        return self.order_status in ("PENDING", "PLACED", "CONFIRMED")


ORDER_STATUSES = ["PENDING", "PLACED", "CONFIRMED", "SHIPPED", "DELIVERED", "CANCELLED"]


@dataclass(frozen=True)
class UserProfile:
    email: str
    full_name: str
    phone_number: Optional[str] = None
    role: Optional[str] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class DashboardStats:
    total_users: int
    total_orders: int
    total_revenue: float
    total_products: int
    total_cancelled_orders: int
    total_refund_amount: float
    total_categories: int


@dataclass(frozen=True)
class UserSummary:
    id: int
    full_name: str
    email: str


@dataclass(frozen=True)
class AdminAccount:
    id: int
    admin_name: str
    email: str
    role: Optional[Role]


@dataclass(frozen=True)
class RegistrationRequest:
    email: str
    full_name: str
    phone_number: str
    password: str
    confirm_password: str
    otp: str

    def to_json(self) -> Dict[str, str]:
        return {
            "email": self.email,
            "fullName": self.full_name,
            "phoneNumber": self.phone_number,
            "password": self.password,
            "confirmPassword": self.confirm_password,
            "otp": self.otp,
        }


@dataclass(frozen=True)
class PasswordResetRequest:
    email: str
    otp: str
    password: str
    confirm_password: str

    def to_json(self) -> Dict[str, str]:
        return {
            "email": self.email,
            "otp": self.otp,
            "password": self.password,
            "confirmPassword": self.confirm_password,
        }
