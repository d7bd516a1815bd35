from __future__ import annotations

from typing import Any, Dict, List, Optional

from api import models
from api.client import ApiClient


def _to_int(val, default: Optional[int] = 0) -> Optional[int]:
    try:
        return int(val)
    except (TypeError, ValueError):
        return default


def _to_float(val, default: float = 0.0) -> float:
    try:
        return float(val)
    except (TypeError, ValueError):
        return default


def _message(payload: Any, default: str) -> str:
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    if isinstance(payload, str) and payload.strip():
        return payload.strip()
    return default


# ---------------------------
# Payload -> model helpers
# ---------------------------


def product_from_json(d: Dict[str, Any]) -> models.Product:
    category = d.get("category")
    # product endpoints nest the category, wishlist/cart snapshots may flatten it
    if isinstance(category, dict):
        category = category.get("name") or category.get("categoryName") or ""
    return models.Product(
        id=_to_int(d.get("id")),
        title=d.get("title") or "",
        description=d.get("description") or "",
        mrp_price=_to_float(d.get("mrpPrice")),
        selling_price=_to_float(d.get("sellingPrice")),
        discount_percent=_to_int(d.get("discountPercent")),
        quantity=_to_int(d.get("quantity")),
        color=d.get("color") or "",
        brand=d.get("brand") or "",
        images=list(d.get("images") or []),
        category=category or "",
    )


def _page_from_json(payload: Dict[str, Any]) -> models.ProductPage:
    return models.ProductPage(
        content=[product_from_json(p) for p in payload.get("content") or []],
        total_elements=_to_int(payload.get("totalElements")),
        total_pages=_to_int(payload.get("totalPages")),
        number=_to_int(payload.get("number")),
        size=_to_int(payload.get("size")),
    )


def cart_from_json(d: Dict[str, Any]) -> models.Cart:
    items = [
        models.CartItem(
            id=_to_int(i.get("id")),
            product=product_from_json(i.get("product") or {}),
            quantity=_to_int(i.get("quantity")),
            mrp_price=_to_float(i.get("mrpPrice")),
            selling_price=_to_float(i.get("sellingPrice")),
            user_id=_to_int(i.get("userId")),
        )
        for i in d.get("cartItems") or []
    ]
    return models.Cart(
        id=_to_int(d.get("id")),
        items=items,
        total_selling_price=_to_float(d.get("totalSellingPrice")),
        total_item=_to_int(d.get("totalItem")),
        total_mrp_price=_to_float(d.get("totalMrpPrice")),
        discount=_to_int(d.get("discount")),
    )


def category_from_json(d: Dict[str, Any]) -> models.Category:
    return models.Category(
        id=_to_int(d.get("id")),
        name=d.get("categoryName") or "",
        image_url=d.get("imageUrl"),
        product_count=_to_int(d.get("productCount")),
    )


def wishlist_from_json(payload: Any) -> List[models.WishlistProduct]:
    """Accepts both {"products": [...]} and a bare list."""
    if isinstance(payload, dict):
        payload = payload.get("products")
    return [
        models.WishlistProduct(
            id=_to_int(p.get("id")),
            title=p.get("title") or "",
            description=p.get("description") or "",
            mrp_price=_to_float(p.get("mrpPrice")),
            selling_price=_to_float(p.get("sellingPrice")),
            color=p.get("color") or "",
            images=list(p.get("images") or []),
            category=p.get("category") or "",
        )
        for p in payload or []
    ]


def order_from_json(d: Dict[str, Any]) -> models.Order:
    items = [
        models.OrderItem(
            id=_to_int(i.get("id")),
            product_id=_to_int(i.get("productId")),
            product_name=i.get("productName") or "",
            quantity=_to_int(i.get("quantity")),
            selling_price=_to_float(i.get("sellingPrice")),
            total_price=_to_float(i.get("totalPrice")),
        )
        for i in d.get("items") or []
    ]
    mrp = d.get("totalMrpPrice")
    user = d.get("user") or {}
    return models.Order(
        id=_to_int(d.get("id")),
        user_email=d.get("userEmail") or user.get("email") or "",
        total_selling_price=_to_float(d.get("totalSellingPrice")),
        total_mrp_price=_to_float(mrp) if mrp is not None else None,
        discount=_to_int(d.get("discount")),
        total_item=_to_int(d.get("totalItem")),
        order_status=d.get("orderStatus") or "",
        order_date=d.get("orderDate") or "",
        delivered_date=d.get("deliveredDate"),
        items=items,
        # "address" is the legacy name of the same field
        shipping_address=d.get("shippingAddress") or d.get("address"),
    )


def _admin_from_json(d: Dict[str, Any]) -> models.AdminAccount:
    return models.AdminAccount(
        id=_to_int(d.get("id")),
        admin_name=d.get("adminName") or "",
        email=d.get("email") or "",
        role=models.Role.parse(d.get("role")),
    )


# ---------------------------
# Auth & Registration
# ---------------------------


async def send_register_otp(client: ApiClient, email: str) -> str:
    payload = await client.post("/auth/register/send-otp", json={"email": email})
    return _message(payload, "OTP sent to your email.")


async def register(client: ApiClient, request: models.RegistrationRequest) -> str:
    payload = await client.post("/auth/register", json=request.to_json())
    return _message(payload, "Registration successful.")


async def login(client: ApiClient, email: str, password: str) -> models.AuthResponse:
    payload = await client.post(
        "/auth/login", json={"email": email, "password": password}
    )
    payload = payload or {}
    return models.AuthResponse(
        jwt=payload.get("jwt") or "",
        role=models.Role.parse(payload.get("role")),
        full_name=payload.get("fullName") or "",
        message=payload.get("message") or "",
    )


async def send_forgot_password_otp(client: ApiClient, email: str) -> str:
    payload = await client.post(
        "/auth/forgot-password/send-otp", json={"email": email}
    )
    return _message(payload, "OTP sent to your email.")


async def reset_password(
    client: ApiClient, request: models.PasswordResetRequest
) -> str:
    payload = await client.post("/auth/forgot-password/reset", json=request.to_json())
    return _message(payload, "Password reset successful.")


# ---------------------------
# Catalog
# ---------------------------


async def list_products(
    client: ApiClient, filters: Optional[models.ProductFilters] = None
) -> models.ProductPage:
    filters = filters or models.ProductFilters()
    payload = await client.get("/products", params=filters.to_params()) or {}
    # some deployments return the plain list instead of a page
    if isinstance(payload, list):
        content = [product_from_json(p) for p in payload]
        return models.ProductPage(content, len(content), 1, 0, len(content))
    return _page_from_json(payload)


async def get_product(client: ApiClient, product_id: int) -> models.Product:
    return product_from_json(await client.get(f"/products/{product_id}") or {})


async def search_products(client: ApiClient, query: str) -> List[models.Product]:
    """Keyword search; an empty query returns nothing without hitting the server."""
    query = (query or "").strip()
    if not query:
        return []
    payload = await client.get("/products/search", params={"query": query})
    return [product_from_json(p) for p in payload or []]


async def list_categories(client: ApiClient) -> List[models.Category]:
    payload = await client.get("/products/categories")
    return [category_from_json(c) for c in payload or []]


# ---------------------------
# Profile
# ---------------------------


async def get_profile(client: ApiClient) -> models.UserProfile:
    d = await client.get("/user/profile") or {}
    return models.UserProfile(
        email=d.get("email") or "",
        full_name=d.get("fullName") or "",
        phone_number=d.get("phoneNumber"),
        role=d.get("role"),
        id=_to_int(d.get("id"), None),
    )


async def update_profile(
    client: ApiClient,
    full_name: Optional[str] = None,
    phone_number: Optional[str] = None,
) -> models.UserProfile:
    body = {"fullName": full_name, "phoneNumber": phone_number}
    await client.put(
        "/user/profile", json={k: v for k, v in body.items() if v is not None}
    )
    return await get_profile(client)


async def change_password(
    client: ApiClient, old_password: str, new_password: str
) -> str:
    payload = await client.put(
        "/user/change-password",
        json={"oldPassword": old_password, "newPassword": new_password},
    )
    return _message(payload, "Password changed.")


# ---------------------------
# Cart
# ---------------------------


async def get_cart(client: ApiClient) -> models.Cart:
    return cart_from_json(await client.get("/user/cart") or {})


async def add_to_cart(client: ApiClient, product_id: int, quantity: int) -> None:
    await client.post(
        "/user/cart/add", json={"productId": product_id, "quantity": quantity}
    )


async def update_cart_item(client: ApiClient, item_id: int, quantity: int) -> None:
    await client.put(f"/user/cart/item/{item_id}", json={"quantity": quantity})


async def remove_cart_item(client: ApiClient, item_id: int) -> None:
    await client.delete(f"/user/cart/item/{item_id}")


async def clear_cart(client: ApiClient) -> None:
    await client.delete("/user/cart/clear")


# ---------------------------
# Wishlist
# ---------------------------


async def get_wishlist(client: ApiClient) -> List[models.WishlistProduct]:
    return wishlist_from_json(await client.get("/wishlist"))


async def add_to_wishlist(client: ApiClient, product_id: int) -> None:
    await client.post(f"/wishlist/{product_id}")


async def remove_from_wishlist(client: ApiClient, product_id: int) -> None:
    await client.delete(f"/wishlist/{product_id}")


# ---------------------------
# Orders & Payment
# ---------------------------


async def create_order(
    client: ApiClient, address: models.AddressDraft, payment_method: str = "RAZORPAY"
) -> models.PaymentLink:
    d = (
        await client.post(
            "/orders", json=address.to_json(), params={"paymentMethod": payment_method}
        )
        or {}
    )
    return models.PaymentLink(
        order_id=_to_int(d.get("orderId")),
        amount=_to_float(d.get("amount")),
        payment_method=d.get("paymentMethod") or payment_method,
        message=d.get("message") or "",
        payment_url=d.get("paymentUrl") or None,
    )


async def list_user_orders(client: ApiClient) -> List[models.Order]:
    return [order_from_json(o) for o in await client.get("/orders/user") or []]


async def get_order(client: ApiClient, order_id: int) -> models.Order:
    return order_from_json(await client.get(f"/orders/{order_id}") or {})


async def cancel_order(client: ApiClient, order_id: int) -> models.Order:
    return order_from_json(await client.put(f"/orders/{order_id}/cancel") or {})


async def verify_payment(
    client: ApiClient, payment_id: str, payment_link_id: str
) -> str:
    payload = await client.get(
        f"/payment/{payment_id}", params={"paymentLinkId": payment_link_id}
    )
    return _message(payload, "")


# ---------------------------
# Admin
# ---------------------------


async def dashboard_stats(client: ApiClient) -> models.DashboardStats:
    d = await client.get("/admin/dashboard/stats") or {}
    return models.DashboardStats(
        total_users=_to_int(d.get("totalUsers")),
        total_orders=_to_int(d.get("totalOrders")),
        total_revenue=_to_float(d.get("totalRevenue")),
        total_products=_to_int(d.get("totalProducts")),
        total_cancelled_orders=_to_int(d.get("totalCancelledOrders")),
        total_refund_amount=_to_float(d.get("totalRefundAmount")),
        total_categories=_to_int(d.get("totalCategories")),
    )


async def order_status_counts(client: ApiClient) -> Dict[str, int]:
    d = await client.get("/admin/dashboard/order-status") or {}
    return {str(k): _to_int(v) for k, v in d.items()}


async def admin_list_orders(client: ApiClient) -> List[models.Order]:
    return [order_from_json(o) for o in await client.get("/admin/orders") or []]


async def admin_orders_by_status(client: ApiClient, status: str) -> List[models.Order]:
    payload = await client.get(f"/admin/orders/status/{status}")
    return [order_from_json(o) for o in payload or []]


async def admin_get_order(client: ApiClient, order_id: int) -> models.Order:
    return order_from_json(await client.get(f"/admin/orders/{order_id}") or {})


async def admin_update_order_status(
    client: ApiClient, order_id: int, status: str
) -> models.Order:
    payload = await client.put(
        f"/admin/orders/{order_id}/status", params={"status": status}
    )
    return order_from_json(payload or {})


async def admin_list_products(
    client: ApiClient, filters: Optional[models.ProductFilters] = None
) -> models.ProductPage:
    filters = filters or models.ProductFilters()
    payload = await client.get("/admin/products", params=filters.to_params())
    return _page_from_json(payload or {})


async def admin_update_stock(
    client: ApiClient, product_id: int, new_stock: int
) -> models.Product:
    if new_stock < 0:
        raise ValueError("Stock cannot be negative.")
    payload = await client.patch(
        f"/admin/products/{product_id}/stock", params={"newStock": new_stock}
    )
    return product_from_json(payload or {})


async def admin_delete_product(client: ApiClient, product_id: int) -> None:
    await client.delete(f"/admin/products/{product_id}")


async def admin_list_categories(client: ApiClient) -> List[models.Category]:
    return [category_from_json(c) for c in await client.get("/admin/categories") or []]


async def admin_get_category(client: ApiClient, category_id: int) -> models.Category:
    payload = await client.get(f"/admin/categories/{category_id}")
    return category_from_json(payload or {})


async def admin_delete_category(client: ApiClient, category_id: int) -> str:
    payload = await client.delete(f"/admin/categories/{category_id}")
    return _message(payload, "Category deleted.")


async def get_admin_profile(client: ApiClient) -> models.AdminAccount:
    return _admin_from_json(await client.get("/admin/profile") or {})


async def admin_change_password(
    client: ApiClient, old_password: str, new_password: str
) -> str:
    payload = await client.put(
        "/admin/change-password",
        json={"oldPassword": old_password, "newPassword": new_password},
    )
    return _message(payload, "Password changed.")


async def admin_list_users(client: ApiClient) -> List[models.UserSummary]:
    return [
        models.UserSummary(
            id=_to_int(u.get("id")),
            full_name=u.get("fullName") or "",
            email=u.get("email") or "",
        )
        for u in await client.get("/admin/users") or []
    ]


async def admin_delete_user(client: ApiClient, user_id: int) -> str:
    payload = await client.delete(f"/admin/users/{user_id}")
    return _message(payload, "User deleted.")


# ---------------------------
# Super admin
# ---------------------------


async def list_admins(client: ApiClient) -> List[models.AdminAccount]:
    return [_admin_from_json(a) for a in await client.get("/super-admin/admins") or []]


async def create_admin(
    client: ApiClient, admin_name: str, email: str, password: str
) -> models.AdminAccount:
    payload = await client.post(
        "/super-admin/admins",
        json={"adminName": admin_name, "email": email, "password": password},
    )
    return _admin_from_json(payload or {})


async def update_admin(
    client: ApiClient,
    admin_id: int,
    admin_name: Optional[str] = None,
    email: Optional[str] = None,
    password: Optional[str] = None,
) -> models.AdminAccount:
    body = {"adminName": admin_name, "email": email, "password": password}
    payload = await client.put(
        f"/super-admin/admins/{admin_id}",
        json={k: v for k, v in body.items() if v},
    )
    return _admin_from_json(payload or {})


async def delete_admin(client: ApiClient, admin_id: int) -> str:
    payload = await client.delete(f"/super-admin/admins/{admin_id}")
    return _message(payload, "Admin deleted.")
