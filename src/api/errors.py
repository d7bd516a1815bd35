from typing import Any, Dict, Optional


class ShopError(Exception):
    """
    Base for every failure a screen may show to the user.
    `message` is always display-ready.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class FormValidationError(ShopError):
    """Raised before any network call when a form has invalid fields."""

    def __init__(self, field_errors: Dict[str, str]) -> None:
        super().__init__("Please correct the highlighted fields.")
        self.field_errors = dict(field_errors)


class ApiError(ShopError):
    """The backend answered with an error status."""

    def __init__(self, status: int, message: str, payload: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.payload = payload


class AuthenticationError(ApiError):
    """
    401 from any endpoint. The session has already been invalidated
    by the time this reaches a caller.
    """

    def __init__(
        self,
        message: str = "Your session has expired. Please log in again.",
        payload: Optional[Any] = None,
    ) -> None:
        super().__init__(401, message, payload)


class ConnectivityError(ShopError):
    """No response at all, the server is unreachable."""


class RequestTimeoutError(ShopError):
    """The server took longer than the configured timeout."""
