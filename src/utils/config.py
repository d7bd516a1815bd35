# runtime settings, read once from the environment
import os

API_URL = os.getenv("SHOP_API_URL", "http://localhost:8080/api")

# otp mails are slow on the backend side, keep this generous
REQUEST_TIMEOUT = float(os.getenv("SHOP_REQUEST_TIMEOUT", "120"))

STORAGE_PATH = os.getenv("SHOP_STORAGE_PATH", "data/storage.sqlite")

LOG_FILE = os.getenv("SHOP_LOG_FILE")
DEBUG = bool(os.getenv("DEBUG"))

APP_TITLE = "Electro Shop"

DEFAULT_SHIPPING_STATE = "Gujarat"
PAGE_SIZE = 10


def image_base_url(api_url: str | None = None) -> str:
    """Media files are served from the API host, without the /api prefix."""
    url = (api_url or API_URL).rstrip("/")
    if url.endswith("/api"):
        url = url[: -len("/api")]
    return url
