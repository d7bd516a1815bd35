from typing import Optional

from api.client import ApiClient
from api.errors import ShopError
from state.caches import CartCache, WishlistCache
from state.session import Session, SessionStore
from utils.logger import get_logger

_logger = get_logger(__name__)


class ShopContext:
    """
    Everything a screen needs about the current user, passed explicitly.
    The app owns one instance from start-up to exit.
    """

    def __init__(self, client: Optional[ApiClient] = None) -> None:
        self.client = client or ApiClient()
        self.session = SessionStore(self.client)
        self.cart = CartCache(self.client)
        self.wishlist = WishlistCache(self.client)

        # caches subscribe first so they are reset before any other listener runs
        self.session.subscribe(self.cart.on_session_changed)
        self.session.subscribe(self.wishlist.on_session_changed)

    async def init(self) -> Session:
        return await self.session.init()

    async def login(self, email: str, password: str) -> Session:
        return await self.session.login(email, password)

    async def logout(self) -> None:
        await self.session.logout()

    async def refresh_caches(self) -> None:
        """
        Populate cart and wishlist for an ordinary user. Failures stay on the
        cache's `error` for the screens that read it.
        """
        if not CartCache.should_populate(self.session.get_state()):
            return
        for cache in (self.cart, self.wishlist):
            try:
                await cache.fetch()
            except ShopError as e:
                _logger.warning(f"Could not load {cache.name}: {e.message}")

    async def dispose(self) -> None:
        await self.session.dispose()
