from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, List, Optional, TypeVar

from api import services
from api.client import ApiClient
from api.errors import ShopError
from api.models import Cart, CartItem, WishlistProduct
from state.session import Session, SessionEvent
from utils.logger import get_logger

_logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Mutation:
    """A server write. Local state is never touched by the write itself."""

    description: str
    send: Callable[[], Awaitable[Any]]


class ServerBackedCache(Generic[T]):
    """
    Collection whose only source of truth is the backend.

    Every change is a two-phase operation: `mutate()` sends the write,
    `reconcile()` re-reads the whole collection and replaces local state.
    `apply()` runs both as one logical await.
    """

    name = "cache"

    def __init__(self, client: ApiClient) -> None:
        self._client = client
        self.state: Optional[T] = None
        self.error: Optional[str] = None
        self.is_loading = False
        # bumped on reset, responses from an older epoch are dropped
        self._epoch = 0

    @staticmethod
    def should_populate(session: Session) -> bool:
        """Only ordinary users own a cart or a wishlist."""
        return session.is_shopper

    async def _load(self) -> T:
        raise NotImplementedError

    def reset(self) -> None:
        self._epoch += 1
        self.state = None
        self.error = None
        self.is_loading = False

    def on_session_changed(self, session: Session, event: SessionEvent) -> None:
        if not self.should_populate(session):
            self.reset()

    async def fetch(self) -> Optional[T]:
        epoch = self._epoch
        self.is_loading = True
        self.error = None
        try:
            result = await self._load()
        except ShopError as e:
            if epoch == self._epoch:
                self.error = e.message
            raise
        finally:
            if epoch == self._epoch:
                self.is_loading = False
        if epoch != self._epoch:
            _logger.debug(f"Discarding stale {self.name} response.")
            return self.state
        self.state = result
        return self.state

    async def reconcile(self) -> Optional[T]:
        return await self.fetch()

    async def mutate(self, mutation: Mutation) -> Any:
        _logger.debug(f"{self.name}: {mutation.description}")
        epoch = self._epoch
        self.error = None
        try:
            return await mutation.send()
        except ShopError as e:
            if epoch == self._epoch:
                self.error = e.message
            raise

    async def apply(self, mutation: Mutation) -> Optional[T]:
        epoch = self._epoch
        await self.mutate(mutation)
        if epoch != self._epoch:
            # reset while the write was in flight, nobody owns this cache now
            return self.state
        return await self.reconcile()


class CartCache(ServerBackedCache[Cart]):
    name = "cart"

    async def _load(self) -> Cart:
        return await services.get_cart(self._client)

    @property
    def cart(self) -> Optional[Cart]:
        return self.state

    def item_for(self, product_id: int) -> Optional[CartItem]:
        if self.state is None:
            return None
        for item in self.state.items:
            if item.product.id == product_id:
                return item
        return None

    def add_mutation(self, product_id: int, quantity: int = 1) -> Mutation:
        if quantity < 1:
            raise ValueError("Quantity must be at least 1.")
        return Mutation(
            f"add product {product_id} x{quantity}",
            lambda: services.add_to_cart(self._client, product_id, quantity),
        )

    def update_mutation(self, item_id: int, quantity: int) -> Mutation:
        if quantity < 1:
            raise ValueError("Quantity must be at least 1.")
        return Mutation(
            f"set item {item_id} to x{quantity}",
            lambda: services.update_cart_item(self._client, item_id, quantity),
        )

    def remove_mutation(self, item_id: int) -> Mutation:
        return Mutation(
            f"remove item {item_id}",
            lambda: services.remove_cart_item(self._client, item_id),
        )

    def clear_mutation(self) -> Mutation:
        return Mutation("clear", lambda: services.clear_cart(self._client))

    async def add(self, product_id: int, quantity: int = 1) -> Optional[Cart]:
        return await self.apply(self.add_mutation(product_id, quantity))

    async def update(self, item_id: int, quantity: int) -> Optional[Cart]:
        return await self.apply(self.update_mutation(item_id, quantity))

    async def remove(self, item_id: int) -> Optional[Cart]:
        return await self.apply(self.remove_mutation(item_id))

    async def clear(self) -> Optional[Cart]:
        return await self.apply(self.clear_mutation())


class WishlistCache(ServerBackedCache[List[WishlistProduct]]):
    name = "wishlist"

    async def _load(self) -> List[WishlistProduct]:
        return await services.get_wishlist(self._client)

    @property
    def items(self) -> List[WishlistProduct]:
        return list(self.state or [])

    def contains(self, product_id: int) -> bool:
        return any(p.id == product_id for p in self.state or [])

    def add_mutation(self, product_id: int) -> Mutation:
        return Mutation(
            f"add product {product_id}",
            lambda: services.add_to_wishlist(self._client, product_id),
        )

    def remove_mutation(self, product_id: int) -> Mutation:
        return Mutation(
            f"remove product {product_id}",
            lambda: services.remove_from_wishlist(self._client, product_id),
        )

    async def add(self, product_id: int) -> Optional[List[WishlistProduct]]:
        return await self.apply(self.add_mutation(product_id))

    async def remove(self, product_id: int) -> Optional[List[WishlistProduct]]:
        return await self.apply(self.remove_mutation(product_id))

    async def toggle(self, product_id: int) -> bool:
        """Add or remove depending on server-confirmed membership; returns it."""
        if self.contains(product_id):
            await self.remove(product_id)
        else:
            await self.add(product_id)
        return self.contains(product_id)
