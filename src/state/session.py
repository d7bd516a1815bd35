from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from api import services
from api.client import ApiClient
from api.errors import ShopError
from api.models import PasswordResetRequest, RegistrationRequest, Role
from state import claims, storage
from utils.logger import get_logger

_logger = get_logger(__name__)

# durable keys, one string entry each
STORAGE_KEYS = ("token", "role", "email", "fullName")


@dataclass(frozen=True)
class Session:
    """
    Who is using the app. Replaced as a whole, never patched.

    Fields:
      - token: opaque bearer credential, "" when anonymous
      - role: only meaningful while authenticated
      - user_id: best-effort from the token claims, 0 when unknown
    """

    token: str = ""
    role: Optional[Role] = None
    email: str = ""
    display_name: str = ""
    user_id: int = 0

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def is_shopper(self) -> bool:
        return self.is_authenticated and self.role == Role.USER

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.role is not None and self.role.is_admin


ANONYMOUS = Session()


class SessionEvent(Enum):
    """Why the session was replaced."""

    HYDRATED = "hydrated"
    LOGGED_IN = "logged_in"
    LOGGED_OUT = "logged_out"
    EXPIRED = "expired"  # 401 from the backend


SessionListener = Callable[[Session, SessionEvent], None]


class SessionStore:
    """
    Single source of truth for the current session.

    Lifecycle: init() -> get_state()/subscribe() -> dispose().
    Listeners are plain callables invoked synchronously, in subscription
    order, every time the session is replaced.
    """

    def __init__(self, client: ApiClient) -> None:
        self._client = client
        self._session: Session = ANONYMOUS
        self._listeners: List[SessionListener] = []

        # transient form state, cleared explicitly by the views
        self.error: Optional[str] = None
        self.is_loading = False

        client.bind(lambda: self._session.token or None, self.invalidate)

    # ---------- lifecycle ----------

    async def init(self) -> Session:
        return await self.hydrate_from_storage()

    def get_state(self) -> Session:
        return self._session

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def dispose(self) -> None:
        self._listeners.clear()
        self._client.close()

    def _replace(self, session: Session, event: SessionEvent) -> None:
        self._session = session
        for listener in list(self._listeners):
            listener(session, event)

    # ---------- session ----------

    async def hydrate_from_storage(self) -> Session:
        """
        Rebuild the last session from durable storage, without asking the
        backend. A stale token only shows up as a 401 later on.
        """
        stored = await storage.get_items(STORAGE_KEYS)
        token = stored["token"] or ""
        role = Role.parse(stored["role"])

        if not token or role is None:
            if any(stored.values()):
                _logger.info("Discarding incomplete stored session.")
                await storage.remove_items(STORAGE_KEYS)
            self._replace(ANONYMOUS, SessionEvent.HYDRATED)
            return self._session

        self._replace(
            Session(
                token=token,
                role=role,
                email=stored["email"] or "",
                display_name=stored["fullName"] or "",
                user_id=claims.extract_user_id(token) or 0,
            ),
            SessionEvent.HYDRATED,
        )
        _logger.info(f"Restored session for {self._session.email} ({role.value}).")
        return self._session

    async def login(self, email: str, password: str) -> Session:
        """
        Authenticate and persist the new session.
        The backend's rejection message is stored in `error` and re-raised.
        """
        self.error = None
        self.is_loading = True
        try:
            response = await services.login(self._client, email, password)
        except ShopError as e:
            self.error = e.message
            raise
        finally:
            self.is_loading = False

        if not response.jwt or response.role is None:
            self.error = response.message or "Login failed"
            raise ShopError(self.error)

        session = Session(
            token=response.jwt,
            role=response.role,
            email=email.strip().lower(),
            display_name=response.full_name,
            user_id=claims.extract_user_id(response.jwt) or 0,
        )
        await storage.set_items(
            {
                "token": session.token,
                "role": session.role.value,
                "email": session.email,
                "fullName": session.display_name,
            }
        )
        self._replace(session, SessionEvent.LOGGED_IN)
        _logger.info(f"Logged in as {session.email} ({session.role.value}).")
        return session

    async def logout(self, event: SessionEvent = SessionEvent.LOGGED_OUT) -> None:
        """
        Always succeeds. Memory and listeners first, so caches are reset
        before anything awaits; durable storage after.
        """
        was_authenticated = self._session.is_authenticated
        self.error = None
        self._replace(ANONYMOUS, event)
        await storage.remove_items(STORAGE_KEYS)
        if was_authenticated:
            _logger.info(f"Session ended ({event.value}).")

    async def invalidate(self) -> None:
        """The backend rejected the token; forget it."""
        if not self._session.is_authenticated:
            # bad credentials on the login form, nothing to expire
            return
        await self.logout(SessionEvent.EXPIRED)

    def clear_error(self) -> None:
        self.error = None

    # ---------- one-shot account requests ----------

    async def _one_shot(self, call) -> str:
        self.error = None
        self.is_loading = True
        try:
            return await call
        except ShopError as e:
            self.error = e.message
            raise
        finally:
            self.is_loading = False

    async def send_registration_otp(self, email: str) -> str:
        return await self._one_shot(
            services.send_register_otp(self._client, email.strip().lower())
        )

    async def register(self, request: RegistrationRequest) -> str:
        return await self._one_shot(services.register(self._client, request))

    async def send_password_reset_otp(self, email: str) -> str:
        return await self._one_shot(
            services.send_forgot_password_otp(self._client, email.strip().lower())
        )

    async def reset_password(self, request: PasswordResetRequest) -> str:
        return await self._one_shot(services.reset_password(self._client, request))
