from textual.message import Message

from state.session import Session, SessionEvent


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user asks to log out
    """

    bubble = True


class SessionChangedMessage(Message):
    """
    Posted at App level whenever the session store replaces the session
    (login, logout, hydration, or a 401 anywhere).
    The app re-admits the current route and may switch screens.
    """

    bubble = True

    def __init__(self, session: Session, event: SessionEvent) -> None:
        super().__init__()
        self.session = session
        self.event = event


class NavigateMessage(Message):
    """
    Ask the app to go somewhere. Every path goes through route admission.
    """

    bubble = True

    def __init__(self, path: str) -> None:
        super().__init__()
        self.path = path


class CartChangedMessage(Message):
    """
    Fired after the cart cache was reconciled with the server.
    Posted to the active screen, which re-renders from the cache.
    """

    bubble = True


class WishlistChangedMessage(Message):
    """
    Fired after the wishlist cache was reconciled with the server.
    """

    bubble = True
