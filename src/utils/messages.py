# app-wide textual messages; all bubble up to the App
from textual.message import Message


class QuitRequestedMessage(Message):
    """Quit confirmed in the dialog."""


class UserLogoutMessage(Message):
    """Sign-out confirmed; the app pushes the cart to the server before dropping the session."""


class CartChangedMessage(Message):
    """
    The local cart changed, including rollbacks after a failed save.
    Posted by a screen's own cart store subscription, so it reaches that screen.
    """

    def __init__(self, count: int, total: float) -> None:
        super().__init__()
        self.count = count
        self.total = total


class NewOrderMessage(Message):
    def __init__(self, order_id: int) -> None:
        super().__init__()
        self.order_id = order_id
