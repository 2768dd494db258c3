"""
Client-side cart store mirrored to the server's cart persistence API.

Local state changes first and the screens see it at once; the persistence
call follows. When that call fails the store puts back the exact snapshot it
had before the change. There is no transaction spanning both sides, so the
rollback is the compensating action. Nothing is retried: the next successful
mutation (or the logout sync) brings the server back in line.

Concurrent mutations are not ordered against each other. A slow call that
fails after a later mutation succeeded restores a snapshot older than that
later change.
"""

from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Union

from auth.tokens import Identity
from cart.client import PersistenceError
from cart.items import CartItem, normalize_id
from cart.local import LocalCartFile
from utils.logger import get_logger

_logger = get_logger(__name__)

ProductLike = Union[CartItem, Mapping[str, Any]]


@dataclass
class Mutation:
    """One optimistic change: what to do locally, how to persist it, how to undo it."""

    name: str
    apply_local: Callable[[], None]
    persist: Callable[[], Awaitable[Any]]
    compensate: Optional[Callable[[], None]] = None


def _valid_quantity(quantity) -> bool:
    return isinstance(quantity, int) and not isinstance(quantity, bool) and quantity >= 1


class CartStore:
    """
    Cart of one subject at a time.

    ``persistence`` is anything with the cart calls of ``StoreClient``:
    ``list_cart``, ``add_cart_row``, ``set_cart_quantity``,
    ``delete_cart_row`` and ``clear_cart_rows``, raising ``PersistenceError``
    on failure.
    """

    def __init__(self, persistence, local: Optional[LocalCartFile] = None):
        self._persistence = persistence
        self._local = local
        self._items: Dict[str, CartItem] = {}
        self._subject: Optional[str] = None
        self._listeners: List[Callable[[], None]] = []
        self.is_loading = False

    # ---------------------------
    # Reading
    # ---------------------------

    @property
    def items(self) -> List[CartItem]:
        return list(self._items.values())

    @property
    def subject_id(self) -> Optional[str]:
        return self._subject

    @property
    def count(self) -> int:
        return sum(i.quantity for i in self._items.values())

    @property
    def total_price(self) -> float:
        return round(sum(i.subtotal for i in self._items.values()), 2)

    def get(self, product_id) -> Optional[CartItem]:
        return self._items.get(normalize_id(product_id))

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Call ``listener`` after every local change; returns the unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ---------------------------
    # Local state
    # ---------------------------

    def restore(self) -> None:
        """Rehydrate from the local file written by a previous run."""
        if not self._local:
            return
        subject, items = self._local.load()
        # the file keeps its owner until a sign-in loads that subject's cart
        self._replace(items, save=False)
        _logger.debug(f"Restored {len(items)} local item(s) last owned by {subject}")

    def _replace(self, items: Iterable[CartItem], save: bool = True) -> None:
        merged: Dict[str, CartItem] = {}
        for item in items:
            pid = normalize_id(item.id)
            if pid in merged:
                merged[pid] = replace(merged[pid], quantity=merged[pid].quantity + item.quantity)
            else:
                merged[pid] = replace(item, id=pid)
        self._items = merged
        self._changed(save)

    def _changed(self, save: bool = True) -> None:
        if save and self._local:
            try:
                self._local.save(self._subject, self.items)
            except OSError as e:
                _logger.warning(f"Could not write local cart: {e}")
        for listener in list(self._listeners):
            listener()

    async def _execute(self, mutation: Mutation) -> bool:
        mutation.apply_local()
        self._changed()
        try:
            await mutation.persist()
        except PersistenceError as e:
            _logger.error(f"Cart {mutation.name} not persisted: {e}")
            if mutation.compensate:
                mutation.compensate()
                self._changed()
            return False
        return True

    def _rollback_to(self, snapshot: Dict[str, CartItem]) -> Callable[[], None]:
        def compensate() -> None:
            self._items = snapshot

        return compensate

    # ---------------------------
    # Sync protocol
    # ---------------------------

    async def load_from_persistent(self, subject_id: str) -> List[CartItem]:
        """Replace the local cart with the subject's persisted rows.

        On failure the local cart is left as it was.
        """
        self._subject = subject_id
        self.is_loading = True
        try:
            rows = await self._persistence.list_cart()
        except PersistenceError as e:
            _logger.error(f"Loading cart of {subject_id} failed: {e}")
            return self.items
        finally:
            self.is_loading = False
        _logger.info(f"Loaded {len(rows)} cart item(s) of {subject_id}")
        self._replace(rows)
        return self.items

    async def add_item(self, product: ProductLike, quantity: int = 1) -> bool:
        """Add ``quantity`` of ``product``, merging with an existing entry.

        A quantity below one changes nothing and sends nothing.
        """
        if not _valid_quantity(quantity):
            _logger.debug(f"Ignoring add of quantity {quantity!r}")
            return False
        base = product if isinstance(product, CartItem) else CartItem.from_product(product, quantity)
        pid = normalize_id(base.id)
        snapshot = dict(self._items)

        def apply_local() -> None:
            existing = self._items.get(pid)
            if existing:
                self._items[pid] = replace(existing, quantity=existing.quantity + quantity)
            else:
                self._items[pid] = replace(base, id=pid, quantity=quantity)

        return await self._execute(
            Mutation(
                "add",
                apply_local,
                lambda: self._persistence.add_cart_row(pid, quantity),
                self._rollback_to(snapshot),
            )
        )

    async def remove_item(self, product_id) -> bool:
        pid = normalize_id(product_id)
        snapshot = dict(self._items)

        def apply_local() -> None:
            self._items = {k: v for k, v in self._items.items() if k != pid}

        return await self._execute(
            Mutation(
                "remove",
                apply_local,
                lambda: self._persistence.delete_cart_row(pid),
                self._rollback_to(snapshot),
            )
        )

    async def update_quantity(self, product_id, quantity: int) -> bool:
        """Set the quantity of an entry; zero or less removes it.

        A quantity that is not a whole number changes nothing and sends nothing.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            _logger.debug(f"Ignoring update to quantity {quantity!r}")
            return False
        if quantity <= 0:
            return await self.remove_item(product_id)
        pid = normalize_id(product_id)
        snapshot = dict(self._items)

        def apply_local() -> None:
            existing = self._items.get(pid)
            if existing:
                self._items[pid] = replace(existing, quantity=quantity)

        return await self._execute(
            Mutation(
                "update",
                apply_local,
                lambda: self._persistence.set_cart_quantity(pid, quantity),
                self._rollback_to(snapshot),
            )
        )

    async def clear(self) -> bool:
        """Empty the cart. The local clear stands even if the server call fails."""

        def apply_local() -> None:
            self._items = {}

        return await self._execute(
            Mutation("clear", apply_local, self._persistence.clear_cart_rows)
        )

    async def sync_on_logout(self) -> bool:
        """
        Push the whole local cart to the server: delete every persisted row,
        then insert each local item again. The local cart is emptied only when
        the push went through.
        """
        items = self.items
        try:
            await self._persistence.clear_cart_rows()
            for item in items:
                await self._persistence.add_cart_row(item.id, item.quantity)
        except PersistenceError as e:
            _logger.error(f"Logout sync of {self._subject} failed: {e}")
            return False
        _logger.info(f"Synced {len(items)} cart item(s) of {self._subject} on logout")
        self._subject = None
        self._replace([])
        return True

    async def handle_identity(self, identity: Optional[Identity]) -> None:
        """
        React to the current identity. A newly present subject loads its cart;
        a subject going away triggers the logout sync. Before any subject has
        been seen an absent identity only means "not known yet" and does
        nothing. Repeating the same identity does nothing either.

        Call this before the client drops its credential so the logout sync
        still runs as the leaving subject.
        """
        current = identity.subject_id if identity and identity.is_authenticated else None
        previous = self._subject
        if current == previous:
            return
        if current is None:
            await self.sync_on_logout()
            return
        if previous:
            _logger.warning(f"Subject changed from {previous} to {current} without a logout")
        await self.load_from_persistent(current)
