# client-local persisted cart state, survives restarts of the client
import json
import os
from typing import List, Optional, Tuple

from cart.items import CartItem
from utils.logger import get_logger

_logger = get_logger(__name__)

STORAGE_KEY = "min-commerce.cart"


class LocalCartFile:
    """JSON file holding the last known local cart and the subject it belongs to."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> Tuple[Optional[str], List[CartItem]]:
        if not os.path.exists(self.path):
            return None, []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            state = data[STORAGE_KEY]
            items = [CartItem.from_wire(raw) for raw in state.get("items", [])]
            return state.get("subject"), items
        except (OSError, ValueError, KeyError, TypeError) as e:
            _logger.warning(f"Ignoring unreadable local cart {self.path}: {e}")
            return None, []

    def save(self, subject: Optional[str], items: List[CartItem]) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = self.path + ".tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(
                {STORAGE_KEY: {"subject": subject, "items": [i.to_wire() for i in items]}},
                f,
                indent=2,
            )
        os.replace(tmp_path, self.path)
