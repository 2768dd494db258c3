from dataclasses import asdict, dataclass
from typing import Any, Dict


def normalize_id(product_id: Any) -> str:
    """Catalog ids are numbers, persisted cart ids are strings; compare as strings."""
    return str(product_id).strip()


@dataclass(frozen=True)
class CartItem:
    id: str
    name: str
    price: float
    quantity: int
    image_url: str = ""
    category: str = ""
    stock: int = 0

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity

    @classmethod
    def from_product(cls, product: Dict[str, Any], quantity: int) -> "CartItem":
        """Build an item from a catalog product (``/api/products`` shape)."""
        return cls(
            id=normalize_id(product["id"]),
            name=product.get("name", ""),
            price=float(product.get("price", 0.0)),
            quantity=int(quantity),
            image_url=product.get("imageUrl", "") or "",
            category=product.get("category", "") or "",
            stock=int(product.get("stock", 0) or 0),
        )

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "CartItem":
        return cls.from_product(data, int(data["quantity"]))

    def to_wire(self) -> Dict[str, Any]:
        data = asdict(self)
        data["imageUrl"] = data.pop("image_url")
        return data
