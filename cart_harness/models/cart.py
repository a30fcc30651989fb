"""Expected cart contents, built only from purchase actions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel

if TYPE_CHECKING:
    from cart_harness.storefront.product import ProductSnapshot


class CartEntry(BaseModel):
    name: str
    total_price: int = 0
    count: int = 0


class CartModel:
    """Maps product id to its aggregated entry, in first-purchase order.

    The model is reset between scenarios rather than recreated, because
    already-built ProductSnapshots keep a reference to it.
    """

    def __init__(self):
        self.products: dict[str, CartEntry] = {}

    def add_product(self, product: ProductSnapshot) -> None:
        if product.id not in self.products:
            self.products[product.id] = CartEntry(name=product.name)
        entry = self.products[product.id]
        entry.total_price += product.unit_price
        entry.count += 1

    @property
    def total_price(self) -> int:
        return sum(entry.total_price for entry in self.products.values())

    @property
    def item_count(self) -> int:
        return sum(entry.count for entry in self.products.values())

    @property
    def entries(self) -> list[CartEntry]:
        return list(self.products.values())

    def entry_for(self, product_id: str) -> Optional[CartEntry]:
        return self.products.get(product_id)

    def reset(self) -> None:
        self.products.clear()

    def __len__(self) -> int:
        return len(self.products)
