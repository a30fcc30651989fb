"""Product snapshot: one catalog item bound to its live locator and the cart oracle."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from playwright.async_api import Locator

from cart_harness.errors import MissingAttributeError
from cart_harness.models.cart import CartModel
from cart_harness.models.config import SelectorConfig
from cart_harness.storefront import locators
from cart_harness.text_extractor import parse_integer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProductSnapshot:
    id: str
    name: str
    unit_price: int
    available_stock: int
    has_discount: bool
    element: Locator = field(repr=False, compare=False)
    cart: CartModel = field(repr=False, compare=False)
    selectors: SelectorConfig = field(default_factory=SelectorConfig, repr=False, compare=False)
    timeout_ms: int = field(default=10000, repr=False, compare=False)

    async def purchase(self) -> None:
        """Click the item's buy button and record the unit in the cart oracle.

        The oracle is updated only after the click succeeds. A missing or
        hidden button raises Playwright's TimeoutError.
        """
        button = locators.buy_button(self.element, self.selectors)
        await button.wait_for(state="visible", timeout=self.timeout_ms)
        await button.click()
        self.cart.add_product(self)
        logger.debug("Purchased %s (%s) for %d", self.id, self.name, self.unit_price)

    @classmethod
    async def from_element(
        cls,
        cart: CartModel,
        element: Locator,
        selectors: SelectorConfig,
        timeout_ms: int = 10000,
    ) -> "ProductSnapshot":
        """Read one catalog item into a snapshot."""
        name = (await locators.item_name(element, selectors).inner_text()).strip()
        price_text = await locators.item_price(element, selectors).inner_text()
        unit_price = parse_integer(price_text, context="price")

        class_attr = await element.get_attribute("class") or ""
        has_discount = selectors.discount_class in class_attr.split()

        stock_text = await locators.item_stock(element, selectors).inner_text()
        available_stock = parse_integer(stock_text, context="stock count")

        product_id = await element.get_attribute(selectors.id_attribute)
        if not product_id:
            raise MissingAttributeError(selectors.id_attribute)

        return cls(
            id=product_id,
            name=name,
            unit_price=unit_price,
            available_stock=available_stock,
            has_discount=has_discount,
            element=element,
            cart=cart,
            selectors=selectors,
            timeout_ms=timeout_ms,
        )
