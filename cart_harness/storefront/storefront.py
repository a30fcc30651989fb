"""Storefront model: catalog discovery, purchases and cart verification.

One StorefrontModel serves one scenario. It owns the cart oracle and moves
through UNLOADED -> LOADED -> INTERACTING -> VERIFIED. Verification only
reads the DOM and compares it with the oracle; it never feeds DOM values
back into the oracle.
"""

from __future__ import annotations

import enum
import logging
import re
from collections import Counter
from typing import Optional

from playwright.async_api import Page, expect

from cart_harness.api.direct_client import DirectAPIClient
from cart_harness.errors import (
    CartResetError,
    EmptyCatalogError,
    InsufficientStockError,
    NotFoundError,
    ScenarioStateError,
    VerificationError,
)
from cart_harness.models.cart import CartModel
from cart_harness.models.config import HarnessConfig
from cart_harness.storefront import locators
from cart_harness.storefront.product import ProductSnapshot
from cart_harness.text_extractor import format_amount, format_line_price

logger = logging.getLogger(__name__)


class ScenarioState(enum.Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"
    INTERACTING = "interacting"
    VERIFIED = "verified"


_PURCHASE_STATES = (ScenarioState.LOADED, ScenarioState.INTERACTING, ScenarioState.VERIFIED)
_VERIFY_STATES = _PURCHASE_STATES

MISSING = "<missing>"


async def _observed_text(locator) -> str:
    """Text of the first match right now, or MISSING; never waits for the element."""
    texts = await locator.all_inner_texts()
    return texts[0].strip() if texts else MISSING


class StorefrontModel:
    def __init__(
        self,
        page: Page,
        api: DirectAPIClient,
        config: HarnessConfig,
        cart: Optional[CartModel] = None,
    ):
        self.page = page
        self.api = api
        self.config = config
        self.sel = config.selectors
        self.cart = cart if cart is not None else CartModel()
        self.products: dict[str, ProductSnapshot] = {}
        self.state = ScenarioState.UNLOADED

    @property
    def timeout(self) -> int:
        return self.config.timeout_ms

    def _require(self, allowed: tuple[ScenarioState, ...], operation: str) -> None:
        if self.state not in allowed:
            raise ScenarioStateError(
                f"{operation} not allowed in state {self.state.value}"
            )

    # ------------------------------------------------------------------
    # Catalog discovery
    # ------------------------------------------------------------------

    async def discover_catalog(self) -> dict[str, ProductSnapshot]:
        self._require((ScenarioState.UNLOADED, ScenarioState.LOADED), "discover_catalog")
        items_locator = locators.catalog_items(self.page, self.sel)
        items = await items_locator.all()
        if not items:
            raise EmptyCatalogError(f"{self.sel.catalog_container} {self.sel.catalog_item}")

        self.products.clear()
        for item in items:
            product = await ProductSnapshot.from_element(
                self.cart, item, self.sel, timeout_ms=self.timeout,
            )
            # Duplicate ids: last one in DOM order wins
            self.products[product.id] = product

        logger.info("Discovered %d products (%d discounted)",
                    len(self.products),
                    sum(1 for p in self.products.values() if p.has_discount))
        self.state = ScenarioState.LOADED
        return self.products

    # ------------------------------------------------------------------
    # Purchase helpers
    # ------------------------------------------------------------------

    async def _purchase(self, product: ProductSnapshot) -> None:
        self._require(_PURCHASE_STATES, "purchase")
        await product.purchase()
        self.state = ScenarioState.INTERACTING

    def _product_list(self) -> list[ProductSnapshot]:
        products = list(self.products.values())
        if not products:
            raise EmptyCatalogError(f"{self.sel.catalog_container} {self.sel.catalog_item}")
        return products

    async def buy_first_normal_priced(self) -> ProductSnapshot:
        self._require(_PURCHASE_STATES, "buy_first_normal_priced")
        product = next((p for p in self.products.values() if not p.has_discount), None)
        if product is None:
            raise NotFoundError("normal price")
        await self._purchase(product)
        return product

    async def buy_first_discounted(self) -> ProductSnapshot:
        self._require(_PURCHASE_STATES, "buy_first_discounted")
        product = next((p for p in self.products.values() if p.has_discount), None)
        if product is None:
            raise NotFoundError("discount price")
        await self._purchase(product)
        return product

    async def buy_distinct_products(self, count: int) -> None:
        """Buy ``count`` units cycling through the catalog in discovery order."""
        self._require(_PURCHASE_STATES, "buy_distinct_products")
        products = self._product_list()
        for i in range(count):
            await self._purchase(products[i % len(products)])

    async def buy_same_product(self, count: int) -> ProductSnapshot:
        """Buy ``count`` units of the first product with enough stock.

        Stock is checked before any click, so an InsufficientStockError
        leaves both the UI and the oracle untouched.
        """
        self._require(_PURCHASE_STATES, "buy_same_product")
        products = self._product_list()
        product = next((p for p in products if p.available_stock >= count), None)
        if product is None:
            raise InsufficientStockError(count, max(p.available_stock for p in products))
        for _ in range(count):
            await self._purchase(product)
        return product

    # ------------------------------------------------------------------
    # Cart lifecycle
    # ------------------------------------------------------------------

    async def reset_cart(self) -> None:
        """Clear the oracle, clear the server cart via the API, and reload."""
        self.cart.reset()
        response = await self.api.clear_cart()
        if not response.ok:
            raise CartResetError(response.status, self.config.basket_clear_url)
        await self.page.reload()
        self.state = ScenarioState.LOADED
        logger.info("Cart reset")

    async def clear_cart_via_panel(self) -> None:
        """Clear the cart through the panel's own button (panel must be open)."""
        self._require(_PURCHASE_STATES, "clear_cart_via_panel")
        button = locators.clear_cart_button(self.page, self.sel)
        await button.wait_for(state="visible", timeout=self.timeout)
        await button.click()
        self.cart.reset()
        self.state = ScenarioState.INTERACTING

    async def open_cart_panel(self) -> None:
        dropdown = locators.cart_dropdown(self.page, self.sel)
        await dropdown.wait_for(state="visible", timeout=self.timeout)
        await dropdown.click()

    async def go_to_cart(self) -> None:
        button = locators.go_to_cart_button(self.page, self.sel)
        await button.wait_for(state="visible", timeout=self.timeout)
        await button.click()

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    async def assert_logged_in(self) -> None:
        menu = locators.user_menu(self.page, self.sel)
        try:
            await expect(menu).to_be_visible(timeout=self.timeout)
        except AssertionError as e:
            raise VerificationError("logged-in user menu", "visible", "not visible") from e

    async def assert_cart_badge_count(self, expected: int) -> None:
        self._require(_VERIFY_STATES, "assert_cart_badge_count")
        badge = locators.cart_badge(self.page, self.sel)
        pattern = re.compile(rf"(?<!\d){expected}(?!\d)")
        try:
            await expect(badge).to_contain_text(pattern, timeout=self.timeout)
        except AssertionError as e:
            observed = await _observed_text(badge)
            raise VerificationError("cart badge count", expected, observed) from e
        self.state = ScenarioState.VERIFIED

    async def assert_cart_empty(self) -> None:
        await self.assert_cart_badge_count(0)

    async def assert_cart_panel_matches(self, oracle: Optional[CartModel] = None) -> None:
        """Compare the open cart panel with the oracle.

        Row count must match exactly. Rows are then compared by position
        (or as a multiset when ``strict_row_order`` is off), followed by
        the grand total.
        """
        self._require(_VERIFY_STATES, "assert_cart_panel_matches")
        oracle = oracle if oracle is not None else self.cart
        panel = locators.cart_panel(self.page, self.sel)
        await panel.wait_for(state="visible", timeout=self.timeout)

        rows_locator = locators.panel_rows(self.page, self.sel)
        expected_entries = oracle.entries
        try:
            await expect(rows_locator).to_have_count(len(expected_entries), timeout=self.timeout)
        except AssertionError as e:
            raise VerificationError(
                "cart panel row count", len(expected_entries), await rows_locator.count()
            ) from e
        rows = await rows_locator.all()
        if len(rows) != len(expected_entries):
            raise VerificationError("cart panel row count", len(expected_entries), len(rows))

        expected = [
            (entry.name, format_line_price(entry.total_price, self.config.currency_suffix), str(entry.count))
            for entry in expected_entries
        ]
        if self.config.strict_row_order:
            cells = (locators.row_name, locators.row_price, locators.row_count)
            for index, (row, exp) in enumerate(zip(rows, expected)):
                for label, cell, e in zip(("name", "price", "count"), cells, exp):
                    o = await self._settled_text(cell(row, self.sel), e)
                    if e != o:
                        raise VerificationError(f"cart panel row {index} {label}", e, o)
        else:
            observed = [await self._read_row(row) for row in rows]
            if Counter(expected) != Counter(observed):
                raise VerificationError("cart panel rows", sorted(expected), sorted(observed))

        expected_total = format_amount(oracle.total_price)
        total_text = await self._settled_text(locators.panel_total(self.page, self.sel), expected_total)
        if total_text != expected_total:
            raise VerificationError("cart panel total", expected_total, total_text)

        logger.info("Cart panel matches oracle (%d rows, total %s)", len(rows), expected_total)
        self.state = ScenarioState.VERIFIED

    async def _settled_text(self, locator, expected: str) -> str:
        """Wait for ``locator`` to read ``expected``, then return what it reads."""
        try:
            await expect(locator).to_have_text(expected, timeout=self.timeout)
        except AssertionError:
            return await _observed_text(locator)
        return (await locator.inner_text()).strip()

    async def _read_row(self, row) -> tuple[str, str, str]:
        name = (await locators.row_name(row, self.sel).inner_text()).strip()
        price = (await locators.row_price(row, self.sel).inner_text()).strip()
        count = (await locators.row_count(row, self.sel).inner_text()).strip()
        logger.debug("Panel row: name=%r price=%r count=%r", name, price, count)
        return name, price, count

    async def assert_on_cart_page(self) -> None:
        pattern = re.compile(rf".*{re.escape(self.config.basket_path)}")
        try:
            await expect(self.page).to_have_url(pattern, timeout=self.timeout)
        except AssertionError as e:
            raise VerificationError("cart page url", pattern.pattern, self.page.url) from e

    async def assert_no_server_error(self) -> None:
        banner = locators.server_error(self.page, self.sel)
        try:
            await expect(banner).to_have_count(0, timeout=self.timeout)
        except AssertionError as e:
            raise VerificationError("server error banner count", 0, await banner.count()) from e

    async def verify_cart(self, open_full_page: bool = False) -> None:
        """Open the cart panel, check it against the oracle, optionally follow to the cart page."""
        await self.open_cart_panel()
        await self.assert_cart_panel_matches()
        if open_full_page:
            await self.go_to_cart()
            await self.assert_on_cart_page()
            await self.assert_no_server_error()
