"""Cart scenarios and their registry.

Each scenario receives a StorefrontModel whose catalog is already discovered
and whose cart was reset to empty by the runner.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Optional

from cart_harness.errors import InsufficientStockError, VerificationError
from cart_harness.storefront.storefront import StorefrontModel

ScenarioFn = Callable[[StorefrontModel], Awaitable[None]]


@dataclass(frozen=True)
class Scenario:
    name: str
    description: str
    run: ScenarioFn


SCENARIOS: dict[str, Scenario] = {}


def scenario(name: str, description: str) -> Callable[[ScenarioFn], ScenarioFn]:
    def register(fn: ScenarioFn) -> ScenarioFn:
        if name in SCENARIOS:
            raise ValueError(f"Scenario '{name}' already registered")
        SCENARIOS[name] = Scenario(name=name, description=description, run=fn)
        return fn
    return register


def select_scenarios(names: Optional[Iterable[str]] = None) -> list[Scenario]:
    """Return the named scenarios in the given order, or all of them."""
    names = list(names or [])
    if not names:
        return list(SCENARIOS.values())
    unknown = [n for n in names if n not in SCENARIOS]
    if unknown:
        raise KeyError(f"Unknown scenario(s): {', '.join(unknown)}")
    return [SCENARIOS[n] for n in names]


async def _start_empty(store: StorefrontModel) -> None:
    await store.assert_logged_in()
    await store.assert_cart_empty()


@scenario("empty_cart", "Go to empty cart")
async def empty_cart(store: StorefrontModel) -> None:
    await _start_empty(store)
    await store.verify_cart(open_full_page=True)


@scenario("one_normal_priced", "Go to cart with 1 normal price product")
async def one_normal_priced(store: StorefrontModel) -> None:
    await _start_empty(store)
    await store.buy_first_normal_priced()
    await store.assert_cart_badge_count(1)
    await store.verify_cart(open_full_page=True)


@scenario("one_discounted", "Go to cart with 1 discount price product")
async def one_discounted(store: StorefrontModel) -> None:
    await _start_empty(store)
    await store.buy_first_discounted()
    await store.assert_cart_badge_count(1)
    await store.verify_cart(open_full_page=True)


@scenario("nine_distinct_products", "Go to cart with 9 different products")
async def nine_distinct_products(store: StorefrontModel) -> None:
    await _start_empty(store)
    await store.buy_distinct_products(9)
    await store.assert_cart_badge_count(9)
    expected_rows = min(9, len(store.products))
    if len(store.cart) != expected_rows:
        raise VerificationError("distinct products in oracle", expected_rows, len(store.cart))
    await store.verify_cart(open_full_page=True)


@scenario("nine_same_product", "Go to cart with 9 of the same products")
async def nine_same_product(store: StorefrontModel) -> None:
    await _start_empty(store)
    await store.buy_same_product(9)
    await store.assert_cart_badge_count(9)
    await store.verify_cart(open_full_page=True)


@scenario("ten_same_product", "Go to cart with 10 of the same products")
async def ten_same_product(store: StorefrontModel) -> None:
    await _start_empty(store)
    max_stock = max(p.available_stock for p in store.products.values())
    if max_stock < 10:
        # Stock is checked before any click: nothing may reach the cart.
        try:
            await store.buy_same_product(10)
        except InsufficientStockError:
            pass
        else:
            raise VerificationError("buy_same_product(10) with max stock " + str(max_stock),
                                    "InsufficientStockError", "purchase succeeded")
        await store.assert_cart_empty()
        return
    await store.buy_same_product(10)
    await store.assert_cart_badge_count(10)
    await store.verify_cart(open_full_page=True)
