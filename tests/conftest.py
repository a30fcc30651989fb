"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Optional
from unittest.mock import AsyncMock, Mock

import pytest

from cart_harness.models.cart import CartModel
from cart_harness.models.config import AccountConfig, HarnessConfig, SelectorConfig


# ============================================================================
# Fake DOM
# ============================================================================


class FakeNode:
    """Stand-in for a Playwright Locator.

    ``children`` maps a selector (or ``role=<role>`` / ``text=<text>``) to the
    node it resolves to; unknown selectors resolve to a fresh empty node.
    ``items`` is what ``all()`` returns.
    """

    def __init__(
        self,
        text: str = "",
        attrs: Optional[dict[str, str]] = None,
        children: Optional[dict[str, "FakeNode"]] = None,
        items: Optional[list["FakeNode"]] = None,
    ):
        self.text = text
        self.attrs = attrs or {}
        self.children = children or {}
        self.items = items or []
        self.click = AsyncMock()
        self.wait_for = AsyncMock()

    def locator(self, selector: str) -> "FakeNode":
        return self.children.setdefault(selector, FakeNode())

    def get_by_role(self, role: str, name=None) -> "FakeNode":
        return self.children.setdefault(f"role={role}", FakeNode())

    def get_by_text(self, text: str) -> "FakeNode":
        return self.children.setdefault(f"text={text}", FakeNode())

    async def inner_text(self) -> str:
        return self.text

    async def all_inner_texts(self) -> list[str]:
        return [self.text]

    async def input_value(self) -> str:
        return self.text

    async def get_attribute(self, name: str) -> Optional[str]:
        return self.attrs.get(name)

    async def all(self) -> list["FakeNode"]:
        return list(self.items)

    async def count(self) -> int:
        return len(self.items)


def make_catalog_item(
    product_id: Optional[str],
    name: str,
    price: str,
    stock: str,
    discount: bool = False,
    sel: SelectorConfig | None = None,
) -> FakeNode:
    """Build a catalog item node the way the storefront renders one."""
    sel = sel or SelectorConfig()
    attrs = {"class": "note-item card" + (f" {sel.discount_class}" if discount else "")}
    if product_id is not None:
        attrs[sel.id_attribute] = product_id
    return FakeNode(
        attrs=attrs,
        children={
            sel.item_name: FakeNode(text=name),
            sel.item_price: FakeNode(text=price),
            sel.item_stock: FakeNode(text=stock),
        },
    )


def make_panel_row(name: str, price: str, count: str, sel: SelectorConfig | None = None) -> FakeNode:
    sel = sel or SelectorConfig()
    return FakeNode(children={
        sel.row_name: FakeNode(text=name),
        sel.row_price: FakeNode(text=price),
        sel.row_count: FakeNode(text=count),
    })


class FakePage(FakeNode):
    """Stand-in for a Playwright Page with a catalog and a cart panel."""

    def __init__(self, url: str = "https://shop.example.com/"):
        super().__init__()
        self.url = url
        self.reload = AsyncMock()
        self.goto = AsyncMock()
        self.screenshot = AsyncMock()
        self.set_default_timeout = Mock()
        self.context = Mock()
        self.context.cookies = AsyncMock(return_value=[])
        self.context.request.post = AsyncMock()

    def set_catalog(self, items: list[FakeNode], sel: SelectorConfig | None = None) -> None:
        sel = sel or SelectorConfig()
        container = self.locator(sel.catalog_container)
        container.children[sel.catalog_item] = FakeNode(items=items)

    def set_panel(self, rows: list[FakeNode], total: str, sel: SelectorConfig | None = None) -> None:
        sel = sel or SelectorConfig()
        panel = self.locator(sel.panel)
        panel.children[sel.panel_row] = FakeNode(items=rows)
        panel.children[sel.panel_total] = FakeNode(text=total)

    def set_meta(self, tags: dict[str, str], sel: SelectorConfig | None = None) -> None:
        sel = sel or SelectorConfig()
        self.children[sel.csrf_meta] = FakeNode(items=[
            FakeNode(attrs={"name": name, "content": content})
            for name, content in tags.items()
        ])


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def selectors() -> SelectorConfig:
    return SelectorConfig()


@pytest.fixture
def harness_config(tmp_path: Path) -> HarnessConfig:
    """Create a test harness configuration."""
    return HarnessConfig(
        base_url="https://shop.example.com/",
        account=AccountConfig(username="shopper", password="s3cret"),
        session_dir=str(tmp_path / ".auth"),
        timeout_ms=2000,
        report_output_dir=str(tmp_path / "reports"),
    )


@pytest.fixture
def cart() -> CartModel:
    return CartModel()


# ============================================================================
# Page Fixtures
# ============================================================================


@pytest.fixture
def catalog_items(selectors: SelectorConfig) -> list[FakeNode]:
    """Four products: two normal, two discounted, stock 3 to 12."""
    return [
        make_catalog_item("101", "Блокнот в точку", "400 р.", "12", sel=selectors),
        make_catalog_item("102", "Ежедневник", "350 р.", "3", discount=True, sel=selectors),
        make_catalog_item("103", "Тетрадь", "120 р.", "9", sel=selectors),
        make_catalog_item("104", "Скетчбук", "520 р.", "5", discount=True, sel=selectors),
    ]


@pytest.fixture
def fake_page(catalog_items: list[FakeNode], selectors: SelectorConfig) -> FakePage:
    page = FakePage()
    page.set_catalog(catalog_items, selectors)
    page.set_meta({"viewport": "width=device-width", "csrf-token": "tok-123"}, selectors)
    ok = Mock(ok=True, status=200)
    page.context.request.post.return_value = ok
    page.context.cookies.return_value = [
        {"name": "PHPSESSID", "value": "abc"},
        {"name": "_csrf", "value": "xyz"},
    ]
    return page


@pytest.fixture
def mock_expect(monkeypatch) -> Mock:
    """Replace Playwright's ``expect`` in the storefront module with a passing double."""
    assertions = AsyncMock()
    factory = Mock(return_value=assertions)
    monkeypatch.setattr("cart_harness.storefront.storefront.expect", factory)
    return factory
