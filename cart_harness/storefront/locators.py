"""Storefront regions as pure functions from a page (or item) handle to a Locator.

Nothing here holds page state; callers compose locators at call time.
"""

from __future__ import annotations

import re

from playwright.async_api import Locator, Page

from cart_harness.models.config import SelectorConfig


def _label(text: str) -> re.Pattern:
    return re.compile(re.escape(text), re.IGNORECASE)


# Header

def user_menu(page: Page, sel: SelectorConfig) -> Locator:
    return page.locator(sel.user_menu)


def cart_badge(page: Page, sel: SelectorConfig) -> Locator:
    return page.locator(sel.cart_badge)


def cart_dropdown(page: Page, sel: SelectorConfig) -> Locator:
    return page.locator(sel.cart_dropdown)


# Catalog

def catalog_container(page: Page, sel: SelectorConfig) -> Locator:
    return page.locator(sel.catalog_container)


def catalog_items(page: Page, sel: SelectorConfig) -> Locator:
    return catalog_container(page, sel).locator(sel.catalog_item)


def item_name(item: Locator, sel: SelectorConfig) -> Locator:
    return item.locator(sel.item_name)


def item_price(item: Locator, sel: SelectorConfig) -> Locator:
    return item.locator(sel.item_price)


def item_stock(item: Locator, sel: SelectorConfig) -> Locator:
    return item.locator(sel.item_stock)


def buy_button(item: Locator, sel: SelectorConfig) -> Locator:
    return item.get_by_role("button", name=_label(sel.buy_label))


# Cart panel

def cart_panel(page: Page, sel: SelectorConfig) -> Locator:
    return page.locator(sel.panel)


def panel_rows(page: Page, sel: SelectorConfig) -> Locator:
    return cart_panel(page, sel).locator(sel.panel_row)


def row_name(row: Locator, sel: SelectorConfig) -> Locator:
    return row.locator(sel.row_name)


def row_price(row: Locator, sel: SelectorConfig) -> Locator:
    return row.locator(sel.row_price)


def row_count(row: Locator, sel: SelectorConfig) -> Locator:
    return row.locator(sel.row_count)


def panel_total(page: Page, sel: SelectorConfig) -> Locator:
    return cart_panel(page, sel).locator(sel.panel_total)


def clear_cart_button(page: Page, sel: SelectorConfig) -> Locator:
    return page.get_by_role("button", name=_label(sel.clear_cart_label))


def go_to_cart_button(page: Page, sel: SelectorConfig) -> Locator:
    return page.get_by_role("button", name=_label(sel.go_to_cart_label))


# Document

def head_meta_tags(page: Page, sel: SelectorConfig) -> Locator:
    return page.locator(sel.csrf_meta)


def server_error(page: Page, sel: SelectorConfig) -> Locator:
    return page.get_by_text(sel.server_error_text)
