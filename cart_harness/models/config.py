"""Configuration models for the cart harness."""

from __future__ import annotations

import json
import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class AccountConfig(BaseModel):
    username: str = "test"
    password: str = "test"

    @field_validator("password", mode="before")
    @classmethod
    def resolve_env_password(cls, v: str) -> str:
        if isinstance(v, str) and v.startswith("env:"):
            env_var = v[4:]
            resolved = os.environ.get(env_var)
            if resolved is None:
                raise ValueError(f"Environment variable '{env_var}' not set")
            return resolved
        return v


class LoginConfig(BaseModel):
    path: str = "/login"
    username_selector: str = "#loginform-username"
    password_selector: str = "#loginform-password"
    submit_label: str = "Вход"
    # Login sets cookies over several redirects; this is the final URL path.
    landing_path: str = "/"


class SelectorConfig(BaseModel):
    """CSS selectors and accessible names the storefront markup exposes."""

    # Header
    user_menu: str = "#dropdownUser"
    cart_badge: str = "#basketContainer > span.basket-count-items"
    cart_dropdown: str = "#dropdownBasket"

    # Catalog
    catalog_container: str = "body > div > div.container > div > div.note-list.row > div"
    catalog_item: str = "div.note-item"
    item_name: str = "div.product_name"
    item_price: str = "span.product_price"
    item_stock: str = ".product_count"
    discount_class: str = "hasDiscount"
    id_attribute: str = "data-product"
    buy_label: str = "купить"

    # Cart panel
    panel: str = "#basketContainer > div.dropdown-menu.dropdown-menu-right"
    panel_row: str = "li.basket-item"
    row_name: str = "span.basket-item-title"
    row_price: str = "span.basket-item-price"
    row_count: str = "span.basket-item-count"
    panel_total: str = "span.basket_price"
    clear_cart_label: str = "очистить корзину"
    go_to_cart_label: str = "перейти в корзину"

    # Document
    csrf_meta: str = "head > meta"
    server_error_text: str = "Server Error"


class HarnessConfig(BaseModel):
    # Target
    base_url: str = "https://enotes.pointschool.ru"
    basket_path: str = "/basket"
    basket_clear_path: str = "/basket/clear"

    # Authentication
    account: AccountConfig = Field(default_factory=AccountConfig)
    login: LoginConfig = Field(default_factory=LoginConfig)
    session_dir: str = ".cart-harness/.auth"

    # Markup contract
    selectors: SelectorConfig = Field(default_factory=SelectorConfig)
    currency_suffix: str = "р."
    # Panel rows are compared to the oracle by position; False compares them as a multiset
    strict_row_order: bool = True

    # Execution
    workers: int = Field(default=1, ge=1)
    timeout_ms: int = 10000
    headless: bool = True
    viewport_width: int = 1280
    viewport_height: int = 720
    scenarios: list[str] = Field(default_factory=list)

    # Reporting
    report_output_dir: str = "./cart-reports"

    @property
    def root_url(self) -> str:
        return self.base_url.rstrip("/")

    @property
    def login_url(self) -> str:
        return self.root_url + self.login.path

    @property
    def landing_url(self) -> str:
        return self.root_url + self.login.landing_path

    @property
    def basket_url(self) -> str:
        return self.root_url + self.basket_path

    @property
    def basket_clear_url(self) -> str:
        return self.root_url + self.basket_clear_path

    @classmethod
    def load(cls, path: str | Path) -> "HarnessConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.model_dump(), f, indent=2, ensure_ascii=False)
