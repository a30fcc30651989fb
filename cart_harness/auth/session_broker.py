"""Session broker: one authenticated storage state per worker, cached on disk."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Callable

from playwright.async_api import Browser, Page

from cart_harness.browser import create_context
from cart_harness.errors import LoginError
from cart_harness.models.config import AccountConfig, HarnessConfig

logger = logging.getLogger(__name__)

AccountSelector = Callable[[int], AccountConfig]


def fixed_account(account: AccountConfig) -> AccountSelector:
    """Select the same account for every worker.

    Workers then share one server-side cart. A selector keyed by worker id
    lifts that restriction once per-worker accounts exist.
    """
    def _select(worker_id: int) -> AccountConfig:
        return account
    return _select


def clear_sessions(session_dir: str | Path) -> int:
    """Delete cached session files and return how many were removed."""
    session_dir = Path(session_dir)
    if not session_dir.exists():
        return 0
    removed = 0
    for path in session_dir.glob("*.json"):
        path.unlink()
        removed += 1
    return removed


class SessionBroker:
    """Hands out a storage-state file per worker id.

    An existing file is trusted without a freshness check. A missing one is
    created by a single login in a clean browser context. Each worker id owns
    its own file, so parallel workers never write the same path.
    """

    def __init__(
        self,
        browser: Browser,
        config: HarnessConfig,
        account_selector: AccountSelector | None = None,
    ):
        self.browser = browser
        self.config = config
        self.account_selector = account_selector or fixed_account(config.account)
        self.session_dir = Path(config.session_dir)
        self._locks: dict[int, asyncio.Lock] = {}
        self._attempted: set[int] = set()

    def session_path(self, worker_id: int) -> Path:
        return self.session_dir / f"{worker_id}.json"

    async def acquire_session(self, worker_id: int) -> Path:
        lock = self._locks.setdefault(worker_id, asyncio.Lock())
        async with lock:
            path = self.session_path(worker_id)
            if path.exists():
                logger.info("Worker %d: reusing session %s", worker_id, path)
                return path
            if worker_id in self._attempted:
                raise LoginError(f"Login already attempted for worker {worker_id}")
            self._attempted.add(worker_id)

            account = self.account_selector(worker_id)
            logger.info("Worker %d: logging in as %s", worker_id, account.username)
            state = await self._login(account)
            self._write_state(path, state)
            logger.info("Worker %d: session saved to %s (%d cookies)",
                        worker_id, path, len(state.get("cookies", [])))
            return path

    async def _login(self, account: AccountConfig) -> dict:
        login = self.config.login
        context = await create_context(
            self.browser,
            viewport={"width": self.config.viewport_width, "height": self.config.viewport_height},
            storage_state=None,
        )
        try:
            page = await context.new_page()
            await page.goto(self.config.login_url, timeout=self.config.timeout_ms)

            await self._type_into(page, login.username_selector, account.username, "username")
            await self._type_into(page, login.password_selector, account.password, "password", secret=True)
            await page.get_by_role("button", name=login.submit_label).click()

            # Cookies may be set across several redirects; wait for the final URL.
            await page.wait_for_url(self.config.landing_url, timeout=self.config.timeout_ms)
            return await context.storage_state()
        finally:
            await context.close()

    async def _type_into(
        self, page: Page, selector: str, value: str, field: str, secret: bool = False,
    ) -> None:
        """Type ``value`` one key at a time, then confirm no keystroke was dropped."""
        field_locator = page.locator(selector)
        await field_locator.click()
        for char in value:
            await page.keyboard.type(char)
        typed = await field_locator.input_value()
        if typed != value:
            shown = ("*" * len(typed), "*" * len(value)) if secret else (typed, value)
            raise LoginError(
                f"Login field '{field}' holds {shown[0]!r} after typing, expected {shown[1]!r}"
            )

    @staticmethod
    def _write_state(path: Path, state: dict) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(state, f)
        os.replace(tmp_path, path)
