"""Launch Chromium and create browser contexts for the harness."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from playwright.async_api import Browser, BrowserContext, Playwright


async def launch_browser(playwright: Playwright, headless: bool = True) -> Browser:
    return await playwright.chromium.launch(headless=headless)


async def create_context(
    browser: Browser,
    viewport: dict,
    storage_state: Optional[dict | str | Path] = None,
) -> BrowserContext:
    """Create a browser context, optionally seeded with a saved session.

    Args:
        storage_state: Playwright storage state (cookies + localStorage), as a
            dict or a path to a JSON file. ``None`` gives a clean context.
    """
    if isinstance(storage_state, Path):
        storage_state = str(storage_state)
    return await browser.new_context(
        viewport=viewport,
        locale="ru-RU",
        storage_state=storage_state,
    )
