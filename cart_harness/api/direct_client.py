"""Direct API client: calls cart endpoints through the page's own request context."""

from __future__ import annotations

import logging

from playwright.async_api import APIResponse, Page

from cart_harness.errors import MissingCsrfTokenError
from cart_harness.models.config import HarnessConfig
from cart_harness.storefront import locators

logger = logging.getLogger(__name__)

CSRF_META_NAME = "csrf-token"


class DirectAPIClient:
    """Issues cart-mutating requests without going through the UI.

    Requests go through ``page.context.request`` so they share the browser
    context's cookie jar. Callers check the response status; nothing is retried.
    """

    def __init__(self, page: Page, config: HarnessConfig):
        self.page = page
        self.config = config

    async def cookie_header(self) -> str:
        cookies = await self.page.context.cookies([self.config.root_url])
        return "; ".join(f"{c['name']}={c['value']}" for c in cookies)

    async def csrf_token(self) -> str:
        token = None
        for meta in await locators.head_meta_tags(self.page, self.config.selectors).all():
            if await meta.get_attribute("name") == CSRF_META_NAME:
                token = await meta.get_attribute("content")
        if not token:
            raise MissingCsrfTokenError(self.page.url)
        return token

    async def common_headers(self) -> dict[str, str]:
        return {
            "Cookie": await self.cookie_header(),
            "X-CSRF-Token": await self.csrf_token(),
        }

    async def clear_cart(self) -> APIResponse:
        headers = await self.common_headers()
        url = self.config.basket_clear_url
        logger.debug("POST %s", url)
        response = await self.page.context.request.post(url, headers=headers)
        logger.info("Cart clear request returned %d", response.status)
        return response
