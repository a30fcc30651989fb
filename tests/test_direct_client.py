"""Tests for the direct API client."""

from unittest.mock import Mock

import pytest

from cart_harness.api.direct_client import DirectAPIClient
from cart_harness.errors import MissingCsrfTokenError


@pytest.fixture
def client(fake_page, harness_config) -> DirectAPIClient:
    return DirectAPIClient(fake_page, harness_config)


@pytest.mark.asyncio
class TestDirectAPIClient:
    async def test_cookie_header_joins_root_cookies(self, client, fake_page):
        header = await client.cookie_header()

        assert header == "PHPSESSID=abc; _csrf=xyz"
        fake_page.context.cookies.assert_awaited_once_with(["https://shop.example.com"])

    async def test_cookie_header_empty(self, client, fake_page):
        fake_page.context.cookies.return_value = []
        assert await client.cookie_header() == ""

    async def test_csrf_token_from_meta(self, client):
        assert await client.csrf_token() == "tok-123"

    async def test_missing_csrf_meta(self, client, fake_page):
        fake_page.set_meta({"viewport": "width=device-width"})
        with pytest.raises(MissingCsrfTokenError):
            await client.csrf_token()

    async def test_empty_csrf_content(self, client, fake_page):
        fake_page.set_meta({"csrf-token": ""})
        with pytest.raises(MissingCsrfTokenError):
            await client.csrf_token()

    async def test_common_headers(self, client):
        headers = await client.common_headers()
        assert headers == {"Cookie": "PHPSESSID=abc; _csrf=xyz", "X-CSRF-Token": "tok-123"}

    async def test_clear_cart_posts_through_page_context(self, client, fake_page):
        response = Mock(ok=True, status=200)
        fake_page.context.request.post.return_value = response

        result = await client.clear_cart()

        assert result is response
        fake_page.context.request.post.assert_awaited_once_with(
            "https://shop.example.com/basket/clear",
            headers={"Cookie": "PHPSESSID=abc; _csrf=xyz", "X-CSRF-Token": "tok-123"},
        )

    async def test_clear_cart_returns_failed_response_unchanged(self, client, fake_page):
        fake_page.context.request.post.return_value = Mock(ok=False, status=500)
        result = await client.clear_cart()
        assert result.status == 500
        fake_page.context.request.post.assert_awaited_once()

    async def test_clear_cart_without_token_sends_nothing(self, client, fake_page):
        fake_page.set_meta({})
        with pytest.raises(MissingCsrfTokenError):
            await client.clear_cart()
        fake_page.context.request.post.assert_not_awaited()
