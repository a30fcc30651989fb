"""Scenario runner: executes cart scenarios across parallel browser workers."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from pathlib import Path
from typing import Iterable, Optional

from playwright.async_api import Browser, Page, async_playwright

from cart_harness.api.direct_client import DirectAPIClient
from cart_harness.auth.session_broker import AccountSelector, SessionBroker
from cart_harness.browser import create_context, launch_browser
from cart_harness.models.config import HarnessConfig
from cart_harness.models.run_result import RunResult, ScenarioResult
from cart_harness.scenarios import Scenario, select_scenarios
from cart_harness.storefront.storefront import StorefrontModel

logger = logging.getLogger(__name__)


class ScenarioRunner:
    """Runs scenarios against the live storefront.

    Each worker gets its own session slot, browser context, page and cart
    oracle. Scenarios are pulled from a shared queue and run one at a time
    per worker. Each scenario starts from a server cart reset through the API.
    """

    def __init__(
        self,
        config: HarnessConfig,
        runs_dir: Path,
        account_selector: Optional[AccountSelector] = None,
    ):
        self.config = config
        self.account_selector = account_selector
        self.run_id = f"run_{uuid.uuid4().hex[:8]}"
        self.run_dir = runs_dir / self.run_id
        self.worker_errors: list[str] = []

    async def run(self, names: Optional[Iterable[str]] = None) -> RunResult:
        scenarios = select_scenarios(names or self.config.scenarios)
        self.run_dir.mkdir(parents=True, exist_ok=True)
        self.worker_errors = []
        workers = min(self.config.workers, len(scenarios)) or 1
        started_at = time.strftime("%Y-%m-%dT%H:%M:%SZ")
        start_time = time.time()
        logger.info("Starting run %s: %d scenarios on %d worker(s)",
                    self.run_id, len(scenarios), workers)
        if workers > 1 and self.account_selector is None:
            logger.warning("All %d workers share one account and therefore one server cart",
                           workers)

        queue: asyncio.Queue[Scenario] = asyncio.Queue()
        for sc in scenarios:
            queue.put_nowait(sc)

        async with async_playwright() as p:
            browser = await launch_browser(p, headless=self.config.headless)
            broker = SessionBroker(browser, self.config, account_selector=self.account_selector)
            try:
                batches = await asyncio.gather(*(
                    self._worker(worker_id, browser, broker, queue)
                    for worker_id in range(workers)
                ))
            finally:
                await browser.close()

        scenario_results = [r for batch in batches for r in batch]
        # Every worker failed to start
        while not queue.empty():
            sc = queue.get_nowait()
            scenario_results.append(ScenarioResult(
                name=sc.name, description=sc.description, result="error",
                failure_reason=f"No worker available: {'; '.join(self.worker_errors)}",
                error_type="WorkerSetupError",
            ))

        result = RunResult(
            run_id=self.run_id,
            started_at=started_at,
            completed_at=time.strftime("%Y-%m-%dT%H:%M:%SZ"),
            target_url=self.config.root_url,
            workers=workers,
            duration_seconds=round(time.time() - start_time, 2),
            scenario_results=scenario_results,
            worker_errors=list(self.worker_errors),
        )
        result.tally()
        result.save(self.run_dir / "results.json")
        logger.info("Run %s complete: %d passed, %d failed, %d errors",
                    self.run_id, result.passed, result.failed, result.errors)
        return result

    async def _worker(
        self,
        worker_id: int,
        browser: Browser,
        broker: SessionBroker,
        queue: asyncio.Queue,
    ) -> list[ScenarioResult]:
        results: list[ScenarioResult] = []
        context = None
        try:
            session_path = await broker.acquire_session(worker_id)
            context = await create_context(
                browser,
                viewport={"width": self.config.viewport_width, "height": self.config.viewport_height},
                storage_state=session_path,
            )
            page = await context.new_page()
        except Exception as e:
            if context is not None:
                await context.close()
            self.worker_errors.append(f"worker {worker_id}: {type(e).__name__}: {e}")
            logger.error("[worker %d] Setup failed, taking no scenarios: %s", worker_id, e)
            return results
        try:
            page.set_default_timeout(self.config.timeout_ms)
            while not queue.empty():
                sc = queue.get_nowait()
                results.append(await self.run_scenario(page, sc, worker_id))
        finally:
            await context.close()
        return results

    async def run_scenario(self, page: Page, sc: Scenario, worker_id: int = 0) -> ScenarioResult:
        """Run one scenario on ``page`` and classify its outcome.

        Assertion failures are recorded as ``fail``; any other exception
        (setup precondition, parse, timeout) is recorded as ``error``.
        """
        logger.info("[worker %d] Running scenario: %s", worker_id, sc.name)
        start = time.time()
        store: Optional[StorefrontModel] = None
        result = ScenarioResult(name=sc.name, description=sc.description,
                                worker_id=worker_id, result="pass")
        try:
            await page.goto(self.config.root_url)
            store = StorefrontModel(page, DirectAPIClient(page, self.config), self.config)
            await store.discover_catalog()
            await store.reset_cart()
            await sc.run(store)
        except AssertionError as e:
            result.result = "fail"
            result.failure_reason = str(e)
            result.error_type = type(e).__name__
        except Exception as e:
            result.result = "error"
            result.failure_reason = str(e)
            result.error_type = type(e).__name__

        if store is not None:
            result.expected_items = store.cart.item_count
            result.expected_total = store.cart.total_price
        if result.result != "pass":
            result.screenshot_path = await self._screenshot(page, sc.name)
            logger.error("[worker %d] %s %s: %s", worker_id, sc.name,
                         result.result.upper(), result.failure_reason)
        result.duration_seconds = round(time.time() - start, 2)
        logger.info("[%s] %s (%.1fs)", result.result.upper(), sc.name, result.duration_seconds)
        return result

    async def _screenshot(self, page: Page, label: str) -> Optional[str]:
        path = self.run_dir / f"{label}_failure.png"
        try:
            await page.screenshot(path=str(path), full_page=True)
            return str(path)
        except Exception as e:
            logger.warning("Screenshot failed: %s", e)
            return None
