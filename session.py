"""
One isolated browser session per target URL.

launching -> navigating -> consenting -> intercepting -> acting -> matching
-> closing -> done, with `failed` reachable from any step before closing.
Page, context and browser are released on every exit path.
"""

import time
from enum import Enum
from typing import List, Optional

from playwright.async_api import Error as PlaywrightError

from action_runner import ActionRunner
from config import RunSettings
from event_extractor import BeaconInterceptor
from event_matcher import check_events
from models import SessionOutcome, UrlTestResult
from run_logger import unified_logger


class SessionState(str, Enum):
    LAUNCHING = "launching"
    NAVIGATING = "navigating"
    CONSENTING = "consenting"
    INTERCEPTING = "intercepting"
    ACTING = "acting"
    MATCHING = "matching"
    CLOSING = "closing"
    DONE = "done"
    FAILED = "failed"


async def accept_cookies(page, selector: str, timeout: Optional[int] = None, logger=unified_logger) -> bool:
    """Dismiss the cookie consent dialog if there is one; never raises for a missing dialog."""
    try:
        if timeout is None:
            await page.click(selector)
        else:
            await page.click(selector, timeout=timeout)
    except PlaywrightError:
        logger.log_info("🍪 No cookie banner")
        return False
    logger.log_debug(f"Cookie banner accepted via {selector}")
    return True


class SessionOrchestrator:
    """Runs the fixed check pipeline for a single URL."""

    def __init__(self, url: str, browser_type, settings: RunSettings, logger=unified_logger):
        self.url = url
        self.browser_type = browser_type
        self.settings = settings
        self.logger = logger
        self.state = SessionState.LAUNCHING
        self.history: List[SessionState] = []
        self.interceptor = BeaconInterceptor(settings.analytics_endpoints, logger=logger)
        self.runner = ActionRunner(
            default_next_selector=settings.default_next_selector,
            settle_delay=settings.settle_delay,
            action_timeout=settings.action_timeout,
            logger=logger,
        )
        self._browser = None
        self._context = None
        self._page = None

    def _enter(self, state: SessionState) -> None:
        self.state = state
        self.history.append(state)
        self.logger.log_debug(f"[{self.url}] {state.value}")

    async def run(self) -> SessionOutcome:
        started = time.time()
        self.logger.log_structured("session", "session_started", {"url": self.url})
        failed_state: Optional[SessionState] = None
        error: Optional[str] = None
        result: Optional[UrlTestResult] = None

        try:
            result = await self._run_pipeline()
        except Exception as e:
            failed_state = self.state
            error = f"{type(e).__name__}: {e}"
            self.logger.log_error(f"Error occurred on {self.url} while {failed_state.value}: {error}")
        finally:
            self._enter(SessionState.CLOSING)
            await self._close()

        duration = round(time.time() - started, 3)
        if result is None:
            self._enter(SessionState.FAILED)
            self.logger.log_structured("session", "session_failed",
                                       {"url": self.url, "error": error, "state": failed_state.value},
                                       {"duration": duration})
            return SessionOutcome.failure(self.url, error, failed_state.value)

        self._enter(SessionState.DONE)
        self.logger.log_structured("session", "session_finished",
                                   {"url": self.url, "events": len(result.ga_events),
                                    "passed": result.passed, "total": len(result.event_results)},
                                   {"duration": duration})
        return SessionOutcome.success(result)

    async def _run_pipeline(self) -> UrlTestResult:
        settings = self.settings

        self._enter(SessionState.LAUNCHING)
        self._browser = await self.browser_type.launch(headless=settings.headless, args=list(settings.browser_args))
        self._context = await self._browser.new_context(user_agent=settings.user_agent, viewport=dict(settings.viewport))
        self._page = await self._context.new_page()
        page = self._page

        self._enter(SessionState.NAVIGATING)
        if settings.navigation_timeout is None:
            await page.goto(self.url, wait_until="networkidle")
        else:
            await page.goto(self.url, wait_until="networkidle", timeout=settings.navigation_timeout)
        self.logger.log_info(f"🌐 Starting test on: {self.url}")

        self._enter(SessionState.CONSENTING)
        await accept_cookies(page, settings.consent_selector, settings.consent_timeout, logger=self.logger)

        self._enter(SessionState.INTERCEPTING)
        await self.interceptor.attach(page)

        self._enter(SessionState.ACTING)
        await self.runner.run(page, settings.actions)

        self._enter(SessionState.MATCHING)
        ga_events = self.interceptor.events
        event_results = check_events(ga_events, settings.events_to_check)
        return UrlTestResult(url=self.url, ga_events=ga_events, event_results=event_results)

    async def _close(self) -> None:
        for name, resource in (("page", self._page), ("context", self._context), ("browser", self._browser)):
            if resource is None:
                continue
            try:
                await resource.close()
            except Exception as e:
                self.logger.log_error(f"Failed to close {name} for {self.url}: {e}")
        self._page = self._context = self._browser = None
