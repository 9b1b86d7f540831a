"""Shared fixtures: Playwright fakes, mocks and run settings."""

import asyncio
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, Mock

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from config import RunSettings


class FakeSite:
    """What a target URL does: which selectors exist and which beacons each click fires."""

    def __init__(self, selectors=(), beacons: Optional[Dict[str, List[str]]] = None, fail_goto: bool = False):
        self.selectors = set(selectors)
        self.beacons = beacons or {}
        self.fail_goto = fail_goto


class FakeRoute:
    def __init__(self, url: str, method: str = "GET", post_data: Optional[str] = None):
        self.request = Mock(url=url, method=method, post_data=post_data)
        self.aborted = False
        self.continued = False

    async def abort(self):
        self.aborted = True

    async def continue_(self):
        self.continued = True


class FakePage:
    """Page that resolves its site on goto and feeds clicks' beacons through registered routes."""

    def __init__(self, sites: Dict[str, FakeSite]):
        self.sites = sites
        self.site = FakeSite()
        self.goto_calls = []
        self.clicks = []
        self.routes = []
        self.closed = False

    async def goto(self, url, wait_until=None, timeout=None):
        self.site = self.sites.get(url, FakeSite())
        self.goto_calls.append((url, wait_until, timeout))
        if self.site.fail_goto:
            raise PlaywrightError(f"net::ERR_NAME_NOT_RESOLVED at {url}\nCall log:\n  - navigating to \"{url}\"")

    async def route(self, pattern, handler):
        self.routes.append((pattern, handler))

    async def click(self, selector, timeout=None):
        self.clicks.append(selector)
        await asyncio.sleep(0)
        if selector not in self.site.selectors:
            raise PlaywrightTimeoutError(f"Timeout exceeded waiting for selector \"{selector}\"")
        for beacon in self.site.beacons.get(selector, []):
            route = FakeRoute(beacon)
            if not self.routes:
                route.continued = True
            for _, handler in self.routes:
                await handler(route)

    async def evaluate(self, source):
        pass

    async def wait_for_timeout(self, ms):
        await asyncio.sleep(0)

    async def close(self):
        self.closed = True


class FakeContext:
    def __init__(self, browser, **options):
        self.browser = browser
        self.options = options
        self.pages: List[FakePage] = []
        self.closed = False

    async def new_page(self):
        page = FakePage(self.browser.browser_type.sites)
        self.pages.append(page)
        return page

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, browser_type, **options):
        self.browser_type = browser_type
        self.options = options
        self.contexts: List[FakeContext] = []
        self.closed = False

    async def new_context(self, **options):
        context = FakeContext(self, **options)
        self.contexts.append(context)
        return context

    async def close(self):
        if not self.closed:
            self.closed = True
            self.browser_type.active -= 1


class FakeBrowserType:
    """Counts live browsers so tests can check the concurrency bound and cleanup."""

    def __init__(self, sites: Optional[Dict[str, FakeSite]] = None):
        self.sites = sites or {}
        self.browsers: List[FakeBrowser] = []
        self.active = 0
        self.max_active = 0

    async def launch(self, **options):
        await asyncio.sleep(0)
        browser = FakeBrowser(self, **options)
        self.browsers.append(browser)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        return browser

    @property
    def pages(self) -> List[FakePage]:
        return [page for browser in self.browsers for context in browser.contexts for page in context.pages]


@pytest.fixture
def make_site():
    return FakeSite


@pytest.fixture
def make_browser_type():
    return FakeBrowserType


@pytest.fixture
def make_route():
    return FakeRoute


@pytest.fixture
def playwright_factory():
    """Build an async_playwright() replacement around a FakeBrowserType."""
    def factory(browser_type):
        playwright = AsyncMock()
        playwright.chromium = browser_type
        playwright.__aenter__.return_value = playwright
        playwright.__aexit__.return_value = False
        return lambda: playwright
    return factory


@pytest.fixture
def make_settings():
    def factory(**overrides) -> RunSettings:
        values = {"urls": (), "actions": (), "events_to_check": (), "consent_timeout": 10}
        values.update(overrides)
        return RunSettings(**values)
    return factory


@pytest.fixture
def make_mock_page():
    """AsyncMock page whose clicks fail for selectors that are not on the page."""
    def factory(*selectors):
        page = AsyncMock(spec=Page)

        async def click(selector, timeout=None):
            if selector not in selectors:
                raise PlaywrightTimeoutError(f"Timeout exceeded waiting for selector \"{selector}\"")

        page.click = AsyncMock(side_effect=click)
        page.evaluate = AsyncMock()
        page.wait_for_timeout = AsyncMock()
        return page
    return factory
