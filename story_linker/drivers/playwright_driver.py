"""Playwright (sync API) adapter and session bootstrapper."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from playwright.sync_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    sync_playwright,
)

from ..settings import LinkerSettings

logger = logging.getLogger(__name__)

# Runs before any page script so fingerprint checks see an ordinary desktop browser.
STEALTH_INIT_SCRIPT = """
(() => {
    Object.defineProperty(navigator, 'webdriver', { get: () => false });
    window.navigator.chrome = { runtime: {} };
    Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3] });
    Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
})();
"""


class PlaywrightDriver:
    """``PageDriver`` backed by one Playwright browser context."""

    def __init__(self, playwright: Playwright, browser: Browser, context: BrowserContext) -> None:
        self._playwright = playwright
        self._browser = browser
        self._context = context
        self._page: Optional[Page] = None
        self._closed = False

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("No page open; call open_page() first.")
        return self._page

    @property
    def url(self) -> str:
        return self.page.url

    def add_cookies(self, cookies: List[Dict[str, Any]]) -> None:
        self._context.add_cookies(cookies)

    def add_init_script(self, script: str) -> None:
        self._context.add_init_script(script=script)

    def open_page(self) -> None:
        if self._page is None:
            self._page = self._context.new_page()

    def goto(self, url: str, timeout_ms: int, wait_until: str = "domcontentloaded") -> None:
        self.page.goto(url, wait_until=wait_until, timeout=timeout_ms)

    def wait(self, ms: int) -> None:
        self.page.wait_for_timeout(ms)

    def is_visible(self, selector: str, timeout_ms: int) -> bool:
        try:
            self.page.locator(selector).first.wait_for(state="visible", timeout=timeout_ms)
            return True
        except PlaywrightTimeoutError:
            return False

    def wait_for(self, selector: str, state: str, timeout_ms: int) -> None:
        self.page.locator(selector).first.wait_for(state=state, timeout=timeout_ms)

    def click(self, selector: str, timeout_ms: int) -> None:
        self.page.locator(selector).first.click(timeout=timeout_ms)

    def hover(self, selector: str, timeout_ms: int) -> None:
        self.page.locator(selector).first.hover(timeout=timeout_ms)

    def fill(self, selector: str, value: str, timeout_ms: int) -> None:
        self.page.locator(selector).first.fill(value, timeout=timeout_ms)

    def dispatch_event(self, selector: str, event: str) -> None:
        self.page.locator(selector).first.dispatch_event(event, {"bubbles": True})

    def press(self, key: str) -> None:
        self.page.keyboard.press(key)

    def scroll_into_view(self, selector: str, timeout_ms: int) -> None:
        self.page.locator(selector).first.scroll_into_view_if_needed(timeout=timeout_ms)

    def evaluate(self, script: str, arg: Optional[Any] = None) -> Any:
        return self.page.evaluate(script, arg)

    def screenshot(self, path: str) -> None:
        self.page.screenshot(path=path, full_page=True)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for label, closer in (
            ("context", self._context.close),
            ("browser", self._browser.close),
            ("playwright", self._playwright.stop),
        ):
            try:
                closer()
            except Exception as exc:
                logger.warning(f"[PlaywrightDriver] Error closing {label}: {exc}")
        logger.info("[PlaywrightDriver] Browser closed.")


def launch_playwright_driver(settings: LinkerSettings) -> PlaywrightDriver:
    """Start Chromium and return a driver with an isolated, stealth-configured context."""
    playwright = sync_playwright().start()
    browser: Optional[Browser] = None
    try:
        logger.info(f"[PlaywrightDriver] Launching Chromium (headless={settings.headless})...")
        width, height = settings.viewport
        browser = playwright.chromium.launch(
            headless=settings.headless,
            args=[*settings.browser_args, f"--window-size={width},{height}"],
        )
        context = browser.new_context(
            user_agent=settings.user_agent,
            viewport={"width": width, "height": height},
            locale=settings.locale,
            timezone_id=settings.timezone_id,
            java_script_enabled=True,
            ignore_https_errors=True,
            bypass_csp=True,
        )
        context.add_init_script(script=STEALTH_INIT_SCRIPT)
    except Exception:
        if browser is not None:
            try:
                browser.close()
            except Exception as exc:
                logger.warning(f"[PlaywrightDriver] Error closing browser after failed launch: {exc}")
        playwright.stop()
        raise
    logger.info("[PlaywrightDriver] Browser context created.")
    return PlaywrightDriver(playwright, browser, context)


__all__ = ["PlaywrightDriver", "STEALTH_INIT_SCRIPT", "launch_playwright_driver"]
