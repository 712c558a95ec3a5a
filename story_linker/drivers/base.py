"""Capability interface the workflow needs from a browser automation library."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol


class PageDriver(Protocol):
    """One isolated browser context with (at most) one page.

    Selector arguments use Playwright's selector syntax (css, ``text=``,
    ``xpath=``, ``role=`` and ``>>`` chaining). Element actions apply to the
    first match. Timeouts are in milliseconds.
    """

    @property
    def url(self) -> str: ...

    def add_cookies(self, cookies: List[Dict[str, Any]]) -> None: ...

    def add_init_script(self, script: str) -> None: ...

    def open_page(self) -> None: ...

    def goto(self, url: str, timeout_ms: int, wait_until: str = "domcontentloaded") -> None: ...

    def wait(self, ms: int) -> None: ...

    def is_visible(self, selector: str, timeout_ms: int) -> bool: ...

    def wait_for(self, selector: str, state: str, timeout_ms: int) -> None: ...

    def click(self, selector: str, timeout_ms: int) -> None: ...

    def hover(self, selector: str, timeout_ms: int) -> None: ...

    def fill(self, selector: str, value: str, timeout_ms: int) -> None: ...

    def dispatch_event(self, selector: str, event: str) -> None: ...

    def press(self, key: str) -> None: ...

    def scroll_into_view(self, selector: str, timeout_ms: int) -> None: ...

    def evaluate(self, script: str, arg: Optional[Any] = None) -> Any: ...

    def screenshot(self, path: str) -> None: ...

    def close(self) -> None: ...
