"""Shared fixtures: a scripted in-memory page driver and isolated stores."""

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from story_linker.core.auth_store import init_auth_store
from story_linker.core.job_store import init_job_store
from story_linker.core.selector_catalog import load_selector_catalog
from story_linker.models import AuthBundle, CookieRecord, LinkRequest
from story_linker.settings import LinkerSettings

STORY_URL = "https://acme.productboard.com/feature-board/features/123/detail"
SECRET_COOKIE_VALUE = "s3cr3t-session-value"
SECRET_STORAGE_VALUE = "tok-very-private"

FailPredicate = Callable[[str, str], bool]


class FakePageDriver:
    """Records every call. ``fail(action, target)`` decides which calls break.

    Failing ``is_visible`` calls return False instead of raising, like a real
    element that never shows up.
    """

    def __init__(
        self,
        fail: Optional[FailPredicate] = None,
        url_after_goto: Optional[str] = None,
        screenshot_error: Optional[Exception] = None,
        eval_result: Any = True,
    ) -> None:
        self.fail = fail or (lambda action, target: False)
        self.url_after_goto = url_after_goto
        self.screenshot_error = screenshot_error
        self.eval_result = eval_result
        self.calls: List[Tuple[str, str]] = []
        self.cookies: List[Dict[str, Any]] = []
        self.init_scripts: List[str] = []
        self.screenshots: List[str] = []
        self.close_count = 0
        self._url = "about:blank"

    def _record(self, action: str, target: str = "") -> None:
        self.calls.append((action, target))
        if self.fail(action, target):
            raise RuntimeError(f"{action} failed for {target}")

    def targets(self, action: str) -> List[str]:
        return [target for name, target in self.calls if name == action]

    @property
    def url(self) -> str:
        return self._url

    def add_cookies(self, cookies: List[Dict[str, Any]]) -> None:
        self._record("add_cookies")
        self.cookies.extend(cookies)

    def add_init_script(self, script: str) -> None:
        self._record("add_init_script")
        self.init_scripts.append(script)

    def open_page(self) -> None:
        self._record("open_page")

    def goto(self, url: str, timeout_ms: int, wait_until: str = "domcontentloaded") -> None:
        self._record("goto", url)
        self._url = self.url_after_goto or url

    def wait(self, ms: int) -> None:
        self.calls.append(("wait", str(ms)))

    def is_visible(self, selector: str, timeout_ms: int) -> bool:
        self.calls.append(("is_visible", selector))
        return not self.fail("is_visible", selector)

    def wait_for(self, selector: str, state: str, timeout_ms: int) -> None:
        self._record(f"wait_for:{state}", selector)

    def click(self, selector: str, timeout_ms: int) -> None:
        self._record("click", selector)

    def hover(self, selector: str, timeout_ms: int) -> None:
        self._record("hover", selector)

    def fill(self, selector: str, value: str, timeout_ms: int) -> None:
        self._record("fill", selector)

    def dispatch_event(self, selector: str, event: str) -> None:
        self._record("dispatch_event", selector)

    def press(self, key: str) -> None:
        self._record("press", key)

    def scroll_into_view(self, selector: str, timeout_ms: int) -> None:
        self._record("scroll_into_view", selector)

    def evaluate(self, script: str, arg: Optional[Any] = None) -> Any:
        self._record("evaluate", script)
        return self.eval_result

    def screenshot(self, path: str) -> None:
        if self.screenshot_error is not None:
            raise self.screenshot_error
        Path(path).write_bytes(b"\x89PNG fake")
        self.screenshots.append(path)

    def close(self) -> None:
        self.close_count += 1


@pytest.fixture
def fake_driver() -> FakePageDriver:
    return FakePageDriver()


@pytest.fixture
def catalog():
    return load_selector_catalog()


@pytest.fixture
def settings(tmp_path) -> LinkerSettings:
    return LinkerSettings(settle_ms=0, screenshot_dir=tmp_path / "screenshots")


@pytest.fixture
def link_request() -> LinkRequest:
    return LinkRequest(pb_story_url=STORY_URL, ado_project_name="Healthcare", ado_story_id="4242")


@pytest.fixture
def auth_bundle() -> AuthBundle:
    return AuthBundle(
        cookies=[
            CookieRecord(name="pb_session", value=SECRET_COOKIE_VALUE, domain=".productboard.com"),
            CookieRecord(name="tracker", value="other", domain=".example.com"),
        ],
        local_storage={"pb-auth-token": SECRET_STORAGE_VALUE},
    )


@pytest.fixture
def db_env(tmp_path, monkeypatch) -> Path:
    """Point both SQLite stores at a throwaway database."""
    db_file = tmp_path / "linker.db"
    monkeypatch.setenv("LINKER_DB_PATH", str(db_file))
    init_job_store()
    init_auth_store()
    return db_file
