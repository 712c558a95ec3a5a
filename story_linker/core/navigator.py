"""Story-page navigation and the post-navigation authentication check.

ProductBoard redirects an unauthenticated browser to a login or signin page
instead of returning an error, so a finished ``goto`` is only trusted once
the landing URL is still on the target domain.
"""

from __future__ import annotations

import logging

from ..drivers.base import PageDriver
from ..errors import AuthenticationFailedError, NavigationError
from ..settings import LinkerSettings

logger = logging.getLogger(__name__)

LOGIN_MARKERS = ("login", "signin")


def is_authenticated_url(url: str, target_domain: str) -> bool:
    """True when ``url`` is on the target domain and not a login page."""
    lowered = (url or "").lower()
    if any(marker in lowered for marker in LOGIN_MARKERS):
        return False
    return bool(target_domain) and target_domain.lower() in lowered


def navigate_to_story(driver: PageDriver, story_url: str, settings: LinkerSettings) -> str:
    """Load the story page, confirm the session is authenticated, then settle."""
    logger.info(f"[Navigator] Navigating to {story_url}...")
    try:
        driver.goto(story_url, timeout_ms=settings.navigation_timeout_ms, wait_until="domcontentloaded")
    except Exception as exc:
        raise NavigationError(f"Navigation to {story_url} failed: {exc}") from exc

    current_url = driver.url
    logger.info(f"[Navigator] Current URL: {current_url}, expected domain: {settings.target_domain}")
    if not is_authenticated_url(current_url, settings.target_domain):
        raise AuthenticationFailedError(
            "Authentication failed. Session cookies may have expired, navigation failed, "
            f"or landed on wrong domain. Current URL: {current_url}"
        )
    logger.info("[Navigator] Authentication appears successful.")

    # The story page hydrates client-side well after DOMContentLoaded.
    if settings.settle_ms > 0:
        driver.wait(settings.settle_ms)
    return current_url


__all__ = ["LOGIN_MARKERS", "is_authenticated_url", "navigate_to_story"]
