"""Inject a captured ProductBoard session into a fresh browser context."""

from __future__ import annotations

import json
import logging
from typing import Dict, Iterable, List

from ..drivers.base import PageDriver
from ..models import AuthBundle, CookieRecord

logger = logging.getLogger(__name__)


def filter_cookies_for_domain(cookies: Iterable[CookieRecord], target_domain: str) -> List[CookieRecord]:
    """Keep only cookies whose domain contains ``target_domain``."""
    target = (target_domain or "").strip().lower()
    if not target:
        return []
    return [c for c in cookies if c.domain and target in c.domain.lower()]


def inject_cookies(driver: PageDriver, cookies: List[CookieRecord], target_domain: str) -> int:
    """Add matching cookies to the context. Returns how many were injected."""
    if not cookies:
        logger.warning("[AuthInjector] No cookies provided to inject.")
        return 0

    matched = filter_cookies_for_domain(cookies, target_domain)
    dropped = len(cookies) - len(matched)
    if dropped:
        logger.warning(f"[AuthInjector] Dropped {dropped} cookie(s) not matching domain {target_domain}.")
    if not matched:
        logger.warning(f"[AuthInjector] No cookies matched the target domain {target_domain}; nothing injected.")
        return 0

    try:
        driver.add_cookies([c.to_playwright() for c in matched])
    except Exception as exc:
        logger.error(f"[AuthInjector] Error injecting cookies: {exc}")
        return 0
    logger.info(f"[AuthInjector] {len(matched)} cookie(s) injected for {target_domain}.")
    return len(matched)


def build_local_storage_script(storage: Dict[str, str]) -> str:
    payload = json.dumps({str(k): str(v) for k, v in storage.items()})
    return (
        "((items) => {\n"
        "    for (const [key, value] of Object.entries(items)) {\n"
        "        window.localStorage.setItem(key, value);\n"
        "    }\n"
        f"}})({payload});"
    )


def inject_local_storage(driver: PageDriver, storage: Dict[str, str]) -> bool:
    """Register an init script that seeds local storage before page scripts run."""
    if not storage:
        logger.warning("[AuthInjector] No local storage data provided to inject.")
        return False
    try:
        driver.add_init_script(build_local_storage_script(storage))
    except Exception as exc:
        logger.error(f"[AuthInjector] Error setting up local storage injection: {exc}")
        return False
    logger.info(f"[AuthInjector] {len(storage)} local storage item(s) scheduled for injection.")
    return True


def inject_auth(driver: PageDriver, bundle: AuthBundle, target_domain: str) -> int:
    """Inject cookies and local storage. Never raises."""
    injected = inject_cookies(driver, bundle.cookies, target_domain)
    inject_local_storage(driver, bundle.local_storage)
    return injected


__all__ = [
    "build_local_storage_script",
    "filter_cookies_for_domain",
    "inject_auth",
    "inject_cookies",
    "inject_local_storage",
]
