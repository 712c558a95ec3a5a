"""Runtime configuration read from the environment (and ``.env`` files)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36"
)

DEFAULT_BROWSER_ARGS: Tuple[str, ...] = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
    "--disable-blink-features=AutomationControlled",
)


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _parse_viewport(raw: str) -> Tuple[int, int]:
    try:
        width, height = raw.lower().split("x", 1)
        return int(width), int(height)
    except ValueError:
        return 2560, 1440


def load_env_files() -> None:
    """Load ``.env`` from the working directory, then from the repository root."""
    load_dotenv()
    root_env = Path(__file__).resolve().parents[1] / ".env"
    if root_env.exists():
        load_dotenv(dotenv_path=root_env, override=False)


@dataclass
class LinkerSettings:
    target_domain: str = "productboard.com"
    headless: bool = True
    navigation_timeout_ms: int = 60000
    settle_ms: int = 5000
    viewport: Tuple[int, int] = (2560, 1440)
    user_agent: str = DEFAULT_USER_AGENT
    locale: str = "en-US"
    timezone_id: str = "America/New_York"
    browser_args: Tuple[str, ...] = DEFAULT_BROWSER_ARGS
    screenshot_dir: Path = Path("screenshots")
    selectors_path: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "LinkerSettings":
        selectors_path = os.getenv("LINKER_SELECTORS_PATH")
        return cls(
            target_domain=os.getenv("PB_TARGET_DOMAIN", "productboard.com").strip(),
            headless=_env_flag("LINKER_HEADLESS", "1"),
            navigation_timeout_ms=_env_int("LINKER_NAV_TIMEOUT_MS", 60000),
            settle_ms=_env_int("LINKER_SETTLE_MS", 5000),
            viewport=_parse_viewport(os.getenv("LINKER_VIEWPORT", "2560x1440")),
            user_agent=os.getenv("LINKER_USER_AGENT", DEFAULT_USER_AGENT),
            locale=os.getenv("LINKER_LOCALE", "en-US"),
            timezone_id=os.getenv("LINKER_TIMEZONE", "America/New_York"),
            screenshot_dir=Path(os.getenv("LINKER_SCREENSHOT_DIR", "screenshots")).resolve(),
            selectors_path=Path(selectors_path) if selectors_path else None,
        )


__all__ = ["DEFAULT_BROWSER_ARGS", "DEFAULT_USER_AGENT", "LinkerSettings", "load_env_files"]
