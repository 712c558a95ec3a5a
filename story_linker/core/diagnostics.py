"""Best-effort screenshot capture for debugging failed or flaky runs.

Nothing in here may raise into the workflow: a diagnostics failure must never
replace or hide the real outcome of a step.
"""

from __future__ import annotations

import logging
import re
import time
from pathlib import Path
from typing import List, Optional

from ..drivers.base import PageDriver
from ..models import StepResult

logger = logging.getLogger(__name__)


def slugify(tag: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "_", (tag or "").strip().lower()).strip("_")
    return slug or "step"


class ScreenshotRecorder:
    """Writes ``<seq>_<slug>_<timestamp>.png`` files under ``run_dir``."""

    def __init__(self, driver: PageDriver, run_dir: Path) -> None:
        self.driver = driver
        self.run_dir = run_dir
        self.captured: List[Path] = []
        self._seq = 0

    def capture(self, tag: str) -> Optional[str]:
        self._seq += 1
        target = self.run_dir / f"{self._seq:02d}_{slugify(tag)}_{int(time.time() * 1000)}.png"
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            self.driver.screenshot(str(target))
        except Exception as exc:
            logger.warning(f"[Diagnostics] Failed to save screenshot '{tag}': {exc}")
            return None
        self.captured.append(target)
        logger.debug(f"[Diagnostics] Screenshot '{tag}' saved to {target}")
        return str(target)

    def record(self, result: StepResult) -> None:
        status = "ok" if result.success else "FAILED"
        suffix = f" (screenshot: {result.screenshot_ref})" if result.screenshot_ref else ""
        log = logger.info if result.success else logger.warning
        log(f"[Diagnostics] Step '{result.step_name}' {status}: {result.message}{suffix}")


def list_screenshots(root: Path, run_id: str) -> List[str]:
    run_dir = root / run_id
    if not run_dir.is_dir():
        return []
    return sorted(p.name for p in run_dir.glob("*.png"))


__all__ = ["ScreenshotRecorder", "list_screenshots", "slugify"]
