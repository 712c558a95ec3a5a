"""Single driver loop over the named UI steps."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from ..core.diagnostics import ScreenshotRecorder
from ..errors import LinkerError, tagged_step
from ..models import StepResult
from .strategies import Strategy, StepContext, run_strategies

logger = logging.getLogger(__name__)

StepHook = Callable[[StepContext], None]


@dataclass
class Step:
    """A named unit of UI interaction.

    ``prepare`` must succeed before any strategy runs (its failure fails the
    step). ``followup`` runs after a successful strategy and is best-effort.
    Exhausting a non-required step is logged and the sequence continues.
    """

    name: str
    strategies: List[Strategy] = field(default_factory=list)
    required: bool = True
    prepare: Optional[StepHook] = None
    followup: Optional[StepHook] = None
    settle_before_ms: int = 0
    settle_after_ms: int = 0
    screenshot_before: bool = False
    screenshot_after: bool = True


class StepExecutor:
    def __init__(self, ctx: StepContext, recorder: ScreenshotRecorder) -> None:
        self.ctx = ctx
        self.recorder = recorder

    def run(self, steps: Sequence[Step]) -> List[StepResult]:
        """Run ``steps`` in order, raising at the first required step that fails."""
        results: List[StepResult] = []
        for index, step in enumerate(steps, start=1):
            logger.info(f"[StepExecutor] Step {index}/{len(steps)}: {step.name}")
            results.append(self.run_step(step))
        return results

    def run_step(self, step: Step) -> StepResult:
        driver = self.ctx.driver
        if step.screenshot_before:
            self.recorder.capture(f"before {step.name}")

        try:
            with tagged_step(step.name):
                if step.settle_before_ms:
                    driver.wait(step.settle_before_ms)
                if step.prepare is not None:
                    step.prepare(self.ctx)
            winner = run_strategies(step.name, step.strategies, self.ctx)
            with tagged_step(step.name):
                if step.settle_after_ms:
                    driver.wait(step.settle_after_ms)
        except LinkerError as exc:
            if step.required:
                self.recorder.record(StepResult(step.name, False, exc.detail))
                raise
            logger.warning(f"[StepExecutor] Optional step '{step.name}' did not complete; continuing. {exc.detail}")
            result = StepResult(step.name, False, exc.detail, self._after_screenshot(step))
            self.recorder.record(result)
            return result

        if step.followup is not None:
            try:
                step.followup(self.ctx)
            except Exception as exc:
                logger.warning(f"[StepExecutor] Follow-up for '{step.name}' failed: {exc}")

        result = StepResult(step.name, True, f"Completed via '{winner.name}'", self._after_screenshot(step))
        self.recorder.record(result)
        return result

    def _after_screenshot(self, step: Step) -> Optional[str]:
        if not step.screenshot_after:
            return None
        return self.recorder.capture(f"after {step.name}")


__all__ = ["Step", "StepExecutor", "StepHook"]
