"""Ordered fallback strategies for a single UI step."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Sequence

from ..core.selector_catalog import SelectorCatalog
from ..drivers.base import PageDriver
from ..errors import StepExhaustionError
from ..models import LinkRequest

logger = logging.getLogger(__name__)


@dataclass
class StepContext:
    driver: PageDriver
    request: LinkRequest
    catalog: SelectorCatalog


StrategyAction = Callable[[StepContext, int], None]


@dataclass
class Strategy:
    """One way of completing a step. ``action`` raises to signal failure."""

    name: str
    action: StrategyAction
    timeout_ms: int = 5000


def run_strategies(step_name: str, strategies: Sequence[Strategy], ctx: StepContext) -> Strategy:
    """Try each strategy in order and return the first that completes."""
    attempts: List[str] = []
    for index, strategy in enumerate(strategies, start=1):
        logger.debug(f"[StepExecutor] {step_name}: trying strategy {index}/{len(strategies)} '{strategy.name}'")
        try:
            strategy.action(ctx, strategy.timeout_ms)
        except Exception as exc:
            message = str(exc).splitlines()[0] if str(exc) else exc.__class__.__name__
            logger.warning(f"[StepExecutor] {step_name}: strategy '{strategy.name}' failed: {message}")
            attempts.append(f"{strategy.name}: {message}")
            continue
        logger.info(f"[StepExecutor] {step_name}: succeeded via '{strategy.name}'")
        return strategy
    raise StepExhaustionError(step_name, attempts)


__all__ = ["Strategy", "StrategyAction", "StepContext", "run_strategies"]
