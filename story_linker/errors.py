"""Error taxonomy for the story-link workflow.

Every fatal error carries the name of the step it belongs to so the outcome
reporter can surface ``stepFailed`` without any shared "current step" state.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, List, Optional

INPUT_VALIDATION_STEP = "Input Validation"
BROWSER_LAUNCH_STEP = "Browser Launch"
NAVIGATION_STEP = "Navigate to PB Story"
AUTH_VERIFICATION_STEP = "Verify Authentication"
UNEXPECTED_STEP = "Unexpected Error"


class LinkerError(Exception):
    """Base class for workflow failures tagged with a step name."""

    default_step = UNEXPECTED_STEP

    def __init__(self, detail: str, step_name: Optional[str] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.step_name = step_name or self.default_step


class InputValidationError(LinkerError):
    default_step = INPUT_VALIDATION_STEP


class BootstrapError(LinkerError):
    default_step = BROWSER_LAUNCH_STEP


class NavigationError(LinkerError):
    default_step = NAVIGATION_STEP


class AuthenticationFailedError(LinkerError):
    default_step = AUTH_VERIFICATION_STEP


class StepExhaustionError(LinkerError):
    """Raised when every strategy of a UI step failed."""

    def __init__(self, step_name: str, attempts: List[str]) -> None:
        self.attempts = list(attempts)
        if attempts:
            detail = "All strategies failed: " + "; ".join(attempts)
        else:
            detail = "No strategies configured"
        super().__init__(detail, step_name=step_name)


@contextmanager
def tagged_step(step_name: str) -> Iterator[None]:
    """Re-raise anything escaping the block as a ``LinkerError`` for ``step_name``."""
    try:
        yield
    except LinkerError:
        raise
    except Exception as exc:
        raise LinkerError(str(exc) or exc.__class__.__name__, step_name=step_name) from exc


__all__ = [
    "AUTH_VERIFICATION_STEP",
    "AuthenticationFailedError",
    "BROWSER_LAUNCH_STEP",
    "BootstrapError",
    "INPUT_VALIDATION_STEP",
    "InputValidationError",
    "LinkerError",
    "NAVIGATION_STEP",
    "NavigationError",
    "StepExhaustionError",
    "UNEXPECTED_STEP",
    "tagged_step",
]
