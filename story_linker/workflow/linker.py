"""Run one ProductBoard -> ADO link end to end and report a single outcome."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional
from uuid import uuid4

from ..core.auth_injector import inject_auth
from ..core.diagnostics import ScreenshotRecorder
from ..core.navigator import navigate_to_story
from ..core.selector_catalog import SelectorCatalog, load_selector_catalog
from ..drivers.base import PageDriver
from ..errors import (
    INPUT_VALIDATION_STEP,
    UNEXPECTED_STEP,
    BootstrapError,
    InputValidationError,
    LinkerError,
    tagged_step,
)
from ..models import AuthBundle, LinkRequest, WorkflowOutcome
from ..settings import LinkerSettings
from .executor import StepExecutor
from .steps import build_link_steps
from .strategies import StepContext

logger = logging.getLogger(__name__)

CREATE_PAGE_STEP = "Create Page"

DriverFactory = Callable[[LinkerSettings], PageDriver]


def new_run_id() -> str:
    return f"{time.strftime('%Y%m%d-%H%M%S')}-{uuid4().hex[:8]}"


def _validate(request: LinkRequest, auth_bundle: Optional[AuthBundle]) -> None:
    request.validate()
    if auth_bundle is None or not auth_bundle.cookies:
        raise InputValidationError("Missing required input: pbCookies (at least one cookie is required).")


def _default_factory(settings: LinkerSettings) -> PageDriver:
    from ..drivers.playwright_driver import launch_playwright_driver

    return launch_playwright_driver(settings)


def link_story(
    request: LinkRequest,
    auth_bundle: Optional[AuthBundle],
    settings: Optional[LinkerSettings] = None,
    driver_factory: Optional[DriverFactory] = None,
    catalog: Optional[SelectorCatalog] = None,
    run_id: Optional[str] = None,
) -> WorkflowOutcome:
    """Link ``request.pb_story_url`` to ADO work item ``request.ado_story_id``.

    Never raises. Failures come back as a ``WorkflowOutcome`` whose
    ``failed_step`` names where the run stopped. The browser session, once
    acquired, is closed exactly once.
    """
    run_id = run_id or new_run_id()
    logger.info(f"[Linker] Run {run_id}: linking {request.pb_story_url} -> ADO {request.ado_story_id}")

    try:
        _validate(request, auth_bundle)
    except LinkerError as exc:
        logger.warning(f"[Linker] Run {run_id}: {exc.detail}")
        return WorkflowOutcome.failed(INPUT_VALIDATION_STEP, exc.detail, run_id=run_id)

    settings = settings or LinkerSettings.from_env()
    factory = driver_factory or _default_factory
    driver: Optional[PageDriver] = None
    recorder: Optional[ScreenshotRecorder] = None

    try:
        if catalog is None:
            catalog = load_selector_catalog(settings.selectors_path)

        try:
            driver = factory(settings)
        except Exception as exc:
            raise BootstrapError(f"Failed to launch browser: {exc}") from exc
        recorder = ScreenshotRecorder(driver, settings.screenshot_dir / run_id)

        injected = inject_auth(driver, auth_bundle, settings.target_domain)
        logger.info(f"[Linker] Run {run_id}: {injected} cookie(s) injected.")

        with tagged_step(CREATE_PAGE_STEP):
            driver.open_page()

        navigate_to_story(driver, request.pb_story_url, settings)
        recorder.capture("story page loaded")

        ctx = StepContext(driver=driver, request=request, catalog=catalog)
        StepExecutor(ctx, recorder).run(build_link_steps(request, catalog))

        message = f"Successfully linked PB story to ADO work item {request.ado_story_id}."
        logger.info(f"[Linker] Run {run_id}: {message}")
        return WorkflowOutcome.succeeded(message, run_id=run_id)
    except LinkerError as exc:
        logger.error(f"[Linker] Run {run_id} failed at '{exc.step_name}': {exc.detail}")
        if recorder is not None:
            recorder.capture(f"error {exc.step_name}")
        return WorkflowOutcome.failed(exc.step_name, exc.detail, run_id=run_id)
    except Exception as exc:
        logger.exception(f"[Linker] Run {run_id}: unexpected error")
        if recorder is not None:
            recorder.capture("error unexpected")
        return WorkflowOutcome.failed(UNEXPECTED_STEP, str(exc) or exc.__class__.__name__, run_id=run_id)
    finally:
        if driver is not None:
            try:
                driver.close()
            except Exception as exc:
                logger.warning(f"[Linker] Run {run_id}: error while closing browser: {exc}")


__all__ = ["CREATE_PAGE_STEP", "DriverFactory", "link_story", "new_run_id"]
