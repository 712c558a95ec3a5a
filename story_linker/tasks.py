"""Background link jobs and enqueue helpers."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

from .core import auth_store, job_store
from .errors import INPUT_VALIDATION_STEP, InputValidationError
from .models import LinkRequest, WorkflowOutcome
from .settings import LinkerSettings
from .workflow import link_story
from .workflow.linker import new_run_id

logger = logging.getLogger(__name__)

LOAD_AUTH_STEP = "Load Auth Session"


def run_link(
    request: LinkRequest,
    settings: Optional[LinkerSettings] = None,
    run_id: Optional[str] = None,
) -> WorkflowOutcome:
    """Validate the request, load the latest captured session and run the workflow with it."""
    run_id = run_id or new_run_id()
    try:
        request.validate()
    except InputValidationError as exc:
        return WorkflowOutcome.failed(INPUT_VALIDATION_STEP, exc.detail, run_id=run_id)
    bundle = auth_store.get_latest_auth_bundle()
    if bundle is None:
        return WorkflowOutcome.failed(
            LOAD_AUTH_STEP,
            "No valid ProductBoard auth session found. Capture one first.",
            run_id=run_id,
        )
    return link_story(request, bundle, settings=settings, run_id=run_id)


def link_story_task(job_id: str, request: LinkRequest, settings: Optional[LinkerSettings] = None) -> Dict[str, Any]:
    run_id = new_run_id()
    try:
        job_store.mark_running(job_id, run_id)
        outcome = run_link(request, settings, run_id=run_id)
        job_store.record_outcome(job_id, outcome)
        logger.info(f"[LinkJob] {job_id} ({run_id}) finished: {outcome.message}")
        return outcome.to_dict()
    except Exception as exc:
        error_msg = f"Link job {job_id} crashed: {exc}"
        logger.exception(f"[LinkJob] {error_msg}")
        job_store.mark_crashed(job_id, error_msg)
        raise


def enqueue_link_job(request: LinkRequest, settings: Optional[LinkerSettings] = None) -> str:
    job_id = job_store.create_link_job(request)
    threading.Thread(target=link_story_task, args=(job_id, request, settings), daemon=True).start()
    return job_id


__all__ = ["LOAD_AUTH_STEP", "enqueue_link_job", "link_story_task", "run_link"]
