from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse, JSONResponse
from pydantic import BaseModel, Field

from ...core import job_store
from ...core.diagnostics import list_screenshots
from ...errors import INPUT_VALIDATION_STEP
from ...models import LinkRequest
from ...settings import LinkerSettings
from ...tasks import enqueue_link_job, run_link
from ..auth import jwt_required

router = APIRouter(tags=["pb-ado"], dependencies=[Depends(jwt_required)])


class LinkStoryRequest(BaseModel):
    pbStoryUrl: str = Field(..., description="Full URL of the ProductBoard story (feature) page.")
    adoProjectName: str = Field(..., description="Azure DevOps project name as shown in ProductBoard's dropdown.")
    adoStoryId: str = Field(..., description="ID of the existing ADO work item to link.")

    def to_link_request(self) -> LinkRequest:
        return LinkRequest.from_dict(self.model_dump())


class LinkOutcomeResponse(BaseModel):
    success: bool
    message: str
    stepFailed: Optional[str] = None
    runId: Optional[str] = None


class JobEnqueueResponse(BaseModel):
    jobId: str


class JobDetailResponse(BaseModel):
    jobId: str
    status: str
    request: Dict[str, str]
    runId: Optional[str] = None
    stepFailed: Optional[str] = None
    result: Optional[LinkOutcomeResponse] = None
    error: Optional[str] = None
    screenshots: List[str] = Field(default_factory=list)
    createdAt: str
    updatedAt: str


class ScreenshotListResponse(BaseModel):
    runId: str
    screenshots: List[str]


def _job_dict_to_response(job: Dict[str, Any]) -> JobDetailResponse:
    run_id = job.get("run_id")
    outcome = job.get("outcome")
    return JobDetailResponse(
        jobId=job["id"],
        status=job["status"],
        request=job["request"].to_dict(),
        runId=run_id,
        stepFailed=job.get("failed_step"),
        result=LinkOutcomeResponse(**outcome.to_dict()) if outcome else None,
        error=job.get("error"),
        screenshots=list_screenshots(_screenshot_root(), run_id) if run_id else [],
        createdAt=job["created_at"],
        updatedAt=job["updated_at"],
    )


def _screenshot_root() -> Path:
    return LinkerSettings.from_env().screenshot_dir.resolve()


def _inside(base: Path, candidate: Path) -> bool:
    return os.path.commonpath([str(base), str(candidate)]) == str(base)


# Plain def: the workflow drives a synchronous browser, so FastAPI runs this in its threadpool.
@router.post("/api/pb-ado/link", response_model=LinkOutcomeResponse)
def link_pb_story(req: LinkStoryRequest) -> JSONResponse:
    outcome = run_link(req.to_link_request())
    if outcome.success:
        status_code = 200
    elif outcome.failed_step == INPUT_VALIDATION_STEP:
        status_code = 400
    else:
        status_code = 500
    return JSONResponse(status_code=status_code, content=outcome.to_dict())


@router.post("/api/pb-ado/link/jobs", response_model=JobEnqueueResponse, status_code=202)
async def enqueue_pb_story_link(req: LinkStoryRequest) -> JobEnqueueResponse:
    job_id = enqueue_link_job(req.to_link_request())
    return JobEnqueueResponse(jobId=job_id)


@router.get("/api/jobs/{job_id}", response_model=JobDetailResponse)
async def get_job_detail(job_id: str) -> JobDetailResponse:
    job = job_store.get_job(job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found.")
    return _job_dict_to_response(job)


@router.get("/api/pb-ado/runs/{run_id}/screenshots", response_model=ScreenshotListResponse)
async def list_run_screenshots(run_id: str) -> ScreenshotListResponse:
    root = _screenshot_root()
    if not _inside(root, (root / run_id).resolve()):
        raise HTTPException(status_code=400, detail="Invalid run id")
    names = list_screenshots(root, run_id)
    # A queued or running job owns its run id before any screenshot exists.
    if not names and job_store.get_job_by_run_id(run_id) is None:
        raise HTTPException(status_code=404, detail="No screenshots for run.")
    return ScreenshotListResponse(runId=run_id, screenshots=names)


@router.get("/api/pb-ado/runs/{run_id}/screenshots/{name}")
async def download_run_screenshot(run_id: str, name: str):
    root = _screenshot_root()
    run_dir = (root / run_id).resolve()
    target = (run_dir / name).resolve()
    if not _inside(root, run_dir) or not _inside(run_dir, target):
        raise HTTPException(status_code=400, detail="Invalid screenshot path")
    if not target.is_file():
        raise HTTPException(status_code=404, detail="Screenshot not found")
    return FileResponse(target, media_type="image/png")
