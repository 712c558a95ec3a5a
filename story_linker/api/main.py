from __future__ import annotations

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..core.auth_store import init_auth_store
from ..core.job_store import init_job_store
from ..settings import load_env_files
from .routers import auth_sessions as r_auth_sessions
from .routers import health as r_health
from .routers import linker as r_linker


class StatusPollFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        # Suppress GET /api/jobs/* polling noise
        return "/api/jobs/" not in record.getMessage()


logging.getLogger("uvicorn.access").addFilter(StatusPollFilter())

load_env_files()
init_job_store()
init_auth_store()

app = FastAPI(title="PB ADO Story Linker", version="0.1.0")

# CORS for the capture extension / local UI; adjust via env ALLOW_ORIGINS if needed
allow_origins = os.getenv("ALLOW_ORIGINS", "http://localhost:5178").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in allow_origins if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(r_health.router)
app.include_router(r_linker.router)
app.include_router(r_auth_sessions.router)


if __name__ == "__main__":
    import uvicorn

    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8001"))
    uvicorn.run("story_linker.api.main:app", host=host, port=port, reload=False)
