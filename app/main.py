"""Jira Task Notes API - runs and schedules Jira -> Obsidian syncs."""

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Header, HTTPException
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

import config
from scheduler import get_jobs_status, run_job_now, shutdown_scheduler, start_scheduler
from services.jira.sync_tasks import run_jira_sync

load_dotenv()

# Logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    start_scheduler()
    yield
    shutdown_scheduler()


# FastAPI app
app = FastAPI(title="Jira Task Notes API", lifespan=lifespan)


def _check_api_key(x_api_key: str | None) -> None:
    if not config.SYNC_API_KEY or x_api_key != config.SYNC_API_KEY:
        logger.warning("Invalid API key")
        raise HTTPException(status_code=401, detail="Invalid API key")


@app.get("/health")
async def health():
    return {"status": "healthy"}


@app.post("/jira/sync")
async def jira_sync(x_api_key: str | None = Header(None)):
    """Run a Jira sync now and return its result."""
    _check_api_key(x_api_key)

    result = await run_in_threadpool(run_jira_sync)

    # Sync failures are reported in the body, not as HTTP errors
    return JSONResponse(content=dict(result))


@app.get("/scheduler/jobs")
async def list_jobs():
    return {"jobs": get_jobs_status()}


@app.post("/scheduler/jobs/{job_id}/run")
async def trigger_job(job_id: str, x_api_key: str | None = Header(None)):
    _check_api_key(x_api_key)

    if not run_job_now(job_id):
        raise HTTPException(status_code=404, detail=f"Job not found: {job_id}")
    return {"status": "scheduled", "job_id": job_id}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
