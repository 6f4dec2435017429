from __future__ import annotations
import logging
import uuid
from collections import OrderedDict
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from fastapi import FastAPI, UploadFile, File, BackgroundTasks, HTTPException, Form
from fastapi.responses import Response
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from supplier_shopify.bundle import Category, archive_name, build_archive, process_batch
from . import settings as app_settings


log = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parents[2]

app = FastAPI(title="Supplier Sheet → Shopify API", version="0.1.0")
app_settings.init_settings(ROOT / "data" / "settings.json")

BATCH_ERROR = "An error occurred while processing the files. Please check the CSV format."


class JobStatus(str):
    queued = "queued"
    running = "running"
    succeeded = "succeeded"
    failed = "failed"


class Job(BaseModel):
    id: str
    kind: str
    status: str
    created_at: datetime
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    params: Dict
    archive_name: Optional[str] = None
    error: Optional[str] = None
    counters: Dict = {}


JOBS: Dict[str, Job] = {}
ARCHIVES: OrderedDict[str, bytes] = OrderedDict()


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def _read_uploads(files: List[UploadFile]) -> List[Tuple[str, bytes]]:
    out = []
    for f in files:
        out.append((f.filename or "upload.csv", await f.read()))
    return out


def _zip_response(data: bytes, name: str, counters: Dict) -> Response:
    return Response(
        content=data,
        media_type="application/zip",
        headers={
            "Content-Disposition": f'attachment; filename="{name}"',
            "X-Processed-Count": str(counters.get("processed", 0)),
            "X-Failed-Count": str(counters.get("failed", 0)),
        },
    )


def _run_batch(uploads: List[Tuple[str, bytes]]) -> Tuple[bytes, Dict]:
    s = app_settings.get_settings()
    report = process_batch(
        uploads,
        max_workers=int(s.get("max_workers", 4)),
        header_lookahead=int(s.get("header_lookahead", 8)),
    )
    data = build_archive(report)
    return data, {"files": report.total, "processed": report.processed, "failed": report.failed}


def _store_archive(job_id: str, data: bytes) -> None:
    # only the most recent archives are kept; older jobs lose their download
    limit = max(1, int(app_settings.get_settings().get("max_archives", 16)))
    ARCHIVES[job_id] = data
    while len(ARCHIVES) > limit:
        evicted, _ = ARCHIVES.popitem(last=False)
        log.info(f"Released archive of job {evicted}")


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/convert")
async def convert(files: List[UploadFile] = File(...), category: Optional[Category] = Form(None)):
    if not files:
        raise HTTPException(400, "no files uploaded")
    category = category or Category(app_settings.get_settings().get("default_category", "Fashion"))
    uploads = await _read_uploads(files)
    try:
        data, counters = await run_in_threadpool(_run_batch, uploads)
    except Exception:
        log.exception("Archive assembly failed")
        raise HTTPException(500, BATCH_ERROR)
    return _zip_response(data, archive_name(category), counters)


@app.post("/jobs/convert", response_model=Job)
async def create_convert_job(
    bg: BackgroundTasks,
    files: List[UploadFile] = File(...),
    category: Optional[Category] = Form(None),
):
    category = category or Category(app_settings.get_settings().get("default_category", "Fashion"))
    uploads = await _read_uploads(files)
    job_id = uuid.uuid4().hex
    job = Job(
        id=job_id,
        kind="convert",
        status=JobStatus.queued,
        created_at=_now(),
        params={"category": category.value, "files": [name for name, _ in uploads]},
    )
    JOBS[job_id] = job

    def run():
        j = JOBS[job_id]
        j.status = JobStatus.running
        j.started_at = _now()
        try:
            data, counters = _run_batch(uploads)
            _store_archive(job_id, data)
            j.counters = counters
            j.archive_name = archive_name(category)
            j.status = JobStatus.succeeded
        except Exception as e:
            log.exception(f"Job {job_id} failed")
            j.status = JobStatus.failed
            j.error = str(e)
        finally:
            j.finished_at = _now()

    bg.add_task(run)
    return job


@app.get("/jobs/{job_id}", response_model=Job)
def get_job(job_id: str) -> Job:
    if job_id in JOBS:
        return JOBS[job_id]
    raise HTTPException(404, "job not found")


@app.get("/jobs/{job_id}/download")
def download_job(job_id: str):
    job = JOBS.get(job_id)
    if not job:
        raise HTTPException(404, "job not found")
    if job.status != JobStatus.succeeded or job_id not in ARCHIVES:
        raise HTTPException(400, "job not completed or its result was released")
    return _zip_response(ARCHIVES[job_id], job.archive_name or f"processed_{job_id}.zip", job.counters)
