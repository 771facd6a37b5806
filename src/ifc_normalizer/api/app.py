"""FastAPI application over the job orchestrator."""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, FastAPI, File, HTTPException, Request, Response, UploadFile
from pydantic import BaseModel

from ifc_normalizer import __version__
from ifc_normalizer.catalog.client import BIMPortalClient
from ifc_normalizer.catalog.settings import CatalogSettings
from ifc_normalizer.errors import JobFailedError, JobNotReadyError, ValidationError
from ifc_normalizer.jobs.orchestrator import JobOrchestrator, JobResult

logger = structlog.get_logger(__name__)

router = APIRouter()


# -------------------------------------------------------------------------
# Schemas
# -------------------------------------------------------------------------


class UploadResponse(BaseModel):
    """Response for a submitted upload."""

    jobId: str
    status: str
    message: str


class StatusResponse(BaseModel):
    """Job status snapshot."""

    jobId: str
    status: str
    filename: str
    inputSize: int
    targetClass: str
    createdAt: datetime
    startedAt: Optional[datetime]
    completedAt: Optional[datetime]
    elementsTotal: int
    elementsDone: int
    changeCount: int
    error: Optional[str]


class ReportResponse(BaseModel):
    """Change report of a completed job."""

    jobId: str
    summary: dict[str, Any]
    changes: list[dict[str, Any]]


# -------------------------------------------------------------------------
# Endpoints
# -------------------------------------------------------------------------


def get_orchestrator(request: Request) -> JobOrchestrator:
    return request.app.state.orchestrator


def _completed_result(orchestrator: JobOrchestrator, job_id: str) -> JobResult:
    try:
        result = orchestrator.fetch_result(job_id)
    except JobNotReadyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except JobFailedError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if result is None:
        raise HTTPException(status_code=404, detail=f"Job {job_id} not found")
    return result


@router.post("/upload", response_model=UploadResponse, status_code=202)
async def upload(
    ifc_file: UploadFile = File(..., alias="ifcFile"),
    orchestrator: JobOrchestrator = Depends(get_orchestrator),
):
    """
    Upload an IFC file for normalization.

    Returns immediately with the job id; poll /status/{job_id}.
    """
    data = await ifc_file.read()
    try:
        job_id = await orchestrator.submit(data, ifc_file.filename or "")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return UploadResponse(
        jobId=job_id,
        status="submitted",
        message=f"Job {job_id} submitted",
    )


@router.get("/status/{job_id}", response_model=StatusResponse)
async def status(job_id: str, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    view = orchestrator.get_status(job_id)
    if view is None:
        raise HTTPException(status_code=404, detail=f"Job {job_id} not found")
    return StatusResponse(**view.to_dict())


@router.get("/download/ifc/{job_id}")
async def download_ifc(job_id: str, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    """Normalized IFC document of a completed job."""
    result = _completed_result(orchestrator, job_id)
    return Response(
        content=result.output,
        media_type="application/x-step",
        headers={"Content-Disposition": f'attachment; filename="{result.output_name}"'},
    )


@router.get("/download/report/{job_id}", response_model=ReportResponse)
async def download_report(job_id: str, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    """Change log of a completed job."""
    result = _completed_result(orchestrator, job_id)
    return ReportResponse(
        jobId=job_id,
        summary=result.summary,
        changes=[entry.to_dict() for entry in result.report],
    )


@router.delete("/jobs/{job_id}", status_code=204)
async def delete_job(job_id: str, orchestrator: JobOrchestrator = Depends(get_orchestrator)):
    if not orchestrator.delete(job_id):
        raise HTTPException(status_code=404, detail=f"Job {job_id} not found")
    return Response(status_code=204)


# -------------------------------------------------------------------------
# Application
# -------------------------------------------------------------------------


def create_app(orchestrator: Optional[JobOrchestrator] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        orchestrator: Job orchestrator to serve. If omitted, one backed by a
            BIMPortalClient is created at startup and closed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = None
        if orchestrator is None:
            client = BIMPortalClient(CatalogSettings())
            app.state.orchestrator = JobOrchestrator(client)
        else:
            app.state.orchestrator = orchestrator
        logger.info("api.starting")

        yield

        logger.info("api.stopping")
        if client is not None:
            await client.aclose()

    app = FastAPI(
        title="IFC Normalizer",
        description="Align IFC element properties with the BIM Portal property catalog",
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(router)
    return app
