"""
Background normalization jobs.

ARCHITECTURE
------------
::

    JobOrchestrator(resolver, profile)
      ├── .submit(data, filename)  ─ validate, register, start task
      ├── .get_status(job_id)      ─ read-only JobView snapshot
      ├── .fetch_result(job_id)    ─ output document + report
      ├── .wait(job_id)            ─ await the job's task
      └── .delete(job_id)          ─ drop the record

Each job runs as one asyncio task stored on its record. After submit()
inserts the record, only that task changes the job's state, so the registry
needs no lock. There is no cancellation; deleting a running job only drops
the record. Finished jobs are evicted on submit once they are older than
the retention window or exceed the max_finished count, oldest first.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Optional

import structlog

from ifc_normalizer.errors import JobFailedError, JobNotReadyError, ValidationError
from ifc_normalizer.matching.names import SynonymExpander
from ifc_normalizer.normalizer.processing import NormalizationResult, process_ifc
from ifc_normalizer.profiles.config import NormalizationProfile, Profile, get_profile

logger = structlog.get_logger(__name__)


class JobState(Enum):
    """Lifecycle state of a job."""
    SUBMITTED = "submitted"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TRANSITIONS = {
    JobState.SUBMITTED: {JobState.PROCESSING, JobState.FAILED},
    JobState.PROCESSING: {JobState.COMPLETED, JobState.FAILED},
    JobState.COMPLETED: set(),
    JobState.FAILED: set(),
}


@dataclass
class Job:
    """Mutable job record, owned by the orchestrator."""

    job_id: str
    filename: str
    input_size: int
    profile: NormalizationProfile
    created_at: datetime = field(default_factory=datetime.now)
    state: JobState = JobState.SUBMITTED
    history: list = field(default_factory=lambda: [JobState.SUBMITTED])
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    elements_total: int = 0
    elements_done: int = 0
    result: Optional[NormalizationResult] = None
    error: Optional[str] = None
    task: Optional[asyncio.Task] = None

    def transition(self, new_state: JobState) -> None:
        if new_state not in TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Job {self.job_id}: illegal transition {self.state.value} -> {new_state.value}"
            )
        self.state = new_state
        self.history.append(new_state)

    @property
    def output_name(self) -> str:
        return f"{Path(self.filename).stem}_normalized.ifc"


@dataclass(frozen=True)
class JobView:
    """Read-only snapshot of a job."""

    job_id: str
    state: JobState
    filename: str
    input_size: int
    target_class: str
    created_at: datetime
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    elements_total: int
    elements_done: int
    change_count: int
    error: Optional[str]
    history: tuple

    @classmethod
    def of(cls, job: Job) -> "JobView":
        return cls(
            job_id=job.job_id,
            state=job.state,
            filename=job.filename,
            input_size=job.input_size,
            target_class=job.profile.target_class,
            created_at=job.created_at,
            started_at=job.started_at,
            completed_at=job.completed_at,
            elements_total=job.elements_total,
            elements_done=job.elements_done,
            change_count=len(job.result.report) if job.result else 0,
            error=job.error,
            history=tuple(job.history),
        )

    def to_dict(self) -> dict:
        return {
            "jobId": self.job_id,
            "status": self.state.value,
            "filename": self.filename,
            "inputSize": self.input_size,
            "targetClass": self.target_class,
            "createdAt": self.created_at.isoformat(),
            "startedAt": self.started_at.isoformat() if self.started_at else None,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "elementsTotal": self.elements_total,
            "elementsDone": self.elements_done,
            "changeCount": self.change_count,
            "error": self.error,
        }


@dataclass(frozen=True)
class JobResult:
    """Output of a completed job."""

    job_id: str
    output: bytes
    output_name: str
    report: tuple  # ChangeLogEntry records
    summary: dict


class JobOrchestrator:
    """Runs normalization jobs in the background and tracks their state."""

    ALLOWED_EXTENSIONS = (".ifc",)

    def __init__(
        self,
        resolver,
        profile: Optional[NormalizationProfile] = None,
        expander: Optional[SynonymExpander] = None,
        retention_seconds: Optional[float] = 3600.0,
        max_finished: Optional[int] = 100
    ):
        """
        Initialize the orchestrator.

        Args:
            resolver: CatalogResolver shared by all jobs
            profile: Default normalization profile (walls)
            expander: Synonym expander shared by all jobs
            retention_seconds: Age after which a finished job is evicted
                (None keeps finished jobs until deleted)
            max_finished: Finished jobs kept at most (None for no limit)
        """
        self.resolver = resolver
        self.profile = profile or get_profile(Profile.WALLS)
        self.expander = expander or SynonymExpander()
        self.retention_seconds = retention_seconds
        self.max_finished = max_finished
        self._jobs: dict[str, Job] = {}

    def validate_upload(self, data: bytes, filename: str) -> None:
        """
        Reject uploads that are not IFC files.

        Raises:
            ValidationError: Empty content, wrong extension or missing STEP header
        """
        if not filename or not filename.lower().endswith(self.ALLOWED_EXTENSIONS):
            raise ValidationError(f"Only IFC files (.ifc) are supported, got '{filename}'")
        if not data:
            raise ValidationError("Uploaded file is empty")
        if not data.lstrip()[:64].startswith(b"ISO-10303-21"):
            raise ValidationError("Missing ISO-10303-21 header, not an IFC STEP file")

    async def submit(
        self,
        data: bytes,
        filename: str = "model.ifc",
        profile: Optional[NormalizationProfile] = None
    ) -> str:
        """
        Submit a document for normalization.

        Returns immediately; the work runs as a background task.

        Args:
            data: IFC file content
            filename: Original file name
            profile: Override of the default profile for this job

        Returns:
            Job id

        Raises:
            ValidationError: If the upload is rejected (no job is created)
        """
        self.validate_upload(data, filename)
        self.evict_finished()

        job = Job(
            job_id=uuid.uuid4().hex[:12],
            filename=filename,
            input_size=len(data),
            profile=profile or self.profile,
        )
        self._jobs[job.job_id] = job
        job.task = asyncio.create_task(self._run(job, data))

        logger.info("job.submitted", job_id=job.job_id, filename=filename, size=len(data))
        return job.job_id

    async def _run(self, job: Job, data: bytes) -> None:
        """Background unit of work; the only writer of the job after submit."""
        job.transition(JobState.PROCESSING)
        job.started_at = datetime.now()

        def progress(done: int, total: int) -> None:
            job.elements_done = done
            job.elements_total = total

        try:
            result = await process_ifc(
                data, self.resolver, job.profile, self.expander, progress=progress
            )
        except Exception as e:
            job.error = f"{type(e).__name__}: {e}"
            job.completed_at = datetime.now()
            job.transition(JobState.FAILED)
            logger.exception("job.failed", job_id=job.job_id, error=job.error)
            return

        job.result = result
        job.elements_total = result.elements_analyzed
        job.completed_at = datetime.now()
        job.transition(JobState.COMPLETED)
        logger.info("job.completed", job_id=job.job_id, changes=len(result.report),
                    elements=result.elements_analyzed)

    def get_status(self, job_id: str) -> Optional[JobView]:
        """Snapshot of a job, None if unknown."""
        job = self._jobs.get(job_id)
        return JobView.of(job) if job else None

    def list_jobs(self) -> list[JobView]:
        return [JobView.of(job) for job in list(self._jobs.values())]

    def fetch_result(self, job_id: str) -> Optional[JobResult]:
        """
        Get the output of a completed job.

        Returns:
            JobResult, or None if the job is unknown

        Raises:
            JobNotReadyError: Job is still submitted/processing
            JobFailedError: Job failed
        """
        job = self._jobs.get(job_id)
        if job is None:
            return None
        if job.state == JobState.FAILED:
            raise JobFailedError(job_id, job.error)
        if job.state != JobState.COMPLETED:
            raise JobNotReadyError(job_id, job.state.value)

        return JobResult(
            job_id=job_id,
            output=job.result.output,
            output_name=job.output_name,
            report=tuple(job.result.report),
            summary=job.result.summary(),
        )

    async def wait(self, job_id: str) -> Optional[JobView]:
        """Wait for a job to reach a terminal state."""
        job = self._jobs.get(job_id)
        if job is None:
            return None
        if job.task is not None:
            await asyncio.shield(job.task)
        return JobView.of(job)

    def evict_finished(self, now: Optional[datetime] = None) -> int:
        """
        Drop finished jobs past the retention window or over max_finished.

        Running jobs are never evicted.

        Returns:
            Number of jobs removed
        """
        now = now or datetime.now()
        finished = sorted(
            (job for job in self._jobs.values()
             if job.state in (JobState.COMPLETED, JobState.FAILED)),
            key=lambda job: job.completed_at,
        )

        expired = []
        if self.retention_seconds is not None:
            cutoff = now - timedelta(seconds=self.retention_seconds)
            expired = [job for job in finished if job.completed_at <= cutoff]
        kept = finished[len(expired):]
        if self.max_finished is not None and len(kept) > self.max_finished:
            expired.extend(kept[:len(kept) - self.max_finished])

        for job in expired:
            del self._jobs[job.job_id]
        if expired:
            logger.info("jobs.evicted", count=len(expired), remaining=len(self._jobs))
        return len(expired)

    def delete(self, job_id: str) -> bool:
        """Remove a job record. Returns False if it did not exist."""
        job = self._jobs.pop(job_id, None)
        if job is None:
            return False
        logger.info("job.deleted", job_id=job_id, state=job.state.value)
        return True
