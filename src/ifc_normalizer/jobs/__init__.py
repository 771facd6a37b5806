"""
Asynchronous normalization jobs: submit a document, poll its state, fetch
the normalized document and change report.
"""

from ifc_normalizer.jobs.orchestrator import (
    Job,
    JobOrchestrator,
    JobResult,
    JobState,
    JobView,
    TRANSITIONS,
)

__all__ = ["Job", "JobOrchestrator", "JobResult", "JobState", "JobView", "TRANSITIONS"]
