"""
Error taxonomy for the IFC normalizer.

- DocumentError: the IFC document cannot be read or answered (fatal for a job)
- ResolutionError: no canonical definition could be obtained for one property
- TransportError: retryable network failure talking to the catalog
- ValidationError: external input rejected at the boundary
"""

from typing import Optional


class NormalizerError(Exception):
    """Base class for all normalizer errors."""


class DocumentError(NormalizerError):
    """The IFC document is malformed or a lookup into it failed."""


class ResolutionError(NormalizerError):
    """The catalog could not resolve a property definition."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransportError(NormalizerError):
    """Transient catalog failure (network error, timeout, HTTP 5xx)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ValidationError(NormalizerError):
    """External input (upload or catalog payload) failed validation."""

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message)
        self.errors = errors or []


class JobNotReadyError(NormalizerError):
    """The job exists but has not completed yet."""

    def __init__(self, job_id: str, state: str):
        super().__init__(f"Job {job_id} is not ready (state: {state})")
        self.job_id = job_id
        self.state = state


class JobFailedError(NormalizerError):
    """The job ended in the failed state; it has no result."""

    def __init__(self, job_id: str, error: Optional[str]):
        super().__init__(f"Job {job_id} failed: {error}")
        self.job_id = job_id
        self.error = error
