"""
Localization Pipeline Exceptions

Every failure that can cross the pipeline boundary is one of these. Each
carries the HTTP status the web layer and Lambda handlers answer with, and
the pipeline stage it came from once the orchestrator has seen it.
"""


class LocalizationError(Exception):
    """Base pipeline error with optional code, stage and details."""

    status_code = 500
    default_code = "localization_error"

    def __init__(self, message: str, code: str = None, details: dict = None, stage: str = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}
        self.stage = stage

    def to_dict(self) -> dict:
        payload = {"error": self.message, "code": self.code}
        if self.stage:
            payload["stage"] = self.stage
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(LocalizationError):
    """Bad input: missing manifest URL, missing base language, nothing to translate."""

    status_code = 400
    default_code = "validation_error"


class NotFoundError(LocalizationError):
    """Unknown master job id, or no translation jobs listed for it."""

    status_code = 404
    default_code = "not_found"


class BusyError(LocalizationError):
    """Admission control ceiling reached; retry later."""

    status_code = 429
    default_code = "busy"


class UpstreamError(LocalizationError):
    """A collaborator (HTTP, storage, translator, ledger) failed."""

    status_code = 502
    default_code = "upstream_error"


class JobFailedError(UpstreamError):
    """At least one child translation job of a master job failed."""

    default_code = "translation_job_failed"


class SubmissionError(UpstreamError):
    """Starting a child job failed; `started_jobs` holds the children already running."""

    default_code = "translation_submit_failed"

    def __init__(self, message: str, started_jobs: list = None, **kwargs):
        super().__init__(message, **kwargs)
        self.started_jobs = list(started_jobs or [])
