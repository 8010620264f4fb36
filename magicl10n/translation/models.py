"""
Translation job data classes.

A master job fans out into one TranslationJob per target language; every
child shares the master id, which doubles as the provider-side job name.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


class JobStatus:
    """Child job states."""
    SUBMITTED = "SUBMITTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    # Provider status -> JobStatus
    PROVIDER_STATUS_MAP = {
        "SUBMITTED": SUBMITTED,
        "IN_PROGRESS": IN_PROGRESS,
        "COMPLETED": COMPLETED,
        "COMPLETED_WITH_ERROR": FAILED,
        "FAILED": FAILED,
        "STOP_REQUESTED": FAILED,
        "STOPPED": FAILED,
    }

    RUNNING = (SUBMITTED, IN_PROGRESS)

    @classmethod
    def from_provider(cls, provider_status: Optional[str]) -> str:
        # Unknown states are treated as still running, never as done
        return cls.PROVIDER_STATUS_MAP.get(provider_status or "", cls.IN_PROGRESS)


@dataclass
class TranslationJob:
    """One asynchronous batch translation job for a single target language."""
    master_job_id: str
    target_language_code: str  # translation service code
    source_language_code: str
    external_job_id: str
    status: str = JobStatus.SUBMITTED
    input_uri: str = ""
    output_uri: str = ""
    message: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        return self.status == JobStatus.COMPLETED

    @property
    def is_failed(self) -> bool:
        return self.status == JobStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranslationJob":
        return cls(
            master_job_id=data["master_job_id"],
            target_language_code=data["target_language_code"],
            source_language_code=data["source_language_code"],
            external_job_id=data.get("external_job_id", ""),
            status=data.get("status", JobStatus.SUBMITTED),
            input_uri=data.get("input_uri", ""),
            output_uri=data.get("output_uri", ""),
            message=data.get("message"),
        )
