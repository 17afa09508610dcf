"""Core data models for the annotation client.

This module contains the types shared by the segmenter, job client and
orchestrator:
- Chunk: A bounded slice of the caller's text
- Job: Handle to one remote asynchronous annotation job
- AnnotationResult: Normalized output for one chunk
- ChunkFailure: Per-chunk fault marker returned by partial annotation
- Credentials: API key pair sent as request headers
- SubmitResponse / PollPayload: Validated shapes of the remote payloads
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from scienceio.errors import InvalidStateTransitionError, ScienceIOError

# =============================================================================
# ENUMS
# =============================================================================


class JobStatus(str, Enum):
    """Inference status reported by the API for a job."""

    SUBMITTED = "SUBMITTED"
    COMPLETED = "COMPLETED"
    ERRORED = "ERRORED"

    @property
    def is_terminal(self) -> bool:
        return self is not JobStatus.SUBMITTED


class ModelType(str, Enum):
    STRUCTURE = "structure"
    ANNOTATE = "annotate"


class ResponseFormat(str, Enum):
    JSON = "application/json"


# =============================================================================
# CLIENT-SIDE DATACLASSES
# =============================================================================


@dataclass(frozen=True)
class Chunk:
    """Contiguous slice of the input text submitted as one job.

    Attributes:
        index: Position of the chunk in the segmentation (0-indexed)
        text: Raw chunk text, whitespace preserved
        start: Character offset of the chunk in the original text
    """

    index: int
    text: str
    start: int = 0

    @property
    def end(self) -> int:
        return self.start + len(self.text)


@dataclass(frozen=True)
class Credentials:
    """API key pair. Neither half appears in repr output."""

    api_id: str = field(repr=False)
    api_secret: str = field(repr=False)

    def headers(self) -> dict[str, str]:
        return {"x-api-id": self.api_id, "x-api-secret": self.api_secret}


@dataclass(frozen=True)
class AnnotationResult:
    """Normalized result for one completed chunk.

    Attributes:
        request_id: Job identifier assigned by the API
        chunk_index: Index of the chunk this result belongs to
        text: Original chunk text
        annotations: The job's inference_result payload, opaque to the client
        inference_status: Always COMPLETED for a result
        model_type: Model family that produced the annotations
    """

    request_id: str
    chunk_index: int
    text: str
    annotations: dict[str, Any]
    inference_status: JobStatus = JobStatus.COMPLETED
    model_type: ModelType = ModelType.STRUCTURE

    @property
    def spans(self) -> Any:
        return self.annotations.get("spans")

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["inference_status"] = self.inference_status.value
        data["model_type"] = self.model_type.value
        return data


@dataclass(frozen=True)
class ChunkFailure:
    """Marker for a chunk whose job failed during partial annotation."""

    chunk_index: int
    text: str
    error: ScienceIOError

    def to_dict(self) -> dict[str, Any]:
        return {
            "chunk_index": self.chunk_index,
            "text": self.text,
            "error": type(self.error).__name__,
            "message": self.error.message,
        }


@dataclass
class Job:
    """Handle to a remote annotation job.

    Status only moves forward: SUBMITTED may repeat until the job reaches
    COMPLETED or ERRORED, after which the status is fixed.

    Attributes:
        job_id: Opaque request_id assigned by the API
        chunk: Chunk the job was created for
        submitted_at: UTC time the submission was acknowledged
        status: Last observed inference status
        result: Normalized result, set once the job is COMPLETED
    """

    job_id: str
    chunk: Chunk
    submitted_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    status: JobStatus = JobStatus.SUBMITTED
    result: AnnotationResult | None = None

    def advance(self, status: JobStatus, result: AnnotationResult | None = None) -> None:
        """Record a newly observed status.

        Raises:
            InvalidStateTransitionError: If a terminal job is observed in a
                different status.
        """
        if self.status.is_terminal and status is not self.status:
            raise InvalidStateTransitionError(
                f"Job {self.job_id} moved from {self.status.value} to {status.value}"
            )
        self.status = status
        if result is not None:
            self.result = result


# =============================================================================
# REMOTE PAYLOADS
# =============================================================================


class SubmitResponse(BaseModel):
    """Body returned by the submission endpoint."""

    model_config = ConfigDict(extra="ignore")

    request_id: str


class _PollBase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    request_id: str | None = None
    message: str | None = None


class SubmittedPayload(_PollBase):
    inference_status: Literal["SUBMITTED"]


class CompletedPayload(_PollBase):
    inference_status: Literal["COMPLETED"]
    inference_result: dict[str, Any]


class ErroredPayload(_PollBase):
    inference_status: Literal["ERRORED"]


PollPayload = Annotated[
    SubmittedPayload | CompletedPayload | ErroredPayload,
    Field(discriminator="inference_status"),
]
