"""Async client for the ScienceIO text structuring API.

Public API:
- ScienceIO: Client with annotate / annotate_partial
- ScienceIOConfig, load_config, load_credentials: Configuration
- segment: Word-boundary text segmentation
- AnnotationResult, ChunkFailure, Chunk, Job, JobStatus: Data models
- ScienceIOError and subclasses: Error taxonomy
"""

from scienceio.client import ScienceIO
from scienceio.config import ScienceIOConfig, load_config, load_credentials
from scienceio.errors import (
    AnnotationError,
    HTTPError,
    InvalidInputError,
    InvalidStateTransitionError,
    ScienceIOConnectionError,
    ScienceIOError,
    ScienceIOTimeoutError,
    UnknownStatusError,
)
from scienceio.jobs import JobClient
from scienceio.models import (
    AnnotationResult,
    Chunk,
    ChunkFailure,
    Credentials,
    Job,
    JobStatus,
    ModelType,
    ResponseFormat,
)
from scienceio.segmenter import reconstruct, segment

__all__ = [
    # Client
    "JobClient",
    "ScienceIO",
    # Configuration
    "ScienceIOConfig",
    "load_config",
    "load_credentials",
    # Segmentation
    "reconstruct",
    "segment",
    # Models
    "AnnotationResult",
    "Chunk",
    "ChunkFailure",
    "Credentials",
    "Job",
    "JobStatus",
    "ModelType",
    "ResponseFormat",
    # Errors
    "AnnotationError",
    "HTTPError",
    "InvalidInputError",
    "InvalidStateTransitionError",
    "ScienceIOConnectionError",
    "ScienceIOError",
    "ScienceIOTimeoutError",
    "UnknownStatusError",
]
