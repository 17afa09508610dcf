"""Map raw API responses into typed payloads and client errors.

Everything past this module works with validated payload models; untyped
JSON bodies do not leave it.

Poll state table:
- SUBMITTED: not terminal, returns None
- COMPLETED: returns the inference_result payload, which must be a JSON
  object; its contents are otherwise opaque
- ERRORED: raises AnnotationError with the service message
- anything else: raises UnknownStatusError
"""

from __future__ import annotations

import logging
from json import JSONDecodeError
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError

from scienceio.errors import AnnotationError, HTTPError, ScienceIOError, UnknownStatusError
from scienceio.models import (
    CompletedPayload,
    ErroredPayload,
    JobStatus,
    PollPayload,
    SubmitResponse,
)

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)

_POLL_ADAPTER: TypeAdapter[PollPayload] = TypeAdapter(PollPayload)
_KNOWN_STATUSES = frozenset(status.value for status in JobStatus)


def is_success(status_code: int) -> bool:
    return 200 <= status_code <= 299


def _error_message(response: httpx.Response) -> str | None:
    """Pull a human-readable message out of an error response body."""
    try:
        body = response.json()
    except (JSONDecodeError, ValueError):
        text = response.text
        return text.strip() if isinstance(text, str) and text.strip() else None

    if isinstance(body, dict):
        message = body.get("message")
        if message:
            return str(message)
    return None


def raise_for_status(response: httpx.Response) -> None:
    """Raise HTTPError for any status outside [200, 299].

    Raises:
        HTTPError: Carrying the status code and the body's message field
    """
    status_code = response.status_code
    if is_success(status_code):
        return
    message = _error_message(response)
    logger.warning("ScienceIO API returned HTTP %d: %s", status_code, message)
    raise HTTPError(status_code, message)


def read_json(response: httpx.Response) -> Any:
    """Decode a successful response body.

    Raises:
        ScienceIOError: If the body is not valid JSON
    """
    try:
        return response.json()
    except (JSONDecodeError, ValueError) as e:
        raise ScienceIOError(f"ScienceIO API returned invalid JSON: {e}") from e


def parse_submit_payload(data: Any) -> str:
    """Validate a submission body and return its request_id.

    Raises:
        ScienceIOError: If the body has no usable request_id
    """
    try:
        return SubmitResponse.model_validate(data).request_id
    except ValidationError as e:
        raise ScienceIOError(f"Malformed submission response: {e}") from e


def parse_poll_payload(data: Any) -> PollPayload:
    """Validate a poll body into its status-tagged payload model.

    A COMPLETED body must carry an inference_result JSON object. The
    object itself is not inspected, but a missing, null or non-object
    result is rejected so that None keeps meaning "still SUBMITTED".

    Raises:
        UnknownStatusError: If inference_status is missing or unrecognised
        ScienceIOError: If the body does not match its status's shape
    """
    status = data.get("inference_status") if isinstance(data, dict) else None
    if not isinstance(status, str) or status not in _KNOWN_STATUSES:
        raise UnknownStatusError(status)
    try:
        return _POLL_ADAPTER.validate_python(data)
    except ValidationError as e:
        raise ScienceIOError(f"Malformed {status} poll response: {e}") from e


def handle_poll_payload(payload: PollPayload) -> dict[str, Any] | None:
    """Apply the poll state table to a validated payload.

    Returns:
        None while the job is SUBMITTED, the inference_result once COMPLETED

    Raises:
        AnnotationError: If the job is ERRORED
    """
    if isinstance(payload, CompletedPayload):
        return payload.inference_result
    if isinstance(payload, ErroredPayload):
        raise AnnotationError(payload.message)
    return None
