"""Submit chunks as remote annotation jobs and poll them to completion.

HTTP endpoints (relative to the configured API URL):
- Submit: POST structure with {"text": "..."} -> {"request_id": "..."}
- Poll:   GET structure/{request_id} -> {"request_id", "inference_status",
          "inference_result"?, "message"?}

Transport failures are not retried. The only repetition is the poll loop,
which re-polls while a job is still SUBMITTED.
"""

from __future__ import annotations

import asyncio
import logging
from time import monotonic
from typing import TYPE_CHECKING, Any

import httpx

from scienceio.errors import ScienceIOConnectionError, ScienceIOTimeoutError
from scienceio.models import AnnotationResult, Chunk, Job, JobStatus
from scienceio.normalizer import (
    handle_poll_payload,
    parse_poll_payload,
    parse_submit_payload,
    raise_for_status,
    read_json,
)

if TYPE_CHECKING:
    from scienceio.config import ScienceIOConfig

logger = logging.getLogger(__name__)

STRUCTURE_PATH = "structure"


def poll_path(job_id: str) -> str:
    return f"{STRUCTURE_PATH}/{job_id}"


class JobClient:
    """Runs the submit/poll protocol for single chunks.

    The underlying httpx client carries the base URL, credential headers and
    request timeout, and is shared read-only between concurrent jobs.

    Args:
        http: Open async HTTP client configured for the ScienceIO API
        config: Client configuration (poll interval and budget)
    """

    def __init__(self, http: httpx.AsyncClient, config: ScienceIOConfig) -> None:
        self._http = http
        self._config = config

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            if method == "POST":
                return await self._http.post(url, **kwargs)
            return await self._http.get(url, **kwargs)
        except httpx.TimeoutException as e:
            raise ScienceIOTimeoutError(
                f"Request to {url} timed out after {self._config.timeout_seconds}s"
            ) from e
        except httpx.TransportError as e:
            raise ScienceIOConnectionError(
                f"Unable to reach ScienceIO API: {type(e).__name__}: {e}"
            ) from e

    async def submit(self, chunk: Chunk) -> Job:
        """Create a remote annotation job for one chunk.

        Args:
            chunk: Chunk whose text is sent to the API

        Returns:
            Job in the SUBMITTED state

        Raises:
            HTTPError: If the API returns a non-2xx status
            ScienceIOTimeoutError: If the request times out
            ScienceIOConnectionError: If the API cannot be reached
        """
        response = await self._request("POST", STRUCTURE_PATH, json={"text": chunk.text})
        raise_for_status(response)
        job_id = parse_submit_payload(read_json(response))
        logger.debug("Chunk %d submitted as job %s", chunk.index, job_id)
        return Job(job_id=job_id, chunk=chunk)

    async def poll(self, job: Job) -> AnnotationResult | None:
        """Check a job's status once.

        A job already known to be COMPLETED returns its stored result without
        another request.

        Returns:
            None while the job is SUBMITTED, the normalized result once COMPLETED

        Raises:
            AnnotationError: If the job is ERRORED
            UnknownStatusError: If the API reports an unrecognised status
            InvalidStateTransitionError: If a terminal job is reported in
                another status
            HTTPError: If the API returns a non-2xx status
        """
        if job.status is JobStatus.COMPLETED and job.result is not None:
            return job.result

        response = await self._request("GET", poll_path(job.job_id))
        raise_for_status(response)
        payload = parse_poll_payload(read_json(response))
        job.advance(JobStatus(payload.inference_status))

        annotations = handle_poll_payload(payload)
        if annotations is None:
            return None

        result = AnnotationResult(
            request_id=job.job_id,
            chunk_index=job.chunk.index,
            text=job.chunk.text,
            annotations=annotations,
        )
        job.advance(JobStatus.COMPLETED, result)
        return result

    async def _poll_within(
        self, job: Job, deadline: float, budget: float
    ) -> AnnotationResult | None:
        """Poll once, cancelling the request if it is still in flight at deadline.

        Args:
            job: Job to poll
            deadline: Event loop time at which the job's poll budget runs out
            budget: The budget in seconds, for the error message
        """
        timer = asyncio.timeout_at(deadline)
        try:
            async with timer:
                return await self.poll(job)
        except TimeoutError as e:
            # HTTP timeouts are TimeoutErrors too; only relabel our own deadline
            if not timer.expired():
                raise
            logger.warning(
                "Job %s poll still in flight when its %.1fs budget ran out", job.job_id, budget
            )
            raise ScienceIOTimeoutError(
                f"Job {job.job_id} did not complete within {budget}s"
            ) from e

    async def wait_for_result(self, job: Job) -> AnnotationResult:
        """Poll a job at a fixed interval until it reaches a terminal state.

        The budget covers the whole loop, including a poll request that is
        still in flight when it runs out.

        Raises:
            ScienceIOTimeoutError: If the job is still SUBMITTED after
                max_poll_duration_seconds
            AnnotationError: If the job is ERRORED
        """
        interval = self._config.poll_interval_seconds
        budget = self._config.max_poll_duration_seconds
        deadline = asyncio.get_running_loop().time() + budget
        start_time = monotonic()
        attempt = 0

        while True:
            attempt += 1
            result = await self._poll_within(job, deadline, budget)
            elapsed = monotonic() - start_time
            if result is not None:
                logger.debug(
                    "Job %s completed after %d polls (%.1fs)", job.job_id, attempt, elapsed
                )
                return result

            if elapsed >= budget:
                logger.warning(
                    "Job %s still %s after %.1fs, giving up",
                    job.job_id,
                    job.status.value,
                    elapsed,
                )
                raise ScienceIOTimeoutError(
                    f"Job {job.job_id} did not complete within {budget}s"
                )

            await asyncio.sleep(interval)

    async def run(self, chunk: Chunk) -> AnnotationResult:
        """Submit a chunk and wait for its result."""
        job = await self.submit(chunk)
        return await self.wait_for_result(job)
