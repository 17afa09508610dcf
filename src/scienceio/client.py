"""ScienceIO client: segment text, fan out one job per chunk, gather results.

Usage:
    scio = ScienceIO(api_id, api_secret)
    results = await scio.annotate("ALS is often called Lou Gehrig's disease.")

Results come back in chunk order regardless of which job finishes first.
By default the first failing chunk fails the whole call; annotate_partial
returns a ChunkFailure in place of each failed chunk instead.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import httpx

from scienceio.config import ScienceIOConfig, load_config
from scienceio.errors import InvalidInputError, ScienceIOError
from scienceio.jobs import JobClient
from scienceio.models import (
    AnnotationResult,
    ChunkFailure,
    Credentials,
    ResponseFormat,
)
from scienceio.segmenter import segment

if TYPE_CHECKING:
    from scienceio.models import Chunk

logger = logging.getLogger(__name__)


class ScienceIO:
    """Async client for the ScienceIO structure API.

    Args:
        api_id: API key identifier, sent as x-api-id
        api_secret: API key secret, sent as x-api-secret
        response_format: Content type for requests (default: JSON)
        timeout: Per-request HTTP timeout in seconds (default: config value, 1200)
        config: Optional configuration (uses load_config() if not provided)
        max_concurrent: Cap on in-flight chunk jobs (default: config's
            max_concurrent_jobs, unbounded when unset)
    """

    def __init__(
        self,
        api_id: str,
        api_secret: str,
        response_format: ResponseFormat = ResponseFormat.JSON,
        timeout: float | None = None,
        *,
        config: ScienceIOConfig | None = None,
        max_concurrent: int | None = None,
    ) -> None:
        if config is None:
            config = load_config()
        if timeout is not None:
            if timeout <= 0:
                raise InvalidInputError("timeout must be positive")
            config = config.model_copy(update={"timeout_seconds": float(timeout)})
        if max_concurrent is not None and max_concurrent < 1:
            raise InvalidInputError("max_concurrent must be positive")

        self.config = config
        self.response_format = ResponseFormat(response_format)
        self.max_concurrent = (
            max_concurrent if max_concurrent is not None else config.max_concurrent_jobs
        )
        self._credentials = Credentials(api_id=api_id, api_secret=api_secret)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(api_url={self.config.api_url!r})"

    @property
    def timeout(self) -> float:
        return self.config.timeout_seconds

    @property
    def headers(self) -> dict[str, str]:
        return {"Content-Type": self.response_format.value, **self._credentials.headers()}

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.config.api_url,
            headers=self.headers,
            timeout=self.config.timeout_seconds,
        )

    def _limiter(self) -> asyncio.Semaphore | None:
        if self.max_concurrent is None:
            return None
        return asyncio.Semaphore(self.max_concurrent)

    async def _run_chunk(
        self,
        job_client: JobClient,
        chunk: Chunk,
        semaphore: asyncio.Semaphore | None,
    ) -> AnnotationResult:
        if semaphore is None:
            return await job_client.run(chunk)
        async with semaphore:
            return await job_client.run(chunk)

    async def annotate(self, text: str) -> list[AnnotationResult]:
        """Annotate text, splitting it into chunks the API accepts.

        Args:
            text: Text to annotate (must be non-empty)

        Returns:
            One AnnotationResult per chunk, in chunk order

        Raises:
            InvalidInputError: If text is empty
            ScienceIOError: The first failure of any chunk job; the other
                in-flight jobs are cancelled
        """
        chunks = segment(text, self.config.max_characters)
        logger.info("Annotating %d chars as %d chunk jobs", len(text), len(chunks))

        semaphore = self._limiter()
        async with self._http_client() as http:
            job_client = JobClient(http, self.config)
            tasks = [
                asyncio.create_task(self._run_chunk(job_client, chunk, semaphore))
                for chunk in chunks
            ]
            try:
                # gather keeps argument order, not completion order
                return list(await asyncio.gather(*tasks))
            except BaseException:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise

    async def annotate_partial(self, text: str) -> list[AnnotationResult | ChunkFailure]:
        """Annotate text, keeping successful chunks when others fail.

        Every chunk job runs to its own terminal outcome. Service errors are
        returned as ChunkFailure markers in the failed chunk's position;
        anything else still propagates.

        Returns:
            One AnnotationResult or ChunkFailure per chunk, in chunk order

        Raises:
            InvalidInputError: If text is empty
        """
        chunks = segment(text, self.config.max_characters)
        logger.info("Annotating %d chars as %d chunk jobs (partial)", len(text), len(chunks))

        semaphore = self._limiter()
        async with self._http_client() as http:
            job_client = JobClient(http, self.config)
            outcomes = await asyncio.gather(
                *(self._run_chunk(job_client, chunk, semaphore) for chunk in chunks),
                return_exceptions=True,
            )

        results: list[AnnotationResult | ChunkFailure] = []
        for chunk, outcome in zip(chunks, outcomes, strict=True):
            if isinstance(outcome, ScienceIOError):
                logger.warning("Chunk %d failed: %s", chunk.index, outcome)
                results.append(ChunkFailure(chunk.index, chunk.text, outcome))
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results.append(outcome)

        failed = len(chunks) - sum(isinstance(r, AnnotationResult) for r in results)
        if failed:
            logger.warning("%d of %d chunks failed", failed, len(chunks))
        return results
