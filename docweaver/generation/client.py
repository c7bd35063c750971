"""Generation client: cache, single flight, timeout and retry around an LLM provider."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable, Iterable

from docweaver.config.models import LLMSettings
from docweaver.errors import (
    Cancelled,
    GenerationError,
    GenerationTimeout,
    MalformedResponse,
    Rejected,
    ServiceUnavailable,
    Unauthorized,
)
from docweaver.generation.cache import DocCache
from docweaver.generation.models import GeneratedDoc
from docweaver.generation.parser import parse_generated_doc
from docweaver.llm.base import LLMProvider
from docweaver.llm.models import LLMError, LLMResponse
from docweaver.prompting.models import GenerationRequest

logger = logging.getLogger(__name__)

_CHECK_SYSTEM = "You are a connectivity probe. Reply with the single word OK."
_CHECK_USER = "ping"


def map_llm_error(error: LLMError) -> GenerationError:
    """Translate a provider failure into the pipeline's error taxonomy."""
    status = error.status_code
    message = str(error)
    if error.timed_out:
        return GenerationTimeout(message)
    if status in (401, 403):
        return Unauthorized(message)
    if error.retryable:
        return ServiceUnavailable(message)
    return Rejected(message)


class GenerationClient:
    """Turns GenerationRequests into validated GeneratedDocs.

    Concurrent callers asking for the same fingerprint share one in-flight
    fetch; the fetch runs as its own task so one caller being cancelled
    does not abort the others. It is cancelled once its last caller is. ``sleep`` and ``rng`` are injectable so
    backoff can be driven deterministically.
    """

    def __init__(
        self,
        provider: LLMProvider,
        settings: LLMSettings | None = None,
        cache: DocCache | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self.provider = provider
        self.settings = settings or LLMSettings()
        self.cache = cache
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._inflight: dict[str, asyncio.Task[GeneratedDoc]] = {}
        self._waiters: dict[asyncio.Task[GeneratedDoc], int] = {}

    @property
    def inflight_count(self) -> int:
        return len(self._inflight)

    async def generate(self, request: GenerationRequest) -> GeneratedDoc:
        key = request.fingerprint
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Cache hit for %s", key[:12])
                return cached

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.create_task(self._fetch(request), name=f"docweaver-generate-{key[:12]}")
            self._inflight[key] = task
            task.add_done_callback(lambda t, key=key: self._release(key, t))
        else:
            logger.debug("Joining in-flight generation for %s", key[:12])

        self._waiters[task] = self._waiters.get(task, 0) + 1
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled():
                raise Cancelled(f"generation for {key[:12]} was cancelled") from None
            if self._waiters[task] == 1 and not task.done():
                # Last caller gone; nobody else wants this fetch.
                logger.debug("Abandoning in-flight generation for %s", key[:12])
                task.cancel()
            raise
        finally:
            self._waiters[task] -= 1
            if not self._waiters[task]:
                del self._waiters[task]

    def cancel_inflight(self, fingerprints: Iterable[str] | None = None) -> int:
        """Cancel in-flight fetches; returns how many were cancelled.

        With ``fingerprints`` only those fetches are cancelled, otherwise all.
        """
        if fingerprints is None:
            candidates = list(self._inflight.values())
        else:
            candidates = [self._inflight[k] for k in set(fingerprints) if k in self._inflight]
        tasks = [t for t in candidates if not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            logger.info("Cancelled %d in-flight generation(s)", len(tasks))
        return len(tasks)

    async def check_connection(self) -> str:
        """Send a minimal prompt to verify credentials and endpoint.

        Returns the model name reported by the provider.
        """
        response = await self._call(_CHECK_SYSTEM, _CHECK_USER, max_tokens=8)
        logger.info("Connection check succeeded (model %s)", response.model)
        return response.model

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based), jitter included."""
        base = min(
            self.settings.retry_delay * 2 ** (attempt - 1),
            self.settings.max_retry_delay,
        )
        return base + self._rng.uniform(0, self.settings.retry_delay)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _release(self, key: str, task: asyncio.Task[GeneratedDoc]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Mark the outcome retrieved even when every caller went away.
        if not task.cancelled():
            task.exception()

    async def _fetch(self, request: GenerationRequest) -> GeneratedDoc:
        key = request.fingerprint[:12]
        max_attempts = self.settings.max_attempts
        attempt = 0
        while True:
            attempt += 1
            try:
                response = await self._call(request.system, request.user)
                doc = parse_generated_doc(response.content, request)
            except GenerationError as e:
                if not e.retryable or attempt >= max_attempts:
                    logger.warning(
                        "Generation for %s failed after %d attempt(s): %s", key, attempt, e.message
                    )
                    raise
                delay = self.backoff_delay(attempt)
                logger.warning(
                    "Attempt %d/%d for %s failed (%s); retrying in %.2fs",
                    attempt,
                    max_attempts,
                    key,
                    e.kind,
                    delay,
                )
                await self._sleep(delay)
                continue

            if self.cache is not None:
                self.cache.put(request.fingerprint, doc)
            return doc

    async def _call(self, system: str, user: str, max_tokens: int | None = None) -> LLMResponse:
        timeout = self.settings.timeout
        try:
            return await asyncio.wait_for(
                self.provider.generate(system, user, max_tokens or self.settings.max_tokens),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise GenerationTimeout(f"no response from {self.provider.name} within {timeout}s") from e
        except LLMError as e:
            raise map_llm_error(e) from e
        except ValueError as e:
            raise MalformedResponse(f"{self.provider.name} returned an unusable response: {e}") from e
