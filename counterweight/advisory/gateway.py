"""
Advisory Gateway — Wraps the advisory client with timeout, retry and backoff.

The advisory subsystem can take tens of seconds per call. Each attempt is
bounded by a timeout; failures are retried with exponential backoff and,
once retries are exhausted, AdvisoryUnavailable tells the caller to degrade
to AHP-only weights. Cancellation is never swallowed.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Protocol

from counterweight.config import settings
from counterweight.errors import AdvisoryUnavailable
from counterweight.models.synthesis_models import AdvisoryReply, AdvisoryRequest

logger = logging.getLogger("counterweight.advisory")

# (phase, fraction complete); cosmetic only
ProgressCallback = Callable[[str, float], None]


class AdvisoryClient(Protocol):
    async def fetch_weights(self, request: AdvisoryRequest) -> dict[str, Any]:
        """Return the advisory subsystem's raw JSON payload."""
        ...


class AdvisoryGateway:
    """
    Advisory client wrapper with:
    - Per-attempt timeout
    - Retry with exponential backoff
    - Optional progress reporting
    """

    def __init__(
        self,
        client: AdvisoryClient,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_base: float | None = None,
    ) -> None:
        self.client = client
        self.timeout = timeout if timeout is not None else settings.advisory_timeout
        self.max_retries = max(
            1, max_retries if max_retries is not None else settings.advisory_max_retries
        )
        self.backoff_base = (
            backoff_base if backoff_base is not None else settings.advisory_backoff_base
        )

    async def request(
        self,
        advisory_request: AdvisoryRequest,
        on_progress: ProgressCallback | None = None,
    ) -> AdvisoryReply:
        """
        Fetch raw advisory weights.

        Returns:
            AdvisoryReply with the JSON payload exactly as the advisory
            subsystem sent it and the attempts used for this call.

        Raises:
            AdvisoryUnavailable: after every attempt failed or timed out.
        """
        last_error: BaseException | None = None
        attempts = 0

        for attempt in range(self.max_retries):
            attempts = attempt + 1
            _report(on_progress, "requesting", attempt / self.max_retries)
            try:
                payload = await asyncio.wait_for(
                    self.client.fetch_weights(advisory_request), timeout=self.timeout
                )
                if not isinstance(payload, dict):
                    raise TypeError(
                        f"Advisory payload must be a JSON object, got {type(payload).__name__}"
                    )
                _report(on_progress, "received", 1.0)
                return AdvisoryReply(payload=payload, attempts=attempts)

            except asyncio.TimeoutError as e:
                last_error = e
                logger.warning(
                    f"Advisory attempt {attempt + 1}/{self.max_retries} timed out "
                    f"after {self.timeout}s"
                )
            except Exception as e:
                last_error = e
                logger.warning(
                    f"Advisory attempt {attempt + 1}/{self.max_retries} failed: {e}"
                )

            if attempt < self.max_retries - 1:
                # Exponential backoff: base, 2×base, 4×base
                await asyncio.sleep(self.backoff_base * 2**attempt)

        logger.error(f"Advisory gateway exhausted retries. Last error: {last_error}")
        _report(on_progress, "failed", 1.0)
        raise AdvisoryUnavailable(attempts, last_error)


def _report(callback: ProgressCallback | None, phase: str, fraction: float) -> None:
    if callback is None:
        return
    try:
        callback(phase, fraction)
    except Exception as e:
        logger.debug(f"Progress callback raised and was ignored: {e}")
