"""
Tests for Advisory Gateway — verify timeout, retry and cancellation handling.
"""

import asyncio

import pytest

from counterweight.advisory.gateway import AdvisoryGateway
from counterweight.errors import AdvisoryUnavailable
from counterweight.models.synthesis_models import AdvisoryRequest


class ScriptedClient:
    """Plays back one behavior per call: a dict to return or an exception to raise."""

    def __init__(self, *script):
        self.script = list(script)
        self.calls = 0

    async def fetch_weights(self, request):
        self.calls += 1
        step = self.script.pop(0) if self.script else RuntimeError("script exhausted")
        if isinstance(step, BaseException):
            raise step
        return step


class SlowClient:
    def __init__(self, delay):
        self.delay = delay

    async def fetch_weights(self, request):
        await asyncio.sleep(self.delay)
        return {"recommended_weights": {}}


@pytest.fixture
def request_model():
    return AdvisoryRequest(ahp_weights={"fatalities": 60.0, "economic": 40.0})


def test_returns_first_successful_payload(request_model):
    client = ScriptedClient({"recommended_weights": {"fatalities": 100}})
    gateway = AdvisoryGateway(client, max_retries=3, backoff_base=0)

    reply = asyncio.run(gateway.request(request_model))
    assert reply.payload == {"recommended_weights": {"fatalities": 100}}
    assert reply.attempts == 1


def test_retries_then_succeeds(request_model):
    client = ScriptedClient(
        ConnectionError("reset"),
        RuntimeError("bad gateway"),
        {"recommended_weights": {"fatalities": 100}},
    )
    gateway = AdvisoryGateway(client, max_retries=3, backoff_base=0)

    reply = asyncio.run(gateway.request(request_model))
    assert "recommended_weights" in reply.payload
    assert client.calls == 3
    assert reply.attempts == 3


def test_exhausted_retries_raise_unavailable(request_model):
    client = ScriptedClient(*(ConnectionError("down") for _ in range(3)))
    gateway = AdvisoryGateway(client, max_retries=3, backoff_base=0)

    with pytest.raises(AdvisoryUnavailable) as exc_info:
        asyncio.run(gateway.request(request_model))
    assert exc_info.value.attempts == 3
    assert isinstance(exc_info.value.last_error, ConnectionError)


def test_each_attempt_is_bounded_by_timeout(request_model):
    gateway = AdvisoryGateway(SlowClient(delay=5), timeout=0.01, max_retries=2, backoff_base=0)

    with pytest.raises(AdvisoryUnavailable) as exc_info:
        asyncio.run(gateway.request(request_model))
    assert exc_info.value.attempts == 2
    assert isinstance(exc_info.value.last_error, asyncio.TimeoutError)


def test_non_object_payload_counts_as_failure(request_model):
    client = ScriptedClient(["not", "a", "dict"])
    gateway = AdvisoryGateway(client, max_retries=1, backoff_base=0)

    with pytest.raises(AdvisoryUnavailable) as exc_info:
        asyncio.run(gateway.request(request_model))
    assert isinstance(exc_info.value.last_error, TypeError)


def test_cancellation_propagates(request_model):
    gateway = AdvisoryGateway(SlowClient(delay=5), timeout=10, max_retries=3, backoff_base=0)

    async def main():
        task = asyncio.create_task(gateway.request(request_model))
        await asyncio.sleep(0.01)
        task.cancel()
        await task

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(main())


def test_progress_callback_errors_are_ignored(request_model):
    phases = []

    def on_progress(phase, fraction):
        phases.append((phase, fraction))
        raise RuntimeError("ui went away")

    client = ScriptedClient({"recommended_weights": {"fatalities": 100}})
    gateway = AdvisoryGateway(client, max_retries=1, backoff_base=0)

    asyncio.run(gateway.request(request_model, on_progress=on_progress))
    assert phases == [("requesting", 0.0), ("received", 1.0)]


def test_max_retries_has_floor_of_one():
    gateway = AdvisoryGateway(ScriptedClient(), max_retries=0)
    assert gateway.max_retries == 1


def test_concurrent_requests_keep_their_own_attempt_counts(request_model):
    class KeyedClient:
        """Fails the first N calls for each organization, then succeeds."""

        def __init__(self, failures):
            self.failures = dict(failures)

        async def fetch_weights(self, request):
            org = request.organization_context["org"]
            await asyncio.sleep(0.01)
            if self.failures[org] > 0:
                self.failures[org] -= 1
                raise ConnectionError(f"{org} not ready")
            return {"recommended_weights": {"fatalities": 100}, "org": org}

    gateway = AdvisoryGateway(KeyedClient({"fast": 0, "slow": 2}), max_retries=3, backoff_base=0)
    fast_request = request_model.model_copy(update={"organization_context": {"org": "fast"}})
    slow_request = request_model.model_copy(update={"organization_context": {"org": "slow"}})

    async def main():
        return await asyncio.gather(
            gateway.request(slow_request), gateway.request(fast_request)
        )

    slow, fast = asyncio.run(main())
    assert fast.payload["org"] == "fast"
    assert fast.attempts == 1
    assert slow.attempts == 3
