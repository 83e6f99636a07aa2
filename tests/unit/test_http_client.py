from typing import List

import httpx
import pytest

from catalog_adaptor.core.exceptions import MalformedResponse, NotFoundError, RateLimited, UpstreamError
from catalog_adaptor.infrastructure.http import RequestConfig, RetryingHttpClient
from tests.helpers import RecordingSleep

URL = "https://vendor.test/products"


def _client(handler, sleep: RecordingSleep, max_retries: int = 3) -> RetryingHttpClient:
    return RetryingHttpClient(
        "vendor",
        config=RequestConfig(max_retries=max_retries, timeout=10.0, backoff_base=1.0),
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        sleep=sleep
    )


@pytest.mark.asyncio
async def test_returns_decoded_json_and_drops_none_params(recording_sleep):
    seen: List[httpx.Request] = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"products": []})

    client = _client(handler, recording_sleep)
    body = await client.get_json(URL, params={"q": "phone", "skip": None}, headers={"Accept": "application/json"})

    assert body == {"products": []}
    assert dict(seen[0].url.params) == {"q": "phone"}
    assert seen[0].headers["Accept"] == "application/json"
    assert recording_sleep.delays == []


@pytest.mark.asyncio
async def test_retries_server_errors_with_exponential_backoff(recording_sleep):
    attempts = []

    def handler(request):
        attempts.append(request)
        return httpx.Response(503)

    client = _client(handler, recording_sleep)
    with pytest.raises(UpstreamError) as exc_info:
        await client.get_json(URL)

    assert len(attempts) == 3
    assert recording_sleep.delays == [1.0, 2.0]
    assert exc_info.value.attempts == 3
    assert exc_info.value.upstream_status == 503
    assert exc_info.value.source == "vendor"


@pytest.mark.asyncio
async def test_recovers_when_a_later_attempt_succeeds(recording_sleep):
    responses = iter([httpx.Response(500), httpx.Response(200, json=[1, 2])])

    client = _client(lambda request: next(responses), recording_sleep)
    assert await client.get_json(URL) == [1, 2]
    assert recording_sleep.delays == [1.0]


@pytest.mark.asyncio
async def test_timeouts_are_retried_then_reported(recording_sleep):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    client = _client(handler, recording_sleep, max_retries=2)
    with pytest.raises(UpstreamError) as exc_info:
        await client.get_json(URL)

    assert exc_info.value.attempts == 2
    assert "timed out" in exc_info.value.detail
    assert recording_sleep.delays == [1.0]


@pytest.mark.asyncio
async def test_not_found_is_not_retried(recording_sleep):
    attempts = []

    def handler(request):
        attempts.append(request)
        return httpx.Response(404)

    client = _client(handler, recording_sleep)
    with pytest.raises(NotFoundError):
        await client.get_json(URL)
    assert len(attempts) == 1


@pytest.mark.asyncio
async def test_malformed_body_is_not_retried(recording_sleep):
    attempts = []

    def handler(request):
        attempts.append(request)
        return httpx.Response(200, content=b"<html>oops</html>")

    client = _client(handler, recording_sleep)
    with pytest.raises(MalformedResponse):
        await client.get_json(URL)
    assert len(attempts) == 1


@pytest.mark.asyncio
async def test_empty_body_decodes_to_none(recording_sleep):
    client = _client(lambda request: httpx.Response(200, content=b""), recording_sleep)
    assert await client.get_json(URL) is None


@pytest.mark.asyncio
async def test_before_attempt_runs_per_attempt_and_can_abort(recording_sleep):
    attempts = []
    checks = []

    def handler(request):
        attempts.append(request)
        return httpx.Response(502)

    def before_attempt():
        checks.append(1)
        if len(checks) == 2:
            raise RateLimited("vendor", retry_after=30)

    client = _client(handler, recording_sleep)
    with pytest.raises(RateLimited):
        await client.get_json(URL, before_attempt=before_attempt)

    assert len(checks) == 2
    assert len(attempts) == 1
