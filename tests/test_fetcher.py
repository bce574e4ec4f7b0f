import httpx
import pytest
import respx
from httpx import Response

from market_feed.errors import TransientProviderError
from market_feed.fetcher import JsonFetcher

PRICES_URL = "https://api.example.test/prices"


def _delays(sleeper):
    return [call.args[0] for call in sleeper.await_args_list]


@pytest.mark.asyncio
@respx.mock
async def test_fetch_json_returns_decoded_body(fetcher, sleeper):
    respx.get(PRICES_URL).mock(return_value=Response(200, json={"price": 42}))

    assert await fetcher.fetch_json(PRICES_URL) == {"price": 42}
    sleeper.assert_not_awaited()


@pytest.mark.asyncio
@respx.mock
async def test_rate_limited_twice_then_succeeds_with_third_payload(fetcher, sleeper):
    """
    429 on the first two attempts and 200 on the third: the call succeeds with
    the third attempt's payload after exponential backoff waits.
    """
    route = respx.get(PRICES_URL).mock(side_effect=[
        Response(429),
        Response(429),
        Response(200, json={"attempt": 3}),
    ])

    result = await fetcher.fetch_json(PRICES_URL)

    assert result == {"attempt": 3}
    assert route.call_count == 3
    assert _delays(sleeper) == [1.0, 2.0]


@pytest.mark.asyncio
@respx.mock
async def test_rate_limited_on_every_attempt_raises_transient_error(fetcher, sleeper):
    route = respx.get(PRICES_URL).mock(return_value=Response(429))

    with pytest.raises(TransientProviderError) as exc_info:
        await fetcher.fetch_json(PRICES_URL)

    assert route.call_count == 3
    assert exc_info.value.status_code == 429
    assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)
    # No wait after the final attempt
    assert _delays(sleeper) == [1.0, 2.0]


@pytest.mark.asyncio
@respx.mock
async def test_retry_after_header_overrides_backoff(fetcher, sleeper):
    respx.get(PRICES_URL).mock(side_effect=[
        Response(429, headers={"Retry-After": "5"}),
        Response(200, json={"ok": True}),
    ])

    assert await fetcher.fetch_json(PRICES_URL) == {"ok": True}
    assert _delays(sleeper) == [5.0]


@pytest.mark.asyncio
@respx.mock
async def test_unparseable_retry_after_falls_back_to_backoff(fetcher, sleeper):
    respx.get(PRICES_URL).mock(side_effect=[
        Response(429, headers={"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"}),
        Response(200, json={"ok": True}),
    ])

    await fetcher.fetch_json(PRICES_URL)
    assert _delays(sleeper) == [1.0]


@pytest.mark.asyncio
@respx.mock
async def test_timeouts_and_server_errors_are_retried(fetcher, sleeper):
    route = respx.get(PRICES_URL).mock(side_effect=[
        httpx.ConnectTimeout,
        Response(503),
        Response(200, json=[1, 2, 3]),
    ])

    assert await fetcher.fetch_json(PRICES_URL) == [1, 2, 3]
    assert route.call_count == 3
    assert _delays(sleeper) == [1.0, 2.0]


@pytest.mark.asyncio
@respx.mock
async def test_invalid_json_is_treated_as_a_failed_attempt(fetcher):
    route = respx.get(PRICES_URL).mock(return_value=Response(200, text="<html>blocked</html>"))

    with pytest.raises(TransientProviderError):
        await fetcher.fetch_json(PRICES_URL)

    assert route.call_count == 3


@pytest.mark.asyncio
@respx.mock
async def test_user_agent_and_caller_headers_are_sent(fetcher):
    route = respx.get(PRICES_URL).mock(return_value=Response(200, json={}))

    await fetcher.fetch_json(PRICES_URL, headers={"X-Api-Key": "secret"})

    request = route.calls.last.request
    assert request.headers["User-Agent"].startswith("Mozilla/5.0")
    assert request.headers["X-Api-Key"] == "secret"


@pytest.mark.asyncio
async def test_fetcher_closes_its_client_on_exit(sleeper):
    async with JsonFetcher(sleep=sleeper) as fetcher:
        pass
    assert fetcher._client.is_closed


@pytest.mark.asyncio
@respx.mock
async def test_per_call_max_retries_overrides_default(fetcher, sleeper):
    route = respx.get(PRICES_URL).mock(return_value=Response(451))

    with pytest.raises(TransientProviderError) as exc_info:
        await fetcher.fetch_json(PRICES_URL, max_retries=1)

    assert route.call_count == 1
    assert exc_info.value.status_code == 451
    sleeper.assert_not_awaited()
