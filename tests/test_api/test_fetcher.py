"""
Retry policy tests for RetryableFetcher.

Tests verify exponential backoff on 429/5xx, immediate failure on other 4xx,
and flat delays on network errors. Sleep is recorded, never slept.
"""
import httpx
import pytest

from statute_core.api.fetcher import RetryableFetcher
from statute_core.exceptions import NetworkError, PermanentAPIError, RemoteAPIError, TransientAPIError


def _client(responses):
    """httpx client replaying status codes (or exceptions) in order."""
    calls = []

    def handler(request):
        calls.append(request)
        item = responses[min(len(calls), len(responses)) - 1]
        if isinstance(item, type) and issubclass(item, Exception):
            raise item("simulated failure", request=request)
        return httpx.Response(item, json={"ok": item < 400})

    client = httpx.Client(base_url="https://api.test/api/v1", transport=httpx.MockTransport(handler))
    return client, calls


class TestRetryOnThrottling:
    """Tests for 429 and 5xx responses."""

    def test_success_on_first_attempt(self, sleeps):
        client, calls = _client([200])
        fetcher = RetryableFetcher(client, sleep=sleeps)

        response = fetcher.get("/jurisdictions")

        assert response.json() == {"ok": True}
        assert len(calls) == 1
        assert sleeps.calls == []

    def test_persistent_429_raises_transient_error(self, sleeps):
        """Three 429s exhaust the retries with delays 1s then 2s."""
        client, calls = _client([429, 429, 429])
        fetcher = RetryableFetcher(client, max_retries=3, base_delay=1.0, sleep=sleeps)

        with pytest.raises(TransientAPIError) as exc_info:
            fetcher.get("/jurisdictions/CA/laws/statutes/divisions")

        assert exc_info.value.status_code == 429
        assert len(calls) == 3
        assert sleeps.calls == [1.0, 2.0]

    def test_server_error_then_success(self, sleeps):
        client, calls = _client([500, 503, 200])
        fetcher = RetryableFetcher(client, max_retries=3, base_delay=0.5, sleep=sleeps)

        response = fetcher.get("/jurisdictions")

        assert response.status_code == 200
        assert len(calls) == 3
        assert sleeps.calls == [0.5, 1.0]

    def test_backoff_grows_exponentially(self, sleeps):
        client, calls = _client([502] * 5)
        fetcher = RetryableFetcher(client, max_retries=5, base_delay=1.0, sleep=sleeps)

        with pytest.raises(TransientAPIError):
            fetcher.get("/jurisdictions")

        assert sleeps.calls == [1.0, 2.0, 4.0, 8.0]


class TestPermanentErrors:
    """Tests for 4xx responses other than 429."""

    @pytest.mark.parametrize("status", [400, 401, 403, 404])
    def test_client_error_not_retried(self, sleeps, status):
        client, calls = _client([status, 200])
        fetcher = RetryableFetcher(client, sleep=sleeps)

        with pytest.raises(PermanentAPIError) as exc_info:
            fetcher.get("/jurisdictions/CA/laws/missing/divisions")

        assert exc_info.value.status_code == status
        assert exc_info.value.url == "/jurisdictions/CA/laws/missing/divisions"
        assert len(calls) == 1
        assert sleeps.calls == []

    def test_permanent_error_is_remote_api_error(self, sleeps):
        client, _ = _client([404])
        fetcher = RetryableFetcher(client, sleep=sleeps)

        with pytest.raises(RemoteAPIError):
            fetcher.get("/missing")


class TestNetworkErrors:
    """Tests for connection failures and timeouts."""

    def test_connect_error_then_success(self, sleeps):
        client, calls = _client([httpx.ConnectError, httpx.ConnectError, 200])
        fetcher = RetryableFetcher(client, network_delay=1.0, sleep=sleeps)

        response = fetcher.get("/jurisdictions")

        assert response.status_code == 200
        assert len(calls) == 3
        assert sleeps.calls == [1.0, 1.0]

    def test_persistent_timeout_raises_network_error(self, sleeps):
        client, calls = _client([httpx.ReadTimeout])
        fetcher = RetryableFetcher(client, max_retries=2, network_delay=0.3, sleep=sleeps)

        with pytest.raises(NetworkError) as exc_info:
            fetcher.get("/jurisdictions")

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)
        assert len(calls) == 2
        assert sleeps.calls == [0.3]


class TestAttemptHook:
    """Tests for the on_attempt callback."""

    def test_called_once_per_attempt(self, sleeps):
        client, calls = _client([429, 503, 200])
        fetcher = RetryableFetcher(client, max_retries=3, sleep=sleeps)
        attempts = []

        fetcher.get("/jurisdictions", on_attempt=lambda: attempts.append(len(calls)))

        # Each call happens before its request is sent
        assert attempts == [0, 1, 2]

    def test_raising_hook_stops_retries(self, sleeps):
        class Spent(Exception):
            pass

        client, calls = _client([429])
        fetcher = RetryableFetcher(client, max_retries=3, sleep=sleeps)
        allowance = [2]

        def charge():
            if allowance[0] == 0:
                raise Spent()
            allowance[0] -= 1

        with pytest.raises(Spent):
            fetcher.get("/jurisdictions", on_attempt=charge)

        assert len(calls) == 2


class TestGetJson:
    """Tests for get_json()."""

    def test_decodes_body(self, sleeps):
        client, _ = _client([200])
        fetcher = RetryableFetcher(client, sleep=sleeps)

        assert fetcher.get_json("/jurisdictions") == {"ok": True}

    def test_invalid_json_raises_remote_api_error(self, sleeps):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, text="<html>Service maintenance</html>")

        client = httpx.Client(base_url="https://api.test/api/v1", transport=httpx.MockTransport(handler))
        fetcher = RetryableFetcher(client, sleep=sleeps)

        with pytest.raises(RemoteAPIError) as exc_info:
            fetcher.get_json("/jurisdictions/CA/laws/statutes/divisions")

        assert exc_info.value.url == "/jurisdictions/CA/laws/statutes/divisions"
        assert exc_info.value.status_code == 200
        assert isinstance(exc_info.value.__cause__, ValueError)
        assert len(calls) == 1


class TestConfiguration:
    def test_query_params_forwarded(self, sleeps):
        client, calls = _client([200])
        fetcher = RetryableFetcher(client, sleep=sleeps)

        fetcher.get("/jurisdictions/CA/laws/statutes/divisions", params={"depth": 2})

        assert calls[0].url.params["depth"] == "2"

    def test_rejects_zero_retries(self):
        client, _ = _client([200])
        with pytest.raises(ValueError):
            RetryableFetcher(client, max_retries=0)
