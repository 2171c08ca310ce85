"""
Tests for the HTTP enrichment client.

All HTTP traffic goes through httpx.MockTransport; no network.

============================================================
TEST SCENARIOS
============================================================
1. Successful chat-completions response
2. Missing API key -> MISSING_CREDENTIAL, no request
3. Timeout / 5xx / transport error retried once
4. 4xx not retried
5. Malformed and empty responses

============================================================
"""

import json

import httpx
import pytest

from core.exceptions import EnrichmentErrorKind
from recap_cache import EnrichmentConfig, HttpEnrichmentClient


# ============================================================
# FIXTURES
# ============================================================

def completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class Recorder:
    """MockTransport handler that replays queued responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def config():
    return EnrichmentConfig(
        api_url="https://llm.test/v1/chat/completions",
        api_key="test-key",
        model="test-model",
        timeout_seconds=5.0,
        retry_backoff_seconds=0.0,
    )


def make_client(config, recorder, sleeps=None):
    http_client = httpx.Client(transport=httpx.MockTransport(recorder))
    sleep = sleeps.append if sleeps is not None else (lambda seconds: None)
    return HttpEnrichmentClient(config, http_client=http_client, sleep=sleep)


# ============================================================
# TEST: SUCCESS
# ============================================================

class TestSuccess:

    def test_returns_trimmed_text(self, config):
        recorder = Recorder(httpx.Response(200, json=completion("  Acme makes spinal implants.  ")))
        client = make_client(config, recorder)

        result = client.summarize("Acme Corp")

        assert result.ok is True
        assert result.text == "Acme makes spinal implants."

    def test_request_shape(self, config):
        recorder = Recorder(httpx.Response(200, json=completion("ok")))
        client = make_client(config, recorder)

        client.summarize("Acme Corp")

        request = recorder.requests[0]
        body = json.loads(request.content)
        assert request.headers["Authorization"] == "Bearer test-key"
        assert body["model"] == "test-model"
        assert body["messages"][-1]["content"] == "Company: Acme Corp"


# ============================================================
# TEST: FAILURES
# ============================================================

class TestFailures:

    def test_missing_key_makes_no_request(self, config):
        config.api_key = None
        recorder = Recorder()
        client = make_client(config, recorder)

        result = client.summarize("Acme Corp")

        assert result.ok is False
        assert result.error_kind == EnrichmentErrorKind.MISSING_CREDENTIAL
        assert recorder.requests == []

    def test_timeout_retried_once_then_fails(self, config):
        recorder = Recorder(
            httpx.ReadTimeout("slow"),
            httpx.ReadTimeout("slow"),
        )
        sleeps = []
        client = make_client(config, recorder, sleeps)

        result = client.summarize("Acme Corp")

        assert result.error_kind == EnrichmentErrorKind.TIMEOUT
        assert len(recorder.requests) == 2
        assert sleeps == [0.0]

    def test_server_error_then_success(self, config):
        recorder = Recorder(
            httpx.Response(503),
            httpx.Response(200, json=completion("Recovered.")),
        )
        client = make_client(config, recorder)

        result = client.summarize("Acme Corp")

        assert result.ok is True
        assert result.text == "Recovered."

    def test_transport_error_kind(self, config):
        recorder = Recorder(
            httpx.ConnectError("refused"),
            httpx.ConnectError("refused"),
        )
        client = make_client(config, recorder)

        result = client.summarize("Acme Corp")

        assert result.error_kind == EnrichmentErrorKind.TRANSPORT_ERROR

    def test_client_error_not_retried(self, config):
        recorder = Recorder(httpx.Response(401, json={"error": "bad key"}))
        client = make_client(config, recorder)

        result = client.summarize("Acme Corp")

        assert result.error_kind == EnrichmentErrorKind.HTTP_ERROR
        assert result.error.status_code == 401
        assert len(recorder.requests) == 1

    @pytest.mark.parametrize("payload", [
        {"choices": []},
        {"unexpected": True},
        completion(None),
    ])
    def test_malformed_response(self, config, payload):
        recorder = Recorder(httpx.Response(200, json=payload))
        client = make_client(config, recorder)

        result = client.summarize("Acme Corp")

        assert result.error_kind == EnrichmentErrorKind.MALFORMED_RESPONSE

    def test_non_json_response(self, config):
        recorder = Recorder(httpx.Response(200, text="<html>oops</html>"))
        client = make_client(config, recorder)

        result = client.summarize("Acme Corp")

        assert result.error_kind == EnrichmentErrorKind.MALFORMED_RESPONSE

    def test_empty_response(self, config):
        recorder = Recorder(httpx.Response(200, json=completion("   ")))
        client = make_client(config, recorder)

        result = client.summarize("Acme Corp")

        assert result.error_kind == EnrichmentErrorKind.EMPTY_RESPONSE


class TestEnrichmentConfig:

    def test_from_env(self, monkeypatch):
        monkeypatch.delenv("ENRICHMENT_API_KEY", raising=False)
        monkeypatch.setenv("OPENAI_API_KEY", "fallback-key")
        monkeypatch.setenv("ENRICHMENT_MODEL", "other-model")
        monkeypatch.setenv("ENRICHMENT_TIMEOUT_SECONDS", "12.5")

        config = EnrichmentConfig.from_env()

        assert config.api_key == "fallback-key"
        assert config.model == "other-model"
        assert config.timeout_seconds == 12.5

    def test_primary_key_wins(self, monkeypatch):
        monkeypatch.setenv("ENRICHMENT_API_KEY", "primary")
        monkeypatch.setenv("OPENAI_API_KEY", "fallback")

        assert EnrichmentConfig.from_env().api_key == "primary"
