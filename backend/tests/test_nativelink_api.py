"""Tests for the Nativelink API client and its offline fallbacks."""

import json
import logging

import httpx
import pytest

from nativelink_mcp.nativelink_api import NativelinkAPI
from nativelink_mcp.offline import OFFLINE_DOCS, basic_analysis
from nativelink_mcp.settings import Settings


def _api(settings, handler):
    return NativelinkAPI(settings, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
class TestFetchDocumentation:
    """Documentation lookups."""

    async def test_network_content_is_used(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"content": "# Remote docs"})

        settings = Settings(api_key="secret", nativelink_url="https://nl.example.com/")
        outcome = await _api(settings, handler).fetch_documentation("api", "grpc")

        assert outcome.from_network
        assert outcome.text == "# Remote docs"
        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == "/docs"
        assert request.url.params["topic"] == "api"
        assert request.url.params["context"] == "grpc"
        assert request.headers["authorization"] == "Bearer secret"

    async def test_no_authorization_without_key(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"content": "docs"})

        await _api(Settings(), handler).fetch_documentation("setup")
        assert "authorization" not in seen[0].headers
        assert "context" not in seen[0].url.params

    @pytest.mark.parametrize(
        "status, body",
        [
            (500, {"text": "boom"}),
            (200, {"text": "not json"}),
            (200, {"json": {"body": "wrong field"}}),
            (200, {"json": ["content"]}),
        ],
    )
    async def test_unusable_responses_fall_back(self, status, body):
        def handler(request):
            return httpx.Response(status, **body)

        outcome = await _api(Settings(), handler).fetch_documentation("setup")
        assert outcome.source == "fallback"
        assert outcome.text == OFFLINE_DOCS["setup"]

    async def test_rejected_response_logs_details(self, caplog):
        def handler(request):
            return httpx.Response(502, text="bad gateway")

        with caplog.at_level(logging.WARNING, logger="nativelink_mcp.nativelink_api"):
            outcome = await _api(Settings(), handler).fetch_documentation("setup")

        assert outcome.reason == "api request failed with status 502"
        assert "'status': 502" in caplog.text
        assert "bad gateway" in caplog.text

    async def test_timeout_falls_back(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        outcome = await _api(Settings(), handler).fetch_documentation("troubleshooting")
        assert outcome.source == "fallback"
        assert outcome.reason == "timed out"
        assert outcome.text == OFFLINE_DOCS["troubleshooting"]

    async def test_connection_error_falls_back(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        outcome = await _api(Settings(), handler).fetch_documentation("setup")
        assert "Nativelink Cloud Setup Guide" in outcome.text


@pytest.mark.asyncio
class TestAnalyzePerformance:
    """AI-backed analysis and the rule-based fallback."""

    async def test_no_provider_skips_network(self):
        def handler(request):
            raise AssertionError("network must not be used without an AI key")

        metrics = {"cacheHitRate": 0.3}
        outcome = await _api(Settings(), handler).analyze_performance(metrics)
        assert outcome.source == "fallback"
        assert outcome.reason == "no_ai_provider"
        assert outcome.text == basic_analysis(metrics)

    async def test_anthropic_provider_request(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"analysis": "AI says: cache more"})

        settings = Settings(anthropic_key="a-key", gemini_key="g-key")
        outcome = await _api(settings, handler).analyze_performance({"totalTime": 120})

        assert outcome.text == "AI says: cache more"
        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/analyze"
        assert request.headers["x-ai-provider"] == "anthropic"
        assert request.headers["x-ai-key"] == "a-key"
        assert json.loads(request.content) == {"metrics": {"totalTime": 120}}

    async def test_gemini_provider_when_only_gemini(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"analysis": "ok"})

        await _api(Settings(gemini_key="g-key"), handler).analyze_performance({})
        assert seen[0].headers["x-ai-provider"] == "gemini"

    async def test_failure_uses_basic_analysis(self):
        outcome = await _api(
            Settings(anthropic_key="a-key"), lambda request: httpx.Response(503)
        ).analyze_performance({"cacheHitRate": 0.9})
        assert outcome.source == "fallback"
        assert outcome.text == "✅ Excellent cache hit rate!"


class TestBasicAnalysis:
    """Rule-based metric reading."""

    def test_low_hit_rate(self):
        assert basic_analysis({"cacheHitRate": 0.2}).startswith(
            "⚠️ Low cache hit rate detected. Consider:"
        )

    def test_remote_share_and_large_transfer(self):
        text = basic_analysis(
            {
                "totalTime": 100,
                "remoteExecutionTime": 80,
                "networkTransferSize": 200 * 1024 * 1024,
            }
        )
        assert "good parallelization" in text
        assert "Large network transfers detected" in text

    def test_normal_metrics(self):
        assert basic_analysis({"cacheHitRate": 0.7}) == (
            "Build metrics look normal. No specific optimizations recommended."
        )
