"""Scenario tests for the five tools, driven through the dispatcher."""

import json

import httpx
import pytest

from conftest import api_factory_for, unreachable
from nativelink_mcp.mcp.dispatcher import ToolDispatcher
from nativelink_mcp.mcp.schema import ErrorCode
from nativelink_mcp.settings import Settings
from nativelink_mcp.tools.deployment import generate_deployment_config
from nativelink_mcp.tools.formatting import TRUNCATION_MARKER, format_bazelrc, truncate_response
from nativelink_mcp.tools.watch import WatchInput, setup_watch_and_build


@pytest.mark.asyncio
class TestBazelConfig:
    """get-bazel-config"""

    async def test_rust_remote_cache_only(self, dispatcher):
        result = await dispatcher.dispatch(
            "get-bazel-config", {"projectType": "rust", "features": ["remote_cache"]}
        )
        text = result.text
        assert "build --remote_cache=" in text
        assert "rust/settings" in text
        assert "java_language_version" not in text
        assert "--remote_executor" not in text
        assert "--bes_backend" not in text

    async def test_default_features(self, dispatcher):
        result = await dispatcher.dispatch("get-bazel-config", {"projectType": "java"})
        text = result.text
        assert "build --remote_cache=grpcs://cas-tracemachina-shared" in text
        assert "build --bes_backend=" in text
        assert "build --remote_executor=grpcs://scheduler-tracemachina-shared" in text
        assert "build --java_language_version=11" in text
        assert "generate_json_trace_profile" not in text

    async def test_custom_url_and_metrics(self, dispatcher):
        result = await dispatcher.dispatch(
            "get-bazel-config",
            {
                "projectType": "cpp",
                "nativelinkUrl": "grpc://cache.internal:50051",
                "features": ["remote_cache", "remote_execution", "metrics"],
            },
        )
        text = result.text
        assert "build --remote_cache=grpc://cache.internal:50051" in text
        assert "build --remote_executor=grpc://cache.internal:50051" in text
        assert "build --generate_json_trace_profile" in text

    async def test_no_blank_or_padded_lines(self, dispatcher):
        result = await dispatcher.dispatch("get-bazel-config", {"projectType": "mixed"})
        for line in result.text.split("\n"):
            assert line
            assert line == line.strip()

    async def test_unknown_project_type(self, dispatcher):
        result = await dispatcher.dispatch("get-bazel-config", {"projectType": "haskell"})
        assert result.error.code == ErrorCode.INVALID_PARAMS


@pytest.mark.asyncio
class TestDocs:
    """get-nativelink-docs"""

    async def test_offline_setup_guide(self, dispatcher):
        result = await dispatcher.dispatch("get-nativelink-docs", {"topic": "setup"})
        assert "Nativelink Cloud Setup Guide" in result.text

    async def test_max_tokens_below_minimum(self, dispatcher):
        result = await dispatcher.dispatch(
            "get-nativelink-docs", {"topic": "setup", "maxTokens": 10}
        )
        assert result.error.code == ErrorCode.INVALID_PARAMS

    async def test_infinite_max_tokens_is_rejected(self, registry, settings):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"content": "docs"})

        dispatcher = ToolDispatcher(registry, settings, api_factory=api_factory_for(handler))
        result = await dispatcher.dispatch(
            "get-nativelink-docs", {"topic": "setup", "maxTokens": float("inf")}
        )
        assert result.error.code == ErrorCode.INVALID_PARAMS
        assert result.error.message == "Invalid parameters: maxTokens: Number must be finite"
        assert seen == []

    async def test_long_network_content_is_truncated(self, registry, settings):
        def handler(request):
            return httpx.Response(200, json={"content": "x" * 10_000})

        dispatcher = ToolDispatcher(registry, settings, api_factory=api_factory_for(handler))
        result = await dispatcher.dispatch(
            "get-nativelink-docs", {"topic": "api", "maxTokens": 1000}
        )
        assert result.text == "x" * 4000 + TRUNCATION_MARKER


@pytest.mark.asyncio
class TestPerformance:
    """analyze-build-performance"""

    async def test_offline_analysis_with_balanced_recommendations(self, dispatcher):
        result = await dispatcher.dispatch(
            "analyze-build-performance", {"metrics": {"cacheHitRate": 0.3, "totalTime": 900}}
        )
        text = result.text
        assert text.startswith("⚠️ Low cache hit rate detected.")
        assert "## Optimization Recommendations" in text
        assert "### Balanced Optimizations" in text
        assert "**Long Build Detected:**" in text
        assert "## Profile Analysis" not in text

    async def test_network_failure_with_ai_key_still_succeeds(self, registry):
        settings = Settings(anthropic_key="a-key")
        dispatcher = ToolDispatcher(registry, settings, api_factory=api_factory_for(unreachable))
        result = await dispatcher.dispatch(
            "analyze-build-performance", {"metrics": {"cacheHitRate": 0.95}}
        )
        assert result.ok
        assert result.text.startswith("✅ Excellent cache hit rate!")

    async def test_speed_target_flags_low_hit_rate(self, dispatcher):
        result = await dispatcher.dispatch(
            "analyze-build-performance",
            {"metrics": {"cacheHitRate": 0.6}, "targetOptimization": "speed"},
        )
        assert "### Speed Optimizations" in result.text
        assert "**Improve Cache Hit Rate:**" in result.text

    async def test_cost_target_flags_large_transfer(self, dispatcher):
        result = await dispatcher.dispatch(
            "analyze-build-performance",
            {
                "metrics": {"networkTransferSize": 600 * 1024 * 1024},
                "targetOptimization": "cost",
            },
        )
        assert "**Large Transfer Detected:**" in result.text

    async def test_profile_data_section(self, dispatcher):
        result = await dispatcher.dispatch(
            "analyze-build-performance", {"profileData": '{"traceEvents": []}'}
        )
        assert "## Profile Analysis" in result.text
        assert "Profile data detected (19 bytes)." in result.text

    async def test_hit_rate_out_of_range(self, dispatcher):
        result = await dispatcher.dispatch(
            "analyze-build-performance", {"metrics": {"cacheHitRate": 2}}
        )
        assert result.error.message == (
            "Invalid parameters: metrics.cacheHitRate: Number must be less than or equal to 1"
        )


class TestDeployment:
    """generate-deployment-config"""

    @pytest.mark.asyncio
    async def test_docker_small(self, dispatcher):
        result = await dispatcher.dispatch(
            "generate-deployment-config",
            {"platform": "docker", "scale": "small", "features": []},
        )
        assert "version:" in result.text
        assert "nativelink:" in result.text
        assert "healthcheck:" not in result.text

    def test_kubernetes_autoscaling(self):
        text = generate_deployment_config("kubernetes", "medium", ["autoscaling"])
        assert "replicas: 3" in text
        assert "kind: HorizontalPodAutoscaler" in text
        assert "maxReplicas: 9" in text
        assert "name: metrics" not in text

    def test_kubernetes_monitoring_and_probes(self):
        text = generate_deployment_config(
            "kubernetes", "large", ["monitoring", "high_availability"]
        )
        assert 'memory: "16Gi"' in text
        assert "containerPort: 9090" in text
        assert "livenessProbe:" in text
        assert "HorizontalPodAutoscaler" not in text

    def test_aws_enterprise(self):
        text = generate_deployment_config("aws", "enterprise", ["autoscaling"])
        assert "Cpu: '16384'" in text
        assert "Memory: '32768'" in text
        assert "DesiredCount: 10" in text
        assert "AWS::ApplicationAutoScaling::ScalableTarget" in text

    def test_gcp_health_check_only_when_referenced(self):
        assert "nativelink-health-check" not in generate_deployment_config("gcp", "small", [])
        text = generate_deployment_config("gcp", "small", ["autoscaling"])
        assert "healthCheck: $(ref.nativelink-health-check.selfLink)" in text
        assert "- name: nativelink-health-check" in text

    def test_azure_template_is_json(self):
        text = generate_deployment_config("azure", "medium", ["monitoring"])
        header, body = text.split("\n", 1)
        assert header == "# Nativelink Azure Resource Manager Template"
        template = json.loads(body)
        container = template["resources"][0]["properties"]["containers"][0]
        assert container["properties"]["resources"]["requests"] == {"cpu": 4, "memoryInGB": 8}
        assert {"port": 9090, "protocol": "TCP"} in container["properties"]["ports"]

    @pytest.mark.asyncio
    async def test_missing_scale(self, dispatcher):
        result = await dispatcher.dispatch("generate-deployment-config", {"platform": "gcp"})
        assert result.error.message == "Invalid parameters: scale: Required"


class TestWatch:
    """setup-watch-and-build"""

    @pytest.mark.asyncio
    async def test_defaults(self, dispatcher):
        result = await dispatcher.dispatch("setup-watch-and-build", {})
        text = result.text
        assert "--debounce 1000" in text
        assert "--ignore 'bazel-*'" in text
        assert "--watch '**/*.rs'" in text
        assert '-- "bazel build //... && bazel test //..."' in text
        assert "DEBOUNCE_SECONDS=1" in text

    def test_custom_paths_flow_into_nodemon(self):
        text = setup_watch_and_build(
            command="test",
            targets="//app/...",
            watch_paths=["src/**/*.py"],
            exclude_paths=["build"],
            debounce_ms=250,
        )
        start = text.index("```json\n") + len("```json\n")
        nodemon = json.loads(text[start : text.index("\n```", start)])
        assert nodemon == {
            "watch": ["src/**/*.py"],
            "ignore": ["build"],
            "exec": "bazel test //app/...",
            "delay": 250,
            "ext": "rs,cc,cpp,java,py,go,ts,js,bazel",
        }
        assert "DEBOUNCE_SECONDS=0.25" in text
        assert "bazel build" not in text

    def test_empty_path_lists_use_defaults(self):
        text = setup_watch_and_build(watch_paths=[], exclude_paths=[])
        assert "--watch '**/*.rs'" in text
        assert "--ignore 'bazel-*'" in text
        description = WatchInput.model_json_schema()["properties"]["watchPaths"]["description"]
        assert "empty uses the built-in list" in description

    def test_ibazel(self):
        text = setup_watch_and_build(command="build", targets="//svc:all", use_ibazel=True)
        assert "ibazel build //svc:all" in text
        assert "ibazel test" not in text
        assert "watchexec" not in text

    @pytest.mark.asyncio
    async def test_integral_debounce_renders_without_fraction(self, dispatcher):
        result = await dispatcher.dispatch("setup-watch-and-build", {"debounceMs": 250})
        assert "--debounce 250" in result.text
        assert "250.0" not in result.text
        assert "DEBOUNCE_SECONDS=0.25" in result.text

    @pytest.mark.asyncio
    async def test_debounce_out_of_range(self, dispatcher):
        result = await dispatcher.dispatch("setup-watch-and-build", {"debounceMs": 20000})
        assert result.error.message == (
            "Invalid parameters: debounceMs: Number must be less than or equal to 10000"
        )


class TestFormatting:
    """Shared text helpers."""

    def test_format_bazelrc(self):
        assert format_bazelrc(["  a ", "", "   ", "b"]) == "a\nb"

    def test_truncate_response(self):
        assert truncate_response("short", 1000) == "short"
        assert truncate_response("y" * 4001, 1000) == "y" * 4000 + TRUNCATION_MARKER
