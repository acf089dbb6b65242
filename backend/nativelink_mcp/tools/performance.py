"""Build performance analysis and optimization recommendations."""

from __future__ import annotations

from typing import Any, Literal, Mapping

from pydantic import Field, StrictStr

from ..mcp.registry import RegisteredTool, ToolContext
from ..mcp.validation import Number, ToolInput
from ..offline import MIB

TOOL_NAME = "analyze-build-performance"

OptimizationTarget = Literal["speed", "cost", "balanced"]


class Metrics(ToolInput):
    """Build metrics reported by the caller."""

    total_time: Number = Field(
        default=None, alias="totalTime", description="Total build time in seconds"
    )
    cache_hit_rate: Number = Field(
        default=None, ge=0, le=1, alias="cacheHitRate", description="Cache hit rate (0-1)"
    )
    remote_execution_time: Number = Field(
        default=None,
        alias="remoteExecutionTime",
        description="Remote execution time in seconds",
    )
    local_execution_time: Number = Field(
        default=None,
        alias="localExecutionTime",
        description="Local execution time in seconds",
    )
    network_transfer_size: Number = Field(
        default=None,
        alias="networkTransferSize",
        description="Network transfer size in bytes",
    )

    def to_wire(self) -> dict[str, Any]:
        """Reported metrics under their wire names."""
        return self.model_dump(by_alias=True, exclude_none=True)


class PerformanceInput(ToolInput):
    profile_data: StrictStr = Field(
        default=None, alias="profileData", description="Bazel profile JSON data"
    )
    metrics: Metrics = Field(default=None, description="Build metrics")
    target_optimization: OptimizationTarget = Field(
        default="balanced", alias="targetOptimization", description="Optimization target"
    )


def speed_optimizations(metrics: Mapping[str, Any]) -> str:
    lines = [
        "### Speed Optimizations\n",
        "**Maximize Parallelization:**",
        "```",
        "build --jobs=auto",
        "build --remote_executor=grpc://executor.nativelink.com:443",
        "build --remote_download_outputs=toplevel",
        "```\n",
        "**Optimize Network:**",
        "```",
        "build --remote_max_connections=500",
        "build --remote_timeout=30",
        "build --experimental_remote_cache_async",
        "```\n",
    ]
    cache_hit_rate = metrics.get("cacheHitRate")
    if cache_hit_rate and cache_hit_rate < 0.7:
        lines += [
            "**Improve Cache Hit Rate:**",
            "- Enable strict action environment",
            "- Use deterministic toolchains",
            "- Configure proper platform settings\n",
        ]
    lines += [
        "**Use Local Execution for Small Targets:**",
        "```",
        "build --modify_execution_info=.*-pkg.*=+no-remote",
        "```",
    ]
    return "\n".join(lines)


def cost_optimizations(metrics: Mapping[str, Any]) -> str:
    lines = [
        "### Cost Optimizations\n",
        "**Minimize Data Transfer:**",
        "```",
        "build --remote_download_minimal",
        "build --experimental_remote_cache_compression",
        "build --experimental_remote_build_event_upload=minimal",
        "```\n",
        "**Optimize Resource Usage:**",
        "```",
        "build --jobs=50  # Limit parallel jobs",
        "build --local_cpu_resources=4",
        "build --local_ram_resources=8192",
        "```\n",
    ]
    transfer_size = metrics.get("networkTransferSize")
    if transfer_size and transfer_size > 500 * MIB:
        lines += [
            "**Large Transfer Detected:**",
            "- Consider using --remote_download_minimal",
            "- Enable build without bytes for CI",
            "- Use remote asset API for large files\n",
        ]
    lines += [
        "**Cache Strategy:**",
        "```",
        "build --remote_cache_priority=1",
        "build --remote_execution_priority=0",
        "```",
    ]
    return "\n".join(lines)


def balanced_optimizations(metrics: Mapping[str, Any]) -> str:
    lines = [
        "### Balanced Optimizations\n",
        "**Recommended Configuration:**",
        "```",
        "build --jobs=100",
        "build --remote_download_outputs=minimal",
        "build --experimental_remote_cache_compression",
        "build --remote_timeout=60",
        "build --remote_retries=2",
        "```\n",
        "**Smart Caching:**",
        "```",
        "build --remote_cache=grpc://cache.nativelink.com:443",
        "build --remote_upload_local_results=true",
        "build --remote_local_fallback=true",
        "```\n",
    ]
    total_time = metrics.get("totalTime")
    if total_time and total_time > 600:
        lines += [
            "**Long Build Detected:**",
            "- Consider splitting into smaller targets",
            "- Use target-level parallelism",
            "- Enable incremental builds\n",
        ]
    return "\n".join(lines)


RECOMMENDERS = {
    "speed": speed_optimizations,
    "cost": cost_optimizations,
    "balanced": balanced_optimizations,
}


def analyze_profile_data(profile_data: str) -> str:
    return (
        f"Profile data detected ({len(profile_data.encode('utf-8'))} bytes).\n"
        "\n"
        "Consider using:\n"
        "- `bazel analyze-profile profile.json` for detailed analysis\n"
        "- Upload to https://app.nativelink.com/profile for visualization\n"
        "- Key metrics to review:\n"
        "  - Critical path duration\n"
        "  - Action execution time\n"
        "  - Remote vs local execution ratio"
    )


async def handle(args: PerformanceInput, context: ToolContext) -> str:
    metrics = args.metrics.to_wire() if args.metrics is not None else {}
    outcome = await context.api.analyze_performance(metrics)

    recommend = RECOMMENDERS[args.target_optimization]
    sections = [outcome.text, "## Optimization Recommendations", recommend(metrics)]
    if args.profile_data:
        sections += ["## Profile Analysis", analyze_profile_data(args.profile_data)]
    return "\n\n".join(sections)


TOOL = RegisteredTool(
    name=TOOL_NAME,
    description="Analyze build performance and provide optimization recommendations",
    input_model=PerformanceInput,
    handler=handle,
)
