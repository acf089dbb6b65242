"""`.bazelrc` generation for Nativelink remote caching and execution."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, StrictStr

from ..mcp.registry import RegisteredTool, ToolContext
from ..mcp.validation import ToolInput
from .formatting import format_bazelrc, iso_timestamp

TOOL_NAME = "get-bazel-config"

ProjectType = Literal["rust", "cpp", "java", "python", "go", "mixed"]
DEFAULT_FEATURES = ("remote_cache", "remote_execution", "bes")

SHARED_CACHE_URL = "grpcs://cas-tracemachina-shared.build-faster.nativelink.net"
SHARED_BES_URL = "grpcs://bes-tracemachina-shared.build-faster.nativelink.net"
SHARED_EXECUTOR_URL = "grpcs://scheduler-tracemachina-shared.build-faster.nativelink.net:443"


class BazelConfigInput(ToolInput):
    project_type: ProjectType = Field(alias="projectType", description="Type of project")
    nativelink_url: StrictStr = Field(
        default=None,
        alias="nativelinkUrl",
        description="Nativelink server URL (defaults to cloud)",
    )
    features: list[StrictStr] = Field(
        default=list(DEFAULT_FEATURES),
        description="Features to enable: remote_cache, remote_execution, bes, metrics",
    )


PROJECT_SPECIFIC_FLAGS: dict[str, list[str]] = {
    "rust": [
        "build --@rules_rust//rust/settings:pipelined_compilation=True",
        "build --@rules_rust//rust/settings:rustfmt_toml=//:rustfmt.toml",
    ],
    "cpp": [
        "build --cxxopt=-std=c++17",
        "build --host_cxxopt=-std=c++17",
        "build --copt=-fPIC",
    ],
    "java": [
        "build --java_language_version=11",
        "build --java_runtime_version=remotejdk_11",
        "build --tool_java_language_version=11",
        "build --tool_java_runtime_version=remotejdk_11",
    ],
    "python": [
        "build --action_env=PYTHONDONTWRITEBYTECODE=1",
        "test --test_env=PYTHONDONTWRITEBYTECODE=1",
    ],
    "go": [
        "build --@io_bazel_rules_go//go/config:race=false",
        "test --@io_bazel_rules_go//go/config:race=true",
    ],
    "mixed": [
        "# Configure based on your primary language",
        "# See language-specific configurations above",
    ],
}


def generate_bazel_config(
    project_type: str,
    features: list[str],
    nativelink_url: str | None = None,
) -> str:
    cache_url = nativelink_url or SHARED_CACHE_URL
    executor_url = nativelink_url or SHARED_EXECUTOR_URL

    lines = [
        "# Nativelink Cloud Configuration",
        f"# Generated for {project_type} project",
        f"# {iso_timestamp()}",
        "",
        "# IMPORTANT: Get your personalized configuration from https://app.nativelink.com",
        "# The configuration below is a template - replace with your actual values from the dashboard",
        "",
        "# Remote Cache Configuration",
    ]

    if "remote_cache" in features:
        lines += [
            f"build --remote_cache={cache_url}",
            "build --remote_header=x-nativelink-api-key=YOUR_API_KEY_FROM_APP_NATIVELINK_COM",
        ]

    if "bes" in features:
        lines += [
            "# Build Event Service (BES) Configuration",
            f"build --bes_backend={SHARED_BES_URL}",
            "build --bes_header=x-nativelink-api-key=YOUR_BES_API_KEY_FROM_APP_NATIVELINK_COM",
            "build --bes_results_url=https://app.nativelink.com/a/YOUR_BUILD_ID/build",
        ]

    if "remote_execution" in features:
        lines += [
            "# Remote Execution Configuration",
            f"build --remote_executor={executor_url}",
            "build --remote_timeout=600",
            "build --jobs=200",
            "build --remote_download_outputs=minimal",
        ]

    lines += [
        "# Performance Optimizations",
        "build --experimental_remote_cache_compression",
        "build --experimental_remote_cache_async",
        "build --remote_max_connections=200",
    ]

    project_flags = PROJECT_SPECIFIC_FLAGS.get(project_type, [])
    if project_flags:
        lines.append(f"# {project_type} Specific Configuration")
        lines += project_flags

    lines += [
        "# Build Reproducibility",
        "build --incompatible_strict_action_env",
        "build --action_env=BAZEL_DO_NOT_DETECT_CPP_TOOLCHAIN=1",
    ]

    if "metrics" in features:
        lines += [
            "# Metrics and Monitoring",
            "build --experimental_remote_grpc_log=grpc.log",
            "build --generate_json_trace_profile",
            "build --experimental_profile_include_primary_output",
        ]

    lines += [
        "# Test Configuration",
        "test --test_output=errors",
        "test --test_summary=detailed",
    ]

    return format_bazelrc(lines)


def handle(args: BazelConfigInput, context: ToolContext) -> str:
    return generate_bazel_config(
        args.project_type,
        list(args.features),
        nativelink_url=args.nativelink_url,
    )


TOOL = RegisteredTool(
    name=TOOL_NAME,
    description="Generate optimal Bazel configuration for Nativelink",
    input_model=BazelConfigInput,
    handler=handle,
)
