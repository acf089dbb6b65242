"""Tool definitions exposed by the server, in discovery order."""

from .bazel_config import TOOL as BAZEL_CONFIG_TOOL
from .deployment import TOOL as DEPLOYMENT_CONFIG_TOOL
from .docs import TOOL as DOCS_TOOL
from .performance import TOOL as PERFORMANCE_TOOL
from .watch import TOOL as WATCH_TOOL

ALL_TOOLS = (
    BAZEL_CONFIG_TOOL,
    DOCS_TOOL,
    PERFORMANCE_TOOL,
    DEPLOYMENT_CONFIG_TOOL,
    WATCH_TOOL,
)

__all__ = [
    "ALL_TOOLS",
    "BAZEL_CONFIG_TOOL",
    "DEPLOYMENT_CONFIG_TOOL",
    "DOCS_TOOL",
    "PERFORMANCE_TOOL",
    "WATCH_TOOL",
]
