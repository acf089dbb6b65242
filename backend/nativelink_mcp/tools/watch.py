"""Recipes for rebuilding Bazel targets whenever sources change."""

from __future__ import annotations

import json
from typing import Literal

from pydantic import Field, StrictBool, StrictStr

from ..mcp.registry import RegisteredTool, ToolContext
from ..mcp.validation import Number, ToolInput
from .formatting import json_number

TOOL_NAME = "setup-watch-and-build"

Command = Literal["build", "test", "both"]

DEFAULT_WATCH_PATHS = (
    "**/*.rs",
    "**/*.cc",
    "**/*.cpp",
    "**/*.java",
    "**/*.py",
    "**/*.go",
    "**/*.ts",
    "**/*.js",
    "BUILD.bazel",
    "WORKSPACE",
)
DEFAULT_EXCLUDE_PATHS = ("bazel-*", "node_modules", ".git", "dist", "target")
NODEMON_EXTENSIONS = "rs,cc,cpp,java,py,go,ts,js,bazel"


class WatchInput(ToolInput):
    command: Command = Field(default="both", description="Bazel command to run on change")
    targets: StrictStr = Field(default="//...", description="Bazel target pattern")
    watch_paths: list[StrictStr] = Field(
        default=None,
        alias="watchPaths",
        description="Paths or globs to watch (omitted or empty uses the built-in list)",
    )
    exclude_paths: list[StrictStr] = Field(
        default=None,
        alias="excludePaths",
        description="Paths or globs to ignore (omitted or empty uses the built-in list)",
    )
    debounce_ms: Number = Field(
        default=1000,
        ge=100,
        le=10000,
        alias="debounceMs",
        description="Debounce delay in milliseconds",
    )
    use_ibazel: StrictBool = Field(
        default=False,
        alias="useIbazel",
        description="Use iBazel instead of a generic file watcher",
    )


def bazel_commands(command: str, targets: str) -> list[str]:
    commands = []
    if command in ("build", "both"):
        commands.append(f"bazel build {targets}")
    if command in ("test", "both"):
        commands.append(f"bazel test {targets}")
    return commands


def ibazel_config(command: str, targets: str) -> str:
    lines = [
        "# Automatic Build with iBazel (Recommended)",
        "# iBazel provides intelligent file watching and incremental builds",
        "",
        "## Installation",
        "```bash",
        "npm install -g @bazel/ibazel",
        "# or",
        "go install github.com/bazelbuild/bazel-watcher/cmd/ibazel@latest",
        "```",
        "",
        "## Usage",
        "",
    ]
    if command == "build":
        lines += ["### Watch and Build", "```bash", f"ibazel build {targets}", "```"]
    elif command == "test":
        lines += ["### Watch and Test", "```bash", f"ibazel test {targets}", "```"]
    else:
        lines += [
            "### Watch, Build and Test",
            "```bash",
            "# In one terminal:",
            f"ibazel build {targets}",
            "",
            "# In another terminal:",
            f"ibazel test {targets}",
            "```",
            "",
            "### Or use a script to run both:",
            "```bash",
            "#!/bin/bash",
            f"ibazel build {targets} &",
            f"ibazel test {targets} &",
            "wait",
            "```",
        ]
    lines += [
        "",
        "## With Nativelink Cloud",
        "iBazel works seamlessly with Nativelink Cloud. Your `.bazelrc` configuration",
        "from app.nativelink.com will be used automatically for:",
        "- Remote caching of build artifacts",
        "- Remote execution of build actions",
        "- Build event streaming to app.nativelink.com",
        "",
        "## Benefits",
        "- ✅ Only rebuilds changed targets",
        "- ✅ Automatic dependency detection",
        "- ✅ Minimal CPU usage when idle",
        "- ✅ Works with all Bazel projects",
        "- ✅ Integrates with Nativelink Cloud cache",
    ]
    return "\n".join(lines)


def _watchexec_command(chained: str, watch_paths: list[str], exclude_paths: list[str], debounce: int) -> str:
    args = [f"--debounce {debounce}"]
    args += [f"--ignore '{path}'" for path in exclude_paths]
    args += [f"--watch '{path}'" for path in watch_paths]
    args += ["--clear", f'-- "{chained}"']
    return "watchexec \\\n  " + " \\\n  ".join(args)


def _find_command(chained: str, watch_paths: list[str]) -> str:
    names = []
    for path in watch_paths:
        name = path.rsplit("/", 1)[-1]
        if name not in names:
            names.append(name)
    predicates = " -o ".join(f'-name "{name}"' for name in names)
    return "\n".join(
        [
            f"find . {predicates} | \\",
            "  grep -v bazel- | \\",
            f'  entr -c bash -c "{chained}"',
        ]
    )


def _format_seconds(milliseconds: int) -> str:
    return f"{milliseconds / 1000:g}"


def watcher_config(
    command: str,
    targets: str,
    watch_paths: list[str],
    exclude_paths: list[str],
    debounce: int,
) -> str:
    commands = bazel_commands(command, targets)
    chained = " && ".join(commands)

    nodemon = {
        "watch": watch_paths,
        "ignore": exclude_paths,
        "exec": chained,
        "delay": debounce,
        "ext": NODEMON_EXTENSIONS,
    }
    vscode_tasks = {
        "version": "2.0.0",
        "tasks": [
            {
                "label": "Watch and Build with Bazel",
                "type": "shell",
                "command": chained,
                "problemMatcher": [],
                "isBackground": True,
                "runOptions": {"runOn": "folderOpen"},
                "presentation": {"reveal": "always", "panel": "dedicated"},
            }
        ],
    }

    lines = [
        "# File Watcher Configuration for Bazel + Nativelink",
        "",
        "## Option 1: Using watchexec (Recommended)",
        "```bash",
        "# Install watchexec",
        "brew install watchexec  # macOS",
        "# or",
        "cargo install watchexec-cli  # Cross-platform",
        "```",
        "",
        "### Run with watchexec:",
        "```bash",
        _watchexec_command(chained, watch_paths, exclude_paths, debounce),
        "```",
        "",
        "## Option 2: Using entr",
        "```bash",
        "# Install entr",
        "brew install entr  # macOS",
        "apt-get install entr  # Linux",
        "```",
        "",
        "### Run with entr:",
        "```bash",
        _find_command(chained, watch_paths),
        "```",
        "",
        "## Option 3: Using nodemon (Node.js)",
        "```bash",
        "npm install -g nodemon",
        "```",
        "",
        "### Create nodemon.json:",
        "```json",
        json.dumps(nodemon, indent=2),
        "```",
        "",
        "### Run with nodemon:",
        "```bash",
        "nodemon",
        "```",
        "",
        "## Option 4: Custom Watch Script",
        "```bash",
        "#!/bin/bash",
        "# Save as watch-build.sh",
        "",
        f'TARGETS="{targets}"',
        f"DEBOUNCE_SECONDS={_format_seconds(debounce)}",
        "",
        'echo "Watching for changes..."',
        'echo "Initial build..."',
        *commands,
        "",
        "while true; do",
        "  # Use fswatch on macOS or inotifywait on Linux",
        "  if command -v fswatch > /dev/null; then",
        '    fswatch -1 -e "bazel-*" -e "node_modules" .',
        "  else",
        "    inotifywait -r -e modify,create,delete \\",
        '      --exclude "bazel-|node_modules" .',
        "  fi",
        "",
        '  echo "Changes detected, waiting ${DEBOUNCE_SECONDS}s..."',
        "  sleep $DEBOUNCE_SECONDS",
        "",
        '  echo "Building..."',
        *(f"  {line}" for line in commands),
        "done",
        "```",
        "",
        "### Make executable and run:",
        "```bash",
        "chmod +x watch-build.sh",
        "./watch-build.sh",
        "```",
        "",
        "## Integration with Nativelink Cloud",
        "",
        "All watch commands will use your Nativelink Cloud configuration from `.bazelrc`:",
        "- 🚀 Instant cache hits for unchanged files",
        "- ⚡ Remote execution for faster builds",
        "- 📊 Build results visible at app.nativelink.com",
        "",
        "## VS Code Task Configuration",
        "",
        "Add to `.vscode/tasks.json`:",
        "```json",
        json.dumps(vscode_tasks, indent=2),
        "```",
        "",
        "## Best Practices",
        "",
        "1. **Use iBazel for best performance** - It only rebuilds changed targets",
        "2. **Configure proper ignore patterns** - Exclude bazel-* directories",
        f"3. **Set appropriate debounce** - {debounce}ms prevents rapid rebuilds",
        "4. **Use target patterns** - Be specific with targets for faster builds",
        "5. **Monitor app.nativelink.com** - View build performance and cache hits",
    ]
    return "\n".join(lines)


def setup_watch_and_build(
    command: str = "both",
    targets: str = "//...",
    watch_paths: list[str] | None = None,
    exclude_paths: list[str] | None = None,
    debounce_ms: float = 1000,
    use_ibazel: bool = False,
) -> str:
    if use_ibazel:
        return ibazel_config(command, targets)
    return watcher_config(
        command,
        targets,
        list(watch_paths) if watch_paths else list(DEFAULT_WATCH_PATHS),
        list(exclude_paths) if exclude_paths else list(DEFAULT_EXCLUDE_PATHS),
        debounce_ms,
    )


def handle(args: WatchInput, context: ToolContext) -> str:
    return setup_watch_and_build(
        command=args.command,
        targets=args.targets,
        watch_paths=args.watch_paths,
        exclude_paths=args.exclude_paths,
        debounce_ms=json_number(args.debounce_ms),
        use_ibazel=args.use_ibazel,
    )


TOOL = RegisteredTool(
    name=TOOL_NAME,
    description="Set up automatic Bazel builds on file changes",
    input_model=WatchInput,
    handler=handle,
)
