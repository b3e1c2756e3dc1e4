"""
Tool invocation bridge.

All contact with the native toolchain (xcodebuild, lipo) goes through a
ToolInvoker. The pipeline never parses binary formats itself; it only looks at
exit status, stdout and stderr.

Usage:
    invoker = SubprocessToolInvoker(timeout=600)
    result = invoker.run("/usr/bin/xcrun", ["lipo", "Foo.framework/Foo", "-archs"])
"""

import logging
import shlex
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass

from xcfkit.errors import ToolError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolResult:
    """Captured outcome of one tool invocation."""

    exit_status: int
    stdout: str = ""
    stderr: str = ""

    @property
    def is_success(self) -> bool:
        return self.exit_status == 0


def format_command(command: list[str]) -> str:
    """Render a command line the way a user would type it in a shell."""
    return shlex.join(command)


class ToolInvoker(ABC):
    """Runs an external program and captures its output."""

    @abstractmethod
    def run(self, program: str, arguments: list[str]) -> ToolResult:
        """
        Run ``program`` with ``arguments`` and wait for it to exit.

        Args:
            program: Path to the executable
            arguments: Ordered argument list

        Returns:
            The exit status together with captured stdout/stderr
        """
        pass

    def invoke(self, tool: list[str], arguments: list[str]) -> ToolResult:
        """Run a configured tool prefix (program plus fixed arguments)."""
        program, *leading = tool
        return self.run(program, [*leading, *arguments])


class SubprocessToolInvoker(ToolInvoker):
    """ToolInvoker backed by ``subprocess.run``."""

    def __init__(self, timeout: int | None = None):
        """
        Initialize the invoker.

        Args:
            timeout: Seconds to wait for each invocation (None waits forever)
        """
        self.timeout = timeout

    def run(self, program: str, arguments: list[str]) -> ToolResult:
        command = [program, *arguments]
        logger.debug(f"Running: {format_command(command)}")

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,  # Exit status is interpreted by the caller
            )
        except FileNotFoundError as e:
            raise ToolError(f"Tool not found: {program}", stderr=str(e), command=command)
        except OSError as e:
            raise ToolError(f"Could not run {program}: {e}", stderr=str(e), command=command)
        except subprocess.TimeoutExpired as e:
            stderr = e.stderr.decode(errors="replace") if isinstance(e.stderr, bytes) else (e.stderr or "")
            raise ToolError(
                f"Tool timed out after {self.timeout}s: {format_command(command)}",
                stderr=stderr,
                command=command,
            )

        return ToolResult(
            exit_status=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )
