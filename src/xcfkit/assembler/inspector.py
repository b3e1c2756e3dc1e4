"""
Bundle inspection: asks lipo which architectures a framework binary contains.
"""

import logging
from pathlib import Path

from xcfkit.bridges.tool_invoker import ToolInvoker, format_command
from xcfkit.config.models import BinaryBundle, ToolPaths, logical_name_for
from xcfkit.errors import ToolError

logger = logging.getLogger(__name__)


def parse_architectures(output: str) -> list[str]:
    """Parse ``lipo -archs`` output: the first line, space separated."""
    lines = output.splitlines()
    if not lines:
        return []
    return lines[0].split()


class BundleInspector:
    """Determines the architectures supported by an existing framework."""

    def __init__(self, invoker: ToolInvoker, tools: ToolPaths):
        self.invoker = invoker
        self.tools = tools

    def architectures(self, bundle_path: Path) -> list[str]:
        """
        List the architectures of the binary inside ``bundle_path``.

        Raises:
            ToolError: If lipo exits non-zero
        """
        binary_path = bundle_path / logical_name_for(bundle_path)
        arguments = [str(binary_path), "-archs"]
        result = self.invoker.invoke(self.tools.inspector, arguments)
        if not result.is_success:
            raise ToolError(
                f"Couldn't parse the framework paths: {result.stderr}",
                stderr=result.stderr,
                command=[*self.tools.inspector, *arguments],
                exit_status=result.exit_status,
            )
        return parse_architectures(result.stdout)

    def inspect(self, bundle_path: Path) -> BinaryBundle | None:
        """Build a BinaryBundle for ``bundle_path``, or None if lipo reported nothing."""
        archs = self.architectures(bundle_path)
        if not archs:
            binary_path = bundle_path / logical_name_for(bundle_path)
            command = [*self.tools.inspector, str(binary_path), "-archs"]
            logger.warning(
                f"No architectures reported for {bundle_path} ({format_command(command)}); skipping"
            )
            return None
        return BinaryBundle.from_path(bundle_path, architectures=archs)
