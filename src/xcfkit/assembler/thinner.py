"""
Bundle thinning.

xcodebuild -create-xcframework refuses fat frameworks whose slices belong to
different platforms, so every multi-architecture framework is split into one
single-architecture copy per slice before merging.
"""

import logging
from pathlib import Path

from xcfkit.bridges.filesystem import FileSystem, remove_best_effort
from xcfkit.bridges.tool_invoker import ToolInvoker
from xcfkit.config.models import FRAMEWORK_EXTENSION, BinaryBundle, ToolPaths
from xcfkit.errors import FileSystemError, ToolError

logger = logging.getLogger(__name__)


class TemporaryBundles:
    """
    Tracks every temporary bundle path created inside a ``with`` block.

    All tracked paths are removed when the block exits, whether it finished
    normally or raised. Paths are tracked before they are written so that a
    half-finished copy is removed too.
    """

    def __init__(self, fs: FileSystem):
        self.fs = fs
        self.paths: list[Path] = []

    def track(self, path: Path) -> None:
        if path not in self.paths:
            self.paths.append(path)

    def cleanup(self) -> None:
        for path in self.paths:
            logger.debug(f"Removing temporary bundle {path}")
            remove_best_effort(self.fs, path)
        self.paths.clear()

    def __enter__(self) -> "TemporaryBundles":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()


def thinned_path(bundle: BinaryBundle, arch: str) -> Path:
    """Sibling path for the ``arch`` slice: ``<name>_<arch>.framework``."""
    return bundle.directory_path.parent / f"{bundle.logical_name}_{arch}{FRAMEWORK_EXTENSION}"


class BundleThinner:
    """Splits multi-architecture frameworks into single-architecture copies."""

    def __init__(self, invoker: ToolInvoker, fs: FileSystem, tools: ToolPaths):
        self.invoker = invoker
        self.fs = fs
        self.tools = tools

    def thin(self, bundle: BinaryBundle, scope: TemporaryBundles) -> list[BinaryBundle]:
        """
        Return the single-architecture bundles to merge in place of ``bundle``.

        A bundle with one architecture is returned untouched. Otherwise one
        temporary copy per architecture is created and registered in ``scope``.

        Raises:
            FileSystemError: If a copy cannot be made
            ToolError: If lipo fails to thin a copy
        """
        if len(bundle.architectures) <= 1:
            return [bundle]

        thinned: list[BinaryBundle] = []
        for arch in bundle.architectures:
            copy = BinaryBundle(
                directory_path=thinned_path(bundle, arch),
                logical_name=bundle.logical_name,
                architectures=[arch],
                is_temporary=True,
            )
            remove_best_effort(self.fs, copy.directory_path)
            scope.track(copy.directory_path)

            try:
                self.fs.copy_tree(bundle.directory_path, copy.directory_path)
            except OSError as e:
                raise FileSystemError(
                    f"Could not copy {bundle.directory_path} to {copy.directory_path}: {e}",
                    path=copy.directory_path,
                )

            binary = str(copy.binary_file_path)
            arguments = [binary, "-thin", arch, "-output", binary]
            result = self.invoker.invoke(self.tools.thinner, arguments)
            if not result.is_success:
                raise ToolError(
                    f"Thinning {bundle.logical_name} to {arch} failed: {result.stderr}",
                    stderr=result.stderr,
                    command=[*self.tools.thinner, *arguments],
                    exit_status=result.exit_status,
                )
            thinned.append(copy)

        return thinned
