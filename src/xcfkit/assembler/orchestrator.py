"""
Framework assembler.

Merges a list of existing frameworks into one .xcframework without driving any
build:
1. Validate the configuration and the framework paths
2. Inspect every framework's architectures with lipo
3. Thin multi-architecture frameworks into per-architecture copies
4. Run xcodebuild -create-xcframework once over every slice
5. Remove the temporary copies
"""

import logging
from pathlib import Path

from xcfkit.assembler.inspector import BundleInspector
from xcfkit.assembler.thinner import BundleThinner, TemporaryBundles, thinned_path
from xcfkit.bridges.filesystem import FileSystem, LocalFileSystem, remove_best_effort
from xcfkit.bridges.tool_invoker import SubprocessToolInvoker, ToolInvoker, format_command
from xcfkit.config.models import (
    FRAMEWORK_EXTENSION,
    XCFRAMEWORK_EXTENSION,
    AssemblerConfig,
    BinaryBundle,
)
from xcfkit.errors import (
    BundleValidationError,
    ConfigErrorKind,
    ConfigurationError,
    ToolError,
    ValidationErrorKind,
)

logger = logging.getLogger(__name__)


class BundleAssembler:
    """Merges pre-built frameworks into a single .xcframework."""

    def __init__(
        self,
        config: AssemblerConfig,
        invoker: ToolInvoker | None = None,
        fs: FileSystem | None = None,
    ):
        self.config = config
        self.invoker = invoker or SubprocessToolInvoker(timeout=config.tools.timeout)
        self.fs = fs or LocalFileSystem()
        self.inspector = BundleInspector(self.invoker, config.tools)
        self.thinner = BundleThinner(self.invoker, self.fs, config.tools)

    def validate(self) -> tuple[str, Path, list[Path]]:
        """
        Check required inputs in a fixed order, without touching the disk.

        Returns:
            (name, output directory, framework paths)

        Raises:
            ConfigurationError: If the name, output directory or frameworks are missing
            BundleValidationError: If a path is not a .framework
        """
        if not self.config.name:
            raise ConfigurationError(ConfigErrorKind.MISSING_NAME)
        if self.config.output_directory is None:
            raise ConfigurationError(ConfigErrorKind.MISSING_OUTPUT_DIRECTORY)
        if not self.config.framework_paths:
            raise ConfigurationError(ConfigErrorKind.MISSING_BUNDLES)

        for path in self.config.framework_paths:
            if not str(path).endswith(FRAMEWORK_EXTENSION):
                raise BundleValidationError(path=path)

        return self.config.name, self.config.output_directory, list(self.config.framework_paths)

    def run(self) -> None:
        """
        Assemble the .xcframework.

        Raises:
            XCFrameworkKitError: The first failure encountered
        """
        name, output_directory, paths = self.validate()

        bundles: list[BinaryBundle] = []
        for path in paths:
            bundle = self.inspector.inspect(path)
            if bundle is not None:
                bundles.append(bundle)

        if not bundles:
            raise BundleValidationError()
        self._check_thinned_paths(bundles, paths)

        output_path = output_directory / f"{name}{XCFRAMEWORK_EXTENSION}"
        remove_best_effort(self.fs, output_path)

        with TemporaryBundles(self.fs) as scope:
            slices: list[BinaryBundle] = []
            for bundle in bundles:
                logger.info(f"Thinning framework {bundle.logical_name} with archs: {bundle.architectures}")
                slices.extend(self.thinner.thin(bundle, scope))

            logger.info("All thinned variants created, creating xcframework...")
            arguments = ["-create-xcframework", "-output", str(output_path)]
            for bundle in slices:
                arguments.extend(["-framework", str(bundle.directory_path)])

            self._log_command([*self.config.tools.merge_tool, *arguments])
            result = self.invoker.invoke(self.config.tools.merge_tool, arguments)
            logger.info("Cleaning up...")

        if not result.is_success:
            command = [*self.config.tools.merge_tool, *arguments]
            raise ToolError(
                "xcframework creation failed. \n"
                f"Arguments: {' '.join(arguments)}\n"
                f"Error: {result.stderr}",
                stderr=result.stderr,
                command=command,
                exit_status=result.exit_status,
            )

        logger.info(f"Successfully created {name}{XCFRAMEWORK_EXTENSION}")

    def _check_thinned_paths(self, bundles: list[BinaryBundle], paths: list[Path]) -> None:
        """
        Reject inputs where a per-architecture copy would land on a caller's bundle.

        Raises:
            BundleValidationError: With the colliding input path
        """
        inputs = set(paths)
        for bundle in bundles:
            if len(bundle.architectures) <= 1:
                continue
            for arch in bundle.architectures:
                path = thinned_path(bundle, arch)
                if path in inputs:
                    raise BundleValidationError(
                        kind=ValidationErrorKind.THINNED_PATH_COLLISION, path=path
                    )

    def _log_command(self, command: list[str]) -> None:
        if self.config.verbose:
            logger.info(format_command(command))
        else:
            logger.debug(format_command(command))


def assemble_bundles(
    config: AssemblerConfig,
    invoker: ToolInvoker | None = None,
    fs: FileSystem | None = None,
) -> None:
    """Convenience function to merge frameworks into ``<output>/<name>.xcframework``."""
    BundleAssembler(config, invoker=invoker, fs=fs).run()
