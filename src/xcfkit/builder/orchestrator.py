"""
Multi-target builder.

Archives each configured scheme for every SDK of its platform, then merges the
produced frameworks into one .xcframework per product:
1. Validate the configuration
2. Run ``xcodebuild archive`` once per (scheme, SDK) target
3. Collect the frameworks found in each archive's products directory
4. Group frameworks by product name
5. Run ``xcodebuild -create-xcframework`` once per group
6. Remove the intermediate build directory unless archives are kept
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from xcfkit.bridges.filesystem import FileSystem, LocalFileSystem, remove_best_effort
from xcfkit.bridges.tool_invoker import SubprocessToolInvoker, ToolInvoker, format_command
from xcfkit.builder.grouping import group_bundles, resolve_artifact_names
from xcfkit.config.models import (
    ARCHIVE_EXTENSION,
    ARCHIVE_INSTALL_PATH,
    FRAMEWORK_EXTENSION,
    PLATFORM_SDKS,
    SDK,
    XCFRAMEWORK_EXTENSION,
    Archive,
    BinaryBundle,
    BuilderConfig,
    logical_name_for,
)
from xcfkit.errors import BuildError, ConfigErrorKind, ConfigurationError, FileSystemError

logger = logging.getLogger(__name__)


class MultiTargetBuilder:
    """Builds one or more schemes and merges the results into .xcframeworks."""

    def __init__(
        self,
        config: BuilderConfig,
        invoker: ToolInvoker | None = None,
        fs: FileSystem | None = None,
    ):
        self.config = config
        self.invoker = invoker or SubprocessToolInvoker(timeout=config.tools.timeout)
        self.fs = fs or LocalFileSystem()

    # =========================================================================
    # Validation
    # =========================================================================

    def validate(self) -> tuple[Path, Path, Path, list[tuple[str, SDK]], str]:
        """
        Check the configuration in a fixed order; the first problem wins.

        Returns:
            (project, output directory, build directory, targets, artifact name)
        """
        config = self.config
        if config.project is None:
            raise ConfigurationError(ConfigErrorKind.PROJECT_NOT_FOUND)
        if config.output_directory is None:
            raise ConfigurationError(ConfigErrorKind.OUTPUT_DIRECTORY_NOT_FOUND)
        if config.build_directory is None:
            raise ConfigurationError(ConfigErrorKind.BUILD_DIRECTORY_NOT_FOUND)

        # With several schemes the name is required, otherwise the one scheme names the artifact
        schemes = config.schemes()
        if not schemes:
            raise ConfigurationError(ConfigErrorKind.NO_SCHEMES_FOUND)
        if len(schemes) > 1 and not config.name:
            raise ConfigurationError(ConfigErrorKind.NAME_REQUIRED)
        name = config.name or next(iter(schemes.values()))

        targets = [
            (scheme, sdk)
            for platform, scheme in schemes.items()
            for sdk in PLATFORM_SDKS[platform]
        ]
        return config.project, config.output_directory, config.build_directory, targets, name

    # =========================================================================
    # Build
    # =========================================================================

    def run(self) -> list[Archive]:
        """
        Build every target and create the .xcframework(s).

        Returns:
            The archives produced, in target order

        Raises:
            XCFrameworkKitError: The first failure encountered
        """
        project, output_directory, build_directory, targets, name = self.validate()

        logger.info("Building schemes...")
        try:
            archives = self._build_targets(targets, project, build_directory)

            logger.info("Combining...")
            groups = group_bundles(archives)
            for artifact_name, bundles in resolve_artifact_names(groups, name):
                self.create_xcframework(artifact_name, bundles, output_directory)
        finally:
            if self.config.keep_archives:
                logger.info("Keeping generated archives.")
            else:
                logger.info("Cleaning up...")
                remove_best_effort(self.fs, build_directory)

        return archives

    def _build_targets(
        self, targets: list[tuple[str, SDK]], project: Path, build_directory: Path
    ) -> list[Archive]:
        if self.config.jobs <= 1 or len(targets) <= 1:
            return [
                self.build_scheme(scheme, sdk, project, build_directory)
                for scheme, sdk in targets
            ]

        # Targets write to disjoint archive paths; results are read back in target order
        executor = ThreadPoolExecutor(max_workers=min(self.config.jobs, len(targets)))
        try:
            futures = [
                executor.submit(self.build_scheme, scheme, sdk, project, build_directory)
                for scheme, sdk in targets
            ]
            return [future.result() for future in futures]
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

    def archive_arguments(
        self, scheme: str, sdk: SDK, project: Path, archive_path: Path
    ) -> list[str]:
        """Arguments for one ``xcodebuild archive`` call."""
        arguments = [
            "-project",
            str(project),
            "-scheme",
            scheme,
            "archive",
            "SKIP_INSTALL=NO",
            "BUILD_LIBRARY_FOR_DISTRIBUTION=YES",
            f"INSTALL_PATH={ARCHIVE_INSTALL_PATH}",
        ]
        arguments.extend(self.config.compiler_arguments)
        arguments.extend(["-archivePath", str(archive_path), "-sdk", sdk.value])
        return arguments

    def build_scheme(self, scheme: str, sdk: SDK, project: Path, build_directory: Path) -> Archive:
        """
        Archive ``scheme`` for ``sdk`` and collect the frameworks it produced.

        Raises:
            BuildError: If xcodebuild fails or writes to stderr
            FileSystemError: If the archive has no products directory
        """
        logger.info(f"Building scheme {scheme} for {sdk.value}...")
        archive_path = build_directory / f"{scheme}-{sdk.value}{ARCHIVE_EXTENSION}"
        arguments = self.archive_arguments(scheme, sdk, project, archive_path)
        command = [*self.config.tools.archiver, *arguments]
        self._log_command(command)

        result = self.invoker.invoke(self.config.tools.archiver, arguments)
        stderr_failure = self.config.fail_on_archive_stderr and bool(result.stderr.strip())
        if not result.is_success or stderr_failure:
            raise BuildError(
                f"{result.stderr}\nArchive Error From Running: '{format_command(command)}'",
                stderr=result.stderr,
                command=command,
                exit_status=result.exit_status,
                target=f"{scheme}-{sdk.value}",
            )

        products = archive_path / "Products" / ARCHIVE_INSTALL_PATH
        try:
            entries = self.fs.list_children(products)
        except OSError as e:
            raise FileSystemError(f"Could not read archive products at {products}: {e}", path=products)

        bundles = [
            BinaryBundle(
                directory_path=entry.path,
                logical_name=logical_name_for(entry.path),
                architectures=[sdk.value],
                is_temporary=True,
            )
            for entry in entries
            if entry.is_directory and entry.name.endswith(FRAMEWORK_EXTENSION)
        ]
        logger.debug(f"Found {len(bundles)} frameworks in {archive_path}")
        return Archive(archive_path=archive_path, scheme=scheme, sdk=sdk, bundles=bundles)

    # =========================================================================
    # Merge
    # =========================================================================

    def create_xcframework(
        self, name: str, bundles: list[BinaryBundle], output_directory: Path
    ) -> Path:
        """
        Merge ``bundles`` into ``<output_directory>/<name>.xcframework``.

        Raises:
            BuildError: If xcodebuild -create-xcframework fails
        """
        output_path = output_directory / f"{name}{XCFRAMEWORK_EXTENSION}"
        remove_best_effort(self.fs, output_path)

        logger.info(f"Creating {name}{XCFRAMEWORK_EXTENSION}")
        arguments = ["-create-xcframework"]
        for bundle in bundles:
            arguments.extend(["-framework", str(bundle.directory_path)])
        arguments.extend(["-output", str(output_path)])
        command = [*self.config.tools.merge_tool, *arguments]
        self._log_command(command)

        result = self.invoker.invoke(self.config.tools.merge_tool, arguments)
        if not result.is_success:
            raise BuildError(
                f"{result.stderr}\nXCFramework Build Error From Running: '{format_command(command)}'",
                stderr=result.stderr,
                command=command,
                exit_status=result.exit_status,
            )

        logger.info(f"Created {name}{XCFRAMEWORK_EXTENSION}")
        return output_path

    def _log_command(self, command: list[str]) -> None:
        if self.config.verbose:
            logger.info(f"   {format_command(command)}")
        else:
            logger.debug(format_command(command))


def build_and_assemble(
    config: BuilderConfig,
    invoker: ToolInvoker | None = None,
    fs: FileSystem | None = None,
) -> list[Archive]:
    """Convenience function to build every configured scheme and merge the results."""
    return MultiTargetBuilder(config, invoker=invoker, fs=fs).run()
