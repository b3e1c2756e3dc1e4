"""
Core configuration and data models for xcframework-kit.

Defines configuration structures and the bundle/archive entities using Pydantic.
"""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

FRAMEWORK_EXTENSION = ".framework"
XCFRAMEWORK_EXTENSION = ".xcframework"
ARCHIVE_EXTENSION = ".xcarchive"
ARCHIVE_INSTALL_PATH = "All"


class Platform(str, Enum):
    """Platforms a scheme can be built for."""

    WATCHOS = "watchos"
    IOS = "ios"
    TVOS = "tvos"
    MACOS = "macos"


class SDK(str, Enum):
    """SDK identifiers passed to ``xcodebuild -sdk``."""

    IOS = "iphoneos"
    IOS_SIMULATOR = "iphonesimulator"
    WATCHOS = "watchos"
    WATCHOS_SIMULATOR = "watchsimulator"
    TVOS = "appletvos"
    TVOS_SIMULATOR = "appletvsimulator"
    MACOS = "macosx"


# Device SDK first, then the simulator where the platform has one.
PLATFORM_SDKS: dict[Platform, tuple[SDK, ...]] = {
    Platform.WATCHOS: (SDK.WATCHOS, SDK.WATCHOS_SIMULATOR),
    Platform.IOS: (SDK.IOS, SDK.IOS_SIMULATOR),
    Platform.TVOS: (SDK.TVOS, SDK.TVOS_SIMULATOR),
    Platform.MACOS: (SDK.MACOS,),
}


def logical_name_for(path: Path) -> str:
    """Derive a bundle's product name from its directory name."""
    return path.name.removesuffix(FRAMEWORK_EXTENSION)


# ============================================================================
# Bundle and Archive Models
# ============================================================================


class BinaryBundle(BaseModel):
    """A platform/architecture-specific ``.framework`` bundle on disk."""

    directory_path: Path = Field(description="Location of the bundle directory")
    logical_name: str = Field(description="Product name, the bundle name without extension")
    architectures: list[str] = Field(default_factory=list, description="Supported architectures")
    is_temporary: bool = Field(default=False, description="Delete this copy after use")

    @property
    def binary_file_path(self) -> Path:
        """The executable inside the bundle is named after the bundle."""
        return self.directory_path / self.logical_name

    @classmethod
    def from_path(
        cls, path: Path, architectures: list[str], is_temporary: bool = False
    ) -> "BinaryBundle":
        return cls(
            directory_path=path,
            logical_name=logical_name_for(path),
            architectures=architectures,
            is_temporary=is_temporary,
        )


class Archive(BaseModel):
    """The output of one ``xcodebuild archive`` invocation."""

    archive_path: Path
    scheme: str
    sdk: SDK
    bundles: list[BinaryBundle] = Field(default_factory=list)


# ============================================================================
# Tool Configuration
# ============================================================================


class ToolPaths(BaseModel):
    """Command prefixes for the external tools.

    Each entry is the program followed by any fixed leading arguments, so
    ``["/usr/bin/xcrun", "lipo"]`` runs lipo through xcrun.
    """

    archiver: list[str] = Field(
        default_factory=lambda: ["/usr/bin/xcodebuild"], description="Builds .xcarchive outputs"
    )
    merge_tool: list[str] = Field(
        default_factory=lambda: ["/usr/bin/xcodebuild"], description="Creates the .xcframework"
    )
    inspector: list[str] = Field(
        default_factory=lambda: ["/usr/bin/xcrun", "lipo"], description="Lists binary architectures"
    )
    thinner: list[str] = Field(
        default_factory=lambda: ["/usr/bin/xcrun", "lipo"], description="Extracts one architecture"
    )
    timeout: int | None = Field(
        default=None, ge=1, description="Per-invocation timeout in seconds (none waits forever)"
    )


# ============================================================================
# Assembler / Builder Configuration
# ============================================================================


class AssemblerConfig(BaseModel):
    """Configuration for merging pre-built frameworks."""

    name: str | None = Field(default=None, description="Name of the produced .xcframework")
    output_directory: Path | None = Field(default=None, description="Where the artifact is written")
    framework_paths: list[Path] | None = Field(default=None, description="Frameworks to merge")
    verbose: bool = False
    tools: ToolPaths = Field(default_factory=ToolPaths)

    @property
    def output_path(self) -> Path | None:
        if self.name is None or self.output_directory is None:
            return None
        return self.output_directory / f"{self.name}{XCFRAMEWORK_EXTENSION}"


class BuilderConfig(BaseModel):
    """Configuration for archiving schemes and merging their frameworks."""

    name: str | None = Field(
        default=None, description="Artifact name (required with more than one scheme)"
    )
    project: Path | None = Field(default=None, description="Path to the .xcodeproj")
    output_directory: Path | None = Field(default=None, description="Where artifacts are written")
    build_directory: Path | None = Field(default=None, description="Intermediate archive directory")
    ios_scheme: str | None = None
    watchos_scheme: str | None = None
    tvos_scheme: str | None = None
    macos_scheme: str | None = None
    verbose: bool = False
    keep_archives: bool = Field(default=False, description="Keep the build directory afterwards")
    compiler_arguments: list[str] = Field(
        default_factory=list, description="Extra arguments appended to every archive call"
    )
    fail_on_archive_stderr: bool = Field(
        default=True, description="Treat any archive stderr output as a failure"
    )
    jobs: int = Field(default=1, ge=1, description="Number of targets archived concurrently")
    tools: ToolPaths = Field(default_factory=ToolPaths)

    def schemes(self) -> dict[Platform, str]:
        """Configured schemes in build order."""
        configured = {
            Platform.WATCHOS: self.watchos_scheme,
            Platform.IOS: self.ios_scheme,
            Platform.TVOS: self.tvos_scheme,
            Platform.MACOS: self.macos_scheme,
        }
        return {platform: scheme for platform, scheme in configured.items() if scheme}


class XCFrameworkKitConfig(BaseModel):
    """Root configuration model, as loaded from YAML."""

    build: BuilderConfig | None = None
    assemble: AssemblerConfig | None = None
