"""
Error taxonomy for xcframework-kit.

Every failure raised by the assembler and the builder is a subclass of
XCFrameworkKitError. Free-text detail lives on the structured error, never in a
catch-all variant.
"""

from enum import Enum
from pathlib import Path


class ConfigErrorKind(str, Enum):
    """Reasons a configuration is rejected before any work starts."""

    MISSING_NAME = "missing_name"
    MISSING_OUTPUT_DIRECTORY = "missing_output_directory"
    MISSING_BUNDLES = "missing_bundles"
    PROJECT_NOT_FOUND = "project_not_found"
    OUTPUT_DIRECTORY_NOT_FOUND = "output_directory_not_found"
    BUILD_DIRECTORY_NOT_FOUND = "build_directory_not_found"
    NO_SCHEMES_FOUND = "no_schemes_found"
    NAME_REQUIRED = "name_required"
    INVALID_CONFIG_FILE = "invalid_config_file"


class ValidationErrorKind(str, Enum):
    """Reasons a supplied bundle is rejected."""

    INVALID_BUNDLE = "invalid_bundle"
    THINNED_PATH_COLLISION = "thinned_path_collision"


_CONFIG_MESSAGES: dict[ConfigErrorKind, str] = {
    ConfigErrorKind.MISSING_NAME: "No name parameter found.",
    ConfigErrorKind.MISSING_OUTPUT_DIRECTORY: "No output directory found.",
    ConfigErrorKind.MISSING_BUNDLES: "No frameworks specified.",
    ConfigErrorKind.PROJECT_NOT_FOUND: "No project parameter found.",
    ConfigErrorKind.OUTPUT_DIRECTORY_NOT_FOUND: "No output directory found.",
    ConfigErrorKind.BUILD_DIRECTORY_NOT_FOUND: "No build directory found.",
    ConfigErrorKind.NO_SCHEMES_FOUND: "No schemes found.",
    ConfigErrorKind.NAME_REQUIRED: "Name is required when more than one scheme is provided.",
    ConfigErrorKind.INVALID_CONFIG_FILE: "Invalid configuration file.",
}


class XCFrameworkKitError(Exception):
    """Base class for every error raised by xcframework-kit."""

    pass


class ConfigurationError(XCFrameworkKitError):
    """Raised when a required input is absent or a config file is unusable."""

    def __init__(self, kind: ConfigErrorKind, detail: str | None = None):
        self.kind = kind
        self.detail = detail
        message = _CONFIG_MESSAGES[kind]
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)


class BundleValidationError(XCFrameworkKitError):
    """Raised when a supplied bundle path fails a structural check."""

    def __init__(
        self,
        kind: ValidationErrorKind = ValidationErrorKind.INVALID_BUNDLE,
        path: Path | None = None,
    ):
        self.kind = kind
        self.path = path
        if kind == ValidationErrorKind.THINNED_PATH_COLLISION:
            message = "A per-architecture copy would overwrite one of the passed in frameworks."
        else:
            message = (
                "One or more of the passed in frameworks is not a valid .framework file, "
                "or the specified path was wrong."
            )
        if path is not None:
            message = f"{message} ({path})"
        super().__init__(message)


class ToolError(XCFrameworkKitError):
    """Raised when an external tool fails.

    Carries the captured stderr and, where known, the exact command that ran.
    """

    def __init__(
        self,
        message: str,
        stderr: str = "",
        command: list[str] | None = None,
        exit_status: int | None = None,
    ):
        self.stderr = stderr
        self.command = command
        self.exit_status = exit_status
        super().__init__(message)


class BuildError(ToolError):
    """Raised by the multi-target builder when an archive or merge step fails."""

    def __init__(
        self,
        message: str,
        stderr: str = "",
        command: list[str] | None = None,
        exit_status: int | None = None,
        target: str | None = None,
    ):
        self.target = target
        super().__init__(message, stderr=stderr, command=command, exit_status=exit_status)


class FileSystemError(XCFrameworkKitError):
    """Raised when a copy or directory listing blocks progress."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        super().__init__(message)
