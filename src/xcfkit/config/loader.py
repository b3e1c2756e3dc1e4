"""
Configuration loader for xcframework-kit.

Handles loading configuration from YAML files and CLI arguments.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from xcfkit.config.models import (
    AssemblerConfig,
    BuilderConfig,
    ToolPaths,
    XCFrameworkKitConfig,
)
from xcfkit.errors import ConfigErrorKind, ConfigurationError


def load_config_from_yaml(config_path: Path) -> XCFrameworkKitConfig:
    """Load configuration from a YAML file."""
    if not config_path.exists():
        raise ConfigurationError(
            ConfigErrorKind.INVALID_CONFIG_FILE, f"Configuration file not found: {config_path}"
        )

    with open(config_path) as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                ConfigErrorKind.INVALID_CONFIG_FILE, f"Invalid YAML in configuration file: {e}"
            )

    if raw_config is None:
        raise ConfigurationError(ConfigErrorKind.INVALID_CONFIG_FILE, "Configuration file is empty")

    if not isinstance(raw_config, dict):
        raise ConfigurationError(
            ConfigErrorKind.INVALID_CONFIG_FILE, "Configuration file must contain a mapping"
        )

    try:
        return XCFrameworkKitConfig(**raw_config)
    except ValidationError as e:
        raise ConfigurationError(
            ConfigErrorKind.INVALID_CONFIG_FILE, f"Configuration validation failed:\n{e}"
        )


def create_builder_config_from_args(
    project: Path | None,
    output_dir: Path | None,
    build_dir: Path | None,
    name: str | None = None,
    ios_scheme: str | None = None,
    watchos_scheme: str | None = None,
    tvos_scheme: str | None = None,
    macos_scheme: str | None = None,
    verbose: bool = False,
    keep_archives: bool = False,
    compiler_arguments: list[str] | None = None,
    jobs: int = 1,
    base: BuilderConfig | None = None,
) -> BuilderConfig:
    """Create a builder configuration from CLI arguments.

    Values given on the command line win over the ones in ``base`` (usually the
    ``build`` section of a YAML file).
    """
    config_dict: dict[str, Any] = base.model_dump() if base else {}

    overrides: dict[str, Any] = {
        "project": project,
        "output_directory": output_dir,
        "build_directory": build_dir,
        "name": name,
        "ios_scheme": ios_scheme,
        "watchos_scheme": watchos_scheme,
        "tvos_scheme": tvos_scheme,
        "macos_scheme": macos_scheme,
    }
    for key, value in overrides.items():
        if value is not None:
            config_dict[key] = value

    if verbose:
        config_dict["verbose"] = True
    if keep_archives:
        config_dict["keep_archives"] = True
    if compiler_arguments:
        config_dict["compiler_arguments"] = list(compiler_arguments)
    if jobs != 1:
        config_dict["jobs"] = jobs

    return BuilderConfig(**config_dict)


def create_assembler_config_from_args(
    name: str | None,
    output_dir: Path | None,
    framework_paths: list[Path] | None,
    verbose: bool = False,
    base: AssemblerConfig | None = None,
) -> AssemblerConfig:
    """Create an assembler configuration from CLI arguments."""
    config_dict: dict[str, Any] = base.model_dump() if base else {}

    if name is not None:
        config_dict["name"] = name
    if output_dir is not None:
        config_dict["output_directory"] = output_dir
    if framework_paths:
        config_dict["framework_paths"] = list(framework_paths)
    if verbose:
        config_dict["verbose"] = True

    return AssemblerConfig(**config_dict)


def generate_default_config(output_path: Path) -> None:
    """Generate a default configuration file."""
    tools = ToolPaths()
    default_config = {
        "build": {
            "name": "MyLibrary",
            "project": "./MyLibrary.xcodeproj",
            "output_directory": "./output",
            "build_directory": "./build",
            "ios_scheme": "MyLibrary-iOS",
            "macos_scheme": "MyLibrary-macOS",
            "verbose": False,
            "keep_archives": False,
            "compiler_arguments": [],
            "fail_on_archive_stderr": True,
            "jobs": 1,
        },
        "assemble": {
            "name": "MyLibrary",
            "output_directory": "./output",
            "framework_paths": [
                "./frameworks/ios/MyLibrary.framework",
                "./frameworks/simulator/MyLibrary.framework",
            ],
        },
    }
    for section in default_config.values():
        section["tools"] = {
            "archiver": tools.archiver,
            "merge_tool": tools.merge_tool,
            "inspector": tools.inspector,
            "thinner": tools.thinner,
        }

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        yaml.dump(default_config, f, default_flow_style=False, sort_keys=False)
