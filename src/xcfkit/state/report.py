"""
Run report persistence for xcframework-kit.

Records what a build or assemble run produced so CI jobs can pick up the
artifact paths without parsing console output.
"""

import time
from pathlib import Path
from typing import Any

import orjson

from xcfkit.builder.grouping import group_bundles, resolve_artifact_names
from xcfkit.config.models import XCFRAMEWORK_EXTENSION, Archive


class RunReport:
    """Summary of one ``build`` or ``assemble`` run."""

    def __init__(self, command: str):
        self.command = command
        self.started_at = time.time()
        self.finished_at: float | None = None
        self.succeeded = False
        self.artifacts: list[Path] = []
        self.archives: list[Archive] = []
        self.error: dict[str, Any] | None = None

    def record_archives(self, archives: list[Archive], output_directory: Path, name: str) -> None:
        """Record archives and the .xcframework paths derived from them."""
        self.archives = list(archives)
        self.artifacts = [
            output_directory / f"{artifact_name}{XCFRAMEWORK_EXTENSION}"
            for artifact_name, _ in resolve_artifact_names(group_bundles(archives), name)
        ]

    def record_artifact(self, path: Path) -> None:
        self.artifacts.append(path)

    def record_error(self, error: Exception) -> None:
        """Store the failure, including tool output when the error carries it."""
        self.error = {
            "type": type(error).__name__,
            "message": str(error),
        }
        for attribute in ("kind", "stderr", "command", "exit_status", "target"):
            value = getattr(error, attribute, None)
            if value is not None:
                self.error[attribute] = value.value if hasattr(value, "value") else value

    def finish(self, succeeded: bool) -> None:
        self.succeeded = succeeded
        self.finished_at = time.time()

    @property
    def duration(self) -> float | None:
        if self.finished_at is None:
            return None
        return self.finished_at - self.started_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "command": self.command,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "duration": self.duration,
            "succeeded": self.succeeded,
            "artifacts": [str(p) for p in self.artifacts],
            "archives": [archive.model_dump(mode="json") for archive in self.archives],
            "error": self.error,
        }

    def save(self, report_path: Path) -> Path:
        """Write the report as indented JSON."""
        report_path.parent.mkdir(parents=True, exist_ok=True)
        with open(report_path, "wb") as f:
            f.write(orjson.dumps(self.to_dict(), option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS))
        return report_path

    @classmethod
    def load(cls, report_path: Path) -> dict[str, Any]:
        """Read a saved report back as plain data."""
        with open(report_path, "rb") as f:
            return orjson.loads(f.read())
