"""
Shared fixtures: a fake Xcode toolchain that records every invocation.

The fake understands just enough of lipo and xcodebuild to drive the
pipeline against a real temporary directory:
- ``lipo <binary> -archs`` answers from ``archs`` (keyed by framework directory name)
- ``lipo <binary> -thin <arch> -output <binary>`` succeeds
- ``xcodebuild archive`` creates ``<archive>/Products/All/<product>.framework``
  for every product listed in ``products`` for the scheme
- ``xcodebuild -create-xcframework`` creates the output directory
Any step can be made to fail through ``failures``.
"""

import tempfile
from pathlib import Path

import pytest

from xcfkit.bridges.tool_invoker import ToolInvoker, ToolResult


class FakeToolchain(ToolInvoker):
    """Scripted stand-in for xcrun lipo and xcodebuild."""

    def __init__(self):
        self.archs: dict[str, list[str]] = {}
        self.products: dict[str, list[str]] = {}
        # Keys: "archs:<Name>.framework", "thin:<arch>", "archive:<scheme>-<sdk>", "merge"
        self.failures: dict[str, ToolResult] = {}
        self.stderr: dict[str, str] = {}
        self.calls: list[list[str]] = []
        # Children of every -framework directory at the moment of each merge
        self.merge_inputs: list[dict[str, list[str] | None]] = []

    def run(self, program: str, arguments: list[str]) -> ToolResult:
        self.calls.append([program, *arguments])

        if "-archs" in arguments:
            binary = Path(arguments[arguments.index("-archs") - 1])
            key = f"archs:{binary.parent.name}"
            if key in self.failures:
                return self.failures[key]
            archs = self.archs.get(binary.parent.name, [])
            return ToolResult(exit_status=0, stdout=" ".join(archs) + "\n")

        if "-thin" in arguments:
            arch = arguments[arguments.index("-thin") + 1]
            return self.failures.get(f"thin:{arch}", ToolResult(exit_status=0))

        if "-create-xcframework" in arguments:
            paths = [
                Path(arguments[i + 1]) for i, arg in enumerate(arguments) if arg == "-framework"
            ]
            self.merge_inputs.append(
                {p.name: sorted(c.name for c in p.iterdir()) if p.exists() else None for p in paths}
            )
            if "merge" in self.failures:
                return self.failures["merge"]
            output = Path(arguments[arguments.index("-output") + 1])
            output.mkdir(parents=True, exist_ok=True)
            return ToolResult(exit_status=0)

        if "archive" in arguments:
            scheme = arguments[arguments.index("-scheme") + 1]
            sdk = arguments[arguments.index("-sdk") + 1]
            key = f"archive:{scheme}-{sdk}"
            if key in self.failures:
                return self.failures[key]
            archive_path = Path(arguments[arguments.index("-archivePath") + 1])
            products_dir = archive_path / "Products" / "All"
            products_dir.mkdir(parents=True, exist_ok=True)
            for product in self.products.get(scheme, []):
                framework = products_dir / f"{product}.framework"
                framework.mkdir(exist_ok=True)
                (framework / product).write_text(sdk)
            return ToolResult(exit_status=0, stderr=self.stderr.get(key, ""))

        return ToolResult(exit_status=0)

    # Convenience views -----------------------------------------------------

    def calls_with(self, flag: str) -> list[list[str]]:
        return [call for call in self.calls if flag in call]

    @property
    def merge_calls(self) -> list[list[str]]:
        return self.calls_with("-create-xcframework")

    @property
    def archive_calls(self) -> list[list[str]]:
        return self.calls_with("archive")

    @property
    def thin_calls(self) -> list[list[str]]:
        return self.calls_with("-thin")


def _make_framework(root: Path, name: str, subdir: str = "") -> Path:
    """Create ``<root>/<subdir>/<name>.framework/<name>`` and return the framework path."""
    framework = root / subdir / f"{name}.framework" if subdir else root / f"{name}.framework"
    framework.mkdir(parents=True, exist_ok=True)
    (framework / name).write_text("binary")
    (framework / "Info.plist").write_text("<plist/>")
    return framework


@pytest.fixture
def toolchain():
    """A fresh fake toolchain."""
    return FakeToolchain()


@pytest.fixture
def temp_dir():
    """Create a temporary working directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_framework():
    """Factory creating ``<root>/<subdir>/<name>.framework/<name>``."""
    return _make_framework
