"""
Unit tests for framework inspection and thinning.
"""

import logging
from pathlib import Path

import pytest

from xcfkit.assembler.inspector import BundleInspector, parse_architectures
from xcfkit.assembler.thinner import BundleThinner, TemporaryBundles, thinned_path
from xcfkit.bridges.filesystem import LocalFileSystem
from xcfkit.bridges.tool_invoker import ToolResult
from xcfkit.config.models import BinaryBundle, ToolPaths
from xcfkit.errors import ToolError


# =============================================================================
# Inspection
# =============================================================================


class TestParseArchitectures:
    """lipo -archs output parsing."""

    def test_first_line_only(self):
        assert parse_architectures("arm64 x86_64\nwarning: something\n") == ["arm64", "x86_64"]

    def test_extra_spaces(self):
        assert parse_architectures("  armv7   arm64 \n") == ["armv7", "arm64"]

    def test_empty_output(self):
        assert parse_architectures("") == []
        assert parse_architectures("\n") == []


class TestBundleInspector:
    """Inspection through the tool invoker."""

    def test_inspect_invokes_lipo_on_binary(self, temp_dir, make_framework, toolchain):
        """The binary named after the framework is inspected."""
        framework = make_framework(temp_dir, "Kit")
        toolchain.archs["Kit.framework"] = ["arm64", "arm64e"]
        inspector = BundleInspector(toolchain, ToolPaths())

        bundle = inspector.inspect(framework)

        assert toolchain.calls == [["/usr/bin/xcrun", "lipo", str(framework / "Kit"), "-archs"]]
        assert bundle.logical_name == "Kit"
        assert bundle.architectures == ["arm64", "arm64e"]
        assert bundle.is_temporary is False
        assert bundle.binary_file_path == framework / "Kit"

    def test_custom_inspector_command(self, temp_dir, make_framework, toolchain):
        """A configured inspector replaces xcrun lipo."""
        framework = make_framework(temp_dir, "Kit")
        toolchain.archs["Kit.framework"] = ["x86_64"]
        inspector = BundleInspector(toolchain, ToolPaths(inspector=["/opt/llvm/bin/llvm-lipo"]))

        inspector.inspect(framework)

        assert toolchain.calls[0][:2] == ["/opt/llvm/bin/llvm-lipo", str(framework / "Kit")]

    def test_failure_raises_tool_error(self, temp_dir, make_framework, toolchain):
        framework = make_framework(temp_dir, "Kit")
        toolchain.failures["archs:Kit.framework"] = ToolResult(exit_status=1, stderr="can't open input file")

        with pytest.raises(ToolError) as exc_info:
            BundleInspector(toolchain, ToolPaths()).inspect(framework)

        assert exc_info.value.exit_status == 1
        assert exc_info.value.command[-1] == "-archs"

    def test_nothing_reported(self, temp_dir, make_framework, toolchain, caplog):
        """The skip warning shows the lipo command that actually ran."""
        framework = make_framework(temp_dir, "Kit")

        with caplog.at_level(logging.WARNING, logger="xcfkit.assembler.inspector"):
            assert BundleInspector(toolchain, ToolPaths()).inspect(framework) is None

        assert f"/usr/bin/xcrun lipo {framework / 'Kit'} -archs" in caplog.text


# =============================================================================
# Thinning
# =============================================================================


@pytest.fixture
def thinner(toolchain):
    return BundleThinner(toolchain, LocalFileSystem(), ToolPaths())


class TestBundleThinner:
    """Splitting fat frameworks."""

    def test_thinned_path(self):
        bundle = BinaryBundle.from_path(Path("/in/Kit.framework"), ["arm64", "x86_64"])

        assert thinned_path(bundle, "x86_64") == Path("/in/Kit_x86_64.framework")

    def test_single_architecture_untouched(self, temp_dir, make_framework, thinner, toolchain):
        """A thin framework comes back as the same bundle."""
        bundle = BinaryBundle.from_path(make_framework(temp_dir, "Kit"), ["arm64"])

        with TemporaryBundles(LocalFileSystem()) as scope:
            result = thinner.thin(bundle, scope)
            assert scope.paths == []

        assert result == [bundle]
        assert toolchain.calls == []

    def test_one_copy_per_architecture(self, temp_dir, make_framework, thinner, toolchain):
        """k architectures give k temporary single-architecture copies."""
        framework = make_framework(temp_dir, "Kit")
        bundle = BinaryBundle.from_path(framework, ["armv7", "arm64", "x86_64"])

        with TemporaryBundles(LocalFileSystem()) as scope:
            result = thinner.thin(bundle, scope)

            assert [b.directory_path.name for b in result] == [
                "Kit_armv7.framework", "Kit_arm64.framework", "Kit_x86_64.framework",
            ]
            assert all(b.is_temporary and len(b.architectures) == 1 for b in result)
            assert all(b.logical_name == "Kit" for b in result)
            assert all((b.directory_path / "Kit").exists() for b in result)
            assert [call[-3] for call in toolchain.thin_calls] == ["armv7", "arm64", "x86_64"]

        assert not any(b.directory_path.exists() for b in result)
        assert framework.exists()

    def test_stale_copy_replaced(self, temp_dir, make_framework, thinner):
        """A leftover copy from an earlier run does not block thinning."""
        framework = make_framework(temp_dir, "Kit")
        stale = temp_dir / "Kit_arm64.framework"
        stale.mkdir()
        (stale / "stale.txt").write_text("old")
        bundle = BinaryBundle.from_path(framework, ["arm64", "x86_64"])

        with TemporaryBundles(LocalFileSystem()) as scope:
            thinner.thin(bundle, scope)
            assert not (stale / "stale.txt").exists()


class TestTemporaryBundles:
    """Scoped cleanup of temporary copies."""

    def test_cleanup_on_exception(self, temp_dir):
        path = temp_dir / "Kit_arm64.framework"
        path.mkdir()

        with pytest.raises(RuntimeError):
            with TemporaryBundles(LocalFileSystem()) as scope:
                scope.track(path)
                raise RuntimeError("boom")

        assert not path.exists()

    def test_track_is_idempotent(self, temp_dir):
        scope = TemporaryBundles(LocalFileSystem())
        scope.track(temp_dir / "a")
        scope.track(temp_dir / "a")

        assert scope.paths == [temp_dir / "a"]
