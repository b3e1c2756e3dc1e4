"""
Framework assembler.

Merges pre-built .framework bundles into a single .xcframework, thinning
multi-architecture binaries into per-architecture copies first.
"""

from xcfkit.assembler.inspector import BundleInspector, parse_architectures
from xcfkit.assembler.orchestrator import BundleAssembler, assemble_bundles
from xcfkit.assembler.thinner import BundleThinner, TemporaryBundles, thinned_path

__all__ = [
    "BundleAssembler",
    "BundleInspector",
    "BundleThinner",
    "TemporaryBundles",
    "assemble_bundles",
    "parse_architectures",
    "thinned_path",
]
