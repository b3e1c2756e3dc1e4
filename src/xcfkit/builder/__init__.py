"""
Multi-target builder.

Archives schemes for every SDK of their platform and merges the produced
frameworks into .xcframeworks.
"""

from xcfkit.builder.grouping import group_bundles, resolve_artifact_names
from xcfkit.builder.orchestrator import MultiTargetBuilder, build_and_assemble

__all__ = [
    "MultiTargetBuilder",
    "build_and_assemble",
    "group_bundles",
    "resolve_artifact_names",
]
