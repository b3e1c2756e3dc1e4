"""
Grouping of built frameworks by product name.

One archive command may produce several different frameworks, so frameworks
from every archive are grouped by name and one .xcframework is created per
group.
"""

from xcfkit.config.models import Archive, BinaryBundle


def group_bundles(archives: list[Archive]) -> dict[str, list[BinaryBundle]]:
    """Fold every bundle of every archive into ``logical name -> bundles``.

    Groups and the bundles within them keep the order of ``archives``.
    """
    groups: dict[str, list[BinaryBundle]] = {}
    for archive in archives:
        for bundle in archive.bundles:
            groups.setdefault(bundle.logical_name, []).append(bundle)
    return groups


def resolve_artifact_names(
    groups: dict[str, list[BinaryBundle]], name: str | None
) -> list[tuple[str, list[BinaryBundle]]]:
    """Pair each group with the name of the .xcframework it becomes.

    A single group takes the caller's name when one is given; otherwise every
    group keeps its own product name.
    """
    overridden_name = name if len(groups) == 1 else None
    return [
        (overridden_name or group_name, bundles)
        for group_name, bundles in groups.items()
    ]
