"""
Version comparison for release tags.

Comparison is numeric per dot-separated segment. It is deliberately lenient:
a non-numeric segment counts as 0, so pre-release tags such as
``1.2.3-beta`` order like ``1.2.0``. Tags that are not purely numeric can
therefore be ordered incorrectly.
"""

from typing import List, Optional


def _parse_segments(version: str) -> List[int]:
    """Split a version string into integer segments."""
    if not version[0].isdigit():
        version = version[1:]

    segments = []
    for part in version.split('.'):
        try:
            segments.append(int(part))
        except ValueError:
            segments.append(0)
    return segments


def compare_versions(version1: Optional[str], version2: Optional[str]) -> int:
    """
    Compare two version strings.

    Args:
        version1: First version, e.g. ``v1.2.0``
        version2: Second version

    Returns:
        int: -1 if version1 is older, 1 if it is newer, 0 if equal. Also 0 when
            either side is empty, which means "unknown" rather than "equal".
    """
    if not version1 or not version2:
        return 0

    v1_parts = _parse_segments(version1)
    v2_parts = _parse_segments(version2)

    for i in range(max(len(v1_parts), len(v2_parts))):
        v1 = v1_parts[i] if i < len(v1_parts) else 0
        v2 = v2_parts[i] if i < len(v2_parts) else 0

        if v1 > v2:
            return 1
        if v1 < v2:
            return -1

    return 0
