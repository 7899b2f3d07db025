"""
Target directory routing.

A target directory ends in ``<provider>/<owner>/<name>``:

- Bamboo: ``.../bamboo/<host>/<PROJECT-PLAN>``
- Drone: ``.../drone/<user>/<repo>``
"""

from pathlib import Path
from typing import Tuple, Union

from build_mirror.exceptions import InvalidTargetPath

from .models import CIProvider, TargetCoordinates


def split_target_path(target_dir: Union[str, Path]) -> Tuple[str, str, str]:
    """
    The trailing ``(provider, owner, name)`` segments of a target directory.

    Raises:
        InvalidTargetPath: If fewer than three non-empty segments are present
    """
    parts = [p for p in str(target_dir).replace("\\", "/").split("/") if p]
    if len(parts) < 3:
        raise InvalidTargetPath(
            f"Target path must end in <provider>/<owner>/<name>: {target_dir}",
            path=target_dir,
        )
    provider_segment, owner, name = parts[-3:]
    return provider_segment, owner, name


def parse_target_path(
    target_dir: Union[str, Path],
    provider: CIProvider,
) -> TargetCoordinates:
    """
    Extract routing coordinates from the three trailing path segments.

    Raises:
        InvalidTargetPath: If the segments are missing, empty, or belong to
            another provider
    """
    provider_segment, owner, name = split_target_path(target_dir)
    known = {p.value for p in CIProvider}
    if provider_segment.lower() in known and provider_segment.lower() != provider.value:
        raise InvalidTargetPath(
            f"Target path {target_dir} belongs to '{provider_segment}', not '{provider.value}'",
            path=target_dir,
        )

    if provider == CIProvider.BAMBOO and "-" not in name.strip("-"):
        raise InvalidTargetPath(
            f"Bamboo plan segment must be PROJECT-PLAN, got '{name}'",
            path=target_dir,
        )

    return TargetCoordinates(provider_segment=provider_segment, owner=owner, name=name)
