"""Construction of update info groups from collected assets."""

from __future__ import annotations

from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import structlog

from assetpub.core.addressing import address_asset
from assetpub.core.types import AddressedAsset, Asset, PlatformAssets, UpdateInfo, UpdateInfoGroup

logger = structlog.get_logger()


def convert_asset_to_update_info_group_format(asset: Asset) -> AddressedAsset:
    """Address a single asset for inclusion in an update info group."""
    return address_asset(asset)


def build_unsorted_update_info_group(
    platform_assets: Mapping[str, PlatformAssets],
    extra: Mapping[str, Any] | None = None,
    max_workers: int = 8,
) -> UpdateInfoGroup:
    """Build an update info group from per-platform assets.

    Every launch asset and asset is hashed and addressed. Duplicates across
    platforms are kept as separate references; they collapse later because
    they share a storage key.

    Args:
        platform_assets: Collected assets keyed by platform
        extra: Metadata attached verbatim to every platform
        max_workers: Threads used for reading and hashing files

    Returns:
        Update info group in platform input order
    """
    # Flatten so one pool addresses every file; results come back in order
    flat: list[Asset] = []
    for assets in platform_assets.values():
        flat.append(assets.launch_asset)
        flat.extend(assets.assets)

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        addressed = list(executor.map(convert_asset_to_update_info_group_format, flat))

    group: UpdateInfoGroup = {}
    offset = 0
    for platform, assets in platform_assets.items():
        launch_asset = addressed[offset]
        platform_addressed = addressed[offset + 1: offset + 1 + len(assets.assets)]
        offset += 1 + len(assets.assets)
        group[platform] = UpdateInfo(
            launch_asset=launch_asset,
            assets=platform_addressed,
            extra=dict(extra or {}),
        )

    logger.debug(
        "update_info_group_built",
        platforms=list(group),
        references=len(flat),
    )
    return group
