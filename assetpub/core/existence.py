"""Remote existence filtering of addressed assets."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from assetpub.core.remote import PublishRemote
from assetpub.core.types import AddressedAsset, AssetMetadataStatus

logger = structlog.get_logger()


async def filter_out_assets_that_already_exist(
    remote: PublishRemote,
    assets: Sequence[AddressedAsset],
) -> list[AddressedAsset]:
    """Return the assets the remote store does not hold yet.

    Issues one bulk existence query by storage key. Results are matched by
    storage key, so the server may answer in any order.

    Args:
        remote: Publishing API
        assets: Addressed assets to check

    Returns:
        Assets not reported as existing, in input order
    """
    if not assets:
        return []

    results = await remote.get_asset_metadata([asset.storage_key for asset in assets])
    missing_keys = {
        result.storage_key
        for result in results
        if result.status != AssetMetadataStatus.EXISTS
    }
    missing = [asset for asset in assets if asset.storage_key in missing_keys]

    logger.debug("asset_existence_checked", checked=len(assets), missing=len(missing))
    return missing
