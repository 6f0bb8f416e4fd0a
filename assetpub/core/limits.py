"""Per-update-group asset ceiling enforcement."""

from __future__ import annotations

import structlog

from assetpub.core.errors import AssetLimitExceededError

logger = structlog.get_logger()


def enforce_asset_limit(unique_asset_count: int, limit: int) -> None:
    """Reject a publish whose unique asset count exceeds the server ceiling.

    Args:
        unique_asset_count: Number of distinct storage keys in the publish
        limit: Server-declared maximum assets per update group

    Raises:
        AssetLimitExceededError: If unique_asset_count > limit
    """
    if unique_asset_count > limit:
        logger.error("asset_limit_exceeded", count=unique_asset_count, limit=limit)
        raise AssetLimitExceededError(unique_asset_count, limit)
