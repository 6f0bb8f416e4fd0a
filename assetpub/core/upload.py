"""Upload orchestration for content-addressed assets.

Publishing an update group proceeds as:

1. Flatten every platform's launch asset and assets (asset_count)
2. Deduplicate by storage key (unique_asset_count)
3. Check the unique count against the server's per-group ceiling
4. Ask the remote store which unique assets are missing
5. Upload the missing assets against signed specifications, then poll
   the store until every one of them is visible

The store is eventually consistent: an upload that succeeded may not be
visible on the next existence check. Polling rounds run one after another
and back off exponentially while nothing new turns up.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import structlog

from assetpub.core.config import PublishConfig
from assetpub.core.errors import PublishError, UploadFailedError, UploadTimeoutError
from assetpub.core.existence import filter_out_assets_that_already_exist
from assetpub.core.limits import enforce_asset_limit
from assetpub.core.remote import AssetUploader, PublishRemote
from assetpub.core.types import AddressedAsset, UpdateInfoGroup, UploadResult

logger = structlog.get_logger()

ProgressCallback = Callable[[int, int], None]
SleepFunction = Callable[[float], Awaitable[None]]


def flatten_update_info_group(group: UpdateInfoGroup) -> list[AddressedAsset]:
    """List every asset reference in the group, duplicates included."""
    assets: list[AddressedAsset] = []
    for update_info in group.values():
        assets.append(update_info.launch_asset)
        assets.extend(update_info.assets)
    return assets


def deduplicate_assets(assets: list[AddressedAsset]) -> dict[str, AddressedAsset]:
    """Map storage key to the first asset carrying it."""
    unique: dict[str, AddressedAsset] = {}
    for asset in assets:
        unique.setdefault(asset.storage_key, asset)
    return unique


class UploadOrchestrator:
    """Drives one publish upload to completion.

    Args:
        remote: Publishing API
        uploader: Object-store uploader
        config: Concurrency and polling settings
        sleep: Awaitable delay used between unproductive polling rounds;
               tests substitute a zero-delay function
    """

    def __init__(
        self,
        remote: PublishRemote,
        uploader: AssetUploader,
        config: PublishConfig | None = None,
        sleep: SleepFunction = asyncio.sleep,
    ):
        self.remote = remote
        self.uploader = uploader
        self.config = config or PublishConfig()
        self.sleep = sleep

    async def upload(
        self,
        group: UpdateInfoGroup,
        project_id: str,
        on_progress: ProgressCallback | None = None,
    ) -> UploadResult:
        """Upload every asset of an update group the store does not hold.

        Args:
            group: Addressed assets keyed by platform
            project_id: Project the update group belongs to
            on_progress: Called with (unique_asset_count, missing_count)
                         once before uploading and after every polling round

        Returns:
            Counts describing the publish

        Raises:
            AssetLimitExceededError: Too many unique assets for one group
            UploadFailedError: The store rejected an asset upload
            UploadTimeoutError: max_poll_rounds reached with assets unconfirmed
        """
        assets = flatten_update_info_group(group)
        unique_assets = deduplicate_assets(assets)
        unique_asset_count = len(unique_assets)

        logger.info(
            "assets_deduplicated",
            project_id=project_id,
            asset_count=len(assets),
            unique_asset_count=unique_asset_count,
        )

        asset_limit = await self.remote.get_asset_limit_per_update_group(project_id)
        enforce_asset_limit(unique_asset_count, asset_limit)

        missing = await filter_out_assets_that_already_exist(
            self.remote, list(unique_assets.values())
        )
        logger.info("missing_assets_found", missing=len(missing), unique=unique_asset_count)

        if on_progress:
            on_progress(unique_asset_count, len(missing))

        unique_uploaded_asset_count = 0
        transferred: set[str] = set()
        delay = self.config.initial_poll_delay
        rounds = 0

        while missing:
            pending = [asset for asset in missing if asset.storage_key not in transferred]
            if pending:
                await self._upload_batch(pending)
                transferred.update(asset.storage_key for asset in pending)

            still_missing = await filter_out_assets_that_already_exist(self.remote, missing)
            confirmed = len(missing) - len(still_missing)
            unique_uploaded_asset_count += confirmed
            missing = still_missing
            rounds += 1

            logger.debug(
                "upload_round",
                round=rounds,
                confirmed=confirmed,
                remaining=len(missing),
            )

            if on_progress:
                on_progress(unique_asset_count, len(missing))

            if not missing:
                break

            if self.config.max_poll_rounds is not None and rounds >= self.config.max_poll_rounds:
                raise UploadTimeoutError([asset.storage_key for asset in missing], rounds)

            if confirmed:
                delay = self.config.initial_poll_delay
            else:
                await self.sleep(delay)
                delay = min(delay * 2, self.config.max_poll_delay)

        logger.info(
            "upload_complete",
            project_id=project_id,
            uploaded=unique_uploaded_asset_count,
            rounds=rounds,
        )

        return UploadResult(
            asset_count=len(assets),
            unique_asset_count=unique_asset_count,
            unique_uploaded_asset_count=unique_uploaded_asset_count,
            asset_limit_per_update_group=asset_limit,
        )

    async def _upload_batch(self, batch: list[AddressedAsset]) -> None:
        """Fetch signed specifications for a batch and upload it concurrently.

        Raises:
            PublishError: If the API returns the wrong number of specifications
            UploadFailedError: If any single upload fails
        """
        specifications = await self.remote.get_signed_upload_specifications(
            [asset.content_type for asset in batch]
        )
        if len(specifications) != len(batch):
            raise PublishError(
                f"Expected {len(batch)} upload specifications, got {len(specifications)}"
            )

        semaphore = asyncio.Semaphore(self.config.upload_concurrency)

        async def upload_one(asset: AddressedAsset, specification: str) -> None:
            async with semaphore:
                try:
                    await self.uploader.upload(asset.path, specification)
                except Exception as e:
                    logger.error(
                        "asset_upload_failed",
                        storage_key=asset.storage_key,
                        path=str(asset.path),
                        error=str(e),
                    )
                    raise UploadFailedError(asset.storage_key, asset.path, str(e)) from e

        tasks = [
            asyncio.ensure_future(upload_one(asset, specification))
            for asset, specification in zip(batch, specifications, strict=True)
        ]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            # First failure aborts the batch
            for task in tasks:
                task.cancel()
            raise

        logger.debug("upload_batch_sent", count=len(batch))


async def upload_assets(
    remote: PublishRemote,
    uploader: AssetUploader,
    group: UpdateInfoGroup,
    project_id: str,
    on_progress: ProgressCallback | None = None,
    config: PublishConfig | None = None,
    sleep: SleepFunction = asyncio.sleep,
) -> UploadResult:
    """Upload an update group's assets; see UploadOrchestrator.upload."""
    orchestrator = UploadOrchestrator(remote, uploader, config=config, sleep=sleep)
    return await orchestrator.upload(group, project_id, on_progress)
