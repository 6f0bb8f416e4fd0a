"""Resolution of bundler output into per-platform assets."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import structlog

from assetpub.core.addressing import guess_content_type_from_extension
from assetpub.core.errors import MalformedMetadataError, MissingInputDirectoryError
from assetpub.core.types import Asset, PlatformAssets
from assetpub.formats.metadata import METADATA_FILENAME, load_metadata

logger = structlog.get_logger()

LAUNCH_ASSET_EXTENSION = ".bundle"
LAUNCH_ASSET_CONTENT_TYPE = "application/javascript"


def resolve_input_directory(input_dir: Path) -> Path:
    """Check that the bundler output directory exists.

    Args:
        input_dir: Directory expected to hold the bundler output

    Returns:
        The same path, unchanged

    Raises:
        MissingInputDirectoryError: If the directory does not exist
    """
    if not input_dir.exists():
        raise MissingInputDirectoryError(input_dir)
    return input_dir


def _ensure_leading_period(ext: str) -> str:
    return ext if ext.startswith(".") else f".{ext}"


def collect_assets(input_dir: Path, platforms: Iterable[str]) -> dict[str, PlatformAssets]:
    """Collect launch bundle and assets for each requested platform.

    Args:
        input_dir: Bundler output directory containing metadata.json
        platforms: Platforms to collect, in output order

    Returns:
        Mapping of platform name to its assets

    Raises:
        MissingInputDirectoryError: If the input directory does not exist
        MalformedMetadataError: If metadata is invalid or lacks a platform
    """
    input_dir = resolve_input_directory(input_dir).resolve()
    metadata = load_metadata(input_dir)

    collected: dict[str, PlatformAssets] = {}
    for platform in platforms:
        file_metadata = metadata.file_metadata.get(str(platform))
        if file_metadata is None:
            raise MalformedMetadataError(
                f"no bundle declared for platform {platform}",
                path=input_dir / METADATA_FILENAME,
            )

        launch_asset = Asset(
            path=input_dir / file_metadata.bundle,
            file_extension=LAUNCH_ASSET_EXTENSION,
            content_type=LAUNCH_ASSET_CONTENT_TYPE,
        )
        assets = [
            Asset(
                path=input_dir / descriptor.path,
                file_extension=_ensure_leading_period(descriptor.ext),
                content_type=guess_content_type_from_extension(descriptor.ext),
            )
            for descriptor in file_metadata.assets
        ]
        collected[str(platform)] = PlatformAssets(launch_asset=launch_asset, assets=assets)

        logger.debug(
            "platform_assets_collected",
            platform=str(platform),
            bundle=file_metadata.bundle,
            assets=len(assets),
        )

    return collected
