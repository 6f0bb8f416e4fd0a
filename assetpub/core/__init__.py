"""Core functionality for assetpub.

This module provides the publishing pipeline:
- Content addressing of asset files
- Collection of bundler output per platform
- Update info group construction
- Asset limit enforcement and remote existence filtering
- Upload orchestration with visibility polling
"""

from assetpub.core.addressing import (
    address_asset,
    compute_bundle_key,
    compute_sha256_digest,
    get_base64url_encoding,
    get_storage_key,
    get_storage_key_for_asset,
    guess_content_type_from_extension,
)
from assetpub.core.errors import (
    AssetLimitExceededError,
    MalformedMetadataError,
    MissingInputDirectoryError,
    PublishError,
    RemoteError,
    UploadFailedError,
    UploadTimeoutError,
)
from assetpub.core.existence import filter_out_assets_that_already_exist
from assetpub.core.scanner import collect_assets, resolve_input_directory
from assetpub.core.update_info import build_unsorted_update_info_group
from assetpub.core.upload import UploadOrchestrator, upload_assets

__all__ = [
    # Addressing
    "address_asset",
    "compute_bundle_key",
    "compute_sha256_digest",
    "get_base64url_encoding",
    "get_storage_key",
    "get_storage_key_for_asset",
    "guess_content_type_from_extension",
    # Errors
    "AssetLimitExceededError",
    "MalformedMetadataError",
    "MissingInputDirectoryError",
    "PublishError",
    "RemoteError",
    "UploadFailedError",
    "UploadTimeoutError",
    # Pipeline
    "build_unsorted_update_info_group",
    "collect_assets",
    "filter_out_assets_that_already_exist",
    "resolve_input_directory",
    "upload_assets",
    "UploadOrchestrator",
]
