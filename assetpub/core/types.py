"""Core type definitions for assetpub."""

from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Platform(StrEnum):
    """Supported publish platforms."""
    ANDROID = "android"
    IOS = "ios"


DEFAULT_PUBLISH_PLATFORMS: list[Platform] = [Platform.ANDROID, Platform.IOS]


class AssetMetadataStatus(StrEnum):
    """Remote existence status of a stored asset."""
    EXISTS = "EXISTS"
    DOES_NOT_EXIST = "DOES_NOT_EXIST"


class Asset(BaseModel):
    """A locally-built file about to be published."""
    path: Path = Field(..., description="File location on disk")
    file_extension: str | None = Field(None, description="Extension with leading period")
    content_type: str = Field(..., description="MIME type")

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class AddressedAsset(Asset):
    """Asset plus its content-derived identifiers."""
    file_sha256: str = Field(..., alias="fileSHA256", description="Base64url SHA-256 of file bytes")
    storage_key: str = Field(..., description="Remote content address")
    bundle_key: str = Field(..., description="Legacy MD5 hex of file bytes")


class PlatformAssets(BaseModel):
    """Launch bundle and supporting assets for one platform."""
    launch_asset: Asset = Field(..., description="JS bundle loaded at startup")
    assets: list[Asset] = Field(default_factory=list, description="Supporting assets")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UpdateInfo(BaseModel):
    """Addressed assets for one platform of an update group."""
    launch_asset: AddressedAsset
    assets: list[AddressedAsset] = Field(default_factory=list)
    extra: dict[str, Any] = Field(default_factory=dict, description="Opaque per-platform metadata")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Keyed by platform name
UpdateInfoGroup = dict[str, UpdateInfo]


class AssetMetadataResult(BaseModel):
    """One entry of a bulk existence query."""
    storage_key: str
    status: AssetMetadataStatus

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UploadResult(BaseModel):
    """Outcome of one publish upload."""
    asset_count: int = Field(..., description="Asset references across all platforms")
    unique_asset_count: int = Field(..., description="Distinct storage keys")
    unique_uploaded_asset_count: int = Field(..., description="Unique assets transferred by this call")
    asset_limit_per_update_group: int = Field(..., description="Server ceiling at time of call")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
