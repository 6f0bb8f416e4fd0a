"""Parser and builder for bundler metadata.json files.

The bundler writes metadata.json next to its output to describe, per
platform, the launch bundle and the assets it references:

    {
      "version": 0,
      "bundler": "metro",
      "fileMetadata": {
        "android": {
          "bundle": "bundles/android.js",
          "assets": [{"path": "assets/3261e570...", "ext": "png"}]
        },
        ...
      }
    }

Paths are relative to the directory holding metadata.json. The assets
list may be empty; the bundle is mandatory.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import BinaryIO

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from assetpub.core.errors import MalformedMetadataError

logger = structlog.get_logger()

METADATA_FILENAME = "metadata.json"
SUPPORTED_METADATA_VERSION = 0
SUPPORTED_BUNDLER = "metro"


class AssetDescriptor(BaseModel):
    """Asset entry as written by the bundler."""

    path: str = Field(..., description="Path relative to the input directory")
    ext: str = Field(..., min_length=1, description="Extension without leading period")

    model_config = ConfigDict(strict=True)


class PlatformFileMetadata(BaseModel):
    """Bundle and assets declared for one platform."""

    bundle: str = Field(..., description="Launch bundle path relative to the input directory")
    assets: list[AssetDescriptor] = Field(..., description="Assets referenced by the bundle")

    model_config = ConfigDict(strict=True)


class BundlerMetadata(BaseModel):
    """Complete metadata.json representation."""

    version: int = Field(..., description="Metadata format version")
    bundler: str = Field(..., description="Bundler identifier")
    file_metadata: dict[str, PlatformFileMetadata] = Field(
        ..., alias="fileMetadata", description="Per-platform outputs"
    )

    model_config = ConfigDict(strict=True, populate_by_name=True)


class MetadataParser:
    """Parser for bundler metadata.json."""

    def parse(self, data: bytes | BinaryIO) -> BundlerMetadata:
        """Parse and validate metadata.

        Args:
            data: JSON bytes or binary stream

        Returns:
            Validated metadata

        Raises:
            MalformedMetadataError: If the JSON is invalid or has the wrong shape
        """
        if not isinstance(data, bytes):
            data = data.read()

        try:
            return BundlerMetadata.model_validate_json(data)
        except ValidationError as e:
            raise MalformedMetadataError(_describe_validation_error(e)) from e

    def parse_file(self, path: Path) -> BundlerMetadata:
        """Parse metadata from file.

        Args:
            path: metadata.json location

        Returns:
            Validated metadata
        """
        try:
            with open(path, "rb") as f:
                return self.parse(f)
        except OSError as e:
            logger.error("metadata_read_failed", path=str(path), error=str(e))
            raise MalformedMetadataError(f"cannot read file: {e}", path=path) from e
        except MalformedMetadataError as e:
            raise MalformedMetadataError(e.detail, path=path) from e

    def build(self, obj: BundlerMetadata) -> bytes:
        """Serialize metadata back to JSON bytes."""
        return json.dumps(obj.model_dump(by_alias=True), indent=2).encode("utf-8")


def _describe_validation_error(error: ValidationError) -> str:
    """Flatten pydantic errors into one readable line."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "<root>"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


def load_metadata(input_dir: Path) -> BundlerMetadata:
    """Load and check the metadata.json of a bundler output directory.

    Args:
        input_dir: Directory produced by the bundler

    Returns:
        Validated metadata

    Raises:
        MalformedMetadataError: If the file is missing, malformed, or was
            written by an unsupported bundler or format version
    """
    metadata_path = input_dir / METADATA_FILENAME
    metadata = MetadataParser().parse_file(metadata_path)

    if metadata.version != SUPPORTED_METADATA_VERSION:
        raise MalformedMetadataError(
            f"only bundles with metadata version {SUPPORTED_METADATA_VERSION} are supported",
            path=metadata_path,
        )
    if metadata.bundler != SUPPORTED_BUNDLER:
        raise MalformedMetadataError(
            f"only bundles created with {SUPPORTED_BUNDLER} are currently supported",
            path=metadata_path,
        )

    logger.debug(
        "metadata_loaded",
        path=str(metadata_path),
        platforms=sorted(metadata.file_metadata),
    )
    return metadata
