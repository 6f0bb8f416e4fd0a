"""Format parsers for bundler output.

- Metadata: metadata.json describing per-platform bundles and assets
"""

from assetpub.formats.metadata import (
    AssetDescriptor,
    BundlerMetadata,
    MetadataParser,
    PlatformFileMetadata,
    load_metadata,
)

__all__ = [
    "AssetDescriptor",
    "BundlerMetadata",
    "MetadataParser",
    "PlatformFileMetadata",
    "load_metadata",
]
