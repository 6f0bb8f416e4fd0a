"""assetpub - publish bundler output to a content-addressed asset store.

This package collects the launch bundles and assets a bundler produced for
each platform, addresses them by content hash, and uploads whatever the
remote store does not already hold.

Key modules:
- core: Addressing, collection, upload orchestration and configuration
- formats: Bundler metadata parser
- commands: CLI command implementations
"""

__version__ = "0.1.0"
__author__ = "assetpub Team"

# Re-export commonly used types and functions
from assetpub.core.types import (
    AddressedAsset,
    Asset,
    Platform,
    UploadResult,
)

__all__ = [
    "__version__",
    "__author__",
    "AddressedAsset",
    "Asset",
    "Platform",
    "UploadResult",
]
