"""Content addressing for published assets.

Assets are stored remotely under a key derived from their bytes and
content type, so identical files collapse to one stored object:

    file_sha256 = base64url(sha256(bytes))
    storage_key = base64url(sha256(content_type + "\\0" + file_sha256))

The NUL separator keeps ("image/jpeg", "blibblab") and
("image", "/jpegblibblab") apart. The MD5 bundle key is a legacy
identifier and plays no part in deduplication.
"""

from __future__ import annotations

import base64
import hashlib

from assetpub.core.types import AddressedAsset, Asset

DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES: dict[str, str] = {
    # Images
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "bmp": "image/bmp",
    "svg": "image/svg+xml",
    "ico": "image/vnd.microsoft.icon",
    # Fonts
    "ttf": "font/ttf",
    "otf": "font/otf",
    "woff": "font/woff",
    "woff2": "font/woff2",
    # Scripts
    "js": "application/javascript",
    "mjs": "application/javascript",
    "cjs": "application/javascript",
    "bundle": "application/javascript",
    "json": "application/json",
    "map": "application/json",
    # Media
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "m4a": "audio/mp4",
    "mp4": "video/mp4",
    # Documents
    "html": "text/html",
    "css": "text/css",
    "txt": "text/plain",
    "xml": "application/xml",
    "pdf": "application/pdf",
}


def get_base64url_encoding(data: bytes) -> str:
    """Encode bytes as URL-safe base64 with padding stripped.

    Example:
        >>> get_base64url_encoding(b"test-string")
        'dGVzdC1zdHJpbmc'
    """
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def compute_sha256_digest(data: bytes) -> str:
    """Compute base64url-encoded SHA-256 digest of file bytes."""
    return get_base64url_encoding(hashlib.sha256(data).digest())


def compute_bundle_key(data: bytes) -> str:
    """Compute legacy MD5 hex bundle key."""
    return hashlib.md5(data).hexdigest()


def get_storage_key(content_type: str, sha256_digest: str) -> str:
    """Compute the storage key for a content type and file digest.

    Args:
        content_type: MIME type the asset is stored under
        sha256_digest: Base64url SHA-256 digest of the file bytes

    Returns:
        Base64url SHA-256 of content_type, a NUL byte and the digest

    Example:
        >>> get_storage_key("image/jpeg", "blibblab")
        'j0iiW9hDbR2HKoH1nCxsKRM6QIZVtZ__2ssOiOcxlAs'
    """
    hasher = hashlib.sha256()
    hasher.update(content_type.encode("utf-8"))
    hasher.update(b"\0")
    hasher.update(sha256_digest.encode("utf-8"))
    return get_base64url_encoding(hasher.digest())


def guess_content_type_from_extension(ext: str | None) -> str:
    """Look up the MIME type for a file extension.

    Accepts extensions with or without a leading period. Unknown or
    missing extensions map to application/octet-stream.

    Example:
        >>> guess_content_type_from_extension("jpg")
        'image/jpeg'
        >>> guess_content_type_from_extension(None)
        'application/octet-stream'
    """
    if not ext:
        return DEFAULT_CONTENT_TYPE
    return CONTENT_TYPES.get(ext.lstrip(".").lower(), DEFAULT_CONTENT_TYPE)


def get_storage_key_for_asset(asset: Asset) -> str:
    """Read an asset from disk and compute its storage key."""
    data = asset.path.read_bytes()
    return get_storage_key(asset.content_type, compute_sha256_digest(data))


def address_asset(asset: Asset) -> AddressedAsset:
    """Read an asset once and derive all of its identifiers.

    Args:
        asset: Asset to address

    Returns:
        AddressedAsset carrying SHA-256, storage key and bundle key
    """
    data = asset.path.read_bytes()
    file_sha256 = compute_sha256_digest(data)
    return AddressedAsset(
        path=asset.path,
        file_extension=asset.file_extension,
        content_type=asset.content_type,
        file_sha256=file_sha256,
        storage_key=get_storage_key(asset.content_type, file_sha256),
        bundle_key=compute_bundle_key(data),
    )
