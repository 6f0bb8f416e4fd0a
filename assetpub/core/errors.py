"""Error taxonomy for asset publishing.

Every failure raised by the publishing core derives from PublishError so
callers can handle the whole family at one seam. "Not yet visible" on the
remote store is normal polling state and never raises.
"""

from __future__ import annotations

from pathlib import Path


class PublishError(Exception):
    """Base class for publishing failures."""


class MissingInputDirectoryError(PublishError):
    """Raised when the bundler output directory does not exist.

    Attributes:
        path: The directory that was expected
    """

    def __init__(self, path: Path):
        self.path = path
        super().__init__(
            f'The input directory "{path}" does not exist.\n'
            "    You can allow us to build it for you by not setting the --skip-bundler flag.\n"
            "    If you chose to build it yourself you'll need to run a command to build the JS\n"
            "    bundle first.\n"
            "    You can use '--input-dir' to specify a different input directory."
        )


class MalformedMetadataError(PublishError):
    """Raised when bundler metadata does not match the expected shape.

    Attributes:
        path: Metadata file location, if known
        detail: Description of the mismatch
    """

    def __init__(self, detail: str, *, path: Path | None = None):
        self.path = path
        self.detail = detail
        where = f" in {path}" if path is not None else ""
        super().__init__(f"Malformed bundler metadata{where}: {detail}")


class AssetLimitExceededError(PublishError):
    """Raised when the deduplicated asset count exceeds the server ceiling.

    Attributes:
        count: Number of unique assets in the publish
        limit: Server-declared maximum per update group
    """

    def __init__(self, count: int, limit: int):
        self.count = count
        self.limit = limit
        super().__init__(
            f"Update group contains {count} unique assets, "
            f"which exceeds the limit of {limit} assets per update group. "
            "Reduce the number of assets and publish again."
        )


class UploadFailedError(PublishError):
    """Raised when the remote store permanently rejects an asset.

    Attributes:
        storage_key: Storage key of the failing asset
        path: Local file that was being uploaded
    """

    def __init__(self, storage_key: str, path: Path, reason: str):
        self.storage_key = storage_key
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to upload asset {path} ({storage_key}): {reason}")


class UploadTimeoutError(PublishError):
    """Raised when assets are still not visible after the polling ceiling.

    Attributes:
        missing_storage_keys: Storage keys that were never confirmed
        rounds: Number of polling rounds performed
    """

    def __init__(self, missing_storage_keys: list[str], rounds: int):
        self.missing_storage_keys = missing_storage_keys
        self.rounds = rounds
        super().__init__(
            f"{len(missing_storage_keys)} assets still not visible "
            f"after {rounds} polling rounds"
        )


class RemoteError(PublishError):
    """Raised when the publishing API answers with an error payload.

    Attributes:
        operation: Name of the remote operation
        messages: Error messages reported by the server
    """

    def __init__(self, operation: str, messages: list[str]):
        self.operation = operation
        self.messages = messages
        super().__init__(f"{operation} failed: {'; '.join(messages) or 'unknown error'}")
