"""Pytest configuration and shared fixtures for assetpub tests."""

import json
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from assetpub.core.addressing import compute_sha256_digest, get_storage_key
from assetpub.core.types import AssetMetadataResult, AssetMetadataStatus


class FakePublishRemote:
    """In-memory publishing API with an eventually consistent store.

    Uploaded keys become visible after `visibility_lag` further existence
    checks; with a lag of 0 they are visible on the next check.
    """

    def __init__(self, limit: int = 1400, existing: set[str] | None = None, visibility_lag: int = 0):
        self.limit = limit
        self.stored: set[str] = set(existing or ())
        self.visibility_lag = visibility_lag
        self.pending: dict[str, int] = {}
        self.metadata_calls: list[list[str]] = []
        self.specification_calls: list[list[str]] = []
        self.limit_calls: list[str] = []

    def mark_uploaded(self, storage_key: str) -> None:
        if storage_key not in self.stored:
            self.pending.setdefault(storage_key, self.visibility_lag)

    async def get_signed_upload_specifications(self, content_types: list[str]) -> list[str]:
        self.specification_calls.append(list(content_types))
        return [
            json.dumps({"url": f"https://upload.example.com/{i}", "contentType": content_type})
            for i, content_type in enumerate(content_types)
        ]

    async def get_asset_metadata(self, storage_keys: list[str]) -> list[AssetMetadataResult]:
        self.metadata_calls.append(list(storage_keys))
        for key, remaining in list(self.pending.items()):
            if remaining == 0:
                self.stored.add(key)
                del self.pending[key]
            else:
                self.pending[key] = remaining - 1
        return [
            AssetMetadataResult(
                storage_key=key,
                status=AssetMetadataStatus.EXISTS if key in self.stored else AssetMetadataStatus.DOES_NOT_EXIST,
            )
            for key in storage_keys
        ]

    async def get_asset_limit_per_update_group(self, project_id: str) -> int:
        self.limit_calls.append(project_id)
        return self.limit


class FakeUploader:
    """Uploader that reports uploads to a FakePublishRemote."""

    def __init__(self, remote: FakePublishRemote):
        self.remote = remote
        self.uploaded: list[Path] = []

    async def upload(self, path: Path, specification: str) -> None:
        spec = json.loads(specification)
        self.uploaded.append(path)
        digest = compute_sha256_digest(path.read_bytes())
        self.remote.mark_uploaded(get_storage_key(spec["contentType"], digest))


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def sample_metadata() -> dict[str, Any]:
    """Sample metadata.json content for two platforms sharing an asset."""
    return {
        "version": 0,
        "bundler": "metro",
        "fileMetadata": {
            "android": {
                "assets": [{"path": "assets/3261e570d51777be1e99116562280926", "ext": "png"}],
                "bundle": "bundles/android.js",
            },
            "ios": {
                "assets": [{"path": "assets/3261e570d51777be1e99116562280926", "ext": "png"}],
                "bundle": "bundles/ios.js",
            },
        },
    }


@pytest.fixture
def bundler_output(temp_dir: Path, sample_metadata: dict[str, Any]) -> Path:
    """Bundler output directory with distinct bundles and one shared 10-byte asset."""
    (temp_dir / "bundles").mkdir()
    (temp_dir / "assets").mkdir()
    (temp_dir / "bundles" / "android.js").write_text("android bundle code")
    (temp_dir / "bundles" / "ios.js").write_text("ios bundle code")
    (temp_dir / "assets" / "3261e570d51777be1e99116562280926").write_bytes(b"0123456789")
    (temp_dir / "metadata.json").write_text(json.dumps(sample_metadata))
    return temp_dir


@pytest.fixture
def fake_remote_factory() -> Callable[..., FakePublishRemote]:
    """Factory for in-memory publishing APIs."""
    return FakePublishRemote


@pytest.fixture
def fake_uploader_factory() -> Callable[[FakePublishRemote], FakeUploader]:
    """Factory for uploaders bound to a fake remote."""
    return FakeUploader


@pytest.fixture
def recorded_sleeps() -> list[float]:
    """Delays requested from the fake sleep function."""
    return []


@pytest.fixture
def fake_sleep(recorded_sleeps: list[float]) -> Callable[[float], Any]:
    """Zero-delay replacement for asyncio.sleep that records delays."""
    async def _sleep(delay: float) -> None:
        recorded_sleeps.append(delay)

    return _sleep


# Pytest configuration
def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest settings."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list) -> None:
    """Add unit marker to all tests not marked as integration."""
    for item in items:
        if not any(marker.name == "integration" for marker in item.iter_markers()):
            item.add_marker(pytest.mark.unit)
