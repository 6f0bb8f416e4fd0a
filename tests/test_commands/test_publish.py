"""Tests for publish command module."""

from __future__ import annotations

import json
import re
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from assetpub.__main__ import main
from assetpub.commands.publish import _load_app_config, publish


def _clean(output: str) -> str:
    return re.sub(r"\x1b\[[0-9;]*m", "", output)


class TestPublishCommands:
    """Test publish command functionality."""

    @pytest.fixture
    def runner(self):
        """Create CLI test runner."""
        return CliRunner()

    @pytest.fixture
    def fake_clients(self, fake_remote_factory, fake_uploader_factory):
        """Patch the network clients with in-memory fakes."""
        remote = fake_remote_factory()
        remote.aclose = AsyncMock()
        uploader = fake_uploader_factory(remote)
        uploader.aclose = AsyncMock()

        with patch("assetpub.commands.publish.GraphQLPublishClient", return_value=remote) as remote_cls, \
                patch("assetpub.commands.publish.PresignedUploader", return_value=uploader):
            yield remote, uploader, remote_cls

    def test_publish_group_help(self, runner):
        """Test publish group lists its commands."""
        result = runner.invoke(publish, ["--help"])

        assert result.exit_code == 0
        assert "Publish bundler output to the asset store" in result.output
        assert "inspect" in result.output
        assert "upload" in result.output

    def test_inspect_rich(self, runner, bundler_output: Path):
        """Test inspect prints counts per platform and the unique total."""
        result = runner.invoke(main, ["publish", "inspect", "--input-dir", str(bundler_output)])

        assert result.exit_code == 0
        output = _clean(result.output)
        assert "android" in output
        assert "ios" in output
        assert "4 asset references, 3 unique" in output

    def test_inspect_json(self, runner, bundler_output: Path):
        """Test inspect emits the update info group with wire names."""
        result = runner.invoke(
            main, ["--output", "json", "publish", "inspect", "--input-dir", str(bundler_output), "-p", "ios"]
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert list(data) == ["ios"]
        assert data["ios"]["launchAsset"]["contentType"] == "application/javascript"
        assert data["ios"]["assets"][0]["contentType"] == "image/png"
        assert "storageKey" in data["ios"]["assets"][0]
        assert "fileSHA256" in data["ios"]["assets"][0]

    def test_inspect_missing_directory(self, runner, temp_dir: Path):
        """Test a missing input directory exits with remediation text."""
        missing = temp_dir / "dist"

        result = runner.invoke(main, ["publish", "inspect", "--input-dir", str(missing)])

        assert result.exit_code == 1
        assert "--input-dir" in _clean(result.output)

    def test_upload_requires_project_id(self, runner, bundler_output: Path):
        """Test project id is mandatory."""
        result = runner.invoke(main, ["publish", "upload", "--input-dir", str(bundler_output)])

        assert result.exit_code == 2
        assert "--project-id" in result.output

    def test_upload_json(self, runner, bundler_output: Path, fake_clients):
        """Test upload prints the result and passes the token through."""
        remote, uploader, remote_cls = fake_clients

        result = runner.invoke(
            main,
            [
                "--output", "json",
                "publish", "upload",
                "--input-dir", str(bundler_output),
                "--project-id", "project-1",
                "--token", "secret",
            ],
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {
            "assetCount": 4,
            "uniqueAssetCount": 3,
            "uniqueUploadedAssetCount": 3,
            "assetLimitPerUpdateGroup": 1400,
        }
        assert remote_cls.call_args.kwargs["access_token"] == "secret"
        assert remote.limit_calls == ["project-1"]
        assert len(uploader.uploaded) == 3
        remote.aclose.assert_awaited_once()
        uploader.aclose.assert_awaited_once()

    def test_upload_token_from_environment(self, runner, bundler_output: Path, fake_clients):
        """Test the token falls back to ASSETPUB_TOKEN."""
        _, _, remote_cls = fake_clients

        result = runner.invoke(
            main,
            ["publish", "upload", "--input-dir", str(bundler_output), "--project-id", "project-1"],
            env={"ASSETPUB_TOKEN": "from-env"},
        )

        assert result.exit_code == 0, result.output
        assert remote_cls.call_args.kwargs["access_token"] == "from-env"
        assert "Uploaded 3 of 3 unique assets" in _clean(result.output)

    def test_upload_limit_exceeded(self, runner, bundler_output: Path, fake_clients):
        """Test a publish over the asset ceiling exits with an error."""
        remote, uploader, _ = fake_clients
        remote.limit = 2

        result = runner.invoke(
            main,
            ["publish", "upload", "--input-dir", str(bundler_output), "--project-id", "project-1"],
        )

        assert result.exit_code == 1
        assert "exceeds" in _clean(result.output)
        assert uploader.uploaded == []
        remote.aclose.assert_awaited_once()

    def test_upload_attaches_app_config(self, runner, bundler_output: Path, temp_dir: Path, fake_clients):
        """Test --app-config is read before uploading."""
        app_config = temp_dir / "app.json"
        app_config.write_text(json.dumps({"slug": "hello", "name": "hello"}))

        result = runner.invoke(
            main,
            [
                "publish", "upload",
                "--input-dir", str(bundler_output),
                "--project-id", "project-1",
                "--app-config", str(app_config),
            ],
        )

        assert result.exit_code == 0, result.output


class TestLoadAppConfig:
    """Test _load_app_config helper."""

    def test_none(self):
        """Test no app config yields no extra metadata."""
        assert _load_app_config(None) == {}

    def test_wraps_config(self, temp_dir: Path):
        """Test the app config is attached under expoClient."""
        path = temp_dir / "app.json"
        path.write_text(json.dumps({"slug": "hello"}))

        assert _load_app_config(path) == {"expoClient": {"slug": "hello"}}
