"""Remote collaborators used while publishing.

The publishing core talks to two collaborators:

- PublishRemote: the publishing API (signed upload specifications, bulk
  asset existence, per-group asset ceiling)
- AssetUploader: the object store receiving raw file bytes

GraphQLPublishClient and PresignedUploader are thin httpx implementations.
Connection-level retries are delegated to the httpx transport.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Protocol

import httpx
import structlog

from assetpub.core.config import PublishConfig
from assetpub.core.errors import RemoteError
from assetpub.core.types import AssetMetadataResult

logger = structlog.get_logger()


class PublishRemote(Protocol):
    """Publishing API operations consumed by the upload orchestrator."""

    async def get_signed_upload_specifications(self, content_types: list[str]) -> list[str]:
        """Return one opaque upload specification per content type, in order."""
        ...

    async def get_asset_metadata(self, storage_keys: list[str]) -> list[AssetMetadataResult]:
        """Return the existence status of each storage key."""
        ...

    async def get_asset_limit_per_update_group(self, project_id: str) -> int:
        """Return the maximum unique assets allowed in one update group."""
        ...


class AssetUploader(Protocol):
    """Object-store upload of one file against an upload specification."""

    async def upload(self, path: Path, specification: str) -> None:
        ...


GET_SIGNED_UPLOAD_MUTATION = """
mutation GetSignedUploadMutation($contentTypes: [String!]!) {
  asset {
    getSignedAssetUploadSpecifications(assetContentTypes: $contentTypes) {
      specifications
    }
  }
}
"""

GET_ASSET_METADATA_QUERY = """
query GetAssetMetadataQuery($storageKeys: [String!]!) {
  asset {
    metadata(storageKeys: $storageKeys) {
      storageKey
      status
    }
  }
}
"""

GET_ASSET_LIMIT_QUERY = """
query GetAssetLimitPerUpdateGroupQuery($appId: String!) {
  app {
    byId(appId: $appId) {
      id
      assetLimitPerUpdateGroup
    }
  }
}
"""


class GraphQLPublishClient:
    """Publishing API client over GraphQL.

    Args:
        config: Publishing configuration
        access_token: Bearer token sent with every request
        client: Optional pre-built httpx client (used by tests)
    """

    def __init__(
        self,
        config: PublishConfig | None = None,
        access_token: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.config = config or PublishConfig()
        self.access_token = access_token
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            if self.access_token:
                headers["Authorization"] = f"Bearer {self.access_token}"
            self._client = httpx.AsyncClient(
                timeout=self.config.timeout,
                headers=headers,
                transport=httpx.AsyncHTTPTransport(
                    retries=self.config.max_retries,
                    verify=self.config.verify_ssl,
                ),
            )
        return self._client

    async def _execute(self, operation: str, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """Run a GraphQL document and return its data payload.

        Raises:
            httpx.HTTPStatusError: On a non-2xx response
            RemoteError: If the response carries GraphQL errors or no data
        """
        response = await self.client.post(
            self.config.api_url,
            json={"query": query, "variables": variables},
        )
        response.raise_for_status()
        payload = response.json()

        errors = payload.get("errors") or []
        if errors or payload.get("data") is None:
            messages = [str(error.get("message", error)) for error in errors]
            logger.error("graphql_error", operation=operation, errors=messages)
            raise RemoteError(operation, messages)

        logger.debug("graphql_success", operation=operation)
        return payload["data"]

    async def get_signed_upload_specifications(self, content_types: list[str]) -> list[str]:
        data = await self._execute(
            "GetSignedUploadMutation",
            GET_SIGNED_UPLOAD_MUTATION,
            {"contentTypes": content_types},
        )
        return list(data["asset"]["getSignedAssetUploadSpecifications"]["specifications"])

    async def get_asset_metadata(self, storage_keys: list[str]) -> list[AssetMetadataResult]:
        data = await self._execute(
            "GetAssetMetadataQuery",
            GET_ASSET_METADATA_QUERY,
            {"storageKeys": storage_keys},
        )
        return [AssetMetadataResult.model_validate(entry) for entry in data["asset"]["metadata"]]

    async def get_asset_limit_per_update_group(self, project_id: str) -> int:
        data = await self._execute(
            "GetAssetLimitPerUpdateGroupQuery",
            GET_ASSET_LIMIT_QUERY,
            {"appId": project_id},
        )
        return int(data["app"]["byId"]["assetLimitPerUpdateGroup"])

    async def aclose(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> GraphQLPublishClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()


class PresignedUploader:
    """Uploads files using signed upload specifications.

    A specification is a JSON object. With "fields" it describes a
    presigned POST (multipart form with the file last); otherwise it is a
    raw PUT to "url" with optional "headers".
    """

    def __init__(self, config: PublishConfig | None = None, client: httpx.AsyncClient | None = None):
        self.config = config or PublishConfig()
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.config.timeout,
                transport=httpx.AsyncHTTPTransport(
                    retries=self.config.max_retries,
                    verify=self.config.verify_ssl,
                ),
            )
        return self._client

    async def upload(self, path: Path, specification: str) -> None:
        """Upload a file.

        Args:
            path: File to upload
            specification: JSON upload specification from the publishing API

        Raises:
            ValueError: If the specification has no URL
            httpx.HTTPStatusError: If the object store rejects the upload
        """
        spec = json.loads(specification)
        url = spec.get("url")
        if not url:
            raise ValueError("Upload specification has no url")

        data = await asyncio.to_thread(path.read_bytes)
        if "fields" in spec:
            response = await self.client.post(
                url,
                data=spec["fields"],
                files={"file": (path.name, data)},
            )
        else:
            response = await self.client.put(url, content=data, headers=spec.get("headers") or {})
        response.raise_for_status()

        logger.debug("asset_uploaded", path=str(path), size=len(data))

    async def aclose(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
