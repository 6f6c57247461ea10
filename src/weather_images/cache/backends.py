"""Durable cache backends: local filesystem and Azure Blob Storage."""

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Optional, Protocol

from azure.core.exceptions import AzureError, ResourceExistsError
from azure.identity.aio import DefaultAzureCredential
from azure.storage.blob import ContentSettings
from azure.storage.blob.aio import BlobServiceClient

from weather_images.charts.raster import media_type_for
from weather_images.config import (
    AZURE_STORAGE_ACCOUNT_NAME, AZURE_STORAGE_CONNECTION_STRING,
    AZURE_STORAGE_CONTAINER, AZURE_STORAGE_USE_MANAGED_IDENTITY, CACHE_DIR
)
from weather_images.errors import CacheBackendConfigError, CacheError

logger = logging.getLogger(__name__)


def object_name(fingerprint: str, fmt: str) -> str:
    """Storage key of a cache entry: ``<fingerprint>.<ext>``."""
    ext = "svg" if fmt == "svg" else "png"
    return f"{fingerprint}.{ext}"


class CacheBackend(Protocol):
    """Durable store for encoded images."""

    name: str

    async def init(self) -> None:
        ...

    async def get(self, fingerprint: str, fmt: str) -> Optional[bytes]:
        ...

    async def set(self, fingerprint: str, fmt: str, data: bytes) -> None:
        ...

    async def close(self) -> None:
        ...


class FileSystemBackend:
    """One file per entry in a local directory."""

    name = "filesystem"

    def __init__(self, cache_dir: Path = CACHE_DIR):
        self.cache_dir = Path(cache_dir)

    def _path(self, fingerprint: str, fmt: str) -> Path:
        return self.cache_dir / object_name(fingerprint, fmt)

    async def init(self) -> None:
        try:
            await asyncio.to_thread(self.cache_dir.mkdir, parents=True, exist_ok=True)
            logger.info(f"Filesystem image cache at {self.cache_dir}")
        except OSError as e:
            # Writes will fail and be logged individually
            logger.error(f"Failed to create cache directory {self.cache_dir}: {e}")

    async def get(self, fingerprint: str, fmt: str) -> Optional[bytes]:
        path = self._path(fingerprint, fmt)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CacheError(f"Failed to read cache file {path.name}: {e}")

    async def set(self, fingerprint: str, fmt: str, data: bytes) -> None:
        path = self._path(fingerprint, fmt)
        # Unique per writer, so concurrent writes of one key never share a file
        tmp_path = path.with_name(f"{path.name}.{uuid.uuid4().hex}.tmp")
        try:
            await asyncio.to_thread(tmp_path.write_bytes, data)
            await asyncio.to_thread(tmp_path.replace, path)
        except OSError as e:
            await asyncio.to_thread(tmp_path.unlink, missing_ok=True)
            raise CacheError(f"Failed to write cache file {path.name}: {e}")

    async def close(self) -> None:
        return None


class AzureBlobBackend:
    """Blobs in an Azure Storage container.

    Authenticates with a connection string, or with DefaultAzureCredential
    (managed identity when deployed, then developer sign-ins such as the
    Azure CLI) when managed identity is enabled.
    """

    name = "azure-blob"

    def __init__(
        self,
        container_name: str = AZURE_STORAGE_CONTAINER,
        connection_string: Optional[str] = AZURE_STORAGE_CONNECTION_STRING,
        account_name: Optional[str] = AZURE_STORAGE_ACCOUNT_NAME,
        use_managed_identity: bool = AZURE_STORAGE_USE_MANAGED_IDENTITY,
    ):
        """Validate configuration.

        Raises:
            CacheBackendConfigError: If neither credential mode is configured
        """
        if not connection_string and not use_managed_identity:
            raise CacheBackendConfigError(
                "Either AZURE_STORAGE_CONNECTION_STRING or AZURE_STORAGE_USE_MANAGED_IDENTITY=true "
                "with AZURE_STORAGE_ACCOUNT_NAME is required"
            )
        if use_managed_identity and not account_name:
            raise CacheBackendConfigError("AZURE_STORAGE_ACCOUNT_NAME is required when using managed identity")

        self.container_name = container_name
        self.connection_string = connection_string
        self.account_name = account_name
        self.use_managed_identity = use_managed_identity
        self.credential: Optional[DefaultAzureCredential] = None
        self.service_client: Optional[BlobServiceClient] = None
        self.container_client = None

    async def init(self) -> None:
        """Create the clients and the container if it does not exist.

        Raises:
            CacheError: If the storage account cannot be reached
        """
        if self.use_managed_identity:
            self.credential = DefaultAzureCredential()
            account_url = f"https://{self.account_name}.blob.core.windows.net"
            self.service_client = BlobServiceClient(account_url, credential=self.credential)
        else:
            self.service_client = BlobServiceClient.from_connection_string(self.connection_string)

        self.container_client = self.service_client.get_container_client(self.container_name)

        try:
            await self.container_client.create_container()
            logger.info(f"Created Azure container '{self.container_name}'")
        except ResourceExistsError:
            logger.debug(f"Azure container '{self.container_name}' already exists")
        except AzureError as e:
            await self.close()
            raise CacheError(f"Failed to initialize Azure container '{self.container_name}': {e}")

    async def get(self, fingerprint: str, fmt: str) -> Optional[bytes]:
        blob_client = self.container_client.get_blob_client(object_name(fingerprint, fmt))
        try:
            if not await blob_client.exists():
                return None
            downloader = await blob_client.download_blob()
            return await downloader.readall()
        except AzureError as e:
            raise CacheError(f"Azure Blob get error: {e}")

    async def set(self, fingerprint: str, fmt: str, data: bytes) -> None:
        blob_client = self.container_client.get_blob_client(object_name(fingerprint, fmt))
        try:
            await blob_client.upload_blob(
                data,
                overwrite=True,
                content_settings=ContentSettings(content_type=media_type_for(fmt)),
            )
        except AzureError as e:
            raise CacheError(f"Azure Blob set error: {e}")

    async def close(self) -> None:
        if self.service_client is not None:
            await self.service_client.close()
        if self.credential is not None:
            await self.credential.close()
