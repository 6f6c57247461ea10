"""
Tests for cache/backends.py
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from azure.core.exceptions import ResourceExistsError, ServiceRequestError

from weather_images.cache.backends import AzureBlobBackend, FileSystemBackend, object_name
from weather_images.errors import CacheBackendConfigError, CacheError


@pytest.mark.unit
def test_object_name():
    assert object_name("abc", "png") == "abc.png"
    assert object_name("abc", "svg") == "abc.svg"


class TestFileSystemBackend:

    @pytest.mark.integration
    async def test_round_trip(self, tmp_path):
        backend = FileSystemBackend(tmp_path / "images")
        await backend.init()

        assert await backend.get("fp", "png") is None
        await backend.set("fp", "png", b"\x89PNG")

        assert await backend.get("fp", "png") == b"\x89PNG"
        assert (tmp_path / "images" / "fp.png").exists()
        assert not list((tmp_path / "images").glob("*.tmp"))

    @pytest.mark.integration
    async def test_formats_stored_separately(self, tmp_path):
        backend = FileSystemBackend(tmp_path)
        await backend.init()
        await backend.set("fp", "png", b"png")
        await backend.set("fp", "svg", b"svg")
        assert await backend.get("fp", "png") == b"png"
        assert await backend.get("fp", "svg") == b"svg"

    @pytest.mark.integration
    async def test_concurrent_writes_of_one_key(self, tmp_path):
        backend = FileSystemBackend(tmp_path)
        await backend.init()
        payloads = [bytes([i]) * (256 * 1024) for i in range(8)]

        await asyncio.gather(*(backend.set("fp", "png", data) for data in payloads))

        assert await backend.get("fp", "png") in payloads
        assert [p.name for p in tmp_path.iterdir()] == ["fp.png"]

    @pytest.mark.integration
    async def test_write_into_missing_directory_raises(self, tmp_path):
        backend = FileSystemBackend(tmp_path / "missing")
        with pytest.raises(CacheError):
            await backend.set("fp", "png", b"data")


class TestAzureBlobBackendConfig:

    @pytest.mark.unit
    def test_requires_credentials(self):
        with pytest.raises(CacheBackendConfigError):
            AzureBlobBackend(connection_string=None, use_managed_identity=False)

    @pytest.mark.unit
    def test_managed_identity_requires_account(self):
        with pytest.raises(CacheBackendConfigError):
            AzureBlobBackend(connection_string=None, account_name=None, use_managed_identity=True)


@pytest.fixture
def blob_clients():
    """Patched BlobServiceClient with a container and a single blob client."""
    blob_client = MagicMock()
    blob_client.exists = AsyncMock(return_value=True)
    downloader = MagicMock()
    downloader.readall = AsyncMock(return_value=b"blob-bytes")
    blob_client.download_blob = AsyncMock(return_value=downloader)
    blob_client.upload_blob = AsyncMock()

    container = MagicMock()
    container.create_container = AsyncMock()
    container.get_blob_client.return_value = blob_client

    service = MagicMock()
    service.get_container_client.return_value = container
    service.close = AsyncMock()

    with patch("weather_images.cache.backends.BlobServiceClient") as client_cls:
        client_cls.from_connection_string.return_value = service
        yield client_cls, service, container, blob_client


class TestAzureBlobBackend:

    @pytest.mark.unit
    async def test_init_creates_container(self, blob_clients):
        client_cls, _, container, _ = blob_clients
        backend = AzureBlobBackend(container_name="images", connection_string="UseDevelopmentStorage=true")
        await backend.init()

        client_cls.from_connection_string.assert_called_once_with("UseDevelopmentStorage=true")
        container.create_container.assert_awaited_once()

    @pytest.mark.unit
    async def test_existing_container_is_fine(self, blob_clients):
        _, _, container, _ = blob_clients
        container.create_container.side_effect = ResourceExistsError("exists")
        backend = AzureBlobBackend(connection_string="UseDevelopmentStorage=true")
        await backend.init()

    @pytest.mark.unit
    async def test_unreachable_account_raises_cache_error(self, blob_clients):
        _, service, container, _ = blob_clients
        container.create_container.side_effect = ServiceRequestError("connection refused")
        backend = AzureBlobBackend(connection_string="UseDevelopmentStorage=true")

        with pytest.raises(CacheError):
            await backend.init()
        service.close.assert_awaited_once()

    @pytest.mark.unit
    async def test_get_and_set(self, blob_clients):
        _, _, container, blob_client = blob_clients
        backend = AzureBlobBackend(connection_string="UseDevelopmentStorage=true")
        await backend.init()

        assert await backend.get("fp", "png") == b"blob-bytes"
        container.get_blob_client.assert_called_with("fp.png")

        await backend.set("fp", "svg", b"<svg/>")
        container.get_blob_client.assert_called_with("fp.svg")
        _, kwargs = blob_client.upload_blob.call_args
        assert kwargs["overwrite"] is True
        assert kwargs["content_settings"].content_type == "image/svg+xml"

    @pytest.mark.unit
    async def test_missing_blob(self, blob_clients):
        _, _, _, blob_client = blob_clients
        blob_client.exists.return_value = False
        backend = AzureBlobBackend(connection_string="UseDevelopmentStorage=true")
        await backend.init()

        assert await backend.get("fp", "png") is None
        blob_client.download_blob.assert_not_awaited()
