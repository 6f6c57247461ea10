"""Two-tier image cache: in-process memory tier in front of a durable backend."""

import asyncio
import enum
import logging
from typing import Callable, Dict, Optional, Set

from weather_images.cache.backends import AzureBlobBackend, CacheBackend, FileSystemBackend
from weather_images.cache.memory import MemoryTier
from weather_images.config import STORAGE_TYPE
from weather_images.errors import CacheError

logger = logging.getLogger(__name__)

BackendFactory = Callable[[], CacheBackend]

DEFAULT_BACKEND_FACTORIES: Dict[str, BackendFactory] = {
    "filesystem": FileSystemBackend,
    "azure-blob": AzureBlobBackend,
}


class CacheState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


class CacheManager:
    """Looks up and stores encoded images across the memory tier and a durable backend.

    The backend is chosen on first access and kept for the life of the
    process. If the configured backend cannot be initialized the manager falls
    back to the filesystem. Backend failures never reach callers: reads turn
    into misses and writes are logged and dropped.
    """

    def __init__(
        self,
        storage_type: str = STORAGE_TYPE,
        memory: Optional[MemoryTier] = None,
        backend_factories: Optional[Dict[str, BackendFactory]] = None,
    ):
        """Initialize the cache manager.

        Args:
            storage_type: Backend to use ("filesystem" or "azure-blob")
            memory: Memory tier (creates default if None)
            backend_factories: Backend constructors by storage type
        """
        self.storage_type = storage_type
        self.memory = memory or MemoryTier()
        self.backend_factories = backend_factories or DEFAULT_BACKEND_FACTORIES
        self._backend: Optional[CacheBackend] = None
        self._init_task: Optional[asyncio.Task] = None
        self._pending_writes: Set[asyncio.Task] = set()

    @property
    def state(self) -> CacheState:
        if self._backend is not None:
            return CacheState.READY
        if self._init_task is not None:
            return CacheState.INITIALIZING
        return CacheState.UNINITIALIZED

    @property
    def backend_name(self) -> Optional[str]:
        return self._backend.name if self._backend is not None else None

    async def _create_backend(self, storage_type: str) -> CacheBackend:
        factory = self.backend_factories.get(storage_type)
        if factory is None:
            raise CacheError(f"Unknown cache storage type '{storage_type}'")
        backend = factory()
        await backend.init()
        return backend

    async def _initialize(self) -> CacheBackend:
        if self.storage_type != "filesystem":
            try:
                return await self._create_backend(self.storage_type)
            except Exception as e:
                logger.warning(f"{self.storage_type} cache not available, falling back to filesystem: {e}")
        return await self._create_backend("filesystem")

    async def backend(self) -> CacheBackend:
        """Return the durable backend, initializing it on first use.

        Concurrent callers during initialization await the same task.
        """
        if self._backend is not None:
            return self._backend

        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._initialize())
        task = self._init_task

        try:
            backend = await asyncio.shield(task)
        except Exception:
            # Let the next caller retry, unless one already has
            if self._init_task is task:
                self._init_task = None
            raise

        if self._backend is None:
            self._backend = backend
            logger.info(f"Image cache ready with {backend.name} backend")
        if self._init_task is task:
            self._init_task = None
        return self._backend

    async def get(self, fingerprint: str, fmt: str) -> Optional[bytes]:
        """Return cached bytes, or None on a miss.

        Memory hits return immediately. Backend hits are copied into the
        memory tier. Backend errors count as misses.
        """
        data = self.memory.get(fingerprint, fmt)
        if data is not None:
            logger.info(f"[CACHE HIT] Memory cache for {fingerprint[:16]}...:{fmt}")
            return data
        logger.info(f"[CACHE MISS] Memory cache for {fingerprint[:16]}...:{fmt}, checking durable storage")

        try:
            backend = await self.backend()
            data = await backend.get(fingerprint, fmt)
        except Exception as e:
            logger.error(f"Durable cache read failed for {fingerprint[:16]}...:{fmt}: {e}")
            return None

        if data is None:
            return None

        self.memory.put(fingerprint, fmt, data)
        logger.info(f"[CACHE HIT] Durable cache for {fingerprint[:16]}...:{fmt}")
        return data

    async def set(self, fingerprint: str, fmt: str, data: bytes) -> Optional[asyncio.Task]:
        """Store bytes in memory now and in the durable backend in the background.

        Returns:
            The background write task, or None if no backend is available.
            Callers are not expected to await it.
        """
        self.memory.put(fingerprint, fmt, data)

        try:
            backend = await self.backend()
        except Exception as e:
            logger.error(f"Durable cache unavailable, keeping {fingerprint[:16]}...:{fmt} in memory only: {e}")
            return None

        task = asyncio.create_task(self._write(backend, fingerprint, fmt, bytes(data)))
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)
        return task

    async def _write(self, backend: CacheBackend, fingerprint: str, fmt: str, data: bytes) -> None:
        try:
            await backend.set(fingerprint, fmt, data)
            logger.info(f"[CACHE SET] {backend.name} for {fingerprint[:16]}...:{fmt} ({len(data)} bytes)")
        except Exception as e:
            logger.error(f"Failed to write {fingerprint[:16]}...:{fmt} to {backend.name}: {e}")

    async def drain(self) -> None:
        """Wait for pending background writes."""
        if self._pending_writes:
            await asyncio.gather(*list(self._pending_writes), return_exceptions=True)

    async def close(self) -> None:
        """Flush pending writes and release backend clients."""
        await self.drain()
        if self._backend is not None:
            try:
                await self._backend.close()
            except Exception as e:
                logger.error(f"Error closing {self._backend.name} cache backend: {e}")
