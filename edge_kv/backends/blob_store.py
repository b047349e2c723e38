"""Blob store backend on top of a NATS JetStream KV bucket."""

from __future__ import annotations

import logging
from typing import Any, override


try:
    import nats as nats_module
except ImportError:  # pragma: no cover - exercised when dependency is absent
    nats_module = None

from edge_kv.glob import MATCH_ALL

from .pagination import PaginationEmulator
from .protocol import DEFAULT_SCAN_COUNT, TERMINAL_CURSOR, Backend, Value, to_bytes


logger = logging.getLogger(__name__)

_NOT_FOUND_ERROR_NAMES = {"BucketNotFoundError", "KeyNotFoundError", "KeyDeletedError", "NoKeysError"}


def _is_not_found_error(error: Exception) -> bool:
    return any(cls.__name__ in _NOT_FOUND_ERROR_NAMES for cls in type(error).__mro__)


class BlobStoreBackend(Backend):
    """Blob store backend over a NATS JetStream KV bucket.

    The store signals missing keys by raising rather than returning an empty
    result; those errors are normalized to ``None`` here and never leave the
    adapter. The bucket has no cursor primitive, so ``scan`` is served by a
    :class:`PaginationEmulator` over :meth:`list_keys`.
    """

    name = "blob-store"

    def __init__(
        self,
        url: str = "nats://localhost:4222",
        bucket: str = "edge-kv-data",
        *,
        client: Any | None = None,
        create_bucket: bool = True,
    ) -> None:
        """Create a backend using a NATS URL or injected client.

        Parameters
        ----------
        url
            NATS server URL used when ``client`` is not provided.
        bucket
            JetStream KV bucket name.
        client
            Optional injected connected NATS client with ``jetstream`` API.
        create_bucket
            When True, creates bucket if missing. Defaults to True.
        """
        super().__init__()
        self._url = url
        self._bucket_name = bucket
        self._client = client
        self._create_bucket = create_bucket
        self._kv: Any | None = None
        self._pager = PaginationEmulator(self.list_keys)

    @property
    def pager(self) -> PaginationEmulator:
        """Scan session cache backing :meth:`scan`."""
        return self._pager

    async def connect(self) -> None:
        """Open the client connection and bucket handle."""
        _ = await self._ensure_kv()

    async def _ensure_kv(self) -> Any:
        if self._kv is not None:
            return self._kv

        if self._client is None:
            if nats_module is None:
                msg = "nats-py dependency is required for BlobStoreBackend; install with `pip install nats-py`"
                raise RuntimeError(msg)
            self._client = await nats_module.connect(servers=[self._url])

        jetstream = self._client.jetstream()

        try:
            self._kv = await jetstream.key_value(self._bucket_name)
        except Exception as error:
            if _is_not_found_error(error) and self._create_bucket:
                logger.info("Creating JetStream KV bucket %r", self._bucket_name)
                self._kv = await jetstream.create_key_value(bucket=self._bucket_name)
            else:
                msg = (
                    f"jetstream KV bucket '{self._bucket_name}' is not available; "
                    "create it first or initialize with create_bucket=True"
                )
                raise RuntimeError(msg) from error

        return self._kv

    @override
    async def get(self, key: str) -> bytes | None:
        """Return raw value for key, or None when key does not exist."""
        kv = await self._ensure_kv()
        try:
            entry = await kv.get(key)
        except Exception as error:
            if _is_not_found_error(error):
                return None
            raise

        if entry.value is None:
            return None
        return to_bytes(entry.value)

    @override
    async def set(self, key: str, value: Value) -> None:
        """Store raw value for key."""
        kv = await self._ensure_kv()
        await kv.put(key, to_bytes(value))

    @override
    async def exists(self, key: str) -> bool:
        """Return True when key is present.

        JetStream KV offers no metadata-only lookup, so this reads the entry
        and discards its value.
        """
        kv = await self._ensure_kv()
        try:
            entry = await kv.get(key)
        except Exception as error:
            if _is_not_found_error(error):
                return False
            raise
        return entry is not None

    @override
    async def scan(
        self,
        cursor: str = TERMINAL_CURSOR,
        *,
        match: str = MATCH_ALL,
        count: int = DEFAULT_SCAN_COUNT,
    ) -> tuple[str, list[str]]:
        """Return the next session cursor and one page of matching keys."""
        return await self._pager.scan(cursor, match=match, count=count)

    @override
    async def list_keys(self, prefix: str) -> list[str]:
        """List all keys beginning with prefix in sorted order."""
        kv = await self._ensure_kv()
        try:
            keys = await kv.keys()
        except Exception as error:
            if _is_not_found_error(error):
                return []
            raise

        if not keys:
            return []
        return sorted(key for key in keys if key.startswith(prefix))

    @override
    async def delete(self, key: str) -> None:
        """Delete key if present."""
        kv = await self._ensure_kv()
        try:
            _ = await kv.delete(key)
        except Exception as error:
            if not _is_not_found_error(error):
                raise

    @override
    async def close(self) -> None:
        """Close NATS client resources."""
        if self._client is None:
            return
        await self._client.close()
