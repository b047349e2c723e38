"""Runtime backend selection with construct-once semantics."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from edge_kv.backends import Backend, BlobStoreBackend, CloudKVBackend, InMemoryAsyncBackend
from edge_kv.env import EnvironmentResolver, default_resolver
from edge_kv.errors import BackendInitError


logger = logging.getLogger(__name__)

CLOUD_KV_URL = "KV_REST_API_URL"
CLOUD_KV_TOKEN = "KV_REST_API_TOKEN"  # noqa: S105
BLOB_STORE_FLAG = "NETLIFY"
BLOB_STORE_URL = "NATS_URL"
BLOB_STORE_BUCKET = "EDGE_KV_BUCKET"


@dataclass(frozen=True)
class BackendProbe:
    """One candidate backend: when it applies and how to build it."""

    name: str
    is_available: Callable[[EnvironmentResolver], bool]
    build: Callable[[EnvironmentResolver], Awaitable[Backend]]


def _cloud_kv_available(env: EnvironmentResolver) -> bool:
    return bool(env.get_value(CLOUD_KV_URL) and env.get_value(CLOUD_KV_TOKEN))


async def _build_cloud_kv(env: EnvironmentResolver) -> Backend:
    return CloudKVBackend(env.get_value(CLOUD_KV_URL), env.get_value(CLOUD_KV_TOKEN))


def _blob_store_available(env: EnvironmentResolver) -> bool:
    return env.get_value(BLOB_STORE_FLAG) == "true"


async def _build_blob_store(env: EnvironmentResolver) -> Backend:
    backend = BlobStoreBackend(
        env.get_value(BLOB_STORE_URL, "nats://localhost:4222"),
        env.get_value(BLOB_STORE_BUCKET, "edge-kv-data"),
    )
    await backend.connect()
    return backend


async def _build_in_memory(_env: EnvironmentResolver) -> Backend:
    return InMemoryAsyncBackend()


CLOUD_KV_PROBE = BackendProbe("cloud-kv", _cloud_kv_available, _build_cloud_kv)
BLOB_STORE_PROBE = BackendProbe("blob-store", _blob_store_available, _build_blob_store)
IN_MEMORY_PROBE = BackendProbe("in-memory", lambda _env: True, _build_in_memory)

DEFAULT_PROBES: tuple[BackendProbe, ...] = (CLOUD_KV_PROBE, BLOB_STORE_PROBE)


class BackendSelector:
    """Choose and hold the single backend instance for a process.

    Probes are tried in order; the first one whose signals are present and
    whose construction succeeds wins. The in-memory backend is always the last
    candidate, so selection cannot fail. Once chosen the backend is never
    replaced, even when later operations against it fail.

    Parameters
    ----------
    env
        Resolver used to read selection signals.
    probes
        Candidates in priority order. The in-memory fallback is appended
        automatically.
    """

    def __init__(
        self,
        env: EnvironmentResolver | None = None,
        probes: tuple[BackendProbe, ...] | list[BackendProbe] = DEFAULT_PROBES,
    ) -> None:
        super().__init__()
        self._env = env if env is not None else default_resolver()
        self._probes = (*probes, IN_MEMORY_PROBE)
        self._backend: Backend | None = None
        self._backend_name: str | None = None
        self._pending: asyncio.Future[Backend] | None = None

    @property
    def backend_name(self) -> str | None:
        """Name of the selected probe, or None before selection."""
        return self._backend_name

    @property
    def is_resolved(self) -> bool:
        """True once a backend has been selected."""
        return self._backend is not None

    async def get_storage(self) -> Backend:
        """Return the backend, constructing it on first use.

        Callers arriving while construction is in flight await the same task.
        """
        if self._backend is not None:
            return self._backend
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._resolve())
        return await asyncio.shield(self._pending)

    async def _resolve(self) -> Backend:
        for probe in self._probes:
            if not probe.is_available(self._env):
                continue
            try:
                backend = await probe.build(self._env)
            except Exception as error:
                failure = BackendInitError(probe.name, str(error) or type(error).__name__)
                logger.warning("%s; trying next backend", failure, exc_info=error)
                continue
            self._backend = backend
            self._backend_name = probe.name
            logger.info("Using %s backend for storage", probe.name)
            return backend

        # Unreachable while the in-memory probe closes the list.
        msg = "no storage backend could be constructed"
        raise BackendInitError("any", msg)

    async def close(self) -> None:
        """Close the selected backend's resources, if one was selected."""
        if self._backend is not None:
            await self._backend.close()


_default_selector = BackendSelector()


def default_selector() -> BackendSelector:
    """Return the process-wide selector."""
    return _default_selector


async def get_storage() -> Backend:
    """Return the process-wide backend, selecting it on first call."""
    return await _default_selector.get_storage()
