"""Backend contracts and implementations."""

from .blob_store import BlobStoreBackend
from .cloud_kv import CloudKVBackend
from .in_memory import InMemoryAsyncBackend
from .pagination import PaginationEmulator
from .protocol import TERMINAL_CURSOR, Backend


__all__ = [
    "TERMINAL_CURSOR",
    "Backend",
    "BlobStoreBackend",
    "CloudKVBackend",
    "InMemoryAsyncBackend",
    "PaginationEmulator",
]
