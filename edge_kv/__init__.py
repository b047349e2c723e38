"""edge-kv - one async key/value and fetch API across deployment runtimes"""

from ._version import version as __version__
from .backends import Backend, BlobStoreBackend, CloudKVBackend, InMemoryAsyncBackend, PaginationEmulator
from .env import EnvironmentResolver, getenv
from .errors import BackendInitError, EdgeKVError, InvalidInputError, NoFetchAvailableError, OperationError
from .fetch import FetchResponse, body_bytes, fetch_url, headers, status, text
from .selector import BackendProbe, BackendSelector, get_storage
from .storage import Storage


__all__ = [
    "Backend",
    "BackendInitError",
    "BackendProbe",
    "BackendSelector",
    "BlobStoreBackend",
    "CloudKVBackend",
    "EdgeKVError",
    "EnvironmentResolver",
    "FetchResponse",
    "InMemoryAsyncBackend",
    "InvalidInputError",
    "NoFetchAvailableError",
    "OperationError",
    "PaginationEmulator",
    "Storage",
    "__version__",
    "body_bytes",
    "fetch_url",
    "get_storage",
    "getenv",
    "headers",
    "status",
    "text",
]
