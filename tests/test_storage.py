import asyncio
from typing import Any

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from edge_kv.backends import Backend, BlobStoreBackend, CloudKVBackend, InMemoryAsyncBackend
from edge_kv.env import EnvironmentResolver
from edge_kv.selector import BackendProbe, BackendSelector
from edge_kv.storage import Storage
from tests.fakes import FakeKVBucket, FakeNatsClient, FakeRedisClient


_KEYS = st.text(alphabet=st.characters(min_codepoint=33, max_codepoint=126), min_size=1, max_size=20)


def _storage_for(backend: Backend) -> Storage:
    async def build(_env: EnvironmentResolver) -> Backend:
        return backend

    probe = BackendProbe(backend.name, lambda _env: True, build)
    return Storage(BackendSelector(EnvironmentResolver([dict]), [probe]))


def _adapters() -> list[Backend]:
    return [
        InMemoryAsyncBackend(),
        CloudKVBackend(client=FakeRedisClient()),
        BlobStoreBackend(client=FakeNatsClient({"edge-kv-data": FakeKVBucket()})),
    ]


class _FailingBackend(InMemoryAsyncBackend):
    name = "failing"

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[str] = []

    def _fail(self, operation: str) -> Any:
        self.calls.append(operation)
        msg = f"{operation} exploded"
        raise ConnectionError(msg)

    async def get(self, key: str) -> bytes | None:
        return self._fail("get")

    async def set(self, key: str, value: Any) -> None:
        self._fail("set")

    async def exists(self, key: str) -> bool:
        return self._fail("exists")

    async def scan(self, cursor: str = "0", *, match: str = "*", count: int = 10) -> tuple[str, list[str]]:
        return self._fail("scan")

    async def list_keys(self, prefix: str) -> list[str]:
        return self._fail("list")

    async def delete(self, key: str) -> None:
        self._fail("del")


@pytest.mark.asyncio
async def test_example_scenario_with_no_environment_signals() -> None:
    storage = Storage(BackendSelector(EnvironmentResolver([dict])))

    assert isinstance(await storage.backend(), InMemoryAsyncBackend)
    await storage.set("a", [1, 2, 3])
    assert await storage.exists("a") is True
    assert await storage.get("a") == bytes([1, 2, 3])
    assert await storage.scan("0", match="a*", count=10) == ("0", ["a"])


@pytest.mark.asyncio
@pytest.mark.parametrize("index", [0, 1, 2], ids=["in-memory", "cloud-kv", "blob-store"])
async def test_every_adapter_honours_the_contract(index: int) -> None:
    storage = _storage_for(_adapters()[index])

    await storage.set("k", b"\x00\x01")
    assert await storage.get("k") == b"\x00\x01"
    await storage.set("k", b"\x02")
    assert await storage.get("k") == b"\x02"

    assert await storage.get("never") is None
    assert await storage.exists("never") is False

    await storage.delete("k")
    await storage.delete("k")
    assert await storage.exists("k") is False
    assert await storage.get("k") is None


@pytest.mark.asyncio
@pytest.mark.parametrize("index", [0, 1, 2], ids=["in-memory", "cloud-kv", "blob-store"])
async def test_every_adapter_filters_scan_by_pattern(index: int) -> None:
    storage = _storage_for(_adapters()[index])
    for key in ("foo1", "foo2", "bar1"):
        await storage.set(key, b"v")

    assert sorted(await storage.iter_keys("foo*", count=1)) == ["foo1", "foo2"]
    assert sorted(await storage.list_keys("foo")) == ["foo1", "foo2"]


@pytest.mark.asyncio
@pytest.mark.parametrize("index", [0, 1, 2], ids=["in-memory", "cloud-kv", "blob-store"])
@pytest.mark.parametrize(
    ("match", "expected"),
    [("a?c", ["a?c"]), ("a[b]c", ["a[b]c"]), ("a*c", ["a?c", "a[b]c", "a\\bc", "abc"]), ("a\\*", ["a\\bc"])],
)
async def test_every_adapter_treats_only_star_as_a_wildcard(index: int, match: str, expected: list[str]) -> None:
    storage = _storage_for(_adapters()[index])
    for key in ("a?c", "abc", "a[b]c", "a\\bc"):
        await storage.set(key, b"v")

    assert sorted(await storage.iter_keys(match, count=10)) == expected


@pytest.mark.asyncio
@pytest.mark.parametrize("index", [0, 1, 2], ids=["in-memory", "cloud-kv", "blob-store"])
async def test_every_adapter_enumerates_each_key_once(index: int) -> None:
    storage = _storage_for(_adapters()[index])
    expected = {f"key:{number}" for number in range(23)}
    for key in expected:
        await storage.set(key, b"v")

    cursor, visited = "0", []
    calls = 0
    while True:
        cursor, page = await storage.scan(cursor, match="key:*", count=5)
        visited.extend(page)
        calls += 1
        if cursor == "0":
            break

    assert len(visited) == len(expected)
    assert set(visited) == expected
    assert calls > 1


@pytest.mark.asyncio
async def test_operation_failures_degrade_to_safe_defaults(caplog: pytest.LogCaptureFixture) -> None:
    backend = _FailingBackend()
    storage = _storage_for(backend)

    assert await storage.get("k") is None
    await storage.set("k", b"v")
    assert await storage.exists("k") is False
    assert await storage.scan("0", match="*") == ("0", [])
    assert await storage.list_keys("p") == []
    await storage.delete("k")

    assert backend.calls == ["get", "set", "exists", "scan", "list", "del"]
    assert "KV get failed for 'k': get exploded (failing backend)" in caplog.text


@pytest.mark.asyncio
async def test_backend_is_kept_after_operation_failures() -> None:
    backend = _FailingBackend()
    storage = _storage_for(backend)

    assert await storage.get("k") is None
    assert await storage.backend() is backend


@pytest.mark.asyncio
async def test_invalid_scan_count_is_raised_to_caller() -> None:
    storage = Storage(BackendSelector(EnvironmentResolver([dict])))

    with pytest.raises(ValueError, match="positive integer"):
        _ = await storage.scan("0", count=0)


@settings(max_examples=50)
@given(pairs=st.dictionaries(_KEYS, st.binary(max_size=64), max_size=10))
def test_round_trip_for_arbitrary_binary_values(pairs: dict[str, bytes]) -> None:
    async def scenario() -> None:
        storage = Storage(BackendSelector(EnvironmentResolver([dict])))
        for key, value in pairs.items():
            await storage.set(key, value)
        for key, value in pairs.items():
            assert await storage.get(key) == value
        assert sorted(await storage.iter_keys()) == sorted(pairs)

    asyncio.run(scenario())
