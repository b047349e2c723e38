"""Minimal example for emulated scan pagination on a NATS JetStream KV bucket."""

import asyncio

from edge_kv.backends import BlobStoreBackend


async def main() -> None:
    """Write a few keys and read them back one page at a time."""
    backend = BlobStoreBackend(url="nats://nats:4222", bucket="edge-kv-data")
    try:
        for name in ("foo1", "foo2", "bar1"):
            await backend.set(name, name.encode())

        cursor, keys = await backend.scan("0", match="foo*", count=1)
        print(f"{cursor=} {keys=}")
        while cursor != "0":
            cursor, keys = await backend.scan(cursor, match="foo*", count=1)
            print(f"{cursor=} {keys=}")
    finally:
        await backend.close()


if __name__ == "__main__":
    asyncio.run(main())
