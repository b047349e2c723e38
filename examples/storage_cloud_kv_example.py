"""Minimal example for Storage against a Redis-compatible KV service."""

import asyncio

from edge_kv import BackendSelector, EnvironmentResolver, Storage


async def main() -> None:
    """Page through ``user:*`` keys on a local Redis/Dragonfly instance."""
    env = EnvironmentResolver(extra={"KV_REST_API_URL": "redis://redis:6379/0", "KV_REST_API_TOKEN": "local"})
    storage = Storage(BackendSelector(env))
    try:
        for index in range(25):
            await storage.set(f"user:{index}", f"payload-{index}".encode())

        cursor = "0"
        while True:
            cursor, keys = await storage.scan(cursor, match="user:*", count=10)
            print(f"{cursor=} {keys=}")
            if cursor == "0":
                break
    finally:
        await storage.close()


if __name__ == "__main__":
    asyncio.run(main())
