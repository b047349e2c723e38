"""Minimal example for Storage with no backend signals in the environment."""

import asyncio

from edge_kv import BackendSelector, EnvironmentResolver, Storage


async def main() -> None:
    """Run a set/exists/get/scan flow against the in-memory fallback."""
    storage = Storage(BackendSelector(EnvironmentResolver([dict])))
    try:
        await storage.set("a", bytes([1, 2, 3]))
        print("backend:", storage.selector.backend_name)
        print("exists:", await storage.exists("a"))
        print("get:", list(await storage.get("a") or b""))
        print("scan:", await storage.scan("0", match="a*", count=10))
    finally:
        await storage.close()


if __name__ == "__main__":
    asyncio.run(main())
