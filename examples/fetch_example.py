"""Minimal example for the fetch helpers."""

import asyncio

from edge_kv import body_bytes, fetch_url, headers, status, text


async def main() -> None:
    """Fetch a page and print what the helpers extract from it."""
    response = await fetch_url("https://example.com")
    print("status:", status(response))
    print("content-type:", headers(response).get("content-type"))
    print("bytes:", len(body_bytes(response)))
    print(text(response)[:80])


if __name__ == "__main__":
    asyncio.run(main())
