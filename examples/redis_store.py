"""
Redis Store Example - Keep credentials in Redis instead of the filesystem.

Requires: pip install pairlink[redis] and Redis on localhost:6379
"""

import asyncio

from pairlink import PairingClient, ConnectionConfig
from pairlink.adapters import MemoryTransport, RedisCredentialStore


async def main():
    client = PairingClient(
        transport=MemoryTransport(),
        store_factory=lambda config: RedisCredentialStore(account_id=config.phone_number),
    )

    connection = await client.connect(ConnectionConfig(
        phone_number="5521989974782",
        on_pairing_code=lambda code: print(f"PAIRING CODE: {code}"),
    ))

    async with connection:
        store = RedisCredentialStore(account_id="5521989974782")
        stored = await store.load()
        print(f"Stored under {store.key}: pairing_code={stored.pairing_code}")

    print(f"Connection state: {connection.state.value}")


if __name__ == "__main__":
    asyncio.run(main())
