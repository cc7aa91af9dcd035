"""
Pairing Demo - Full pairing cycle against the in-memory transport.
"""

import asyncio
import tempfile

from pairlink import ConnectionConfig, SupervisorSettings, connect
from pairlink.adapters import MemoryTransport
from pairlink.domain.events import DisconnectReason, MessageEnvelope


async def main():
    transport = MemoryTransport()
    auth_dir = tempfile.mkdtemp(prefix="pairlink-demo-")

    config = ConnectionConfig(
        phone_number="+55 (21) 98997-4782",
        auth_directory=auth_dir,
        on_pairing_code=lambda code: print(f"\nPAIRING CODE: {code}"),
        on_connected=lambda session: print(f"Connected as {session.user_id}"),
        on_disconnected=lambda reason: print(f"Disconnected: {reason}"),
        on_message=lambda message: print(f"New message {message.id}: {message.payload}"),
    )

    # Short delays so the demo runs quickly
    settings = SupervisorSettings(pairing_wait_delay=0.5, reconnect_delay=1.0)

    connection = await connect(config, transport=transport, settings=settings)
    print(f"Normalized phone number: {config.phone_number}")
    print(f"Credentials stored in: {auth_dir}")

    # The service closes the socket while the user is still typing the code
    await connection.session.emit_close(DisconnectReason.LOGGED_OUT)
    session = await transport.wait_for_sessions(2, timeout=5)

    # User entered the code on the phone
    await session.complete_pairing(me="5521989974782:1@s.example")
    await session.emit_messages([MessageEnvelope(id="msg-1", payload={"text": "hello"})])

    # Network drop: reconnects without a new code
    await session.emit_close(DisconnectReason.CONNECTION_LOST)
    session = await transport.wait_for_sessions(3, timeout=5)
    await session.emit_open()

    # Device removed from the phone: terminal
    await session.emit_close(DisconnectReason.LOGGED_OUT)
    decision = await connection.wait_closed()

    print(f"\nFinal decision: {decision.kind.value} ({decision.reason})")
    print(f"Attempts made: {connection.attempt_id}")
    print(f"Pairing requests: {len(transport.pairing_requests)}")


if __name__ == "__main__":
    asyncio.run(main())
