"""
Pairlink - Command line entry point

Pairs an account by phone number and keeps the connection alive.
"""

import argparse
import asyncio
import importlib
import logging
import os
import sys
from typing import List, Optional

from pairlink.domain.config import ConnectionConfig, SupervisorSettings, DEFAULT_AUTH_DIRECTORY
from pairlink.domain.decision import DecisionKind
from pairlink.domain.errors import PairlinkError
from pairlink.ports.transport_port import TransportPort
from pairlink.sdk.client import connect

logger = logging.getLogger(__name__)

DEFAULT_TRANSPORT = "pairlink.adapters.memory_transport:MemoryTransport"

PAIRING_STEPS = """
Steps:
1. Open the messaging app on your phone
2. Go to Settings > Linked Devices
3. Tap "Link a Device"
4. Choose "Link with phone number instead"
5. Enter the pairing code above

Waiting for connection...
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pairlink",
        description="Link a device to a messaging account with a pairing code",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Pair using the phone number (country code first, digits only)
  pairlink 5521989974782

  # Keep credentials somewhere else
  pairlink 5521989974782 --auth-dir ~/.pairlink/work

  # Use a real transport
  pairlink 5521989974782 --transport mypackage.transport:Transport
""",
    )

    parser.add_argument(
        "phone_number",
        help="Phone number to pair, e.g. 5521989974782",
    )

    parser.add_argument(
        "--auth-dir",
        default=os.environ.get("PAIRLINK_AUTH_DIR", DEFAULT_AUTH_DIRECTORY),
        help=f"Credentials directory (default: {DEFAULT_AUTH_DIRECTORY})",
    )

    parser.add_argument(
        "--transport",
        default=os.environ.get("PAIRLINK_TRANSPORT", DEFAULT_TRANSPORT),
        help="Transport factory as module:attribute (default: in-memory demo transport)",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    return parser


def load_transport(path: str) -> TransportPort:
    """Import ``module:attribute`` and call it to build a transport."""
    module_name, _, attribute = path.partition(":")
    if not module_name or not attribute:
        raise ValueError(f"Transport must look like module:attribute, got {path!r}")
    factory = getattr(importlib.import_module(module_name), attribute)
    return factory()


def _print_pairing_code(code: str) -> None:
    print(f"\nPAIRING CODE: {code}")
    print(PAIRING_STEPS)


def _print_connected(session) -> None:
    print("Successfully connected!")
    print(f"Auth state: registered={session.credentials.registered} me={session.user_id}")


def _print_disconnected(reason: str) -> None:
    print(f"Disconnected: {reason}")


async def run_pairing(phone_number: str, auth_dir: str, transport: TransportPort) -> int:
    print(f"Testing pairing code authentication for {phone_number}")

    config = ConnectionConfig(
        phone_number=phone_number,
        auth_directory=auth_dir,
        on_pairing_code=_print_pairing_code,
        on_connected=_print_connected,
        on_disconnected=_print_disconnected,
        on_message=lambda message: print(f"New message: {message.id}"),
    )

    connection = await connect(config, transport=transport, settings=SupervisorSettings.from_env())
    try:
        decision = await connection.wait_closed()
    finally:
        await connection.cancel()

    if decision is not None and decision.kind == DecisionKind.TERMINAL_LOGGED_OUT:
        print("Logged out, exiting")
        return 0
    return 1 if decision is not None else 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        transport = load_transport(args.transport)
    except (ImportError, AttributeError, ValueError) as e:
        parser.error(f"cannot load transport: {e}")

    if args.transport == DEFAULT_TRANSPORT:
        logger.warning("Using the in-memory demo transport; no real connection is made")

    try:
        return asyncio.run(run_pairing(args.phone_number, args.auth_dir, transport))
    except PairlinkError as e:
        logger.error("Pairing failed: %s", e)
        return 1
    except KeyboardInterrupt:
        return 130


def run():
    """Entry point for console script"""
    sys.exit(main())


if __name__ == "__main__":
    run()
