from pairlink.sdk.client import PairingClient, Connection, connect

__all__ = ["PairingClient", "Connection", "connect"]
