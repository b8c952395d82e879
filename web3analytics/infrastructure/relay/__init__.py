from .gas_relay_client import GasRelayClient

__all__ = ["GasRelayClient"]
