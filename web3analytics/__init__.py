"""Web3 analytics instrumentation client."""

from web3analytics.application.services import Web3Analytics
from web3analytics.config import Settings, get_settings

__all__ = ["Web3Analytics", "Settings", "get_settings"]
