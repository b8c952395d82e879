from .json_rpc_ledger_reader import JsonRpcClient, JsonRpcLedgerReader

__all__ = ["JsonRpcClient", "JsonRpcLedgerReader"]
