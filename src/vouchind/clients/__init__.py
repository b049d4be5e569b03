from vouchind.clients.rpc import RPC
from vouchind.clients.vault import VouchieVaultReader

__all__ = [
    "RPC",
    "VouchieVaultReader",
]
