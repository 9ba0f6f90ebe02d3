from .client import ClientError, RemoteException, RpcClient
from .dispatch import VOID, Dispatcher, ServiceDescription, ServiceRegistry, remote

__all__ = [
    "ClientError",
    "RemoteException",
    "RpcClient",
    "VOID",
    "Dispatcher",
    "ServiceDescription",
    "ServiceRegistry",
    "remote",
]
