"""
Infrastructure package for Farm Connect.

Centralizes record store connectivity (sync/async pools) and the gateway that
turns ledger tables into domain records. Keep this layer focused on I/O and
resource management, decoupled from filtering, exports and documents.
"""

from farm_connect.infrastructure.db_factory import (
    PoolManager,
    create_async_pool,
    get_sync_connection,
    get_sync_pool,
)
from farm_connect.infrastructure.gateway import AsyncRecordStoreGateway, RecordStoreGateway

__all__ = [
    "AsyncRecordStoreGateway",
    "PoolManager",
    "RecordStoreGateway",
    "create_async_pool",
    "get_sync_connection",
    "get_sync_pool",
]
