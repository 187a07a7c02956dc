"""
                        Services Module

Contains the store client services with the hybrid architecture pattern.
The API client has Mock (development) and HTTP (production) implementations.

Services:
    - api: typed store API clients and error taxonomy
    - sync: menu/order state holder driven by UI intents
"""

from pos_client.services.sync import StoreSyncService, SyncState

__all__ = ["StoreSyncService", "SyncState"]
