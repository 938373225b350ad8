"""Remote client - API access and caller-side sync policies"""
from .api_client import MarketplaceClient
from .sync_policy import OptimisticSync, PessimisticSync, QueueView, retry_transition

__all__ = [
    "MarketplaceClient",
    "QueueView",
    "PessimisticSync",
    "OptimisticSync",
    "retry_transition",
]
