"""Services"""

from devpool_sync.services.github_client import GitHubClient
from devpool_sync.services.reconciler import Reconciler, reconcile
from devpool_sync.services.sync_service import SyncService

__all__ = ["GitHubClient", "Reconciler", "SyncService", "reconcile"]
