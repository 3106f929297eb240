"""
Shared-file synchronization: retrying reads, atomic replaces, change
watching with self-write suppression, debouncing and thread marshaling.
"""

from sheetsync.sync.debounce import Debouncer
from sheetsync.sync.dispatch import Dispatcher, QueueDispatcher
from sheetsync.sync.retry import ConstantBackoff, RetryStrategy
from sheetsync.sync.synchronizer import FileSynchronizer, SuppressionToken
from sheetsync.sync.watcher import PollingFileWatcher, file_signature

__all__ = [
    "Debouncer",
    "Dispatcher",
    "ConstantBackoff",
    "RetryStrategy",
    "QueueDispatcher",
    "FileSynchronizer",
    "SuppressionToken",
    "PollingFileWatcher",
    "file_signature",
]
