"""
Concurrent batch crawling.

Main Components:
- CrawlOrchestrator (``concurrent.orchestrator``): runs one region session
  per UF and assembles the batch
- CancellationToken: shared deadline and cancel switch for a batch
- ThreadSafeCounter / ThreadSafeGauge: browser usage tracking
"""

from .cancellation import CancellationToken
from .thread_safe import ThreadSafeCounter, ThreadSafeGauge

__all__ = [
    'CancellationToken',
    'ThreadSafeCounter',
    'ThreadSafeGauge'
]
