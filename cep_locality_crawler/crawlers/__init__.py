"""
Browser-driven crawling of the Correios CEP range search.
"""

from .extractor import LocalityTableExtractor
from .pagination import PaginationController
from .session import RegionSession, SessionOutcome, SessionState
from .browser_pool import BrowserPool

__all__ = [
    'LocalityTableExtractor',
    'PaginationController',
    'RegionSession',
    'SessionOutcome',
    'SessionState',
    'BrowserPool'
]
