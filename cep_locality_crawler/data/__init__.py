"""
Data models, region validation and the result sink.
"""

from .models import Locality, RegionResult, CrawlBatch
from .regions import VALID_REGIONS, is_valid_region, normalize_region, validate_region
from .result_writer import JsonlResultWriter, DEFAULT_RESULT_PATH

__all__ = [
    'Locality',
    'RegionResult',
    'CrawlBatch',
    'VALID_REGIONS',
    'is_valid_region',
    'normalize_region',
    'validate_region',
    'JsonlResultWriter',
    'DEFAULT_RESULT_PATH'
]
