"""
Closed set of Brazilian federative units (UFs) accepted as region codes.
"""

from typing import FrozenSet

from cep_locality_crawler.utils.errors import InvalidRegionError


VALID_REGIONS: FrozenSet[str] = frozenset({
    "AC", "AL", "AP", "AM", "BA", "CE", "DF", "ES", "GO",
    "MA", "MT", "MS", "MG", "PA", "PB", "PR", "PE", "PI",
    "RJ", "RN", "RS", "RO", "RR", "SC", "SP", "SE", "TO",
})


def normalize_region(code: str) -> str:
    """Strip surrounding whitespace from a raw region code."""
    return code.strip()


def is_valid_region(code: str) -> bool:
    """Exact, case-sensitive membership test against the UF set."""
    return code in VALID_REGIONS


def validate_region(code: str) -> str:
    """
    Normalize and validate a raw region code.

    Raises:
        InvalidRegionError: If the trimmed code is not a known UF
    """
    region = normalize_region(code)
    if not is_valid_region(region):
        raise InvalidRegionError(region, {"raw": code})
    return region
