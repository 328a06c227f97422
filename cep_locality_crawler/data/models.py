"""
Data models for crawled localities and per-region results.
"""

import uuid
from dataclasses import dataclass, field
from typing import Dict, Any, List, Iterator

from cep_locality_crawler.utils.errors import ValidationError


@dataclass
class Locality:
    """A named place and the postal-code range the search page lists for it."""
    name: str                # Locality display name, as rendered
    cep_range: str           # Postal-code range text, as rendered (may be empty)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        """Validate data after initialization."""
        self.validate()

    def validate(self) -> None:
        """
        Validate locality data.

        Raises:
            ValidationError: If the name is empty
        """
        if not self.name:
            raise ValidationError("Locality name is required", {"id": self.id})

    def same_content(self, other: "Locality") -> bool:
        """Compare everything except the generated identifier."""
        return self.name == other.name and self.cep_range == other.cep_range

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "localidade": self.name,
            "faixa de cep": self.cep_range,
        }


@dataclass
class RegionResult:
    """All localities found for one region, in table row then page order."""
    uf: str
    localities: List[Locality] = field(default_factory=list)

    def extend(self, localities: List[Locality]) -> None:
        self.localities.extend(localities)

    @property
    def is_empty(self) -> bool:
        return not self.localities

    def to_dict(self) -> Dict[str, Any]:
        return {
            "uf": self.uf,
            "localidades": [locality.to_dict() for locality in self.localities],
        }


@dataclass
class CrawlBatch:
    """Ordered region results for one orchestrator invocation."""
    results: List[RegionResult] = field(default_factory=list)

    def __iter__(self) -> Iterator[RegionResult]:
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

    @property
    def regions(self) -> List[str]:
        return [result.uf for result in self.results]

    @property
    def total_localities(self) -> int:
        return sum(len(result.localities) for result in self.results)

    def to_dict(self) -> Dict[str, Any]:
        return {"results": [result.to_dict() for result in self.results]}
