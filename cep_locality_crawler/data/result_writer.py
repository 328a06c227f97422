"""
JSON-lines sink for crawl batches.
"""

import json
from pathlib import Path
from typing import Union

from cep_locality_crawler.data.models import CrawlBatch
from cep_locality_crawler.utils.logging import get_business_logger


logger = get_business_logger('result_writer')

DEFAULT_RESULT_PATH = "result.jsonl"


class JsonlResultWriter:
    """Writes one JSON line per region that produced at least one locality."""

    def __init__(self, path: Union[str, Path] = DEFAULT_RESULT_PATH):
        self.path = Path(path)

    def write(self, batch: CrawlBatch) -> int:
        """
        Replace the output file with the given batch.

        Args:
            batch: Assembled, ordered crawl batch

        Returns:
            Number of lines written
        """
        if self.path.parent != Path('.'):
            self.path.parent.mkdir(parents=True, exist_ok=True)

        written = 0
        with open(self.path, 'w', encoding='utf-8') as f:
            for result in batch:
                if result.is_empty:
                    continue
                f.write(json.dumps(result.to_dict(), ensure_ascii=False))
                f.write("\n")
                written += 1

        logger.info(f"Wrote {written} of {len(batch)} region results to {self.path}")
        return written
