"""
Command line entry point: run the HTTP service or crawl a batch once.
"""

import sys
import json
import argparse
from typing import Optional, List

from cep_locality_crawler.config import ConfigManager, SystemConfig
from cep_locality_crawler.concurrent.orchestrator import CrawlOrchestrator
from cep_locality_crawler.crawlers.browser_pool import BrowserPool
from cep_locality_crawler.data.result_writer import JsonlResultWriter
from cep_locality_crawler.services.api import create_app, status_for_error
from cep_locality_crawler.utils.errors import LocalityCrawlerError, ValidationError
from cep_locality_crawler.utils.logging import setup_logging, get_logger, log_business_operation


logger = get_logger(__name__)


class LocalityCrawlerApp:
    """Wires configuration, browser pool, orchestrator and sink together."""

    def __init__(self, config: SystemConfig):
        self.config = config
        self.browser_pool = BrowserPool(
            config=config.browser,
            pool_size=config.crawler.pool_size,
            poll_interval=config.crawler.poll_interval_seconds
        )
        self.orchestrator = CrawlOrchestrator(
            self.browser_pool,
            config=config.crawler,
            browser_config=config.browser
        )
        self.writer = JsonlResultWriter(config.output.result_path)

    @log_business_operation('system', 'crawl_batch')
    def crawl(self, codes: List[str]) -> dict:
        batch = self.orchestrator.crawl(codes)
        written = self.writer.write(batch)
        return {
            'regions': [{'uf': r.uf, 'localities': len(r.localities)} for r in batch],
            'lines_written': written,
            'output': str(self.writer.path)
        }

    def serve(self) -> None:
        app = create_app(self.orchestrator, self.writer)
        logger.info(f"Serving on {self.config.server.host}:{self.config.server.port}")
        app.run(host=self.config.server.host, port=self.config.server.port, threaded=True)


def create_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='cep-locality-crawler',
        description='Crawl localities and CEP ranges for Brazilian UFs'
    )
    parser.add_argument('--config', default='config.json', help='Path to JSON configuration file')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='Override configured log level')

    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('serve', help='Run the HTTP service')

    crawl_parser = subparsers.add_parser('crawl', help='Crawl a batch of UFs once')
    crawl_parser.add_argument('ufs', help='Comma-separated UFs, e.g. "PB,CE,AL"')
    crawl_parser.add_argument('--output', help='Override result file path')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point with command-line interface."""
    args = create_cli_parser().parse_args(argv)

    try:
        config = ConfigManager(args.config).load_config()
    except LocalityCrawlerError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(args.log_level or config.log_level, config.log_file)

    if getattr(args, 'output', None):
        config.output.result_path = args.output

    app = LocalityCrawlerApp(config)

    if args.command == 'serve':
        try:
            app.serve()
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        return 0

    try:
        summary = app.crawl(args.ufs.split(','))
    except LocalityCrawlerError as e:
        logger.error(f"Crawl failed: {e}")
        print(json.dumps({
            'error': type(e).__name__,
            'message': e.message,
            'status': status_for_error(e)
        }, ensure_ascii=False))
        return 2 if isinstance(e, ValidationError) else 1

    print(json.dumps(summary, ensure_ascii=False, indent=2))
    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
