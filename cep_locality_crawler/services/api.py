"""
HTTP endpoints for locality crawling.

    GET /v1/localidades/<ufs>   comma-separated UFs, e.g. /v1/localidades/PB,CE
    GET /health                 liveness check
"""

from datetime import datetime
from typing import Optional

from flask import Flask, jsonify

from cep_locality_crawler.concurrent.orchestrator import CrawlOrchestrator
from cep_locality_crawler.data.result_writer import JsonlResultWriter
from cep_locality_crawler.utils.errors import (
    LocalityCrawlerError,
    InvalidRegionError,
    TooManyTargetsError,
    handle_error
)
from cep_locality_crawler.utils.logging import get_business_logger


logger = get_business_logger('api')


def status_for_error(error: BaseException) -> int:
    """Map a batch failure to the HTTP status returned to the client."""
    if isinstance(error, InvalidRegionError):
        return 404
    if isinstance(error, TooManyTargetsError):
        return 400
    return 500


def create_app(orchestrator: CrawlOrchestrator, writer: Optional[JsonlResultWriter] = None) -> Flask:
    """
    Build the Flask application.

    Args:
        orchestrator: Orchestrator running the crawl batches
        writer: Sink receiving every successful batch
    """
    app = Flask(__name__)
    writer = writer or JsonlResultWriter()

    @app.route('/v1/localidades/<ufs>', methods=['GET'])
    def get_localities(ufs: str):
        """Crawl the requested UFs and write them to the result file."""
        codes = ufs.split(',')
        try:
            batch = orchestrator.crawl(codes)
            written = writer.write(batch)
        except LocalityCrawlerError as e:
            status = status_for_error(e)
            logger.warning(f"Request for {ufs!r} failed with {status}: {e}")
            return jsonify({
                'error': type(e).__name__,
                'message': e.message,
                'details': {key: str(value) for key, value in e.details.items()}
            }), status
        except Exception as e:
            handle_error(e, context={"ufs": ufs}, reraise=False)
            return jsonify({
                'error': type(e).__name__,
                'message': str(e),
                'details': {}
            }), 500

        return jsonify({
            'status': 'ok',
            'regions': [
                {'uf': result.uf, 'localities': len(result.localities)}
                for result in batch
            ],
            'lines_written': written,
            'output': str(writer.path)
        }), 200

    @app.route('/health', methods=['GET'])
    def health_check():
        """Basic health check endpoint."""
        return jsonify({
            'status': 'healthy',
            'timestamp': datetime.now().isoformat()
        })

    return app
