"""
Pytest configuration for CEP locality crawler tests.
"""

import os
import tempfile

# Business loggers are created at import time; keep their files out of the working tree.
os.environ.setdefault("CEP_CRAWLER_LOG_DIR", tempfile.mkdtemp(prefix="cep_locality_crawler_logs_"))

from hypothesis import settings, Verbosity

# Configure Hypothesis for faster test runs
settings.register_profile("fast", max_examples=10, deadline=None, verbosity=Verbosity.quiet)
settings.register_profile("thorough", max_examples=100, deadline=None, verbosity=Verbosity.normal)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "fast"))


def pytest_configure(config):
    """Configure pytest with custom settings."""
    import logging
    logging.getLogger("cep_locality_crawler").setLevel(logging.WARNING)
    logging.getLogger("hypothesis").setLevel(logging.WARNING)
    config.addinivalue_line("markers", "integration: exercises several components together")
