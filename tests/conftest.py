# tests/conftest.py
import pytest

from tokendispatch.core import log, metrics


@pytest.fixture(scope="session", autouse=True)
def _bootstrap_logging():
    # reads LOG_LEVEL / LOG_JSON / .env if available
    log.setup()
    yield


@pytest.fixture(autouse=True)
def _fresh_metrics():
    metrics.reset()
    yield
    metrics.reset()
