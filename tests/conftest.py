import sys
import os

import pytest

# Ensure the project root is in sys.path so `from noter_gateway.main import app` works
# with relative imports inside the package
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# The application reads its settings at import time
os.environ.setdefault("GROQ_API_KEY", "test-key")

from noter_gateway.main import app  # noqa: E402
from noter_gateway.rate_limit import RateLimiter  # noqa: E402
from noter_gateway.uploads import TemporaryUploadStore  # noqa: E402


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture(autouse=True)
def fresh_app_state(upload_dir):
    """Give every test its own rate limit table and upload directory."""
    app.state.rate_limiter = RateLimiter(limit=15, window_seconds=60.0)
    app.state.upload_store = TemporaryUploadStore(upload_dir)
    yield
    app.state.rate_limiter.reset()
