import sys
from pathlib import Path

import pytest

# Add the repository root so tests can import `autosubscribe`, `infra` and `tests.*`.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
# Also add src/ so `subscription` and `ops` import as top-level packages, as in Lambda.
SRC = str(ROOT / "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

CONFIG_ENV_VARS = (
    "DESTINATION_ARN",
    "PREFIX",
    "EXCLUDE_PREFIX",
    "TAGS",
    "FILTER_NAME",
    "FILTER_PATTERN",
    "ROLE_ARN",
    "METRICS_NAMESPACE",
    "LOG_LEVEL",
    "STRUCTURED_LOGGING",
    "AWS_PROFILE",
    "AWS_MAX_ATTEMPTS",
    "ALLOW_AWS_APPLY",
    "APPLY_CONFIRM",
)


@pytest.fixture(autouse=True)
def aws_env(monkeypatch):
    """Isolate tests from the caller's AWS and subscription settings."""
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    # Dummy credentials so botocore signing never reaches for a real profile
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    # No config/test.yml exists, so only the environment configures the loader
    monkeypatch.setenv("ENVIRONMENT", "test")
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    from ops.bootstrap import get_config

    get_config.cache_clear()
    yield
    get_config.cache_clear()
