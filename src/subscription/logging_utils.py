"""Logging setup for the Lambda handlers and the CLI.

Plain text logging for local use, one JSON object per line when structured
logging is enabled so CloudWatch Logs Insights can query the extra fields.
"""

import json
import logging
from typing import Any, Dict

from subscription.config import LoggingConfig

# Attributes present on every LogRecord; anything else came in through `extra`
_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": record.created,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(config: LoggingConfig) -> None:
    """Configure the root logger once per process.

    The Lambda runtime installs its own handler on the root logger, so
    existing handlers are reused and only their formatter is replaced.
    """
    root = logging.getLogger()
    root.setLevel(config.level.upper())

    if config.structured:
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    if not root.handlers:
        root.addHandler(logging.StreamHandler())
    for handler in root.handlers:
        handler.setFormatter(formatter)

    # botocore is chatty at DEBUG
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
