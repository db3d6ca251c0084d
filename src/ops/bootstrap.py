"""Process-wide configuration for the Lambda entry points."""

from functools import lru_cache

from subscription.config import SubscribeConfig, load_config
from subscription.logging_utils import configure_logging


@lru_cache(maxsize=1)
def get_config() -> SubscribeConfig:
    """Load configuration and set up logging once per Lambda container."""
    config = load_config()
    configure_logging(config.logging)
    return config
