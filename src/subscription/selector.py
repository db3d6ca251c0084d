"""Eligibility predicate for log group subscription."""

import logging
from typing import Callable, Dict

from subscription.config import SubscribeConfig
from subscription.errors import SelectionError

logger = logging.getLogger(__name__)

TagFetcher = Callable[[], Dict[str, str]]


def is_eligible(log_group_name: str, tag_fetcher: TagFetcher, config: SubscribeConfig) -> bool:
    """Decide whether a log group should be subscribed.

    Checks run cheapest first and stop at the first decision: exclude prefix,
    then prefix, then tags. ``tag_fetcher`` is only called (once) when tag
    requirements are configured.

    Raises:
        SelectionError: If the tag lookup fails.
    """
    if config.exclude_prefix and log_group_name.startswith(config.exclude_prefix):
        logger.debug(
            f"Ignored [{log_group_name}] because it matches the exclude prefix",
            extra={"log_group_name": log_group_name, "exclude_prefix": config.exclude_prefix},
        )
        return False

    if config.prefix and not log_group_name.startswith(config.prefix):
        logger.debug(
            f"Ignored [{log_group_name}] because it doesn't match the prefix",
            extra={"log_group_name": log_group_name, "prefix": config.prefix},
        )
        return False

    if not config.tags:
        return True

    try:
        tags = tag_fetcher()
    except Exception as e:
        raise SelectionError(f"Failed to fetch tags for {log_group_name}: {e}", log_group_name) from e

    if any(requirement.satisfied_by(tags) for requirement in config.tags):
        return True

    logger.debug(
        f"Ignored [{log_group_name}] because it doesn't have any of the required tags",
        extra={"log_group_name": log_group_name, "tags": ",".join(str(t) for t in config.tags)},
    )
    return False
