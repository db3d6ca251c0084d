"""New log group Lambda: subscribes log groups as soon as they are created.

Triggered by an EventBridge rule on CloudTrail ``CreateLogGroup`` calls. A
just-created log group has no subscription filter, so the current state is
not read. Errors propagate so the asynchronous invocation retry policy and
the dead-letter configuration apply.
"""

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from subscription.aws import LogsSubscriptionClient
from subscription.config import SubscribeConfig
from subscription.errors import InvalidEventError
from subscription.schemas import CreateLogGroupEvent, GroupOutcome, OutcomeAction
from subscription.selector import is_eligible
from subscription.subscriber import Subscriber

from ops.bootstrap import get_config

logger = logging.getLogger(__name__)


def extract_log_group_name(event: Dict[str, Any]) -> str:
    """Return ``detail.requestParameters.logGroupName`` of a creation event."""
    try:
        return CreateLogGroupEvent.model_validate(event).log_group_name
    except ValidationError as e:
        raise InvalidEventError(f"Event does not identify a created log group: {e}") from e


class NewLogGroupHandler:
    """Applies the selector and subscribes a newly created log group."""

    def __init__(self, config: SubscribeConfig, client: Any, subscriber: Optional[Subscriber] = None):
        self.config = config
        self.client = client
        self.subscriber = subscriber or Subscriber(client)

    def handle(self, event: Dict[str, Any]) -> GroupOutcome:
        log_group_name = extract_log_group_name(event)

        def fetch_tags() -> Dict[str, str]:
            return self.client.get_tags(log_group_name)

        if not is_eligible(log_group_name, fetch_tags, self.config):
            return GroupOutcome(log_group_name=log_group_name, action=OutcomeAction.SKIPPED)

        self.subscriber.ensure_subscription(log_group_name, self.config.destination_arn)
        return GroupOutcome(log_group_name=log_group_name, action=OutcomeAction.SUBSCRIBED)


def lambda_handler(event: Dict[str, Any], context: Any, logs_client: Any = None) -> Dict[str, Any]:
    """Entry point for CreateLogGroup notifications."""
    config = get_config()
    logger.debug("Received event", extra={"event": event})

    client = logs_client or LogsSubscriptionClient(config)
    outcome = NewLogGroupHandler(config, client).handle(event)
    return outcome.model_dump(mode="json", exclude_none=True)
