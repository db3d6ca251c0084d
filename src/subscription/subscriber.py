"""Idempotent subscription with a single self-healing permission retry.

Subscribing a log group to a Lambda destination requires the function's
resource policy to allow CloudWatch Logs to invoke it. That permission is
commonly missing on first use, so when ``PutSubscriptionFilter`` fails with
the exact missing-permission signature the permission is granted and the
call is retried exactly once. Every other failure propagates unchanged.
"""

import logging
from typing import Any

from subscription.errors import is_missing_invoke_permission

logger = logging.getLogger(__name__)


class Subscriber:
    """Ensures a log group is subscribed to a destination.

    ``client`` must provide ``put_subscription_filter(log_group_name,
    destination_arn)`` and ``grant_invoke_permission(destination_arn)``.
    """

    def __init__(self, client: Any):
        self.client = client

    def ensure_subscription(self, log_group_name: str, destination_arn: str) -> None:
        """Subscribe ``log_group_name`` to ``destination_arn``.

        Safe to call when the subscription already exists: the filter is
        overwritten in place.

        Raises:
            Exception: The original put error when it is not the missing
                permission error, the grant error when granting fails, or the
                retry error when the second put fails.
        """
        try:
            self.client.put_subscription_filter(log_group_name, destination_arn)
        except Exception as e:
            if not is_missing_invoke_permission(e):
                logger.debug(
                    f"PutSubscriptionFilter failed for {log_group_name}: {e}",
                    extra={"log_group_name": log_group_name, "destination_arn": destination_arn},
                )
                raise
            self._grant_and_retry(log_group_name, destination_arn)
            return

        logger.info(
            f"Subscribed {log_group_name} to {destination_arn}",
            extra={"log_group_name": log_group_name, "destination_arn": destination_arn},
        )

    def _grant_and_retry(self, log_group_name: str, destination_arn: str) -> None:
        logger.info(
            f"Adding lambda:InvokeFunction permission to CloudWatch Logs for [{destination_arn}]",
            extra={"log_group_name": log_group_name, "destination_arn": destination_arn},
        )
        self.client.grant_invoke_permission(destination_arn)

        # one retry only; a recurring permission error is terminal
        self.client.put_subscription_filter(log_group_name, destination_arn)
        logger.info(
            f"Subscribed {log_group_name} to {destination_arn} after granting invoke permission",
            extra={"log_group_name": log_group_name, "destination_arn": destination_arn},
        )
