"""CloudWatch metrics for sweep runs."""

import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from subscription.schemas import OutcomeAction, SweepReport

logger = logging.getLogger(__name__)

METRIC_NAMES = {
    OutcomeAction.SUBSCRIBED: "Subscribed",
    OutcomeAction.FAILED: "Failed",
    OutcomeAction.SKIPPED: "Skipped",
    OutcomeAction.UNCHANGED: "Unchanged",
}


def publish_sweep_metrics(report: SweepReport, namespace: str, cloudwatch_client: Any) -> bool:
    """Publish per-action counts of a sweep.

    Returns False (after logging) when CloudWatch rejects the data; a metrics
    outage must not turn a completed sweep into a failed invocation.
    """
    metric_data = [
        {"MetricName": name, "Value": float(report.count(action)), "Unit": "Count"}
        for action, name in METRIC_NAMES.items()
    ]
    try:
        cloudwatch_client.put_metric_data(Namespace=namespace, MetricData=metric_data)
    except (ClientError, BotoCoreError) as e:
        logger.warning(f"Failed to publish sweep metrics to {namespace}: {e}")
        return False
    return True
