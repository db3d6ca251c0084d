"""Reconciler Lambda: sweeps all log groups and subscribes the eligible ones.

For every log group the reconciler checks eligibility, reads the current
subscription destination and calls the subscriber only when the filter is
missing or points at another destination. A failure on one log group is
recorded in the report and never stops the sweep.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from subscription.aws import LogsSubscriptionClient, build_session, client_config
from subscription.config import SubscribeConfig
from subscription.errors import StateReadError, error_kind
from subscription.metrics import publish_sweep_metrics
from subscription.schemas import GroupOutcome, OutcomeAction, SubscribeReason, SweepReport
from subscription.selector import is_eligible
from subscription.subscriber import Subscriber

from ops.bootstrap import get_config

logger = logging.getLogger(__name__)


class Reconciler:
    """Diffs current against desired destination for every log group."""

    def __init__(
        self,
        config: SubscribeConfig,
        client: Any,
        subscriber: Optional[Subscriber] = None,
        *,
        dry_run: bool = False,
    ):
        self.config = config
        self.client = client
        self.subscriber = subscriber or Subscriber(client)
        self.dry_run = dry_run

    def run(self, log_group_names: Optional[Iterable[str]] = None) -> SweepReport:
        """Reconcile every log group and return the per-group outcomes.

        When ``log_group_names`` is None all log groups are listed; the
        configured prefix narrows the listing server-side.
        """
        if log_group_names is None:
            log_group_names = self.client.list_log_groups(prefix=self.config.prefix)

        report = SweepReport(dry_run=self.dry_run)
        for name in log_group_names:
            report.add(self.reconcile_one(name))
        report.finished_at = datetime.utcnow()

        logger.info(f"Sweep finished: {report.summary()}", extra={"dry_run": self.dry_run})
        return report

    def reconcile_one(self, log_group_name: str) -> GroupOutcome:
        try:
            return self._reconcile(log_group_name)
        except Exception as e:
            logger.warning(
                f"Cannot process existing log group {log_group_name}, skipped: {e}",
                extra={"log_group_name": log_group_name, "error_kind": error_kind(e)},
            )
            return GroupOutcome(
                log_group_name=log_group_name,
                action=OutcomeAction.FAILED,
                error_kind=error_kind(e),
                error_message=str(e),
            )

    def _reconcile(self, log_group_name: str) -> GroupOutcome:
        logger.debug(f"Checking log group {log_group_name}", extra={"log_group_name": log_group_name})

        def fetch_tags() -> Dict[str, str]:
            return self.client.get_tags(log_group_name)

        if not is_eligible(log_group_name, fetch_tags, self.config):
            return GroupOutcome(log_group_name=log_group_name, action=OutcomeAction.SKIPPED)

        current = self._read_destination(log_group_name)
        if current == self.config.destination_arn:
            return GroupOutcome(log_group_name=log_group_name, action=OutcomeAction.UNCHANGED)

        if current is None:
            reason = SubscribeReason.NEW_FILTER
            logger.debug(f"[{log_group_name}] doesn't have a filter yet", extra={"log_group_name": log_group_name})
        else:
            reason = SubscribeReason.STALE_FILTER
            logger.debug(
                f"[{log_group_name}] has an old destination ARN [{current}], updating...",
                extra={
                    "log_group_name": log_group_name,
                    "old_arn": current,
                    "arn": self.config.destination_arn,
                },
            )

        if self.dry_run:
            action = OutcomeAction.WOULD_SUBSCRIBE
        else:
            self.subscriber.ensure_subscription(log_group_name, self.config.destination_arn)
            action = OutcomeAction.SUBSCRIBED

        return GroupOutcome(
            log_group_name=log_group_name,
            action=action,
            reason=reason,
            previous_destination=current,
        )

    def _read_destination(self, log_group_name: str) -> Optional[str]:
        try:
            return self.client.get_subscription_destination(log_group_name)
        except Exception as e:
            raise StateReadError(
                f"Failed to read subscription filters for {log_group_name}: {e}", log_group_name
            ) from e


def lambda_handler(
    event: Optional[Dict[str, Any]],
    context: Any,
    logs_client: Any = None,
    cloudwatch_client: Any = None,
) -> Dict[str, Any]:
    """Entry point for the scheduled sweep.

    ``logs_client`` and ``cloudwatch_client`` may be injected by tests; by
    default they are built from the process configuration. Set
    ``{"dry_run": true}`` in the event to report without writing.
    Returns a summary dict with the names of failed log groups.
    """
    config = get_config()
    client = logs_client or LogsSubscriptionClient(config)
    dry_run = bool((event or {}).get("dry_run", False))

    report = Reconciler(config, client, dry_run=dry_run).run()

    if config.metrics_namespace and not dry_run:
        cw = cloudwatch_client or build_session(config).client("cloudwatch", config=client_config(config))
        publish_sweep_metrics(report, config.metrics_namespace, cw)

    result: Dict[str, Any] = dict(report.summary())
    result["dry_run"] = dry_run
    result["failures"] = [
        {"log_group_name": o.log_group_name, "error_kind": o.error_kind, "error": o.error_message}
        for o in report.failures
    ]
    return result
