"""Thin CloudWatch Logs / Lambda adapter used by the sweep and the event handler.

This wraps the boto3 calls behind the small interface the selector,
subscriber and reconciler rely on, so tests can swap in fake clients.
Throttling retries are left to botocore (standard retry mode).
"""

import logging
import uuid
from typing import Any, Dict, Iterator, Optional

import boto3
from botocore.config import Config

from subscription.config import SubscribeConfig

logger = logging.getLogger(__name__)

LOGS_PRINCIPAL = "logs.amazonaws.com"


def build_session(config: SubscribeConfig) -> boto3.Session:
    kwargs: Dict[str, Any] = {}
    if config.aws.profile:
        kwargs["profile_name"] = config.aws.profile
    if config.aws.region:
        kwargs["region_name"] = config.aws.region
    return boto3.Session(**kwargs)


def client_config(config: SubscribeConfig) -> Config:
    return Config(retries={"mode": "standard", "max_attempts": config.aws.max_attempts})


class LogsSubscriptionClient:
    """CloudWatch Logs subscription operations for one configured filter.

    Clients are created lazily so constructing the adapter never touches AWS.
    """

    def __init__(
        self,
        config: SubscribeConfig,
        *,
        session: Optional[boto3.Session] = None,
        logs_client: Any = None,
        lambda_client: Any = None,
    ):
        self.config = config
        self._session = session
        self._logs = logs_client
        self._lambda = lambda_client

    def _client(self, service: str) -> Any:
        if self._session is None:
            self._session = build_session(self.config)
        return self._session.client(service, config=client_config(self.config))

    @property
    def logs(self) -> Any:
        if self._logs is None:
            self._logs = self._client("logs")
        return self._logs

    @property
    def lambda_client(self) -> Any:
        if self._lambda is None:
            self._lambda = self._client("lambda")
        return self._lambda

    def list_log_groups(self, prefix: Optional[str] = None) -> Iterator[str]:
        """Yield every log group name, following pagination."""
        params: Dict[str, Any] = {}
        if prefix:
            params["logGroupNamePrefix"] = prefix
        paginator = self.logs.get_paginator("describe_log_groups")
        for page in paginator.paginate(**params):
            for group in page.get("logGroups", []):
                yield group["logGroupName"]

    def get_tags(self, log_group_name: str) -> Dict[str, str]:
        resp = self.logs.list_tags_log_group(logGroupName=log_group_name)
        return resp.get("tags", {})

    def get_subscription_destination(self, log_group_name: str) -> Optional[str]:
        """Return the destination of our filter, else of the first filter, else None."""
        resp = self.logs.describe_subscription_filters(logGroupName=log_group_name)
        filters = resp.get("subscriptionFilters", [])
        if not filters:
            return None
        for f in filters:
            if f.get("filterName") == self.config.filter_name:
                return f.get("destinationArn")
        return filters[0].get("destinationArn")

    def put_subscription_filter(self, log_group_name: str, destination_arn: str) -> None:
        params: Dict[str, Any] = {
            "logGroupName": log_group_name,
            "filterName": self.config.filter_name,
            "filterPattern": self.config.filter_pattern,
            "destinationArn": destination_arn,
        }
        # Kinesis and Firehose destinations need a role CloudWatch Logs can assume
        if self.config.role_arn:
            params["roleArn"] = self.config.role_arn
        self.logs.put_subscription_filter(**params)

    def grant_invoke_permission(self, destination_arn: str) -> None:
        """Allow CloudWatch Logs to invoke the destination Lambda function."""
        statement_id = f"invoke-{uuid.uuid4()}"
        self.lambda_client.add_permission(
            FunctionName=destination_arn,
            StatementId=statement_id,
            Action="lambda:InvokeFunction",
            Principal=LOGS_PRINCIPAL,
        )
        logger.info(
            f"Granted {LOGS_PRINCIPAL} invoke permission on {destination_arn}",
            extra={"destination_arn": destination_arn, "statement_id": statement_id},
        )
