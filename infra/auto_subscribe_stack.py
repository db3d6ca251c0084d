"""Log Auto-Subscribe CDK Stack.

This stack deploys:
- A scheduled sweep Lambda that reconciles every existing log group
- A reaction Lambda triggered by CloudTrail CreateLogGroup events
- Least-privilege IAM for subscription filters and the invoke permission grant
- A CloudWatch alarm on sweep failures when metrics are enabled
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel

from aws_cdk import (
    Duration,
    Stack,
    Tags,
)
from aws_cdk import (
    aws_cloudwatch as cloudwatch,
)
from aws_cdk import (
    aws_events as events,
)
from aws_cdk import (
    aws_events_targets as targets,
)
from aws_cdk import (
    aws_iam as iam,
)
from aws_cdk import (
    aws_lambda as _lambda,
)
from aws_cdk import (
    aws_logs as logs,
)
from constructs import Construct

DEFAULT_CODE_PATH = Path(__file__).resolve().parent.parent / "src"
APP_NAME = "log-auto-subscribe"


class AutoSubscribeStack(Stack):
    """CDK Stack for keeping log groups subscribed to one destination."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        config: Union[Dict[str, Any], BaseModel],
        code_path: Optional[Union[str, Path]] = None,
        sweep_schedule: Optional[events.Schedule] = None,
        **kwargs
    ) -> None:
        """Initialize the stack.

        Args:
            scope: CDK scope
            construct_id: Stack identifier
            config: SubscribeConfig (or its dict form) from the config loader
            code_path: Directory bundled as the Lambda code asset. It must
                contain the ``subscription`` and ``ops`` packages and their
                dependencies (see the ``bundle`` nox session).
            sweep_schedule: Sweep schedule; defaults to hourly
            **kwargs: Additional stack arguments
        """
        super().__init__(scope, construct_id, **kwargs)

        # Normalize config to a plain dictionary
        if isinstance(config, BaseModel):
            self.config = config.model_dump()
        else:
            self.config = dict(config)
        if not self.config.get("destination_arn"):
            raise ValueError("config must define destination_arn")

        self.code = _lambda.Code.from_asset(str(code_path or DEFAULT_CODE_PATH))
        self.lambda_env = self._lambda_environment()

        self.sweep_function = self._create_function(
            "SweepFunction", "sweep", "ops.reconciler.lambda_handler", Duration.minutes(15)
        )
        self.new_log_group_function = self._create_function(
            "NewLogGroupFunction", "new-log-group", "ops.new_log_groups.lambda_handler", Duration.minutes(1)
        )

        for fn in (self.sweep_function, self.new_log_group_function):
            self._grant_subscription_access(fn)

        self._create_sweep_schedule(sweep_schedule or events.Schedule.rate(Duration.hours(1)))
        self._create_new_log_group_rule()

        if self.config.get("metrics_namespace"):
            self.sweep_function.add_to_role_policy(iam.PolicyStatement(
                actions=["cloudwatch:PutMetricData"],
                resources=["*"],
                conditions={"StringEquals": {"cloudwatch:namespace": self.config["metrics_namespace"]}},
            ))
            self._create_failure_alarm()

        self._apply_tags()

    def _lambda_environment(self) -> Dict[str, str]:
        tags = self.config.get("tags") or ()
        env = {
            "ENVIRONMENT": self.config.get("environment", "dev"),
            "DESTINATION_ARN": self.config["destination_arn"],
            "PREFIX": self.config.get("prefix") or "",
            "EXCLUDE_PREFIX": self.config.get("exclude_prefix") or "",
            "TAGS": ",".join(_tag_token(t) for t in tags),
            "FILTER_NAME": self.config.get("filter_name", "ship-logs"),
            "FILTER_PATTERN": self.config.get("filter_pattern", ""),
            "ROLE_ARN": self.config.get("role_arn") or "",
            "METRICS_NAMESPACE": self.config.get("metrics_namespace") or "",
            "LOG_LEVEL": (self.config.get("logging") or {}).get("level", "INFO"),
            "STRUCTURED_LOGGING": "true" if (self.config.get("logging") or {}).get("structured") else "false",
        }
        # Unset values are omitted; the config loader treats missing and blank alike
        return {key: value for key, value in env.items() if value}

    def _create_function(self, construct_id: str, suffix: str, handler: str, timeout: Duration) -> _lambda.Function:
        return _lambda.Function(
            self, construct_id,
            function_name=f"{APP_NAME}-{self.config.get('environment', 'dev')}-{suffix}",
            runtime=_lambda.Runtime.PYTHON_3_11,
            handler=handler,
            code=self.code,
            timeout=timeout,
            memory_size=256,
            environment=self.lambda_env,
            log_retention=logs.RetentionDays.ONE_MONTH,
        )

    def _grant_subscription_access(self, fn: _lambda.Function) -> None:
        """Grant the calls made by the subscription client."""
        fn.add_to_role_policy(iam.PolicyStatement(
            actions=[
                "logs:DescribeLogGroups",
                "logs:ListTagsLogGroup",
                "logs:DescribeSubscriptionFilters",
                "logs:PutSubscriptionFilter",
            ],
            resources=["*"],
        ))

        destination_arn = self.config["destination_arn"]
        if ":lambda:" in destination_arn:
            fn.add_to_role_policy(iam.PolicyStatement(
                actions=["lambda:AddPermission"],
                resources=[destination_arn],
            ))

        role_arn = self.config.get("role_arn")
        if role_arn:
            fn.add_to_role_policy(iam.PolicyStatement(
                actions=["iam:PassRole"],
                resources=[role_arn],
            ))

    def _create_sweep_schedule(self, schedule: events.Schedule) -> None:
        rule = events.Rule(
            self, "SweepSchedule",
            schedule=schedule,
            enabled=True,
            description="Periodic sweep subscribing existing log groups",
        )
        rule.add_target(targets.LambdaFunction(self.sweep_function))
        self.sweep_rule = rule

    def _create_new_log_group_rule(self) -> None:
        rule = events.Rule(
            self, "NewLogGroupRule",
            description="Subscribe log groups as soon as they are created",
            event_pattern=events.EventPattern(
                source=["aws.logs"],
                detail_type=["AWS API Call via CloudTrail"],
                detail={
                    "eventSource": ["logs.amazonaws.com"],
                    "eventName": ["CreateLogGroup"],
                },
            ),
        )
        rule.add_target(targets.LambdaFunction(self.new_log_group_function, retry_attempts=2))
        self.new_log_group_rule = rule

    def _create_failure_alarm(self) -> None:
        """Alarm when a sweep could not subscribe one or more log groups."""
        metric = cloudwatch.Metric(
            namespace=self.config["metrics_namespace"],
            metric_name="Failed",
            statistic="Sum",
            period=Duration.hours(1),
        )
        self.failure_alarm = cloudwatch.Alarm(
            self, "SweepFailuresAlarm",
            metric=metric,
            threshold=1,
            evaluation_periods=1,
            comparison_operator=cloudwatch.ComparisonOperator.GREATER_THAN_OR_EQUAL_TO_THRESHOLD,
            alarm_description="Alarm when the sweep fails to subscribe log groups",
            treat_missing_data=cloudwatch.TreatMissingData.NOT_BREACHING,
        )

    def _apply_tags(self) -> None:
        """Apply consistent tags to all resources."""
        tags = {
            "Application": APP_NAME,
            "Environment": self.config.get("environment", "dev"),
            "ManagedBy": "CDK",
        }

        for key, value in tags.items():
            Tags.of(self).add(key, value)


def _tag_token(requirement: Any) -> str:
    if isinstance(requirement, dict):
        name, value = requirement.get("name"), requirement.get("value")
    else:
        name, value = getattr(requirement, "name"), getattr(requirement, "value")
    return name if value is None else f"{name}={value}"
