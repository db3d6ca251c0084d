import pytest

pytest.importorskip("aws_cdk")

from aws_cdk import App, assertions  # noqa: E402

from infra.auto_subscribe_stack import AutoSubscribeStack  # noqa: E402
from subscription.config import SubscribeConfig  # noqa: E402
from tests.fakes import DESTINATION  # noqa: E402


def _template(**overrides):
    overrides.setdefault("destination_arn", DESTINATION)
    cfg = SubscribeConfig(environment="test", **overrides)
    stack = AutoSubscribeStack(App(), "AutoSubscribeTest", config=cfg)
    return assertions.Template.from_stack(stack)


def _functions(template):
    resources = template.to_json().get("Resources", {})
    return {
        res["Properties"].get("FunctionName"): res["Properties"]
        for res in resources.values()
        if res.get("Type") == "AWS::Lambda::Function" and res["Properties"].get("FunctionName")
    }


def test_sweep_and_new_log_group_functions():
    template = _template(prefix="/aws/lambda/app-", tags="env=prod,team")

    functions = _functions(template)
    sweep = functions["log-auto-subscribe-test-sweep"]
    reaction = functions["log-auto-subscribe-test-new-log-group"]
    assert sweep["Handler"] == "ops.reconciler.lambda_handler"
    assert reaction["Handler"] == "ops.new_log_groups.lambda_handler"

    variables = sweep["Environment"]["Variables"]
    assert variables["DESTINATION_ARN"] == DESTINATION
    assert variables["PREFIX"] == "/aws/lambda/app-"
    assert variables["TAGS"] == "env=prod,team"
    assert "ROLE_ARN" not in variables


def test_rules_for_schedule_and_create_log_group():
    template = _template()

    template.has_resource_properties("AWS::Events::Rule", {"ScheduleExpression": "rate(1 hour)"})
    template.has_resource_properties("AWS::Events::Rule", {
        "EventPattern": {
            "source": ["aws.logs"],
            "detail-type": ["AWS API Call via CloudTrail"],
            "detail": {"eventSource": ["logs.amazonaws.com"], "eventName": ["CreateLogGroup"]},
        },
    })


def test_add_permission_scoped_to_destination():
    template = _template()

    template.has_resource_properties("AWS::IAM::Policy", {
        "PolicyDocument": {
            "Statement": assertions.Match.array_with([
                assertions.Match.object_like({"Action": "lambda:AddPermission", "Resource": DESTINATION}),
            ]),
        },
    })


def test_failure_alarm_only_with_metrics():
    template_without = _template()
    template_without.resource_count_is("AWS::CloudWatch::Alarm", 0)

    template_with = _template(metrics_namespace="LogAutoSubscribe")
    template_with.has_resource_properties("AWS::CloudWatch::Alarm", {
        "MetricName": "Failed",
        "Namespace": "LogAutoSubscribe",
    })


def test_missing_destination_rejected():
    with pytest.raises(ValueError):
        AutoSubscribeStack(App(), "Broken", config={"environment": "test"})
