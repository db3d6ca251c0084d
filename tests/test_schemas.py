"""Tests for tag requirement parsing and sweep reports."""

from subscription.schemas import (
    GroupOutcome,
    OutcomeAction,
    SweepReport,
    TagRequirement,
    parse_tag_requirements,
)


def test_parse_tag_requirements():
    assert parse_tag_requirements("env=prod,team") == (
        TagRequirement(name="env", value="prod"),
        TagRequirement(name="team"),
    )


def test_parse_ignores_empty_tokens_and_whitespace():
    assert parse_tag_requirements(" , env = prod ,, ") == (TagRequirement(name="env", value="prod"),)
    assert parse_tag_requirements("") == ()


def test_token_with_several_equals_is_a_presence_check():
    (requirement,) = parse_tag_requirements("query=a=b")
    assert requirement.name == "query"
    assert requirement.value is None


def test_empty_value_is_an_exact_match_on_empty_string():
    (requirement,) = parse_tag_requirements("flag=")
    assert requirement.value == ""
    assert requirement.satisfied_by({"flag": ""})
    assert not requirement.satisfied_by({})


def test_report_failures_and_summary():
    report = SweepReport()
    report.add(GroupOutcome(log_group_name="/a", action=OutcomeAction.SUBSCRIBED))
    report.add(GroupOutcome(log_group_name="/b", action=OutcomeAction.FAILED, error_kind="subscription"))
    report.add(GroupOutcome(log_group_name="/c", action=OutcomeAction.SKIPPED))

    assert [o.log_group_name for o in report.failures] == ["/b"]
    summary = report.summary()
    assert summary["scanned"] == 3
    assert summary["subscribed"] == 1
    assert summary["failed"] == 1
    assert summary["unchanged"] == 0
