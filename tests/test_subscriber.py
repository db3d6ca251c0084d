import pytest

from subscription.errors import MISSING_PERMISSION_CODE
from subscription.subscriber import Subscriber
from tests.fakes import DESTINATION, FakeLogsClient, client_error, missing_permission_error

GROUP = "/aws/lambda/api"


def test_successful_put_does_not_grant():
    client = FakeLogsClient([GROUP])

    Subscriber(client).ensure_subscription(GROUP, DESTINATION)

    assert client.count("put_subscription_filter") == 1
    assert client.count("grant_invoke_permission") == 0
    assert client.destinations[GROUP] == DESTINATION


def test_missing_permission_grants_once_and_retries_once():
    client = FakeLogsClient([GROUP], put_errors={GROUP: [missing_permission_error()]})

    Subscriber(client).ensure_subscription(GROUP, DESTINATION)

    assert [call[0] for call in client.calls] == [
        "put_subscription_filter",
        "grant_invoke_permission",
        "put_subscription_filter",
    ]
    assert client.calls[1] == ("grant_invoke_permission", DESTINATION)


def test_recurring_permission_error_is_not_retried_again():
    client = FakeLogsClient(
        [GROUP], put_errors={GROUP: [missing_permission_error(), missing_permission_error()]}
    )

    with pytest.raises(Exception) as exc_info:
        Subscriber(client).ensure_subscription(GROUP, DESTINATION)

    assert exc_info.value.response["Error"]["Code"] == MISSING_PERMISSION_CODE
    assert client.count("grant_invoke_permission") == 1
    assert client.count("put_subscription_filter") == 2


def test_same_code_with_different_message_is_not_self_healed():
    error = client_error(MISSING_PERMISSION_CODE, "Filter pattern is invalid")
    client = FakeLogsClient([GROUP], put_errors={GROUP: [error]})

    with pytest.raises(Exception) as exc_info:
        Subscriber(client).ensure_subscription(GROUP, DESTINATION)

    assert exc_info.value is error
    assert client.count("grant_invoke_permission") == 0


def test_other_errors_propagate_unchanged():
    error = client_error("LimitExceededException", "Resource limit exceeded.")
    client = FakeLogsClient([GROUP], put_errors={GROUP: [error]})

    with pytest.raises(Exception) as exc_info:
        Subscriber(client).ensure_subscription(GROUP, DESTINATION)

    assert exc_info.value is error
    assert client.count("put_subscription_filter") == 1


def test_grant_failure_propagates_without_retry():
    grant_error = client_error("ResourceConflictException", "The statement id provided already exists.", "AddPermission")
    client = FakeLogsClient(
        [GROUP], put_errors={GROUP: [missing_permission_error()]}, grant_errors=[grant_error]
    )

    with pytest.raises(Exception) as exc_info:
        Subscriber(client).ensure_subscription(GROUP, DESTINATION)

    assert exc_info.value is grant_error
    assert client.count("put_subscription_filter") == 1


def test_subscriber_never_reads_state():
    client = FakeLogsClient([GROUP])

    Subscriber(client).ensure_subscription(GROUP, DESTINATION)

    assert client.count("get_subscription_destination") == 0
    assert client.count("get_tags") == 0
