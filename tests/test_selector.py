import pytest

from subscription.errors import SelectionError
from subscription.selector import is_eligible
from tests.fakes import make_config


class CountingFetcher:
    def __init__(self, tags=None, error=None):
        self.tags = tags or {}
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.error:
            raise self.error
        return self.tags


def test_no_filters_accepts_everything_without_fetching_tags():
    fetcher = CountingFetcher()

    assert is_eligible("/aws/lambda/anything", fetcher, make_config())
    assert fetcher.calls == 0


def test_exclude_prefix_wins_over_prefix_and_tags():
    fetcher = CountingFetcher({"team": "core"})
    config = make_config(prefix="/aws/lambda/", exclude_prefix="/aws/lambda/internal-", tags="team")

    assert not is_eligible("/aws/lambda/internal-job", fetcher, config)
    assert fetcher.calls == 0


def test_prefix_mismatch_is_rejected_without_fetching_tags():
    fetcher = CountingFetcher({"team": "core"})
    config = make_config(prefix="/aws/lambda/", tags="team")

    assert not is_eligible("/ecs/service", fetcher, config)
    assert fetcher.calls == 0


def test_prefix_match_without_tag_requirements():
    assert is_eligible("/aws/lambda/api", CountingFetcher(), make_config(prefix="/aws/lambda/"))


@pytest.mark.parametrize(
    "raw_tags, group_tags, expected",
    [
        ("team", {"team": "core"}, True),
        ("team", {"team": ""}, False),
        ("team", {"owner": "core"}, False),
        ("env=prod", {"env": "prod"}, True),
        ("env=prod", {"env": "dev"}, False),
        ("env=prod,team", {"env": "dev", "team": "core"}, True),
        ("env=prod,team", {"env": "dev"}, False),
        ("a=b=c", {"a": "x"}, True),
        ("a=b=c", {"a": "b=c"}, True),
        ("a=b=c", {"b": "c"}, False),
    ],
)
def test_tag_requirements_use_or_semantics(raw_tags, group_tags, expected):
    fetcher = CountingFetcher(group_tags)

    assert is_eligible("/aws/lambda/api", fetcher, make_config(tags=raw_tags)) is expected
    assert fetcher.calls == 1


def test_tag_fetch_failure_raises_selection_error():
    fetcher = CountingFetcher(error=RuntimeError("throttled"))

    with pytest.raises(SelectionError) as exc_info:
        is_eligible("/aws/lambda/api", fetcher, make_config(tags="team"))

    assert exc_info.value.log_group_name == "/aws/lambda/api"
    assert isinstance(exc_info.value.__cause__, RuntimeError)


def test_config_is_not_mutated():
    config = make_config(prefix="/aws/", tags="team")
    before = config.model_dump()

    is_eligible("/aws/lambda/api", CountingFetcher({"team": "x"}), config)

    assert config.model_dump() == before
