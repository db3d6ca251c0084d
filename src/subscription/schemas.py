"""Schemas for subscription selection, sweep reporting and creation events.

This module defines Pydantic models shared by the sweep and the new log group
handler: tag requirements parsed from configuration, per log group outcome
records, the aggregated sweep report, and the CloudTrail ``CreateLogGroup``
notification delivered by EventBridge.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class TagRequirement(BaseModel):
    """A presence (``value`` is None) or exact-match condition on one tag."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    value: Optional[str] = None

    def satisfied_by(self, tags: Dict[str, str]) -> bool:
        if self.value is None:
            return bool(tags.get(self.name))
        return tags.get(self.name) == self.value

    def __str__(self) -> str:
        return self.name if self.value is None else f"{self.name}={self.value}"


def parse_tag_requirements(raw: str) -> Tuple[TagRequirement, ...]:
    """Parse ``"env=prod,team"`` into tag requirements.

    Empty tokens are ignored. A token that splits into exactly one name and
    one value is an exact match; any other token (``team``, ``a=b=c``) only
    requires its first segment to be present.
    """
    requirements = []
    for token in raw.split(","):
        token = token.strip()
        if not token:
            continue
        segments = token.split("=")
        if len(segments) == 2:
            requirements.append(TagRequirement(name=segments[0].strip(), value=segments[1].strip()))
        else:
            requirements.append(TagRequirement(name=segments[0].strip()))
    return tuple(requirements)


class OutcomeAction(str, Enum):
    """What the sweep did (or would do) for one log group."""
    SKIPPED = "skipped"
    UNCHANGED = "unchanged"
    SUBSCRIBED = "subscribed"
    WOULD_SUBSCRIBE = "would_subscribe"
    FAILED = "failed"


class SubscribeReason(str, Enum):
    """Why a subscription call was needed."""
    NEW_FILTER = "new_filter"
    STALE_FILTER = "stale_filter"


class GroupOutcome(BaseModel):
    """Result of processing a single log group."""
    log_group_name: str
    action: OutcomeAction
    reason: Optional[SubscribeReason] = None
    previous_destination: Optional[str] = None
    error_kind: Optional[str] = None
    error_message: Optional[str] = None


class SweepReport(BaseModel):
    """Aggregated per log group outcomes of one sweep run."""
    started_at: datetime = Field(default_factory=datetime.utcnow)
    finished_at: Optional[datetime] = None
    dry_run: bool = False
    outcomes: List[GroupOutcome] = Field(default_factory=list)

    def add(self, outcome: GroupOutcome) -> None:
        self.outcomes.append(outcome)

    def count(self, action: OutcomeAction) -> int:
        return sum(1 for o in self.outcomes if o.action == action)

    @property
    def failures(self) -> List[GroupOutcome]:
        return [o for o in self.outcomes if o.action == OutcomeAction.FAILED]

    def summary(self) -> Dict[str, int]:
        """Counts per action, plus the total number of log groups seen."""
        counts = {action.value: self.count(action) for action in OutcomeAction}
        counts["scanned"] = len(self.outcomes)
        return counts


class CreateLogGroupRequest(BaseModel):
    """``requestParameters`` of a CloudTrail ``CreateLogGroup`` call."""
    logGroupName: str = Field(..., min_length=1)


class CreateLogGroupDetail(BaseModel):
    """``detail`` section of the EventBridge CloudTrail notification."""
    eventSource: Optional[str] = None
    eventName: Optional[str] = None
    requestParameters: CreateLogGroupRequest


class CreateLogGroupEvent(BaseModel):
    """EventBridge envelope for ``AWS API Call via CloudTrail`` notifications.

    Only ``detail.requestParameters.logGroupName`` is required; the rest of
    the envelope is kept for logging.
    """
    id: Optional[str] = None
    source: Optional[str] = None
    account: Optional[str] = None
    region: Optional[str] = None
    detail: CreateLogGroupDetail

    @property
    def log_group_name(self) -> str:
        return self.detail.requestParameters.logGroupName
