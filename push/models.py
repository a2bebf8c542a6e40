"""
Data models for the push delivery pipeline.

Wire and storage formats use camelCase keys (``deviceId``, ``updatedAt``...)
so records written by any client stay readable; Python code uses the
snake_case attribute names.
"""
from dataclasses import dataclass, field
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, StrictFloat, StrictInt, model_validator
from pydantic.alias_generators import to_camel


def _require_non_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must be a non-empty string")
    return value


NonEmptyStr = Annotated[str, AfterValidator(_require_non_blank)]
Number = Union[StrictInt, StrictFloat]


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class PushSubscriptionKeys(BaseModel):
    model_config = ConfigDict(extra="allow")

    p256dh: Optional[str] = None
    auth: Optional[str] = None


class PushSubscriptionShape(CamelModel):
    """Browser ``PushSubscription.toJSON()`` output. Unknown keys are kept."""
    model_config = ConfigDict(extra="allow")

    endpoint: NonEmptyStr
    expiration_time: Optional[float] = None
    keys: Optional[PushSubscriptionKeys] = None


class PushSubscriptionRecord(CamelModel):
    """One device's subscription within a channel, keyed by endpoint."""
    endpoint: str
    device_id: str
    locale: str
    updated_at: str  # ISO-8601 UTC, compared lexicographically
    subscription: Dict[str, Any]


class MatchPushEvent(CamelModel):
    """
    A recorded match that should be announced to the channel's devices.

    This is both the body of ``POST /push/notify-match`` and the item stored
    in the client fallback queue. Ratings and ranks are optional; when sent
    they must be numbers (ranks: integers >= 1).
    """
    channel_id: NonEmptyStr
    auth_token: NonEmptyStr
    sender_device_id: NonEmptyStr
    locale: NonEmptyStr
    event_id: NonEmptyStr
    played_at: NonEmptyStr
    player_a_name: NonEmptyStr
    player_b_name: NonEmptyStr
    winner_name: NonEmptyStr
    player_a_rating: Optional[Number] = None
    player_b_rating: Optional[Number] = None
    player_a_rank: Optional[StrictInt] = Field(default=None, ge=1)
    player_b_rank: Optional[StrictInt] = Field(default=None, ge=1)

    @model_validator(mode="after")
    def _winner_is_a_player(self) -> "MatchPushEvent":
        # Exact match only: a third, unrelated name is rejected
        if self.winner_name not in (self.player_a_name, self.player_b_name):
            raise ValueError("winnerName must equal playerAName or playerBName")
        return self

    @property
    def is_player_a_winner(self) -> bool:
        return self.winner_name == self.player_a_name


class MatchPushPayloadData(CamelModel):
    event_id: str
    url: str = "/"


class MatchPushPayload(CamelModel):
    """JSON body delivered to each device's service worker."""
    type: Literal["match-played"] = "match-played"
    title: str
    body: str
    data: MatchPushPayloadData


@dataclass
class FanOutResult:
    """Aggregate outcome of one fan-out."""
    total_subscriptions: int = 0
    skipped_sender: int = 0
    attempted: int = 0
    sent: int = 0
    failed: int = 0
    stale_endpoints: List[str] = field(default_factory=list)
