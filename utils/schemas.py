"""
Pydantic Schemas - Data Validation Models

Defines the schemas shared by the watcher pipeline:
- Upstream API responses (ranked ID list, item detail)
- Snapshot records written to the line-delimited output files

Upstream item payloads use `score` / `descendants`; the output file uses the
compact `s` / `c` keys and `t` for the capture time:

    {"t": "2024-01-02T00:00:01Z", "items": [{"id": 5, "s": 50, "c": 5}]}

Usage:
    from utils.schemas import ItemDetail, Snapshot, encode_snapshot

    detail = ItemDetail.model_validate({"id": 5, "score": 50})
    line = encode_snapshot(Snapshot(timestamp=now, items=(detail,)))
"""

from datetime import datetime, timezone
from typing import Annotated, Any

import orjson
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, field_validator

MAX_PAGE_SIZE = 30

RankedItemId = Annotated[int, Field(strict=True, ge=0)]

TopStoryIds = TypeAdapter(list[RankedItemId])


class ItemDetail(BaseModel):
    """One ranked item enriched with its score and comment count.

    Missing or null `score` / `descendants` are read as 0.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: RankedItemId = Field(..., description="Item ID")
    score: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("score", "s"),
        serialization_alias="s",
        description="Item score",
    )
    comment_count: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("descendants", "c", "comment_count"),
        serialization_alias="c",
        description="Total comment count",
    )

    @field_validator("score", "comment_count", mode="before")
    @classmethod
    def null_as_zero(cls, v: Any) -> Any:
        return 0 if v is None else v


class Snapshot(BaseModel):
    """Timestamped, rank-ordered batch of item details.

    `items` keeps the upstream ranking order; it is never resorted.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: datetime = Field(
        ...,
        validation_alias=AliasChoices("t", "timestamp"),
        serialization_alias="t",
        description="Capture time (UTC)",
    )
    items: tuple[ItemDetail, ...] = Field(default_factory=tuple, max_length=MAX_PAGE_SIZE)

    @field_validator("timestamp")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


def encode_snapshot(snapshot: Snapshot) -> str:
    """Serialize a snapshot to one JSON line (without the trailing newline)."""
    return orjson.dumps(snapshot.model_dump(mode="json", by_alias=True)).decode("utf-8")


def decode_snapshot(line: str | bytes) -> Snapshot:
    """Parse one output line back into a Snapshot.

    Raises:
        orjson.JSONDecodeError: If the line is not JSON
        pydantic.ValidationError: If the object is not a snapshot
    """
    return Snapshot.model_validate(orjson.loads(line))
