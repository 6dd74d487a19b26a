"""Feedly cloud API wire models."""

from datetime import UTC, datetime
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _from_epoch_milliseconds(value: object) -> object:
    """Convert Feedly's millisecond timestamps into aware datetimes."""
    if isinstance(value, int | float) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=UTC)
    return value


EpochMilliseconds = Annotated[datetime, BeforeValidator(_from_epoch_milliseconds)]


class FeedlyModel(BaseModel):
    """Base for response models: immutable, tolerant of new server fields."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class FeedlyFeed(FeedlyModel):
    """A feed inside a collection."""

    feed_id: str = Field(alias="id")
    title: str | None = None
    website: str | None = None
    updated: EpochMilliseconds | None = None


class FeedlyCollection(FeedlyModel):
    """A collection (folder) of feeds."""

    collection_id: str = Field(alias="id")
    label: str
    feeds: tuple[FeedlyFeed, ...] = ()


class FeedlyOrigin(FeedlyModel):
    """The feed an entry came from."""

    stream_id: str | None = Field(default=None, alias="streamId")
    title: str | None = None
    html_url: str | None = Field(default=None, alias="htmlUrl")


class FeedlyLink(FeedlyModel):
    """A link attached to an entry (alternate, canonical or enclosure)."""

    href: str
    type: str | None = None
    length: int | None = None


class FeedlyContent(FeedlyModel):
    """An HTML body with its text direction."""

    content: str | None = None
    direction: str | None = None


class FeedlyTag(FeedlyModel):
    """A tag applied to an entry."""

    tag_id: str = Field(alias="id")
    label: str | None = None


class FeedlyVisual(FeedlyModel):
    """Lead image of an entry."""

    url: str | None = None


class FeedlyEntry(FeedlyModel):
    """An entry (article) as returned by ``entries/.mget``."""

    entry_id: str = Field(alias="id")
    title: str | None = None
    content: FeedlyContent | None = None
    summary: FeedlyContent | None = None
    author: str | None = None
    published: EpochMilliseconds | None = None
    updated: EpochMilliseconds | None = None
    origin: FeedlyOrigin | None = None
    alternate: tuple[FeedlyLink, ...] | None = None
    canonical: tuple[FeedlyLink, ...] | None = None
    enclosure: tuple[FeedlyLink, ...] | None = None
    visual: FeedlyVisual | None = None
    unread: bool | None = None
    tags: tuple[FeedlyTag, ...] | None = None


class FeedlyStreamIds(FeedlyModel):
    """One page of entry ids of a stream."""

    ids: tuple[str, ...] = ()
    continuation: str | None = None


class FeedlyEntryIdsPayload(BaseModel):
    """Request body for ``entries/.mget``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ids: list[str]
