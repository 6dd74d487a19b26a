"""Feedbin wire models.

Decoded per request from the v2 JSON API and handed to the account's
persistence layer; nothing here is stored by this package.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class FeedbinModel(BaseModel):
    """Base for response models: immutable, tolerant of new server fields."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class FeedbinPayload(BaseModel):
    """Base for request payloads."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)


class FeedbinSubscriptionJSONFeed(FeedbinModel):
    """JSON Feed extras returned for subscriptions in extended mode."""

    favicon: str | None = None
    icon: str | None = None


class FeedbinSubscription(FeedbinModel):
    """A subscription (a feed the user follows)."""

    subscription_id: int = Field(alias="id")
    feed_id: int
    title: str | None = None
    feed_url: str
    home_page_url: str | None = Field(default=None, alias="site_url")
    created_at: datetime | None = None
    json_feed: FeedbinSubscriptionJSONFeed | None = None


class FeedbinSubscriptionChoice(FeedbinModel):
    """One candidate feed returned when a URL is ambiguous (HTTP 300)."""

    name: str | None = Field(default=None, alias="title")
    url: str = Field(alias="feed_url")


class FeedbinTag(FeedbinModel):
    """A tag (folder)."""

    tag_id: int = Field(alias="id")
    name: str


class FeedbinTagging(FeedbinModel):
    """Membership of a feed in a tag."""

    tagging_id: int = Field(alias="id")
    feed_id: int
    name: str


class FeedbinEnclosure(FeedbinModel):
    """Podcast-style enclosure of an entry."""

    enclosure_url: str | None = None
    enclosure_type: str | None = None
    enclosure_length: int | str | None = None
    itunes_duration: int | str | None = None


class FeedbinImageSize(FeedbinModel):
    """A resized copy of an entry image."""

    cdn_url: str | None = None
    width: int | None = None
    height: int | None = None


class FeedbinImages(FeedbinModel):
    """Images extracted for an entry."""

    original_url: str | None = None
    size_1: FeedbinImageSize | None = None


class FeedbinEntry(FeedbinModel):
    """An entry (article) in extended mode."""

    article_id: int = Field(alias="id")
    feed_id: int
    title: str | None = None
    url: str | None = None
    author: str | None = None
    content_html: str | None = Field(default=None, alias="content")
    summary: str | None = None
    date_published: datetime | None = Field(default=None, alias="published")
    date_arrived: datetime | None = Field(default=None, alias="created_at")
    extracted_content_url: str | None = None
    images: FeedbinImages | None = None
    enclosure: FeedbinEnclosure | None = None


class FeedbinImportItem(FeedbinModel):
    """One feed of an OPML import."""

    title: str | None = None
    feed_url: str
    status: str


class FeedbinImportResult(FeedbinModel):
    """Status of an OPML import."""

    import_id: int = Field(alias="id")
    complete: bool
    created_at: datetime | None = None
    import_items: list[FeedbinImportItem] = Field(default_factory=list)


class FeedbinRenameTag(FeedbinPayload):
    """Payload for POST tags.json."""

    old_name: str
    new_name: str


class FeedbinCreateSubscription(FeedbinPayload):
    """Payload for POST subscriptions.json."""

    feed_url: str


class FeedbinUpdateSubscription(FeedbinPayload):
    """Payload for POST subscriptions/<id>/update.json."""

    title: str


class FeedbinCreateTagging(FeedbinPayload):
    """Payload for POST taggings.json."""

    feed_id: int
    name: str


class FeedbinUnreadEntries(FeedbinPayload):
    """Payload for POST/DELETE unread_entries.json."""

    unread_entries: list[int]


class FeedbinStarredEntries(FeedbinPayload):
    """Payload for POST/DELETE starred_entries.json."""

    starred_entries: list[int]


class CreateSubscriptionOutcome(str, Enum):
    """Outcome of creating a subscription."""

    CREATED = "created"
    MULTIPLE_CHOICE = "multiple_choice"
    ALREADY_SUBSCRIBED = "already_subscribed"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class CreateSubscriptionResult:
    """Result of creating a subscription.

    Attributes:
        outcome: Which of the four outcomes occurred.
        subscription: The new subscription (CREATED only).
        choices: Candidate feeds (MULTIPLE_CHOICE only).
    """

    outcome: CreateSubscriptionOutcome
    subscription: FeedbinSubscription | None = None
    choices: tuple[FeedbinSubscriptionChoice, ...] = ()

    @classmethod
    def created(cls, subscription: FeedbinSubscription) -> "CreateSubscriptionResult":
        return cls(CreateSubscriptionOutcome.CREATED, subscription=subscription)

    @classmethod
    def multiple_choice(
        cls, choices: list[FeedbinSubscriptionChoice]
    ) -> "CreateSubscriptionResult":
        return cls(CreateSubscriptionOutcome.MULTIPLE_CHOICE, choices=tuple(choices))

    @classmethod
    def already_subscribed(cls) -> "CreateSubscriptionResult":
        return cls(CreateSubscriptionOutcome.ALREADY_SUBSCRIBED)

    @classmethod
    def not_found(cls) -> "CreateSubscriptionResult":
        return cls(CreateSubscriptionOutcome.NOT_FOUND)


@dataclass(frozen=True)
class EntriesPage:
    """One page of the global entries listing.

    Attributes:
        entries: Entries on this page (None when the body was empty).
        next_page: URL of the next page, if any.
        date: Server time from the Date header, used as the sync start time.
        last_page_number: Index of the last page, from the Link header.
    """

    entries: list[FeedbinEntry] | None
    next_page: str | None = None
    date: datetime | None = None
    last_page_number: int | None = None
