"""Service-independent article model.

Every account syncer converts its service's entries into ParsedItem before
handing them to the article store.
"""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


class ParsedAuthor(BaseModel):
    """An article author."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str | None = None
    url: str | None = None
    avatar_url: str | None = None
    email_address: str | None = None


class ParsedAttachment(BaseModel):
    """A media attachment (enclosure) of an article."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    url: Annotated[str, Field(min_length=1)]
    mime_type: str | None = None
    title: str | None = None
    size_in_bytes: int | None = None
    duration_in_seconds: int | None = None


class ParsedItem(BaseModel):
    """An article as parsed from a feed or a sync service.

    Attributes:
        sync_service_id: Identifier of the article on the sync service.
        unique_id: Identifier unique within the feed.
        feed_url: URL (or service stream id) of the feed it belongs to.
        url: Link to the article.
        external_url: Link to the page the article discusses, if different.
        title: Plain text title.
        content_html: HTML body.
        content_text: Plain text body.
        summary: Short description.
        image_url: Lead image.
        date_published: Publication timestamp.
        date_modified: Last update timestamp.
        authors: Article authors.
        tags: Labels applied to the article.
        attachments: Enclosures.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    sync_service_id: str | None = None
    unique_id: Annotated[str, Field(min_length=1)]
    feed_url: Annotated[str, Field(min_length=1)]
    url: str | None = None
    external_url: str | None = None
    title: str | None = None
    content_html: str | None = None
    content_text: str | None = None
    summary: str | None = None
    image_url: str | None = None
    date_published: datetime | None = None
    date_modified: datetime | None = None
    authors: frozenset[ParsedAuthor] = frozenset()
    tags: frozenset[str] = frozenset()
    attachments: frozenset[ParsedAttachment] = frozenset()
