"""Conversion of Feedly entries into ParsedItem."""

from bs4 import BeautifulSoup

from feedsync.feedly.models import FeedlyEntry, FeedlyLink
from feedsync.parser.models import ParsedAttachment, ParsedAuthor, ParsedItem


HTML_CONTENT_TYPE = "text/html"


def plain_text(html: str | None) -> str | None:
    """Strip markup and decode entities, collapsing whitespace.

    Args:
        html: HTML fragment or plain text.

    Returns:
        The text, or None if nothing is left.
    """
    if not html:
        return None
    if "<" not in html and "&" not in html:
        text = html
    else:
        text = BeautifulSoup(html, "lxml").get_text(separator=" ")
    text = " ".join(text.split())
    return text or None


class FeedlyEntryParser:
    """Maps one FeedlyEntry onto the internal article model."""

    def __init__(self, entry: FeedlyEntry) -> None:
        self.entry = entry

    @property
    def unique_id(self) -> str:
        return self.entry.entry_id

    @property
    def feed_url(self) -> str | None:
        """Stream id of the originating feed (``feed/<url>``)."""
        if self.entry.origin is None:
            return None
        return self.entry.origin.stream_id or None

    @property
    def url(self) -> str | None:
        """The article's link, preferring an HTML alternate."""
        alternate = _first_link(self.entry.alternate, HTML_CONTENT_TYPE)
        if alternate is not None:
            return alternate
        return _first_link(self.entry.canonical) or _first_link(self.entry.alternate)

    @property
    def external_url(self) -> str | None:
        canonical = _first_link(self.entry.canonical)
        if canonical is None or canonical == self.url:
            return None
        return canonical

    @property
    def title(self) -> str | None:
        return plain_text(self.entry.title)

    @property
    def content_html(self) -> str | None:
        # Some feeds only publish a summary
        for body in (self.entry.content, self.entry.summary):
            if body is not None and body.content:
                return body.content
        return None

    @property
    def summary(self) -> str | None:
        if self.entry.summary is None:
            return None
        return self.entry.summary.content or None

    @property
    def image_url(self) -> str | None:
        if self.entry.visual is None or self.entry.visual.url in (None, "none"):
            return None
        return self.entry.visual.url

    @property
    def authors(self) -> frozenset[ParsedAuthor]:
        if not self.entry.author:
            return frozenset()
        return frozenset({ParsedAuthor(name=self.entry.author)})

    @property
    def tags(self) -> frozenset[str]:
        return frozenset(tag.label for tag in self.entry.tags or () if tag.label)

    @property
    def attachments(self) -> frozenset[ParsedAttachment]:
        return frozenset(
            ParsedAttachment(
                url=link.href,
                mime_type=link.type,
                size_in_bytes=link.length,
            )
            for link in self.entry.enclosure or ()
            if link.href
        )

    @property
    def parsed_item(self) -> ParsedItem | None:
        """The entry as a ParsedItem, or None if it has no origin feed."""
        feed_url = self.feed_url
        if feed_url is None:
            return None

        return ParsedItem(
            sync_service_id=self.unique_id,
            unique_id=self.unique_id,
            feed_url=feed_url,
            url=self.url,
            external_url=self.external_url,
            title=self.title,
            content_html=self.content_html,
            summary=self.summary,
            image_url=self.image_url,
            date_published=self.entry.published,
            date_modified=self.entry.updated,
            authors=self.authors,
            tags=self.tags,
            attachments=self.attachments,
        )


def _first_link(
    links: tuple[FeedlyLink, ...] | None,
    content_type: str | None = None,
) -> str | None:
    for link in links or ():
        if not link.href:
            continue
        if content_type is None or link.type is None or link.type == content_type:
            return link.href
    return None
