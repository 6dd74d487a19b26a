"""Internal article model produced by the account sync layer."""

from feedsync.parser.models import ParsedAttachment, ParsedAuthor, ParsedItem


__all__ = [
    "ParsedAttachment",
    "ParsedAuthor",
    "ParsedItem",
]
