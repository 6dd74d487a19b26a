"""Account metadata holding the conditional-get store and fetch timestamps."""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog

from feedsync.transport.models import ConditionalGetInfo


logger = structlog.get_logger()


@dataclass
class AccountMetadata:
    """Mutable, account-scoped sync state.

    The account object owns this instance. API callers keep a plain
    reference to it and never manage its lifecycle; persisting it is the
    job of the account's storage layer (see to_dict/from_dict).

    Attributes:
        account_id: Identifier of the owning account.
        conditional_get_info: Validators per logical resource key.
        last_article_fetch_start_time: Start of the last entry sync.
        last_article_fetch_end_time: End of the last entry sync.
    """

    account_id: str = ""
    conditional_get_info: dict[str, ConditionalGetInfo] = field(default_factory=dict)
    last_article_fetch_start_time: datetime | None = None
    last_article_fetch_end_time: datetime | None = None

    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def conditional_get(self, key: str) -> ConditionalGetInfo | None:
        """Get stored validators for a resource key."""
        with self._lock:
            return self.conditional_get_info.get(key)

    def store_conditional_get(self, key: str, info: ConditionalGetInfo | None) -> None:
        """Replace the validators stored for a resource key.

        The previous entry is overwritten, never merged. Storing None
        removes the key, so the next request is unconditional.

        Args:
            key: Logical resource key (e.g. 'subscriptions').
            info: Validators captured from the latest response.
        """
        with self._lock:
            conditional_get = dict(self.conditional_get_info)
            if info is None:
                conditional_get.pop(key, None)
            else:
                conditional_get[key] = info
            self.conditional_get_info = conditional_get

        logger.debug(
            "conditional_get_stored",
            account_id=self.account_id,
            key=key,
            has_etag=info is not None and info.etag is not None,
            has_last_modified=info is not None and info.last_modified is not None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the account's storage layer."""
        with self._lock:
            return {
                "account_id": self.account_id,
                "conditional_get_info": {
                    key: info.model_dump()
                    for key, info in self.conditional_get_info.items()
                },
                "last_article_fetch_start_time": _isoformat(
                    self.last_article_fetch_start_time
                ),
                "last_article_fetch_end_time": _isoformat(
                    self.last_article_fetch_end_time
                ),
            }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AccountMetadata":
        """Restore metadata serialized with to_dict()."""
        return cls(
            account_id=data.get("account_id", ""),
            conditional_get_info={
                key: ConditionalGetInfo.model_validate(value)
                for key, value in (data.get("conditional_get_info") or {}).items()
            },
            last_article_fetch_start_time=_parse_datetime(
                data.get("last_article_fetch_start_time")
            ),
            last_article_fetch_end_time=_parse_datetime(
                data.get("last_article_fetch_end_time")
            ),
        )


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None
