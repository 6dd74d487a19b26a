"""Constants for the Feedbin v2 API.

Feedbin currently allows at most 250 requests per second. Exceeding the
limit yields HTTP 403 responses and the client IP is blocked for about
five minutes.
"""

SERVICE_FEEDBIN = "feedbin"

FEEDBIN_BASE_URL = "https://api.feedbin.com/v2/"
FEEDBIN_MAX_QPS = 250.0

# Query parameters
MODE_EXTENDED = "extended"
ENTRIES_PER_PAGE = 100

# Entry fetch windows
INITIAL_FETCH_MONTHS = 3
BACKDATE_DAYS = 1

# Location header path of a newly created tagging, e.g. .../v2/taggings/42.json
TAGGING_LOCATION_PREFIX = "v2/taggings/"
TAGGING_LOCATION_SUFFIX = ".json"


class ConditionalGetKeys:
    """Account metadata keys for the conditionally fetched resources."""

    SUBSCRIPTIONS = "subscriptions"
    TAGS = "tags"
    TAGGINGS = "taggings"
    UNREAD_ENTRIES = "unreadEntries"
    STARRED_ENTRIES = "starredEntries"
