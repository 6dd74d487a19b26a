"""Account synchronization layer for hosted feed-aggregation services.

Provides API callers for Feedbin and Feedly, a small operation queue for
sequencing dependent network calls, and the HTTP transport they share.
"""

__version__ = "0.1.0"
