"""Text processing helpers (hashtag extraction)."""

from .hashtags import HashtagMatch, HashtagParser, extract_hashtags

__all__ = ["HashtagMatch", "HashtagParser", "extract_hashtags"]
