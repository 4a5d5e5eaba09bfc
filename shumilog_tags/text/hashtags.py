"""Hashtag extraction from free text.

Two forms are recognised:
    #{multi word name}   delimited form, the name is trimmed
    #name                bare form, runs until whitespace or a brace

Example:
    "Watching #{Attack on Titan} with #anime fans, #{アニメ}と#ゲーム"
    -> ["Attack on Titan", "anime", "アニメ", "ゲーム"]
"""

import re
from dataclasses import dataclass
from typing import Literal

# Regex patterns
DELIMITED_PATTERN = re.compile(r"#\{([^}]*)\}")
BARE_PATTERN = re.compile(r"#([^\s{}]+)")

HashtagForm = Literal["delimited", "bare"]


@dataclass(frozen=True)
class HashtagMatch:
    """A hashtag found in text."""

    name: str
    offset: int  # character offset of the '#' in the source text
    form: HashtagForm


class HashtagParser:
    """Extracts tag names from text, in order of first appearance."""

    def find(self, text: str | None) -> list[HashtagMatch]:
        """Find unique hashtags with their positions.

        Matches of both forms are pooled and sorted by offset; a repeated name
        keeps only its earliest occurrence.

        Args:
            text: Free text (tag description, log content)

        Returns:
            List of matches ordered by offset
        """
        if not text:
            return []

        pool: list[HashtagMatch] = []
        delimited_spans: list[tuple[int, int]] = []

        for match in DELIMITED_PATTERN.finditer(text):
            delimited_spans.append(match.span())
            pool.append(HashtagMatch(match.group(1).strip(), match.start(), "delimited"))

        for match in BARE_PATTERN.finditer(text):
            # "#{a #b}" names a single tag "a #b"
            if any(start <= match.start() < end for start, end in delimited_spans):
                continue
            pool.append(HashtagMatch(match.group(1), match.start(), "bare"))

        pool.sort(key=lambda m: m.offset)

        seen: set[str] = set()
        result: list[HashtagMatch] = []
        for item in pool:
            if not item.name or item.name in seen:
                continue
            seen.add(item.name)
            result.append(item)

        return result

    def extract(self, text: str | None) -> list[str]:
        """Extract unique tag names in order of first appearance.

        Args:
            text: Free text

        Returns:
            Tag names, empty list when the text has no hashtags
        """
        return [match.name for match in self.find(text)]


_parser = HashtagParser()


def extract_hashtags(text: str | None) -> list[str]:
    """Module-level shortcut for HashtagParser().extract(text)."""
    return _parser.extract(text)
