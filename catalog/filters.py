"""
Filter resolution for listing and detail requests.

Turns the loosely typed option bag sent by the browser into exactly one
normalized filter variant. Malformed input never raises: numeric fields
that are absent or not numeric are treated as ``0`` ("inactive").
"""

import math
import re
from typing import Any, List, Mapping, Optional

import structlog

from .models import (
    AuthorFilter, CustomColumnFilter, Filter, SearchFilter, SeriesFilter, TagFilter,
)

logger = structlog.get_logger(__name__)

# Separator marking a leading article in titles (used for sorting)
ARTICLE_SEPARATOR = "¬"

# Characters treated as word boundaries in search strings (without _ and %)
_WHITESPACE_CHARS = re.compile(r'[/,.|\s*?!:;()\[\]&"+]+')


def search_string_to_tokens(search_string: str) -> List[str]:
    """
    Split a search string into lowercase search tokens.

    Single quotes are escaped by doubling. An empty string yields ``[""]``.
    """
    text = search_string.lower().replace(ARTICLE_SEPARATOR, " ")
    text = _WHITESPACE_CHARS.sub(" ", text).strip()
    return text.replace("'", "''").split(" ")


def parse_int(value: Any) -> int:
    """Parse a numeric request field, returning 0 for anything unusable."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return 0
        return int(number) if math.isfinite(number) else 0
    return 0


def _sort_string(options: Mapping[str, Any]) -> str:
    sort_string = options.get("sortString")
    return sort_string if isinstance(sort_string, str) else ""


def _search_tokens(options: Mapping[str, Any]) -> Optional[List[str]]:
    search_string = options.get("searchString")
    if not search_string:
        return None
    return search_string_to_tokens(str(search_string))


def resolve_filter(options: Mapping[str, Any], default_type: Optional[str] = None) -> Filter:
    """
    Build the filter for a request.

    ``type == "serie"`` and ``type == "author"`` are dedicated entry points.
    Otherwise a tag id wins over a custom column, which wins over the plain
    search.

    Args:
        options: Raw request fields
        default_type: Type taken from the URL when the body has none

    Returns:
        The single active filter variant
    """
    if not isinstance(options, Mapping):
        options = {}
    filter_type = options.get("type") or default_type
    sort_string = _sort_string(options)

    if filter_type == "serie":
        return SeriesFilter(series_id=parse_int(options.get("serieId")), sort_string=sort_string)
    if filter_type == "author":
        return AuthorFilter(author_id=parse_int(options.get("authorsId")), sort_string=sort_string)

    search_tokens = _search_tokens(options)
    tag_id = parse_int(options.get("tagId"))
    cc_num = parse_int(options.get("ccNum"))

    if tag_id > 0:
        logger.debug("Resolved tag filter", tag_id=tag_id)
        return TagFilter(tag_id=tag_id, search_tokens=search_tokens, sort_string=sort_string)
    if cc_num > 0:
        cc_id = max(parse_int(options.get("ccId")), 0)
        logger.debug("Resolved custom column filter", cc_num=cc_num, cc_id=cc_id)
        return CustomColumnFilter(
            cc_num=cc_num, cc_id=cc_id, search_tokens=search_tokens, sort_string=sort_string
        )
    return SearchFilter(search_tokens=search_tokens, sort_string=sort_string)
