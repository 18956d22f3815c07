"""
Unit tests for filter resolution and search tokenization.
"""

import pytest
from pydantic import ValidationError

from catalog.filters import parse_int, resolve_filter, search_string_to_tokens
from catalog.models import (
    AuthorFilter, CustomColumnFilter, FilterKind, SearchFilter, SeriesFilter, TagFilter,
)


class TestSearchStringToTokens:
    """Test cases for search string tokenization."""

    def test_simple_search(self):
        assert search_string_to_tokens("Harry Potter") == ["harry", "potter"]

    def test_punctuation_collapses_to_single_separator(self):
        assert search_string_to_tokens("Tolkien, J.R.R. (Hobbit)!") == ["tolkien", "j", "r", "r", "hobbit"]

    def test_article_separator(self):
        assert search_string_to_tokens("Der¬Spiegel") == ["der", "spiegel"]

    def test_single_quotes_are_doubled(self):
        assert search_string_to_tokens("O'Brien") == ["o''brien"]

    def test_wildcards_are_kept(self):
        assert search_string_to_tokens("50% off_road") == ["50%", "off_road"]

    def test_empty_string_yields_one_empty_token(self):
        assert search_string_to_tokens("") == [""]
        assert search_string_to_tokens(" ... ") == [""]

    @pytest.mark.parametrize("text", [
        "Harry Potter",
        "  Der Spiegel | 12/2024 ",
        "a+b&c [d] {e}",
        "Herr¬der Ringe; Teil: 1?",
    ])
    def test_tokenization_is_idempotent(self, text):
        tokens = search_string_to_tokens(text)
        assert search_string_to_tokens(" ".join(tokens)) == tokens


class TestParseInt:
    """Test cases for numeric field parsing."""

    @pytest.mark.parametrize("value, expected", [
        (None, 0),
        ("", 0),
        ("abc", 0),
        ("5abc", 0),
        ("nan", 0),
        (True, 0),
        ([], 0),
        ("7", 7),
        (" 12 ", 12),
        ("3.9", 3),
        (4.7, 4),
        (8, 8),
        ("-2", -2),
    ])
    def test_parse_int(self, value, expected):
        assert parse_int(value) == expected


class TestResolveFilter:
    """Test cases for filter precedence."""

    def test_plain_search(self):
        active = resolve_filter({"searchString": "Harry Potter"})
        assert isinstance(active, SearchFilter)
        assert active.kind == FilterKind.SEARCH
        assert active.search_tokens == ["harry", "potter"]
        assert active.sort_string == ""

    def test_no_options_lists_everything(self):
        active = resolve_filter({})
        assert isinstance(active, SearchFilter)
        assert active.search_tokens is None

    def test_tag_wins_over_custom_column(self):
        active = resolve_filter({"tagId": 5, "ccNum": 3, "ccId": 2, "searchString": "x"})
        assert isinstance(active, TagFilter)
        assert active.tag_id == 5
        assert active.search_tokens == ["x"]

    def test_custom_column(self):
        active = resolve_filter({"ccNum": "3", "sortString": "title desc"})
        assert isinstance(active, CustomColumnFilter)
        assert (active.cc_num, active.cc_id) == (3, 0)
        assert active.sort_string == "title desc"

    def test_invalid_numbers_are_inactive(self):
        active = resolve_filter({"tagId": "abc", "ccNum": "-1"})
        assert isinstance(active, SearchFilter)

    def test_series_entry_point_ignores_tag_and_custom_column(self):
        active = resolve_filter({"type": "serie", "serieId": "4", "tagId": 5, "ccNum": 3})
        assert isinstance(active, SeriesFilter)
        assert active.series_id == 4

    def test_author_entry_point_from_url_type(self):
        active = resolve_filter({"authorsId": 9, "tagId": 5}, default_type="author")
        assert isinstance(active, AuthorFilter)
        assert active.author_id == 9

    def test_body_type_overrides_url_type(self):
        active = resolve_filter({"type": "serie", "serieId": 1}, default_type="author")
        assert isinstance(active, SeriesFilter)

    def test_non_mapping_options(self):
        assert isinstance(resolve_filter(None), SearchFilter)

    def test_filters_are_immutable(self):
        active = resolve_filter({"tagId": 1})
        with pytest.raises(ValidationError):
            active.tag_id = 2
