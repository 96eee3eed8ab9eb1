"""Tests for permalink fragments shared by several tables."""

from livetable.query.location import (
    filters_from_fragment,
    page_from_fragment,
    update_fragment,
)


class TestReadFragment:
    """Tests for reading a table's entry."""

    def test_page_of_matching_table(self):
        fragment = "#t=users&p=2|t=docs&p=7&status=open"
        assert page_from_fragment(fragment, "docs") == 7
        assert page_from_fragment(fragment, "users") == 2

    def test_page_defaults_to_one(self):
        assert page_from_fragment("", "docs") == 1
        assert page_from_fragment("t=users&p=4", "docs") == 1
        assert page_from_fragment("t=docs&p=abc", "docs") == 1
        assert page_from_fragment("t=docs&p=0", "docs") == 1

    def test_filters_exclude_reserved_keys(self):
        fragment = "t=docs&p=3&status=open&title=a%20b"
        assert filters_from_fragment(fragment, "docs") == {
            "status": "open",
            "title": "a b",
        }

    def test_filters_of_missing_table(self):
        assert filters_from_fragment("t=users&p=2&x=1", "docs") == {}


class TestUpdateFragment:
    """Tests for writing a table's entry."""

    def test_untouched_table_leaves_empty_fragment(self):
        assert update_fragment("", "docs", 1, "") == ""

    def test_writes_page_and_filters(self):
        assert update_fragment("", "docs", 3, "&status=open") == "t=docs&p=3&status=open"

    def test_keeps_other_tables(self):
        fragment = "#t=users&p=2|t=docs&p=1"
        updated = update_fragment(fragment, "docs", 4, "")
        assert updated == "t=users&p=2|t=docs&p=4"

    def test_replaces_own_entry_only_once(self):
        fragment = "t=docs&p=2|t=users&p=5"
        updated = update_fragment(fragment, "docs", 1, "&q=x")
        assert updated == "t=users&p=5|t=docs&p=1&q=x"
        assert page_from_fragment(updated, "users") == 5

    def test_round_trip(self):
        updated = update_fragment("", "docs", 6, "&status=closed")
        assert page_from_fragment(updated, "docs") == 6
        assert filters_from_fragment(updated, "docs") == {"status": "closed"}
