"""
CodeVault Backend — Search Filter Unit Tests
=============================================

What we test:
    ✅ Equivalent filters hash identically
    ✅ SQL conditions only for the filters that are set
    ✅ Tag post-filter is a case-insensitive superset match
"""

from codevault.schemas.snippet import SearchFilters
from codevault.services import search


class TestFilterNormalization:
    def test_blank_values_are_dropped(self):
        filters = SearchFilters(query="  ", language="", tags=[" ", ""])
        assert search.normalize_filters(filters) == {}

    def test_tags_are_lowercased_deduplicated_and_sorted(self):
        filters = SearchFilters(tags=["React", "hooks", "react"])
        assert search.normalize_filters(filters)["tags"] == ["hooks", "react"]

    def test_equivalent_filters_share_a_hash(self):
        a = SearchFilters(query="debounce ", tags=["JS", "utils"])
        b = SearchFilters(query="debounce", tags=["utils", "js"])
        assert search.filters_hash(a) == search.filters_hash(b)

    def test_no_filters_hash_like_empty_filters(self):
        assert search.filters_hash(None) == search.filters_hash(SearchFilters())


class TestConditions:
    def test_no_conditions_without_filters(self):
        assert search.build_conditions(None) == []

    def test_query_and_language_each_add_a_condition(self):
        conditions = search.build_conditions(SearchFilters(query="fetch", language="python"))
        assert len(conditions) == 2

    def test_like_wildcards_are_escaped(self):
        assert search._escape_like("100%_done") == "100\\%\\_done"


class TestTagFilter:
    snippets = [
        {"id": 1, "tags": [{"name": "React"}, {"name": "Hooks"}]},
        {"id": 2, "tags": [{"name": "react"}]},
        {"id": 3, "tags": []},
    ]

    def test_superset_match_is_case_insensitive(self):
        result = search.filter_by_tags(self.snippets, ["react", "HOOKS"])
        assert [s["id"] for s in result] == [1]

    def test_single_tag_matches_every_carrier(self):
        result = search.filter_by_tags(self.snippets, ["REACT"])
        assert [s["id"] for s in result] == [1, 2]

    def test_empty_tag_list_keeps_everything(self):
        assert len(search.filter_by_tags(self.snippets, [])) == 3

    def test_matches_tags_works_on_objects(self):
        class TagObj:
            def __init__(self, name):
                self.name = name

        class SnippetObj:
            tags = [TagObj("Python")]

        assert search.matches_tags(SnippetObj(), ["python"])
        assert not search.matches_tags(SnippetObj(), ["python", "async"])
